"""Search-subject extraction for scene text.

A subject is the short lowercase phrase used to query media providers for a
scene. Extraction is rule-based and never fails. When an API key is supplied,
``extract_async`` first asks Gemini for a phrase and falls back to the rules
whenever the answer is missing or unusable.
"""

import asyncio
import logging
import re
from typing import Optional

from google.genai import Client
from google.genai import types

logger = logging.getLogger(__name__)

LANDMARKS = [
    "eiffel tower",
    "statue of liberty",
    "great wall",
    "taj mahal",
    "colosseum",
    "big ben",
    "golden gate bridge",
    "mount everest",
    "grand canyon",
    "pyramids",
    "stonehenge",
    "niagara falls",
    "sydney opera house",
    "times square",
    "machu picchu",
    "mount rushmore",
    "tower bridge",
    "burj khalifa",
    "empire state building",
    "louvre",
    "great barrier reef",
    "christ the redeemer",
    "leaning tower of pisa",
    "angkor wat",
    "petra",
]

# Capitalized words that carry no subject when they open a sentence
STOP_WORDS = frozenset(
    {
        "a", "an", "and", "as", "at", "but", "by", "did", "do", "for", "from",
        "he", "her", "here", "his", "how", "i", "if", "in", "is", "it", "its",
        "just", "my", "now", "of", "on", "or", "our", "she", "so", "some",
        "that", "the", "their", "then", "there", "these", "they", "this",
        "those", "to", "we", "what", "when", "where", "which", "while", "who",
        "why", "with", "yes", "you", "your",
    }
)

FALLBACK_SUBJECT = "nature"
MAX_AI_SUBJECT_WORDS = 6

_LANDMARK_PATTERNS = [
    (name, re.compile(r"\b" + re.escape(name) + r"\b", re.IGNORECASE)) for name in LANDMARKS
]
_WORD = re.compile(r"[A-Za-z][A-Za-z'\-]*")
_ALPHA_TOKEN = re.compile(r"^[A-Za-z]+$")

SUBJECT_PROMPT = """You pick stock-footage search terms.
Return ONE short visual search phrase (1-4 words, concrete noun, no punctuation)
for the sentence below. Reply with the phrase only.
{title_line}
Sentence: {text}"""


def _is_capitalized(word: str) -> bool:
    return word[0].isupper()


def _capitalized_run(text: str) -> Optional[str]:
    """First run of two or more adjacent capitalized words."""
    matches = list(_WORD.finditer(text))
    run: list[str] = []
    prev_end = None

    def close(words: list[str]) -> Optional[str]:
        while words and words[0].lower() in STOP_WORDS:
            words = words[1:]
        return " ".join(words) if len(words) >= 2 else None

    for m in matches:
        word = m.group()
        adjacent = prev_end is not None and text[prev_end:m.start()].isspace()
        if _is_capitalized(word) and (not run or adjacent):
            run.append(word)
        else:
            found = close(run)
            if found:
                return found
            run = [word] if _is_capitalized(word) else []
        prev_end = m.end()

    return close(run)


def _single_capitalized(text: str) -> Optional[str]:
    for m in _WORD.finditer(text):
        word = m.group()
        if _is_capitalized(word) and word.lower() not in STOP_WORDS:
            return word
    return None


def _last_long_token(text: str) -> Optional[str]:
    for token in reversed(text.split()):
        token = token.strip(".,!?;:\"'()[]")
        if len(token) > 3 and _ALPHA_TOKEN.match(token):
            return token
    return None


class SubjectExtractor:
    """Derives a media search subject from a line of narration."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: str = "gemini-2.0-flash",
        max_output_tokens: int = 16,
    ):
        """Initialize the extractor.

        Args:
            api_key: Gemini API key. Without one only the rules are used.
            model_name: Gemini model to use
            max_output_tokens: Token cap for the model answer
        """
        self.model_name = model_name
        self.max_output_tokens = max_output_tokens
        self.client = Client(api_key=api_key) if api_key else None

        if self.client:
            logger.info(f"[Subject] AI subject extraction enabled with model: {model_name}")

    def extract(self, text: str, title: str = "") -> str:
        """Extract a lowercase, non-empty subject using the fixed rules.

        Rules in priority order, first match wins: known landmark, run of
        capitalized words, single capitalized word, last alphabetic token
        longer than three characters, the title hint, the first three tokens.
        """
        text = (text or "").strip()

        for name, pattern in _LANDMARK_PATTERNS:
            if pattern.search(text):
                return name

        subject = (
            _capitalized_run(text)
            or _single_capitalized(text)
            or _last_long_token(text)
            or (title or "").strip()
        )
        if not subject:
            subject = " ".join(text.split()[:3]) or FALLBACK_SUBJECT

        return subject.lower()

    async def extract_async(self, text: str, title: str = "") -> str:
        """Ask Gemini for a subject, falling back to ``extract``."""
        rule_subject = self.extract(text, title)
        if not self.client or not (text or "").strip():
            return rule_subject

        try:
            answer = await asyncio.to_thread(self._ask_model, text, title)
        except Exception as e:
            logger.warning(f"[Subject] AI extraction failed, using rules: {e}")
            return rule_subject

        phrase = self._clean_answer(answer)
        if not phrase:
            logger.debug(f"[Subject] Unusable AI answer {answer!r}, using '{rule_subject}'")
            return rule_subject
        return phrase

    def _ask_model(self, text: str, title: str) -> Optional[str]:
        title_line = f"Video title: {title}" if title else ""
        response = self.client.models.generate_content(
            model=self.model_name,
            contents=SUBJECT_PROMPT.format(title_line=title_line, text=text),
            config=types.GenerateContentConfig(
                temperature=0.2,
                max_output_tokens=self.max_output_tokens,
            ),
        )
        return response.text

    @staticmethod
    def _clean_answer(answer: Optional[str]) -> Optional[str]:
        if not answer:
            return None
        answer = answer.strip().strip("\"'`.")
        if not answer or "\n" in answer:
            return None
        if len(answer.split()) > MAX_AI_SUBJECT_WORDS:
            return None
        return answer.lower()
