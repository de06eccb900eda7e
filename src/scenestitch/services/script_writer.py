"""Short-form script drafting with Gemini.

Turns a one-line idea into a scene-per-line script plus title, description
and tags. The script feeds straight into ``POST /api/generate-video``.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Optional

from google.genai import Client
from google.genai import types

from scenestitch.utils.retry import APIRateLimitError, NetworkError, retry_api_call

logger = logging.getLogger(__name__)

MAX_SCRIPT_LINES = 10
MAX_TITLE_LENGTH = 60
DEFAULT_TAGS = "shorts viral"
PLACEHOLDER_LINE = "Something went wrong generating the script."

SCRIPT_PROMPT = """You are a viral YouTube Shorts scriptwriter.
Write a viral script about: {idea}

Rules:
- Line 1 must be a dramatic or funny HOOK about the theme.
- Each line is one scene: short and punchy, no dialogue, no numbers, no tags.
- 6 to 10 lines total, each line a separate scene.
- No quotes, emojis, hashtags or scene numbers.
- After the script lines, output:
Title: [viral title, no quotes]
Description: [short SEO description, no hashtags]
Tags: [max 5, space-separated, no hashtags or commas]

Example:
Did you know famous landmarks hide wild secrets?
...
Title: The Wildest Secret Rooms Inside Landmarks
Description: Uncover the wildest secret spaces hidden inside the world's most famous landmarks.
Tags: secrets landmarks travel viral history"""

_META_PATTERNS = {
    "title": re.compile(r"^title\s*:", re.IGNORECASE),
    "description": re.compile(r"^description\s*:", re.IGNORECASE),
    "tags": re.compile(r"^tags?\s*:", re.IGNORECASE),
}


class ScriptGenerationError(Exception):
    """The model call failed or returned nothing."""


@dataclass(frozen=True)
class ScriptDraft:
    """A drafted script and its publishing metadata."""

    lines: list[str]
    title: str
    description: str
    tags: str

    @property
    def script(self) -> str:
        return "\n".join(self.lines)

    def to_dict(self) -> dict:
        return {
            "success": True,
            "script": self.script,
            "title": self.title,
            "description": self.description,
            "tags": self.tags,
        }


def _meta_field(line: str) -> Optional[str]:
    for name, pattern in _META_PATTERNS.items():
        if pattern.match(line):
            return name
    return None


def default_title(idea: str) -> str:
    if len(idea) < MAX_TITLE_LENGTH:
        return idea
    return idea[: MAX_TITLE_LENGTH - 3] + "..."


def parse_script_response(raw: Optional[str], idea: str) -> ScriptDraft:
    """Split a model answer into scene lines and metadata.

    Scene lines are the non-empty lines before the first Title/Description/
    Tags line, capped at ``MAX_SCRIPT_LINES``. Missing metadata falls back to
    defaults derived from ``idea``; an answer with no scene lines yields a
    single placeholder line.
    """
    lines = [
        line.strip()
        for line in (raw or "").splitlines()
        if line.strip() and not line.strip().startswith("```")
    ]

    meta_start = next((i for i, line in enumerate(lines) if _meta_field(line)), len(lines))
    script_lines = lines[:meta_start][:MAX_SCRIPT_LINES]

    meta: dict[str, str] = {}
    for line in lines[meta_start:]:
        field = _meta_field(line)
        if field and field not in meta:
            meta[field] = line.split(":", 1)[1].strip()

    return ScriptDraft(
        lines=script_lines or [PLACEHOLDER_LINE],
        title=meta.get("title") or default_title(idea),
        description=meta.get("description") or f'Here\'s a quick look at "{idea}", stay tuned.',
        tags=meta.get("tags") or DEFAULT_TAGS,
    )


class ScriptWriter:
    """Drafts scripts from ideas using Gemini."""

    def __init__(
        self,
        api_key: Optional[str],
        model_name: str = "gemini-2.0-flash",
        temperature: float = 0.84,
        max_output_tokens: int = 900,
    ):
        """Initialize the writer.

        Args:
            api_key: Gemini API key. Without one the writer is unconfigured.
            model_name: Gemini model to use
            temperature: Sampling temperature
            max_output_tokens: Token cap for the answer
        """
        self.model_name = model_name
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.client = Client(api_key=api_key) if api_key else None

    def is_configured(self) -> bool:
        return self.client is not None

    async def write_async(self, idea: str) -> ScriptDraft:
        return await asyncio.to_thread(self.write, idea)

    @retry_api_call(max_retries=3, base_delay=2.0)
    def write(self, idea: str) -> ScriptDraft:
        """Draft a script for ``idea``.

        Raises:
            ValueError: If ``idea`` is blank
            ScriptGenerationError: If no client is configured or the call fails
        """
        idea = (idea or "").strip()
        if not idea:
            raise ValueError("Missing idea")
        if not self.client:
            raise ScriptGenerationError("Script writer is not configured (set GEMINI_API_KEY)")

        logger.info(f"[Script] Drafting script for idea: {idea!r}")
        try:
            response = self.client.models.generate_content(
                model=self.model_name,
                contents=SCRIPT_PROMPT.format(idea=idea),
                config=types.GenerateContentConfig(
                    temperature=self.temperature,
                    max_output_tokens=self.max_output_tokens,
                ),
            )
        except Exception as e:
            logger.error(f"[Script] Generation failed: {e}")
            if "rate limit" in str(e).lower() or "429" in str(e):
                raise APIRateLimitError(f"Rate limit hit: {e}") from e
            if "network" in str(e).lower() or "connection" in str(e).lower():
                raise NetworkError(f"Network error: {e}") from e
            raise ScriptGenerationError(str(e)) from e

        draft = parse_script_response(response.text, idea)
        logger.info(f"[Script] {len(draft.lines)} lines, title: {draft.title!r}")
        return draft
