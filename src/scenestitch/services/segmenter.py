"""Script segmentation into ordered scenes."""

import logging
import re

from scenestitch.models.scene import Scene, SegmentationPolicy

logger = logging.getLogger(__name__)

# Split after a run of terminal punctuation (optionally closed by a quote or
# bracket) that is followed by whitespace.
_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+|(?<=[.!?][\"')\]])\s+")


def _split_sentences(line: str) -> list[str]:
    return [part.strip() for part in _SENTENCE_BOUNDARY.split(line) if part.strip()]


def split_script(
    script: str, policy: SegmentationPolicy = SegmentationPolicy.NEWLINE
) -> list[Scene]:
    """Split a raw script into ordered scenes.

    With the newline policy every non-empty trimmed line becomes one scene.
    The sentence policy additionally cuts each line after ``.``, ``!`` or
    ``?`` followed by whitespace.

    Args:
        script: Raw multi-line script text
        policy: Segmentation policy

    Returns:
        Scenes in script order. Empty list for an empty or blank script.
    """
    if not script or not script.strip():
        return []

    policy = SegmentationPolicy(policy)
    texts: list[str] = []
    for raw_line in script.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        if policy is SegmentationPolicy.SENTENCE:
            texts.extend(_split_sentences(line))
        else:
            texts.append(line)

    scenes = [
        Scene(id=f"scene-{i + 1:03d}", text=text, index=i) for i, text in enumerate(texts)
    ]
    logger.debug(f"[Segmenter] {len(scenes)} scenes ({policy.value} policy)")
    return scenes
