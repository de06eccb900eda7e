"""Scene-related data models."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class SegmentationPolicy(str, Enum):
    """How a raw script is cut into scenes."""

    NEWLINE = "newline"
    SENTENCE = "sentence"


@dataclass(frozen=True)
class Scene:
    """One line of the script, the atomic unit of audio/media pairing."""

    id: str
    text: str
    index: int  # zero-based sequence position


@dataclass(frozen=True)
class AudioAsset:
    """Narration audio written for one scene."""

    scene_id: str
    path: Path
    provider: str
    voice_id: str


@dataclass(frozen=True)
class SceneClip:
    """Composed audio+video clip for one scene, ordered by index."""

    scene_id: str
    index: int
    path: Path
