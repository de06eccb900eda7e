"""Media candidate data models."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class MediaSource(str, Enum):
    """Where a media candidate came from."""

    LIBRARY = "library"
    PEXELS = "pexels"
    PIXABAY = "pixabay"


class MediaKind(str, Enum):
    """Video clip or still photo."""

    VIDEO = "video"
    PHOTO = "photo"


@dataclass(frozen=True)
class MediaCandidate:
    """A located piece of stock media proposed by a provider.

    The locator is a direct download URL for stock providers and an object
    key for the internal library. It is the identity used for deduplication.
    """

    source: MediaSource
    kind: MediaKind
    locator: str
    width: Optional[int] = None
    height: Optional[int] = None
    duration: Optional[float] = None  # in seconds, videos only
    page_url: Optional[str] = None

    @property
    def is_remote(self) -> bool:
        """True when the locator is an HTTP(S) URL rather than a storage key."""
        return self.locator.startswith(("http://", "https://"))

    @property
    def resolution(self) -> Optional[str]:
        """Return resolution string when dimensions are known."""
        if self.width and self.height:
            return f"{self.width}x{self.height}"
        return None
