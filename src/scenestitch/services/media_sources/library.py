"""Internal clip library backed by an R2 bucket.

Clips are matched to subjects by their object keys, so a library clip named
``stock/eiffel-tower-night.mp4`` answers the subject "eiffel tower".
"""

import asyncio
import logging
import re
import time
from pathlib import PurePosixPath
from typing import Optional

from scenestitch.models.media import MediaCandidate, MediaKind, MediaSource
from scenestitch.services.media_sources.base import MediaProvider
from scenestitch.services.r2_storage import R2Storage
from scenestitch.utils.config import get_supported_video_formats

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]+")

MIN_LOOSE_WORD_LENGTH = 4


def normalize(text: str) -> str:
    """Lowercase and drop every non-alphanumeric character."""
    return _NON_ALNUM.sub("", text.lower())


def subject_words(subject: str) -> list[str]:
    return [w for w in (normalize(part) for part in subject.split()) if w]


def match_keys(subject: str, keys: list[str]) -> list[str]:
    """Rank library keys against a subject.

    Tiers, in order:
      1. the whole normalized subject is a substring of the normalized key
      2. every subject word occurs in the key (multi-word subjects only)
      3. any subject word longer than four characters occurs in the key

    Within a tier keys keep their enumeration order. Each key appears once,
    in the earliest tier it satisfies.
    """
    full = normalize(subject)
    words = subject_words(subject)
    if not full:
        return []

    normalized = [(key, normalize(PurePosixPath(key).stem)) for key in keys]

    tiers: list[list[str]] = [[], [], []]
    for key, name in normalized:
        if full in name:
            tiers[0].append(key)
        elif len(words) > 1 and all(w in name for w in words):
            tiers[1].append(key)
        elif any(len(w) > MIN_LOOSE_WORD_LENGTH and w in name for w in words):
            tiers[2].append(key)

    return tiers[0] + tiers[1] + tiers[2]


class LibraryMediaSource(MediaProvider):
    """Clips from the internal R2 library, matched by key name."""

    source = MediaSource.LIBRARY
    kind = MediaKind.VIDEO

    def __init__(
        self,
        storage: Optional[R2Storage],
        prefix: str = "",
        cache_ttl_seconds: float = 300.0,
    ):
        """Initialize library source.

        Args:
            storage: Storage client bound to the library bucket
            prefix: Key prefix to list under
            cache_ttl_seconds: How long a bucket listing stays fresh
        """
        self.storage = storage
        self.prefix = prefix
        self.cache_ttl_seconds = cache_ttl_seconds
        self._extensions = tuple(get_supported_video_formats())
        self._cached_keys: Optional[list[str]] = None
        self._cached_at = 0.0
        self._lock = asyncio.Lock()

    def get_source_name(self) -> str:
        return "Library"

    def is_configured(self) -> bool:
        return self.storage is not None

    async def list_clips(self) -> list[str]:
        """Return video keys in the library, refreshing the cached listing."""
        async with self._lock:
            fresh = (
                self._cached_keys is not None
                and time.monotonic() - self._cached_at < self.cache_ttl_seconds
            )
            if not fresh:
                keys = await asyncio.to_thread(self.storage.list_keys, self.prefix)
                self._cached_keys = [k for k in keys if k.lower().endswith(self._extensions)]
                self._cached_at = time.monotonic()
                logger.info(f"[Library] Indexed {len(self._cached_keys)} clips")
            return self._cached_keys

    async def find_candidates(self, subject: str) -> list[MediaCandidate]:
        keys = await self.list_clips()
        matches = match_keys(subject, keys)
        if matches:
            logger.info(f"[Library] Best match for '{subject}': {matches[0]}")
        return [
            MediaCandidate(source=self.source, kind=self.kind, locator=key) for key in matches
        ]
