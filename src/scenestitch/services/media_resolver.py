"""Resolve scene subjects to unique media through an ordered provider chain."""

import asyncio
import logging
from typing import Optional, Sequence

from scenestitch.errors import NoMediaFoundError
from scenestitch.models.media import MediaCandidate
from scenestitch.services.media_sources.base import MediaProvider

logger = logging.getLogger(__name__)

GENERIC_SUBJECTS = ("nature", "city", "people", "sky", "ocean")

# Upper bound on re-queries of one provider after losing a claim race
MAX_CLAIM_ATTEMPTS = 5


class UsedMediaSet:
    """Per-job set of claimed media locators.

    ``claim`` is an atomic check-and-insert, so two scenes resolving in
    parallel can never both win the same locator.
    """

    def __init__(self):
        self._locators: set[str] = set()
        self._lock = asyncio.Lock()

    async def claim(self, locator: str) -> bool:
        """Claim ``locator``. Returns False if it was already claimed."""
        async with self._lock:
            if locator in self._locators:
                return False
            self._locators.add(locator)
            return True

    def snapshot(self) -> frozenset[str]:
        return frozenset(self._locators)

    def __contains__(self, locator: object) -> bool:
        return locator in self._locators

    def __len__(self) -> int:
        return len(self._locators)


class MediaResolver:
    """Walks the provider chain until one returns an unused candidate.

    Chain order is the order of ``providers``: library first, then stock
    video sources, then stock photo sources. When every provider comes back
    empty for the scene subject, the generic subjects are tried through the
    same chain before giving up.
    """

    def __init__(
        self,
        providers: Sequence[MediaProvider],
        fallback_subjects: Sequence[str] = GENERIC_SUBJECTS,
    ):
        self.providers = list(providers)
        self.fallback_subjects = list(fallback_subjects)

    async def resolve(
        self, subject: str, used: UsedMediaSet, scene_index: Optional[int] = None
    ) -> MediaCandidate:
        """Resolve ``subject`` to a candidate and claim it in ``used``.

        Raises:
            NoMediaFoundError: If no provider yields an unused candidate for
                the subject or any generic fallback subject
        """
        candidate = await self._resolve_subject(subject, used)
        if candidate:
            return candidate

        for fallback in self.fallback_subjects:
            if fallback == subject:
                continue
            logger.info(f"[Resolver] Falling back to generic subject '{fallback}'")
            candidate = await self._resolve_subject(fallback, used)
            if candidate:
                return candidate

        raise NoMediaFoundError(f"No media found for '{subject}'", scene_index=scene_index)

    async def _resolve_subject(self, subject: str, used: UsedMediaSet) -> Optional[MediaCandidate]:
        for provider in self.providers:
            candidate = await self._claim_from(provider, subject, used)
            if candidate:
                logger.info(
                    f"[Resolver] '{subject}' -> {candidate.source.value} {candidate.kind.value}: "
                    f"{candidate.locator}"
                )
                return candidate
        return None

    async def _claim_from(
        self, provider: MediaProvider, subject: str, used: UsedMediaSet
    ) -> Optional[MediaCandidate]:
        for _ in range(MAX_CLAIM_ATTEMPTS):
            candidate = await provider.search(subject, used.snapshot())
            if candidate is None:
                return None
            if await used.claim(candidate.locator):
                return candidate
            logger.debug(
                f"[Resolver] {candidate.locator} claimed by another scene, "
                f"re-querying {provider.get_source_name()}"
            )
        return None
