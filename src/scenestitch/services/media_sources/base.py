"""Base abstractions for media sources."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import AbstractSet, Optional

import aiohttp

from scenestitch.models.media import MediaCandidate, MediaKind, MediaSource
from scenestitch.utils.retry import (
    APIRateLimitError,
    NetworkError,
    TemporaryServiceError,
    retry_api_call,
)

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = aiohttp.ClientTimeout(total=30)


class MediaProvider(ABC):
    """Abstract base class for media sources (library, Pexels, Pixabay).

    ``search`` never raises: network errors, quota errors and malformed
    payloads are logged and reported as "no candidate".
    """

    source: MediaSource
    kind: MediaKind

    async def search(
        self, subject: str, used_locators: AbstractSet[str] = frozenset()
    ) -> Optional[MediaCandidate]:
        """Return the first candidate for ``subject`` not in ``used_locators``.

        Args:
            subject: Search subject
            used_locators: Locators already claimed in this job

        Returns:
            MediaCandidate, or None when nothing usable was found
        """
        if not subject or not subject.strip():
            return None

        if not self.is_configured():
            logger.debug(f"[{self.get_source_name()}] Skipping search - not configured")
            return None

        try:
            candidates = await self.find_candidates(subject.strip())
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"[{self.get_source_name()}] Search failed for '{subject}': {e}")
            return None

        for candidate in candidates:
            if candidate.locator not in used_locators:
                return candidate

        logger.debug(
            f"[{self.get_source_name()}] No unused result for '{subject}' "
            f"({len(candidates)} candidates)"
        )
        return None

    @abstractmethod
    async def find_candidates(self, subject: str) -> list[MediaCandidate]:
        """Return every candidate for ``subject`` in preference order.

        May raise; ``search`` turns failures into "no candidate".
        """

    @abstractmethod
    def get_source_name(self) -> str:
        """Get the name of this media source (used in log prefixes)."""

    def is_configured(self) -> bool:
        """Check if this source has required configuration (API keys, etc.).

        Default implementation returns True (no config required).
        """
        return True


class StockMediaProvider(MediaProvider):
    """Shared HTTP plumbing for the stock-media REST APIs."""

    def __init__(self, api_key: Optional[str], per_page: int = 10):
        self.api_key = api_key or ""
        self.per_page = per_page

        if not self.api_key:
            logger.warning(f"[{self.get_source_name()}] No API key configured")

    def is_configured(self) -> bool:
        return bool(self.api_key)

    @retry_api_call(max_retries=2, base_delay=1.0)
    async def _get_json(
        self, url: str, params: dict, headers: Optional[dict] = None
    ) -> dict:
        """GET ``url`` and decode the JSON body.

        Raises:
            APIRateLimitError: On HTTP 429
            TemporaryServiceError: On HTTP 5xx
            NetworkError: On connection problems or timeouts
        """
        name = self.get_source_name()
        try:
            async with aiohttp.ClientSession(timeout=REQUEST_TIMEOUT) as session:
                async with session.get(url, params=params, headers=headers) as response:
                    if response.status in (401, 403):
                        logger.error(f"[{name}] Invalid API key")
                        return {}

                    if response.status == 429:
                        logger.warning(f"[{name}] Rate limit exceeded")
                        raise APIRateLimitError(f"{name} rate limit exceeded")

                    if response.status >= 500:
                        raise TemporaryServiceError(f"{name} returned {response.status}")

                    if response.status != 200:
                        logger.warning(f"[{name}] API returned status {response.status}")
                        return {}

                    return await response.json()

        except aiohttp.ClientError as e:
            raise NetworkError(f"{name} network error: {e}") from e
        except asyncio.TimeoutError as e:
            raise NetworkError(f"{name} request timed out") from e
