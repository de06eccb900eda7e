"""Pixabay video and photo sources.

API Documentation: https://pixabay.com/api/docs/
Rate limits: 100 requests per minute
"""

import logging
from typing import Optional

from scenestitch.models.media import MediaCandidate, MediaKind, MediaSource
from scenestitch.services.media_sources.base import StockMediaProvider

logger = logging.getLogger(__name__)

# Pixabay requires per_page between 3 and 200
PIXABAY_MIN_PER_PAGE = 3
PIXABAY_MAX_PER_PAGE = 200

# Quality preference order: large (1920x1080) > medium (1280x720) > small > tiny
RENDITION_ORDER = ["large", "medium", "small", "tiny"]


def _clamp_per_page(per_page: int) -> int:
    return max(PIXABAY_MIN_PER_PAGE, min(per_page, PIXABAY_MAX_PER_PAGE))


class PixabayVideoSource(StockMediaProvider):
    """Pixabay stock footage."""

    BASE_URL = "https://pixabay.com/api/videos/"
    source = MediaSource.PIXABAY
    kind = MediaKind.VIDEO

    def __init__(self, api_key: Optional[str], per_page: int = 10):
        super().__init__(api_key, _clamp_per_page(per_page))

    def get_source_name(self) -> str:
        return "Pixabay"

    async def find_candidates(self, subject: str) -> list[MediaCandidate]:
        logger.info(f"[Pixabay] Searching videos for: '{subject}'")
        params = {
            "key": self.api_key,
            "q": subject,
            "per_page": self.per_page,
            "video_type": "all",
            "safesearch": "true",
        }
        data = await self._get_json(self.BASE_URL, params=params)

        results = []
        for hit in data.get("hits", []):
            candidate = self._parse_video(hit)
            if candidate:
                results.append(candidate)

        logger.info(f"[Pixabay] Found {len(results)} videos")
        return results

    def _parse_video(self, hit: dict) -> Optional[MediaCandidate]:
        renditions = hit.get("videos") or {}
        for quality in RENDITION_ORDER:
            rendition = renditions.get(quality) or {}
            if rendition.get("url"):
                return MediaCandidate(
                    source=self.source,
                    kind=self.kind,
                    locator=rendition["url"],
                    width=rendition.get("width"),
                    height=rendition.get("height"),
                    duration=hit.get("duration"),
                    page_url=hit.get("pageURL"),
                )
        return None


class PixabayPhotoSource(StockMediaProvider):
    """Pixabay stock photos (photos only, no illustrations)."""

    BASE_URL = "https://pixabay.com/api/"
    source = MediaSource.PIXABAY
    kind = MediaKind.PHOTO

    def __init__(self, api_key: Optional[str], per_page: int = 10):
        super().__init__(api_key, _clamp_per_page(per_page))

    def get_source_name(self) -> str:
        return "Pixabay Images"

    async def find_candidates(self, subject: str) -> list[MediaCandidate]:
        logger.info(f"[Pixabay Images] Searching photos for: '{subject}'")
        params = {
            "key": self.api_key,
            "q": subject,
            "per_page": self.per_page,
            "image_type": "photo",
            "safesearch": "true",
        }
        data = await self._get_json(self.BASE_URL, params=params)

        results = []
        for hit in data.get("hits", []):
            candidate = self._parse_hit(hit)
            if candidate:
                results.append(candidate)

        logger.debug(f"[Pixabay Images] Found {len(results)} photos")
        return results

    def _parse_hit(self, hit: dict) -> Optional[MediaCandidate]:
        # Full resolution requires editorial API access
        download_url = hit.get("largeImageURL") or hit.get("webformatURL")
        if not download_url:
            return None

        return MediaCandidate(
            source=self.source,
            kind=self.kind,
            locator=download_url,
            width=hit.get("imageWidth") or hit.get("webformatWidth"),
            height=hit.get("imageHeight") or hit.get("webformatHeight"),
            page_url=hit.get("pageURL"),
        )
