"""Pexels video and photo sources.

API Documentation: https://www.pexels.com/api/documentation/
"""

import logging
from typing import Optional

from scenestitch.models.media import MediaCandidate, MediaKind, MediaSource
from scenestitch.services.media_sources.base import StockMediaProvider

logger = logging.getLogger(__name__)

PEXELS_MAX_PER_PAGE = 80


class PexelsVideoSource(StockMediaProvider):
    """Pexels stock footage, best rendition per result."""

    BASE_URL = "https://api.pexels.com/videos/search"
    source = MediaSource.PEXELS
    kind = MediaKind.VIDEO

    def __init__(self, api_key: Optional[str], per_page: int = 10, orientation: str = "portrait"):
        """Initialize Pexels video source.

        Args:
            api_key: Pexels API key
            per_page: Results per query (max 80)
            orientation: Preferred orientation (portrait, landscape, square)
        """
        super().__init__(api_key, min(per_page, PEXELS_MAX_PER_PAGE))
        self.orientation = orientation

    def get_source_name(self) -> str:
        return "Pexels"

    async def find_candidates(self, subject: str) -> list[MediaCandidate]:
        logger.info(f"[Pexels] Searching videos for: '{subject}'")
        params = {"query": subject, "per_page": self.per_page}
        if self.orientation:
            params["orientation"] = self.orientation

        data = await self._get_json(
            self.BASE_URL, params=params, headers={"Authorization": self.api_key}
        )

        results = []
        for video in data.get("videos", []):
            candidate = self._parse_video(video)
            if candidate:
                results.append(candidate)

        logger.info(f"[Pexels] Found {len(results)} videos")
        return results

    def _parse_video(self, video: dict) -> Optional[MediaCandidate]:
        """Pick the best rendition of one Pexels video result.

        HD renditions first, then the largest height.
        """
        video_files = [f for f in video.get("video_files") or [] if f.get("link")]
        if not video_files:
            return None

        best_file = max(
            video_files,
            key=lambda f: (f.get("quality") == "hd", f.get("height") or 0),
        )

        return MediaCandidate(
            source=self.source,
            kind=self.kind,
            locator=best_file["link"],
            width=best_file.get("width"),
            height=best_file.get("height"),
            duration=video.get("duration"),
            page_url=video.get("url"),
        )


class PexelsPhotoSource(StockMediaProvider):
    """Pexels stock photos."""

    BASE_URL = "https://api.pexels.com/v1/search"
    source = MediaSource.PEXELS
    kind = MediaKind.PHOTO

    def __init__(self, api_key: Optional[str], per_page: int = 10, orientation: str = "portrait"):
        super().__init__(api_key, min(per_page, PEXELS_MAX_PER_PAGE))
        self.orientation = orientation

    def get_source_name(self) -> str:
        return "Pexels Images"

    async def find_candidates(self, subject: str) -> list[MediaCandidate]:
        logger.info(f"[Pexels Images] Searching photos for: '{subject}'")
        params = {"query": subject, "per_page": self.per_page}
        if self.orientation:
            params["orientation"] = self.orientation

        data = await self._get_json(
            self.BASE_URL, params=params, headers={"Authorization": self.api_key}
        )

        results = []
        for photo in data.get("photos", []):
            candidate = self._parse_photo(photo)
            if candidate:
                results.append(candidate)

        logger.debug(f"[Pexels Images] Found {len(results)} photos")
        return results

    def _parse_photo(self, photo: dict) -> Optional[MediaCandidate]:
        src = photo.get("src") or {}
        download_url = src.get("large2x") or src.get("large") or src.get("original")
        if not download_url:
            return None

        return MediaCandidate(
            source=self.source,
            kind=self.kind,
            locator=download_url,
            width=photo.get("width"),
            height=photo.get("height"),
            page_url=photo.get("url"),
        )
