"""Fetch resolved media into a job's work directory."""

import asyncio
import logging
from pathlib import Path, PurePosixPath
from typing import Optional
from urllib.parse import urlparse

import requests

from scenestitch.errors import ComposeFailedError
from scenestitch.models.media import MediaCandidate, MediaKind, MediaSource
from scenestitch.services.r2_storage import R2Storage

logger = logging.getLogger(__name__)

MIN_VIDEO_BYTES = 10 * 1024
MIN_PHOTO_BYTES = 1024
DOWNLOAD_TIMEOUT = 120
CHUNK_SIZE = 8192

REFERERS = {
    MediaSource.PEXELS: "https://www.pexels.com/",
    MediaSource.PIXABAY: "https://pixabay.com/",
}


class MediaDownloader:
    """Downloads stock URLs over HTTP and library keys from object storage."""

    def __init__(self, library_storage: Optional[R2Storage] = None, session: Optional[requests.Session] = None):
        self.library_storage = library_storage
        self.session = session or requests.Session()

    async def fetch(self, candidate: MediaCandidate, dest_dir: Path, stem: str) -> Path:
        """Download ``candidate`` to ``dest_dir/<stem><ext>``.

        Raises:
            ComposeFailedError: Download failed or produced an implausibly small file
        """
        dest_dir.mkdir(parents=True, exist_ok=True)
        dest = dest_dir / f"{stem}{self._extension_for(candidate)}"

        try:
            if candidate.is_remote:
                await asyncio.to_thread(self._download_url, candidate, dest)
            else:
                if self.library_storage is None:
                    raise ComposeFailedError(f"No library storage for key {candidate.locator}")
                await asyncio.to_thread(self.library_storage.download_to_path, candidate.locator, dest)
        except ComposeFailedError:
            raise
        except (requests.exceptions.RequestException, OSError) as e:
            dest.unlink(missing_ok=True)
            raise ComposeFailedError(f"Download failed for {candidate.locator}: {e}") from e

        min_bytes = MIN_VIDEO_BYTES if candidate.kind is MediaKind.VIDEO else MIN_PHOTO_BYTES
        size = dest.stat().st_size if dest.is_file() else 0
        if size < min_bytes:
            dest.unlink(missing_ok=True)
            raise ComposeFailedError(
                f"Downloaded {candidate.kind.value} too small ({size} bytes): {candidate.locator}"
            )

        logger.info(f"[Download] {dest.name} ({size / (1024 * 1024):.1f} MB) from {candidate.source.value}")
        return dest

    def _download_url(self, candidate: MediaCandidate, dest: Path) -> None:
        headers = {"Accept": "video/mp4,video/*,image/*,*/*"}
        referer = REFERERS.get(candidate.source)
        if referer:
            headers["Referer"] = referer

        with self.session.get(
            candidate.locator, headers=headers, stream=True, timeout=DOWNLOAD_TIMEOUT
        ) as response:
            response.raise_for_status()
            with open(dest, "wb") as f:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)

    @staticmethod
    def _extension_for(candidate: MediaCandidate) -> str:
        path = urlparse(candidate.locator).path if candidate.is_remote else candidate.locator
        suffix = PurePosixPath(path).suffix.lower()
        if suffix and len(suffix) <= 5:
            return suffix
        return ".mp4" if candidate.kind is MediaKind.VIDEO else ".jpg"
