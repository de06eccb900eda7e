"""Shared pytest fixtures for scenestitch tests."""

import asyncio
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import Dict, Generator
from unittest.mock import MagicMock, patch

import pytest

# Add src directory to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from scenestitch.models.media import MediaCandidate, MediaKind, MediaSource  # noqa: E402
from scenestitch.services.media_sources.base import MediaProvider  # noqa: E402
from scenestitch.services.tts_service import TTSServiceError, VoiceProvider  # noqa: E402

# Large enough to pass every minimum-size check in the pipeline
FAKE_MEDIA_BYTES = 20 * 1024
FAKE_MP3 = b"ID3" + b"\x00" * 4096


class FakeMediaProvider(MediaProvider):
    """In-memory provider: ``catalog`` maps subject -> list of locators."""

    source = MediaSource.PEXELS
    kind = MediaKind.VIDEO

    def __init__(self, catalog: dict, name: str = "Fake", delay: float = 0.0):
        self.catalog = catalog
        self.name = name
        self.delay = delay
        self.queries: list[str] = []
        self.cancelled = 0

    def get_source_name(self) -> str:
        return self.name

    async def find_candidates(self, subject: str) -> list[MediaCandidate]:
        self.queries.append(subject)
        if self.delay:
            try:
                await asyncio.sleep(self.delay)
            except asyncio.CancelledError:
                self.cancelled += 1
                raise
        return [
            MediaCandidate(source=self.source, kind=self.kind, locator=locator)
            for locator in self.catalog.get(subject, [])
        ]


class FakeVoiceProvider(VoiceProvider):
    """Voice provider returning a canned mp3 payload."""

    def __init__(self, name: str = "polly", payload: bytes = FAKE_MP3, error: str = ""):
        self.name = name
        self.payload = payload
        self.error = error
        self.calls: list[tuple[str, str]] = []
        self.closed = False

    async def synthesize(self, text: str, voice_id: str) -> bytes:
        self.calls.append((text, voice_id))
        if self.error:
            raise TTSServiceError(self.error)
        return self.payload

    async def close(self) -> None:
        self.closed = True


class FakeDownloader:
    """Stands in for MediaDownloader, writing a placeholder file per fetch."""

    def __init__(self):
        self.fetched: list[MediaCandidate] = []

    async def fetch(self, candidate: MediaCandidate, dest_dir: Path, stem: str) -> Path:
        self.fetched.append(candidate)
        dest_dir.mkdir(parents=True, exist_ok=True)
        dest = dest_dir / f"{stem}.mp4"
        dest.write_bytes(b"\x00" * FAKE_MEDIA_BYTES)
        return dest


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_config(temp_dir) -> Dict:
    """Sample configuration for testing."""
    return {
        "r2_endpoint": "https://acct.r2.cloudflarestorage.com",
        "r2_access_key_id": "test_r2_key",
        "r2_secret_access_key": "test_r2_secret",
        "r2_library_bucket": "clips-library",
        "r2_videos_bucket": "videos",
        "r2_public_url": None,
        "pexels_api_key": "test_pexels_key",
        "pixabay_api_key": "test_pixabay_key",
        "stock_results_per_page": 10,
        "aws_access_key_id": "test_aws_key",
        "aws_secret_access_key": "test_aws_secret",
        "aws_region": "us-east-1",
        "elevenlabs_api_key": None,
        "gemini_api_key": None,
        "ai_subjects_enabled": False,
        "segmentation_policy": "newline",
        "max_concurrent_scenes": 4,
        "job_timeout_seconds": 720.0,
        "cleanup_grace_seconds": 60.0,
        "status_retention_seconds": 1800.0,
        "work_dir": str(temp_dir / "renders"),
        "watermark_path": str(temp_dir / "watermark.png"),
        "outro_path": str(temp_dir / "outro.mp4"),
        "output_width": 1080,
        "output_height": 1920,
        "log_level": "INFO",
        "log_json": False,
    }


@pytest.fixture
def fake_ffmpeg():
    """Patch subprocess.run so every ffmpeg call writes its output file.

    The output path is the last argument of the command, as in every
    command the composer and assembler build.
    """

    def fake_run(cmd, **kwargs):
        Path(cmd[-1]).write_bytes(b"\x00" * FAKE_MEDIA_BYTES)
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

    with patch("scenestitch.utils.ffmpeg.subprocess.run", side_effect=fake_run) as mock_run:
        yield mock_run


@pytest.fixture
def fake_media_provider():
    """Factory for FakeMediaProvider."""
    return FakeMediaProvider


@pytest.fixture
def fake_voice_provider():
    """Factory for FakeVoiceProvider."""
    return FakeVoiceProvider


@pytest.fixture
def fake_downloader():
    return FakeDownloader()


@pytest.fixture
def mock_output_storage():
    """Mock R2Storage for the rendered-videos bucket."""
    mock = MagicMock()
    mock.upload_file = MagicMock(return_value="s3://videos/key.mp4")
    mock.get_presigned_url = MagicMock(return_value="https://r2.example.com/signed")
    return mock


@pytest.fixture
def sample_script() -> str:
    """Two-scene script used across pipeline tests."""
    return "A bird flew past the Eiffel Tower.\nThen it disappeared."
