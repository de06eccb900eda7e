"""Thin wrappers around the ffmpeg binary."""

import logging
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)

FFMPEG_TIMEOUT = 600


def run_ffmpeg(cmd: list[str], description: str, error_cls: type[Exception]) -> None:
    """Run an FFmpeg command with error handling.

    Args:
        cmd: FFmpeg command as list of arguments
        description: Human-readable description for logging
        error_cls: Exception type raised on failure

    Raises:
        error_cls: If FFmpeg returns a non-zero exit code, times out,
            or the binary is missing
    """
    logger.info(f"[FFmpeg] {description}")
    logger.debug(f"[FFmpeg] Command: {' '.join(cmd)}")

    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=FFMPEG_TIMEOUT)
    except subprocess.TimeoutExpired as e:
        raise error_cls(f"FFmpeg timed out ({description})") from e
    except FileNotFoundError as e:
        raise error_cls("FFmpeg binary not found on PATH") from e

    if result.returncode != 0:
        logger.error(f"[FFmpeg] stderr: {result.stderr[-1000:]}")
        raise error_cls(f"FFmpeg failed ({description}): {result.stderr[-500:]}")


def ensure_output(path: Path, min_bytes: int, description: str, error_cls: type[Exception]) -> None:
    """Raise ``error_cls`` unless ``path`` is a regular file of at least ``min_bytes``."""
    if not path.is_file():
        raise error_cls(f"{description}: {path.name} was not created")
    size = path.stat().st_size
    if size < min_bytes:
        raise error_cls(f"{description}: {path.name} is too small ({size} bytes)")
