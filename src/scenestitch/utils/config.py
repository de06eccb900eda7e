"""Configuration loading and validation for scenestitch."""

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root (parent of src)
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent

# Load environment variables from .env file in project root
load_dotenv(PROJECT_ROOT / ".env")


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def load_config() -> dict:
    """Load configuration from environment variables."""

    def resolve_path(path: str | None, default_relative: str | None) -> str | None:
        if not path:
            return str(PROJECT_ROOT / default_relative) if default_relative else None
        if Path(path).is_absolute():
            return path
        return str(PROJECT_ROOT / path)

    account_id = os.getenv("R2_ACCOUNT_ID")
    endpoint = os.getenv("R2_ENDPOINT")
    if not endpoint and account_id:
        endpoint = f"https://{account_id}.r2.cloudflarestorage.com"

    config = {
        # Object storage (Cloudflare R2, S3-compatible)
        "r2_endpoint": endpoint,
        "r2_account_id": account_id,
        "r2_access_key_id": os.getenv("R2_ACCESS_KEY_ID"),
        "r2_secret_access_key": os.getenv("R2_SECRET_ACCESS_KEY"),
        "r2_library_bucket": os.getenv("R2_LIBRARY_BUCKET", "clips-library"),
        "r2_videos_bucket": os.getenv("R2_VIDEOS_BUCKET", "videos"),
        "r2_public_url": os.getenv("R2_PUBLIC_URL"),
        # Stock media
        "pexels_api_key": os.getenv("PEXELS_API_KEY"),
        "pixabay_api_key": os.getenv("PIXABAY_API_KEY"),
        "stock_results_per_page": int(os.getenv("STOCK_RESULTS_PER_PAGE", "10")),
        # Speech
        "aws_access_key_id": os.getenv("AWS_ACCESS_KEY_ID"),
        "aws_secret_access_key": os.getenv("AWS_SECRET_ACCESS_KEY"),
        "aws_region": os.getenv("AWS_REGION", "us-east-1"),
        "elevenlabs_api_key": os.getenv("ELEVENLABS_API_KEY"),
        "elevenlabs_model_id": os.getenv("ELEVENLABS_MODEL_ID", "eleven_monolingual_v1"),
        # Subject extraction
        "gemini_api_key": os.getenv("GEMINI_API_KEY"),
        "gemini_model": os.getenv("GEMINI_MODEL", "gemini-2.0-flash"),
        "ai_subjects_enabled": _env_bool("AI_SUBJECTS_ENABLED", "false"),
        # Pipeline
        "segmentation_policy": os.getenv("SEGMENTATION_POLICY", "newline").lower(),
        "max_concurrent_scenes": int(os.getenv("MAX_CONCURRENT_SCENES", "4")),
        "job_timeout_seconds": float(os.getenv("JOB_TIMEOUT_SECONDS", "720")),
        "cleanup_grace_seconds": float(os.getenv("CLEANUP_GRACE_SECONDS", "60")),
        "status_retention_seconds": float(os.getenv("STATUS_RETENTION_SECONDS", "1800")),
        "work_dir": resolve_path(os.getenv("WORK_DIR"), "renders"),
        "watermark_path": resolve_path(os.getenv("WATERMARK_PATH"), "assets/watermark.png"),
        "outro_path": resolve_path(os.getenv("OUTRO_PATH"), "assets/outro.mp4"),
        "output_width": int(os.getenv("OUTPUT_WIDTH", "1080")),
        "output_height": int(os.getenv("OUTPUT_HEIGHT", "1920")),
        # Logging
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
        "log_json": _env_bool("LOG_JSON", "false"),
    }

    return config


def validate_config(config: dict) -> list[str]:
    """Validate configuration and return list of errors."""
    errors = []

    if not config.get("r2_endpoint"):
        errors.append("R2_ENDPOINT or R2_ACCOUNT_ID is required")
    if not config.get("r2_access_key_id") or not config.get("r2_secret_access_key"):
        errors.append("R2_ACCESS_KEY_ID and R2_SECRET_ACCESS_KEY are required")

    has_polly = bool(config.get("aws_access_key_id") and config.get("aws_secret_access_key"))
    has_elevenlabs = bool(config.get("elevenlabs_api_key"))
    if not (has_polly or has_elevenlabs):
        errors.append(
            "At least one voice provider required: AWS_ACCESS_KEY_ID/AWS_SECRET_ACCESS_KEY "
            "or ELEVENLABS_API_KEY"
        )

    if config.get("ai_subjects_enabled") and not config.get("gemini_api_key"):
        errors.append("GEMINI_API_KEY is required when AI_SUBJECTS_ENABLED=true")

    if config.get("segmentation_policy") not in ("newline", "sentence"):
        errors.append("SEGMENTATION_POLICY must be 'newline' or 'sentence'")

    for key in ("job_timeout_seconds", "max_concurrent_scenes", "stock_results_per_page"):
        if config.get(key, 0) <= 0:
            errors.append(f"{key.upper()} must be positive")
    for key in ("cleanup_grace_seconds", "status_retention_seconds"):
        if config.get(key, 0) < 0:
            errors.append(f"{key.upper()} must not be negative")

    work_dir = config.get("work_dir")
    if work_dir:
        try:
            Path(work_dir).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            errors.append(f"Cannot create work directory: {e}")

    return errors


def get_supported_video_formats() -> list[str]:
    """Return list of supported video file extensions."""
    return [".mp4", ".avi", ".mov", ".mkv", ".wmv", ".flv", ".webm", ".m4v"]
