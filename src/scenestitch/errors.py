"""Pipeline error types.

Every failure that can end a job is a PipelineError subclass carrying a
``kind`` string, so the orchestrator can record one human-readable message
per failed job regardless of which stage raised it.
"""

from typing import Optional


class PipelineError(Exception):
    """Base exception for all job-fatal pipeline errors."""

    kind = "pipeline"

    def __init__(self, message: str, scene_index: Optional[int] = None):
        """Initialize pipeline error.

        Args:
            message: Human-readable error description
            scene_index: Zero-based index of the scene that failed, if any
        """
        self.message = message
        self.scene_index = scene_index
        super().__init__(message)

    def describe(self) -> str:
        """Return the message shown to status pollers."""
        if self.scene_index is None:
            return self.message
        return f"{self.message} (scene {self.scene_index + 1})"


class InputValidationError(PipelineError):
    """Empty script, missing voice or unknown voice id."""

    kind = "input_validation"


class UnsupportedVoiceProviderError(PipelineError):
    """Voice provider name has no registered implementation."""

    kind = "unsupported_voice_provider"


class SynthesisFailedError(PipelineError):
    """Speech synthesis failed for a scene."""

    kind = "synthesis_failed"


class NoMediaFoundError(PipelineError):
    """Every media provider in the chain came back empty."""

    kind = "no_media_found"


class ComposeFailedError(PipelineError):
    """Scene download or audio/video combine failed."""

    kind = "compose_failed"


class AssembleFailedError(PipelineError):
    """Concatenation or branding pass failed."""

    kind = "assemble_failed"


class UploadFailedError(PipelineError):
    """Final artifact could not be written to object storage."""

    kind = "upload_failed"


class JobTimeoutError(PipelineError):
    """Watchdog deadline elapsed before the job reached a terminal state."""

    kind = "timeout"
