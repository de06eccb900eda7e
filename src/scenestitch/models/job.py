"""Job data models and the job state machine."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional


class JobState(str, Enum):
    """Lifecycle state of a generation job.

    EXPIRED never appears on a live job; it is reported for ids the registry
    no longer (or never did) know about.
    """

    CREATED = "created"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.DONE, JobState.FAILED, JobState.EXPIRED)


@dataclass(frozen=True)
class BrandingOptions:
    """Per-job branding entitlements."""

    paid_user: bool = False
    remove_watermark: bool = False

    @property
    def watermark(self) -> bool:
        """Watermark is dropped only for paid users who asked for it."""
        return not (self.paid_user and self.remove_watermark)

    @property
    def outro(self) -> bool:
        return not self.remove_watermark


@dataclass(frozen=True)
class VoiceSelection:
    """Voice id plus optional explicit provider name."""

    voice_id: str
    provider: Optional[str] = None


@dataclass(frozen=True)
class JobStatus:
    """Immutable snapshot handed to status pollers."""

    job_id: str
    state: JobState
    percent: int
    message: str
    result_key: Optional[str] = None
    error: Optional[str] = None
    created_at: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        data = {
            "jobId": self.job_id,
            "state": self.state.value,
            "percent": self.percent,
            "status": self.message,
        }
        if self.result_key:
            data["key"] = self.result_key
        if self.error:
            data["error"] = self.error
        return data

    @classmethod
    def expired(cls, job_id: str) -> "JobStatus":
        return cls(
            job_id=job_id,
            state=JobState.EXPIRED,
            percent=100,
            message="Done (or not found)",
        )


@dataclass
class Job:
    """Mutable job record, written only by the task that owns the job."""

    id: str
    work_dir: Path
    state: JobState = JobState.CREATED
    percent: int = 0
    message: str = "Job queued"
    result_key: Optional[str] = None
    error: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None

    def start(self, message: str = "Starting...") -> None:
        if self.state is not JobState.CREATED:
            return
        self.state = JobState.RUNNING
        self.message = message

    def advance(self, percent: int, message: str) -> None:
        """Record progress; percent never moves backwards."""
        if self.state.is_terminal:
            return
        self.percent = max(self.percent, min(int(percent), 100))
        self.message = message

    def succeed(self, result_key: str) -> bool:
        """Transition to DONE. Returns False if already terminal."""
        if self.state.is_terminal:
            return False
        self.state = JobState.DONE
        self.percent = 100
        self.message = "Done"
        self.result_key = result_key
        self.finished_at = datetime.now()
        return True

    def fail(self, error: str) -> bool:
        """Transition to FAILED. Returns False if already terminal."""
        if self.state.is_terminal:
            return False
        self.state = JobState.FAILED
        self.percent = 100
        self.message = f"Failed: {error}"
        self.error = error
        self.finished_at = datetime.now()
        return True

    def snapshot(self) -> JobStatus:
        return JobStatus(
            job_id=self.id,
            state=self.state,
            percent=self.percent,
            message=self.message,
            result_key=self.result_key,
            error=self.error,
            created_at=self.created_at.isoformat(),
        )
