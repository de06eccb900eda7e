"""Job registry, progress accounting and orchestration."""

from scenestitch.jobs.orchestrator import JobOrchestrator, build_orchestrator
from scenestitch.jobs.progress import ProgressTracker
from scenestitch.jobs.store import JobStore

__all__ = ["JobOrchestrator", "JobStore", "ProgressTracker", "build_orchestrator"]
