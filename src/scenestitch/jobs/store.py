"""In-memory job registry.

Jobs live only as long as the process. Readers never see a live ``Job``;
they get frozen ``JobStatus`` snapshots, so a poller can never observe a
half-written update.
"""

import logging
from pathlib import Path
from typing import Optional

from scenestitch.models.job import Job, JobStatus

logger = logging.getLogger(__name__)


class JobStore:
    """Registry of jobs keyed by id."""

    def __init__(self):
        self._jobs: dict[str, Job] = {}

    def create_job(self, job_id: str, work_dir: Path) -> Job:
        """Register a new job in the CREATED state.

        Raises:
            ValueError: If the id is already registered
        """
        if job_id in self._jobs:
            raise ValueError(f"Job {job_id} already exists")

        job = Job(id=job_id, work_dir=work_dir)
        self._jobs[job_id] = job
        logger.info(f"Created job {job_id}")
        return job

    def get_job(self, job_id: str) -> Optional[Job]:
        """Live job record, for the owning pipeline only."""
        return self._jobs.get(job_id)

    def get_status(self, job_id: str) -> JobStatus:
        """Snapshot for ``job_id``. Unknown or evicted ids report EXPIRED."""
        job = self._jobs.get(job_id)
        if job is None:
            return JobStatus.expired(job_id)
        return job.snapshot()

    def delete_job(self, job_id: str) -> bool:
        """Evict a job. Returns False if it was not registered."""
        if self._jobs.pop(job_id, None) is None:
            return False
        logger.info(f"Evicted job {job_id}")
        return True

    def __contains__(self, job_id: object) -> bool:
        return job_id in self._jobs

    def __len__(self) -> int:
        return len(self._jobs)
