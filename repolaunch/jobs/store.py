"""In-memory job store for repository setup requests, plus the periodic sweep of stale failed jobs."""
import asyncio
import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from repolaunch.jobs.models import Job, JobStatus, utcnow

logger = logging.getLogger(__name__)


class DuplicateJobError(KeyError):
    """A job with this id is already stored."""


class JobStore:
    """Process-wide map of job id -> Job. In production: Redis/DB.
    Only touched from the event loop, and no mutation awaits midway, so no lock is needed."""

    def __init__(self):
        self._jobs: Dict[str, Job] = {}

    def __len__(self) -> int:
        return len(self._jobs)

    def __contains__(self, job_id: str) -> bool:
        return job_id in self._jobs

    def create(self, job: Job) -> Job:
        if job.id in self._jobs:
            raise DuplicateJobError(job.id)
        self._jobs[job.id] = job
        return job

    def get(self, job_id: str) -> Optional[Job]:
        return self._jobs.get(job_id)

    def list_recent(self, limit: int) -> List[Job]:
        """Most recently created jobs first."""
        jobs = sorted(self._jobs.values(), key=lambda j: j.created_at, reverse=True)
        return jobs[:limit]

    def sweep(self, max_age_seconds: float, now: Optional[datetime] = None) -> int:
        """Delete failed jobs created more than max_age_seconds ago. Completed and in-flight jobs are kept
        however old they are. Returns how many were removed."""
        cutoff = (now or utcnow()) - timedelta(seconds=max_age_seconds)
        stale = [
            job_id
            for job_id, job in self._jobs.items()
            if job.status == JobStatus.FAILED and job.created_at < cutoff
        ]
        for job_id in stale:
            del self._jobs[job_id]
        return len(stale)


async def run_sweeper(store: JobStore, interval_seconds: float, max_age_seconds: float) -> None:
    """Sweep the store every interval_seconds until cancelled (app shutdown)."""
    while True:
        await asyncio.sleep(interval_seconds)
        removed = store.sweep(max_age_seconds)
        if removed:
            logger.info("Swept %d stale failed jobs", removed)
