"""Job and Step records for repository setup requests."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional


class JobStatus(str, Enum):
    INITIALIZING = "initializing"
    CREATING_REPOSITORY = "creating_repository"
    UPLOADING_FILES = "uploading_files"
    COMPILATION_STARTED = "compilation_started"
    COMPLETED = "completed"
    FAILED = "failed"


class StepStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Step:
    """One lifecycle event of a job. error is only set on failed steps."""

    step: str
    status: StepStatus
    timestamp: datetime = field(default_factory=utcnow)
    error: Optional[str] = None


@dataclass
class Job:
    """A single repository setup request: id, status, append-only step history, and the repo/download URLs once known.
    Why available: The status endpoint serves this record so clients can poll until the setup completes or fails."""

    id: str
    status: JobStatus = JobStatus.INITIALIZING
    steps: List[Step] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    github_repo: Optional[str] = None
    download_url: Optional[str] = None
    repository_name: Optional[str] = None

    def add_step(self, label: str, status: StepStatus = StepStatus.IN_PROGRESS, error: Optional[str] = None) -> Step:
        step = Step(step=label, status=status, error=error)
        self.steps.append(step)
        return step

    def complete_last_step(self) -> None:
        if self.steps:
            self.steps[-1].status = StepStatus.COMPLETED

    def fail(self, message: str) -> None:
        self.status = JobStatus.FAILED
        self.add_step("Repository setup failed", StepStatus.FAILED, error=message)
