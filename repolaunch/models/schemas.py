from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_serializer
from pydantic.alias_generators import to_camel

from repolaunch.jobs.models import Job, Step


class CamelModel(BaseModel):
    """Snake-case fields in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime


class SetupRepositoryRequest(CamelModel):
    """Request body for POST /api/setup-repository. Fields are optional here so missing ones become a 400 with a readable message, not a 422."""

    github_token: Optional[str] = Field(None, description="GitHub personal access token (ghp_... or github_pat_...)")
    repository_name: Optional[str] = Field(None, description="Requested repository name; a timestamp and random suffix are appended")
    description: Optional[str] = Field(None, description="Repository description (defaults to config)")


class SetupRepositoryResponse(CamelModel):
    job_id: str
    status: str
    message: str
    status_url: str


class StepResponse(CamelModel):
    step: str
    status: str
    timestamp: datetime
    error: Optional[str] = None

    @model_serializer(mode="wrap")
    def _drop_empty_error(self, handler):
        data = handler(self)
        if self.error is None:
            data.pop("error", None)
        return data

    @classmethod
    def from_step(cls, step: Step) -> "StepResponse":
        return cls(step=step.step, status=step.status.value, timestamp=step.timestamp, error=step.error)


class JobStatusResponse(CamelModel):
    """Response for GET /api/status/{job_id}: full job record. Why available: Lets clients poll after POST /api/setup-repository."""

    id: str
    status: str
    steps: List[StepResponse] = Field(default_factory=list)
    github_repo: Optional[str] = None
    download_url: Optional[str] = None
    repository_name: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    @classmethod
    def from_job(cls, job: Job, updated_at: Optional[datetime] = None) -> "JobStatusResponse":
        return cls(
            id=job.id,
            status=job.status.value,
            steps=[StepResponse.from_step(s) for s in job.steps],
            github_repo=job.github_repo,
            download_url=job.download_url,
            repository_name=job.repository_name,
            created_at=job.created_at,
            updated_at=updated_at,
        )


class JobsListResponse(BaseModel):
    jobs: List[JobStatusResponse] = Field(default_factory=list)
