"""Downstream build pipeline the orchestrator hands off to once files are uploaded."""
import asyncio
from typing import Protocol

from repolaunch.jobs.models import Job


class BuildPipeline(Protocol):
    async def start(self, job: Job) -> None:
        """Return once the build for job's repository has started."""

    async def wait_for_artifacts(self, job: Job) -> str:
        """Return the URL of the finished artifacts."""


class SimulatedBuildPipeline:
    """Stand-in for a real CI run: waits fixed delays and points at the repository's latest release.
    No workflow is triggered and nothing is compiled."""

    def __init__(self, start_delay_seconds: float = 5.0, finish_delay_seconds: float = 10.0):
        self.start_delay_seconds = start_delay_seconds
        self.finish_delay_seconds = finish_delay_seconds

    async def start(self, job: Job) -> None:
        await asyncio.sleep(self.start_delay_seconds)

    async def wait_for_artifacts(self, job: Job) -> str:
        await asyncio.sleep(self.finish_delay_seconds)
        return f"{job.github_repo}/releases/latest"
