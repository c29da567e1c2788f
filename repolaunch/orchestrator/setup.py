"""Repository setup state machine: create a GitHub repo, push the staging tree, hand off to the build pipeline."""
import logging
import random
import string
from datetime import datetime
from typing import Callable, Optional

from repolaunch.core.config import Settings
from repolaunch.core.github_client import GitHubClient
from repolaunch.guardrails.errors import friendly_error
from repolaunch.jobs.models import Job, JobStatus, StepStatus, utcnow
from repolaunch.jobs.store import JobStore
from repolaunch.pipeline.build import BuildPipeline
from repolaunch.publish.pipeline import upload_all_files

logger = logging.getLogger(__name__)

SUFFIX_ALPHABET = string.ascii_lowercase + string.digits

ClientFactory = Callable[[str], GitHubClient]


def unique_repo_name(name: str, now: Optional[datetime] = None, rng: Optional[random.Random] = None) -> str:
    """requested-name + YYMMDD-HHMMSS + 4 random chars, e.g. engine-250101-120000-x7q2.
    The caller's name is never created as-is, so repeated requests do not collide."""
    now = now or utcnow()
    rng = rng or random
    suffix = "".join(rng.choice(SUFFIX_ALPHABET) for _ in range(4))
    return f"{name}-{now.strftime('%y%m%d-%H%M%S')}-{suffix}"


class RepositorySetup:
    """Drives one Job from initializing to completed or failed. Every error inside run() ends up on the job, never raised."""

    def __init__(
        self,
        store: JobStore,
        build_pipeline: BuildPipeline,
        settings: Settings,
        client_factory: Optional[ClientFactory] = None,
    ):
        self.store = store
        self.build_pipeline = build_pipeline
        self.settings = settings
        self.client_factory = client_factory or self._default_client

    def _default_client(self, token: str) -> GitHubClient:
        return GitHubClient(
            token,
            base_url=self.settings.github_api_url,
            timeout=self.settings.http_timeout_seconds,
            user_agent=self.settings.github_user_agent,
        )

    async def run(self, job_id: str, token: str, repo_name: str, description: str) -> None:
        job = self.store.get(job_id)
        if job is None:
            logger.warning("Setup started for unknown job %s", job_id)
            return

        try:
            async with self.client_factory(token) as client:
                await self._create_repository(job, client, repo_name, description)
                await self._upload_files(job, client)
            await self._build(job)
        except Exception as e:
            logger.exception("GitHub setup error for job %s", job.id)
            job.fail(friendly_error(e))

    async def _create_repository(self, job: Job, client: GitHubClient, repo_name: str, description: str) -> None:
        job.status = JobStatus.CREATING_REPOSITORY
        job.add_step("Creating GitHub repository")

        # fails fast with 401 on a bad token
        await client.get_user()

        name = unique_repo_name(repo_name)
        created = utcnow().strftime("%Y-%m-%d")
        repo = await client.create_repo(name, f"{description} (Created: {created})")

        job.repository_name = repo.get("name", name)
        job.github_repo = repo["html_url"]
        job.complete_last_step()
        job.add_step("Repository created successfully", StepStatus.COMPLETED)
        logger.info("Job %s created repository %s", job.id, job.github_repo)

    async def _upload_files(self, job: Job, client: GitHubClient) -> None:
        job.status = JobStatus.UPLOADING_FILES
        job.add_step("Uploading integration files")

        user = await client.get_user()
        owner = user["login"]

        await upload_all_files(
            client,
            owner,
            job.repository_name,
            self.settings.staging_dir,
            self.settings.readme_content,
            max_attempts=self.settings.upload_max_attempts,
            delay_seconds=self.settings.upload_retry_delay_seconds,
        )

    async def _build(self, job: Job) -> None:
        await self.build_pipeline.start(job)
        job.status = JobStatus.COMPILATION_STARTED
        job.complete_last_step()
        job.add_step("GitHub Actions compilation started")

        download_url = await self.build_pipeline.wait_for_artifacts(job)
        job.status = JobStatus.COMPLETED
        job.complete_last_step()
        job.add_step("Windows executables compiled successfully", StepStatus.COMPLETED)
        job.download_url = download_url
        logger.info("Job %s completed", job.id)
