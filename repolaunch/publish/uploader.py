"""Upload one file to a GitHub repository, retrying transient failures."""
import asyncio
import logging
from typing import Optional

import httpx

from repolaunch.core.config import settings
from repolaunch.core.github_client import GitHubAPIError, GitHubClient
from repolaunch.utils.retry import Sleep, with_retry

logger = logging.getLogger(__name__)


class UploadError(Exception):
    """A file could not be uploaded after every attempt. Carries the last failure's status (None for network errors) and message."""

    def __init__(self, path: str, attempts: int, status_code: Optional[int], message: str):
        super().__init__(f"Failed to upload {path} after {attempts} attempts: {message}")
        self.path = path
        self.attempts = attempts
        self.status_code = status_code
        self.message = message


def _describe(err: BaseException) -> tuple[Optional[int], str]:
    if isinstance(err, GitHubAPIError):
        return err.status_code, err.api_message or err.message
    return None, str(err) or type(err).__name__


async def upload_file(
    client: GitHubClient,
    owner: str,
    repo: str,
    path: str,
    content: str,
    max_attempts: Optional[int] = None,
    *,
    delay_seconds: Optional[float] = None,
    sleep: Sleep = asyncio.sleep,
) -> None:
    """Create or replace `path` in owner/repo with `content`. Every attempt is a full-content PUT, so a retry never leaves a half-written file.
    Raises UploadError once max_attempts (default from settings) are used up."""
    attempts = max_attempts or settings.upload_max_attempts
    delay = settings.upload_retry_delay_seconds if delay_seconds is None else delay_seconds

    def _log_failure(attempt: int, err: BaseException) -> None:
        status, message = _describe(err)
        logger.warning("Attempt %d/%d failed for %s: %s %s", attempt, attempts, path, status, message)

    try:
        await with_retry(
            lambda: client.put_file(owner, repo, path, content, message=f"Add {path}"),
            attempts=attempts,
            delay_seconds=delay,
            retry_on=(GitHubAPIError, httpx.HTTPError),
            on_failure=_log_failure,
            sleep=sleep,
        )
    except (GitHubAPIError, httpx.HTTPError) as e:
        status, message = _describe(e)
        raise UploadError(path, attempts, status, message) from e

    logger.info("Uploaded: %s", path)
