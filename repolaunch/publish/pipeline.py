import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from repolaunch.core.github_client import GitHubClient
from repolaunch.publish.uploader import UploadError, upload_file
from repolaunch.publish.walker import iter_files, read_text
from repolaunch.utils.retry import Sleep

logger = logging.getLogger(__name__)

README_PATH = "README.md"


@dataclass
class UploadSummary:
    """Outcome of a tree upload: how many files made it, how many did not, and which ones failed."""

    success_count: int = 0
    error_count: int = 0
    failed_paths: List[str] = field(default_factory=list)


class UploadIncompleteError(Exception):
    """Raised after a tree upload in which at least one file exhausted its retries. Files that did succeed stay on the remote."""

    def __init__(self, summary: UploadSummary):
        super().__init__(f"Upload incomplete: {summary.error_count} files failed to upload")
        self.summary = summary


async def upload_all_files(
    client: GitHubClient,
    owner: str,
    repo: str,
    root: str,
    readme: str,
    *,
    max_attempts: Optional[int] = None,
    delay_seconds: Optional[float] = None,
    sleep: Sleep = asyncio.sleep,
) -> UploadSummary:
    """Upload a synthesized README, then every file under root, one contents API call per file.
    A file that cannot be read, or fails every attempt, is logged and counted, and the walk goes on. If anything failed,
    UploadIncompleteError is raised at the end so the caller can declare the whole upload incomplete."""
    logger.info("Starting file upload to %s/%s", owner, repo)
    summary = UploadSummary()

    async def _one(path: str, load: Callable[[], str]) -> None:
        try:
            content = load()
            await upload_file(
                client, owner, repo, path, content, max_attempts,
                delay_seconds=delay_seconds, sleep=sleep,
            )
            summary.success_count += 1
        except UploadError as e:
            logger.error("Failed uploading %s: %s %s", path, e.status_code, e.message)
            summary.error_count += 1
            summary.failed_paths.append(path)
        except OSError as e:
            logger.error("Failed reading %s: %s", path, e)
            summary.error_count += 1
            summary.failed_paths.append(path)

    await _one(README_PATH, lambda: readme)
    for path, fs_path in iter_files(root):
        await _one(path, lambda: read_text(fs_path))

    logger.info("Upload complete: %d success, %d errors", summary.success_count, summary.error_count)

    if summary.error_count > 0:
        raise UploadIncompleteError(summary)
    return summary
