import logging
import os
from typing import Iterator, Tuple

logger = logging.getLogger(__name__)

SKIP_NAMES = (".git",)
SKIP_SUFFIXES = (".tar.gz",)


def is_skipped(name: str) -> bool:
    """True for version-control metadata and packaged archives, which never go to the remote repository."""
    return name in SKIP_NAMES or name.endswith(SKIP_SUFFIXES)


def iter_files(root: str, prefix: str = "") -> Iterator[Tuple[str, str]]:
    """Depth-first walk of root yielding (relative_path, filesystem_path) for every file, in sorted name order.
    Relative paths are joined with '/' whatever the host separator. Symlinked directories are not entered;
    symlinked files are yielded and read through the link. Raises FileNotFoundError if root does not exist."""
    with os.scandir(root) as it:
        entries = sorted(it, key=lambda e: e.name)

    for entry in entries:
        if is_skipped(entry.name):
            continue

        rel_path = f"{prefix}/{entry.name}" if prefix else entry.name

        if entry.is_dir(follow_symlinks=False):
            logger.info("Processing directory: %s", rel_path)
            yield from iter_files(entry.path, rel_path)
        elif entry.is_symlink() and not entry.is_file():
            logger.warning("Skipping symlink that is not a regular file: %s", rel_path)
        elif entry.is_file():
            yield rel_path, entry.path


def read_text(path: str) -> str:
    """Read a staged file as UTF-8, replacing undecodable bytes."""
    with open(path, "rb") as f:
        content = f.read()
    return content.decode("utf-8", errors="replace")


def walk_tree(root: str) -> Iterator[Tuple[str, str]]:
    """Like iter_files but yields (relative_path, text). Lazy: re-call to walk again."""
    for rel_path, path in iter_files(root):
        yield rel_path, read_text(path)
