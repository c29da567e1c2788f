"""Unit tests for the staging tree walker and the whole-tree upload."""
import asyncio

import pytest

from repolaunch.core.github_client import GitHubClient
from repolaunch.publish.pipeline import UploadIncompleteError, upload_all_files
from repolaunch.publish.walker import is_skipped, walk_tree

VALID_TOKEN = "ghp_" + "a" * 36


async def _no_sleep(seconds: float) -> None:
    return None


def test_is_skipped():
    assert is_skipped(".git")
    assert is_skipped("bundle.tar.gz")
    assert not is_skipped("main.c")
    assert not is_skipped(".gitignore")
    assert not is_skipped("notes.tar")


def test_walk_tree_skips_git_and_archives(staging_dir):
    entries = dict(walk_tree(str(staging_dir)))
    assert set(entries) == {"Makefile", "src/main.c", "src/engine/variants.ini"}
    assert entries["src/main.c"] == "int main(void) { return 0; }\n"


def test_walk_tree_is_depth_first_and_sorted(staging_dir):
    paths = [p for p, _ in walk_tree(str(staging_dir))]
    assert paths == ["Makefile", "src/engine/variants.ini", "src/main.c"]


def test_walk_tree_is_lazy_and_rewalkable(staging_dir):
    gen = walk_tree(str(staging_dir))
    assert next(gen)[0] == "Makefile"
    assert len(list(walk_tree(str(staging_dir)))) == 3


def test_walk_tree_replaces_undecodable_bytes(tmp_path):
    (tmp_path / "blob.bin").write_bytes(b"ok\xff")
    [(path, text)] = list(walk_tree(str(tmp_path)))
    assert path == "blob.bin"
    assert text.startswith("ok")


def test_walk_tree_missing_root(tmp_path):
    with pytest.raises(FileNotFoundError):
        list(walk_tree(str(tmp_path / "missing")))


def test_upload_all_files_readme_first(fake_github, staging_dir):
    async def run():
        async with GitHubClient(VALID_TOKEN, transport=fake_github.transport()) as client:
            return await upload_all_files(client, "octo", "demo", str(staging_dir), "# Hi\n", sleep=_no_sleep)

    summary = asyncio.run(run())
    assert summary.success_count == 4
    assert summary.error_count == 0
    assert fake_github.put_calls[0] == "README.md"
    assert set(fake_github.uploads) == {"README.md", "Makefile", "src/main.c", "src/engine/variants.ini"}


def test_upload_all_files_keeps_going_then_reports_incomplete(fake_github, staging_dir):
    fake_github.failing_paths.add("src/engine/variants.ini")

    async def run():
        async with GitHubClient(VALID_TOKEN, transport=fake_github.transport()) as client:
            await upload_all_files(
                client, "octo", "demo", str(staging_dir), "# Hi\n", max_attempts=2, sleep=_no_sleep
            )

    with pytest.raises(UploadIncompleteError) as exc_info:
        asyncio.run(run())

    summary = exc_info.value.summary
    assert summary.success_count == 3
    assert summary.error_count == 1
    assert summary.failed_paths == ["src/engine/variants.ini"]
    assert str(exc_info.value) == "Upload incomplete: 1 files failed to upload"
    # siblings after the failed file still went up
    assert "src/main.c" in fake_github.uploads


def test_walk_tree_does_not_follow_directory_symlinks(staging_dir):
    (staging_dir / "loop").symlink_to(staging_dir, target_is_directory=True)
    (staging_dir / "src" / "engine-link").symlink_to(staging_dir / "src" / "engine", target_is_directory=True)
    paths = [p for p, _ in walk_tree(str(staging_dir))]
    assert paths == ["Makefile", "src/engine/variants.ini", "src/main.c"]


def test_walk_tree_reads_symlinked_files_through_the_link(staging_dir):
    (staging_dir / "build.mk").symlink_to(staging_dir / "Makefile")
    (staging_dir / "dangling").symlink_to(staging_dir / "missing")
    entries = dict(walk_tree(str(staging_dir)))
    assert entries["build.mk"] == entries["Makefile"]
    assert "dangling" not in entries


def test_upload_all_files_with_symlink_loop_uploads_each_file_once(fake_github, staging_dir):
    (staging_dir / "loop").symlink_to(staging_dir, target_is_directory=True)

    async def run():
        async with GitHubClient(VALID_TOKEN, transport=fake_github.transport()) as client:
            return await upload_all_files(client, "octo", "demo", str(staging_dir), "# Hi\n", sleep=_no_sleep)

    summary = asyncio.run(run())
    assert summary.success_count == 4
    assert len(fake_github.put_calls) == 4


def test_upload_all_files_counts_unreadable_file_and_continues(fake_github, staging_dir, monkeypatch):
    from repolaunch.publish import pipeline, walker

    def flaky_read(path):
        if path.endswith("Makefile"):
            raise PermissionError(13, "Permission denied", path)
        return walker.read_text(path)

    monkeypatch.setattr(pipeline, "read_text", flaky_read)

    async def run():
        async with GitHubClient(VALID_TOKEN, transport=fake_github.transport()) as client:
            await upload_all_files(client, "octo", "demo", str(staging_dir), "# Hi\n", sleep=_no_sleep)

    with pytest.raises(UploadIncompleteError) as exc_info:
        asyncio.run(run())

    summary = exc_info.value.summary
    assert summary.failed_paths == ["Makefile"]
    assert summary.success_count == 3
    assert set(fake_github.uploads) == {"README.md", "src/main.c", "src/engine/variants.ini"}
    assert "Makefile" not in fake_github.put_calls
