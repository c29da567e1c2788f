"""Unit tests for the linear-backoff retry helper and the single-file uploader."""
import asyncio
import base64

import httpx
import pytest

from repolaunch.core.github_client import GitHubAPIError, GitHubClient
from repolaunch.publish.uploader import UploadError, upload_file
from repolaunch.utils.retry import with_retry

VALID_TOKEN = "ghp_" + "a" * 36


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def _client(fake) -> GitHubClient:
    return GitHubClient(VALID_TOKEN, base_url="https://api.github.com", transport=fake.transport())


def test_with_retry_succeeds_on_last_attempt_with_increasing_delays():
    calls = []
    sleep = RecordingSleep()

    async def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise ConnectionError("boom")
        return "ok"

    result = asyncio.run(with_retry(flaky, attempts=3, delay_seconds=1.0, sleep=sleep))
    assert result == "ok"
    assert len(calls) == 3
    assert sleep.delays == [1.0, 2.0]


def test_with_retry_raises_after_all_attempts():
    calls = []
    sleep = RecordingSleep()

    async def always_fails():
        calls.append(1)
        raise ConnectionError("down")

    with pytest.raises(ConnectionError):
        asyncio.run(with_retry(always_fails, attempts=4, delay_seconds=0.5, sleep=sleep))
    assert len(calls) == 4
    assert sleep.delays == [0.5, 1.0, 1.5]


def test_with_retry_does_not_retry_unlisted_errors():
    calls = []

    async def bad():
        calls.append(1)
        raise KeyError("nope")

    with pytest.raises(KeyError):
        asyncio.run(with_retry(bad, attempts=3, retry_on=(ConnectionError,), sleep=RecordingSleep()))
    assert len(calls) == 1


def test_upload_file_sends_base64_content(fake_github):
    async def run():
        async with _client(fake_github) as client:
            await upload_file(client, "octo", "demo", "src/main.c", "int main;", sleep=RecordingSleep())

    asyncio.run(run())
    body = fake_github.uploads["src/main.c"]
    assert body["message"] == "Add src/main.c"
    assert base64.b64decode(body["content"]).decode() == "int main;"


def test_upload_file_retries_until_success(fake_github):
    fake_github.flaky_paths["a.txt"] = 2
    sleep = RecordingSleep()

    async def run():
        async with _client(fake_github) as client:
            await upload_file(client, "octo", "demo", "a.txt", "x", 3, delay_seconds=1.0, sleep=sleep)

    asyncio.run(run())
    assert fake_github.put_calls == ["a.txt"] * 3
    assert sleep.delays == [1.0, 2.0]
    assert sleep.delays[0] < sleep.delays[1]
    assert "a.txt" in fake_github.uploads


def test_upload_file_gives_up_after_max_attempts(fake_github):
    fake_github.failing_paths.add("a.txt")
    sleep = RecordingSleep()

    async def run():
        async with _client(fake_github) as client:
            await upload_file(client, "octo", "demo", "a.txt", "x", 3, delay_seconds=1.0, sleep=sleep)

    with pytest.raises(UploadError) as exc_info:
        asyncio.run(run())
    assert fake_github.put_calls == ["a.txt"] * 3
    assert exc_info.value.status_code == 500
    assert exc_info.value.message == "Server Error"
    assert isinstance(exc_info.value.__cause__, GitHubAPIError)


def test_upload_file_retries_network_errors():
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(1)
        if len(attempts) == 1:
            raise httpx.ConnectTimeout("timed out", request=request)
        return httpx.Response(201, json={})

    async def run():
        async with GitHubClient(VALID_TOKEN, transport=httpx.MockTransport(handler)) as client:
            await upload_file(client, "octo", "demo", "a.txt", "x", 3, sleep=RecordingSleep())

    asyncio.run(run())
    assert len(attempts) == 2
