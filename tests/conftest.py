import json
import sys
from pathlib import Path

import httpx
import pytest

# Ensure repo root is on sys.path so `import repolaunch...` works in tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from repolaunch.core.config import Settings  # noqa: E402

VALID_TOKEN = "ghp_" + "a" * 36


class FakeGitHub:
    """In-process stand-in for api.github.com (and github.com release downloads), served through httpx.MockTransport.

    user_status: status for GET /user (401 simulates a bad token)
    repo_status: status for POST /user/repos
    failing_paths: repository paths whose PUT always answers 500
    flaky_paths: path -> number of 500s to answer before succeeding
    """

    def __init__(self, login: str = "octo"):
        self.login = login
        self.user_status = 200
        self.repo_status = 200
        self.failing_paths: set = set()
        self.flaky_paths: dict = {}
        self.user_calls = 0
        self.created_repos: list = []
        self.uploads: dict = {}
        self.put_calls: list = []
        self.download_body = b"MZ-fake-executable"

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if request.url.host == "github.com":
            return httpx.Response(200, content=self.download_body)

        if request.method == "GET" and path == "/user":
            self.user_calls += 1
            if self.user_status != 200:
                return httpx.Response(self.user_status, json={"message": "Bad credentials"})
            return httpx.Response(200, json={"login": self.login})

        if request.method == "POST" and path == "/user/repos":
            body = json.loads(request.content)
            if self.repo_status != 200:
                return httpx.Response(self.repo_status, json={"message": "name already exists on this account"})
            self.created_repos.append(body)
            return httpx.Response(
                201,
                json={"name": body["name"], "html_url": f"https://github.com/{self.login}/{body['name']}"},
            )

        prefix = "/repos/"
        if request.method == "PUT" and path.startswith(prefix):
            owner, repo, _, file_path = path[len(prefix):].split("/", 3)
            self.put_calls.append(file_path)
            if file_path in self.failing_paths:
                return httpx.Response(500, json={"message": "Server Error"})
            if self.flaky_paths.get(file_path, 0) > 0:
                self.flaky_paths[file_path] -= 1
                return httpx.Response(502, json={"message": "Bad Gateway"})
            self.uploads[file_path] = json.loads(request.content)
            return httpx.Response(201, json={"content": {"path": file_path}})

        return httpx.Response(404, json={"message": "Not Found"})


@pytest.fixture
def fake_github():
    return FakeGitHub()


@pytest.fixture
def staging_dir(tmp_path: Path) -> Path:
    root = tmp_path / "staging"
    (root / "src" / "engine").mkdir(parents=True)
    (root / ".git").mkdir()
    (root / ".git" / "config").write_text("[core]\n")
    (root / "bundle.tar.gz").write_bytes(b"\x1f\x8b\x08\x00")
    (root / "Makefile").write_text("all:\n\tcc main.c\n")
    (root / "src" / "main.c").write_text("int main(void) { return 0; }\n")
    (root / "src" / "engine" / "variants.ini").write_text("[betza]\nknight = N\n")
    return root


@pytest.fixture
def fast_settings(tmp_path: Path, staging_dir: Path) -> Settings:
    return Settings(
        github_api_url="https://api.github.com",
        staging_dir=str(staging_dir),
        package_path=str(tmp_path / "integration-files.tar.gz"),
        upload_retry_delay_seconds=0,
        build_start_delay_seconds=0,
        build_finish_delay_seconds=0,
        readme_content="# Test repo\n",
        shutdown_grace_seconds=1,
    )
