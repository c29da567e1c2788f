"""Async GitHub REST client: identity lookup, repository creation, create-or-update file contents."""
import base64
from typing import Any, Dict, Optional

import httpx

from repolaunch.core.config import settings


class GitHubAPIError(Exception):
    """Non-2xx response from the GitHub API. Carries the HTTP status and the API's own message when it sent one."""

    def __init__(self, status_code: int, message: str, api_message: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.api_message = api_message


def _raise_for_status(response: httpx.Response) -> None:
    if response.is_success:
        return
    api_message = None
    try:
        body = response.json()
        if isinstance(body, dict):
            api_message = body.get("message")
    except ValueError:
        pass
    raise GitHubAPIError(
        status_code=response.status_code,
        message=f"GitHub API {response.request.method} {response.request.url.path} failed with status {response.status_code}",
        api_message=api_message,
    )


class GitHubClient:
    """Thin async wrapper over the three GitHub endpoints the setup flow needs.
    Why available: One place for auth headers, base URL and timeout; tests swap the transport for httpx.MockTransport."""

    def __init__(
        self,
        token: str,
        *,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": user_agent or settings.github_user_agent,
        }
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.github_api_url,
            headers=self.headers,
            timeout=timeout or settings.http_timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_user(self) -> Dict[str, Any]:
        """Return the authenticated user (GET /user). A 401 here means the token is bad."""
        response = await self._client.get("/user")
        _raise_for_status(response)
        return response.json()

    async def create_repo(self, name: str, description: str) -> Dict[str, Any]:
        """Create a public, non-initialized repository for the authenticated user."""
        response = await self._client.post(
            "/user/repos",
            json={
                "name": name,
                "description": description,
                "private": False,
                "has_issues": True,
                "has_projects": True,
                "has_wiki": False,
                "auto_init": False,
            },
        )
        _raise_for_status(response)
        return response.json()

    async def put_file(self, owner: str, repo: str, path: str, content: str, message: str) -> Dict[str, Any]:
        """Create or replace a file at path; content is sent base64 encoded as the contents API requires."""
        response = await self._client.put(
            f"/repos/{owner}/{repo}/contents/{path}",
            json={
                "message": message,
                "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            },
        )
        _raise_for_status(response)
        return response.json()
