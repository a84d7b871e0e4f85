"""Async GitHub API client mapping HTTP failures onto a small error taxonomy."""

from __future__ import annotations

import os
import time
from typing import Any
from urllib.parse import quote

import httpx
import structlog

from commitwatch.core.token import EnvTokenProvider, TokenProvider
from commitwatch.engines.github.errors import (
    UpstreamError,
    UpstreamFailure,
    UpstreamNotFound,
    UpstreamRateLimited,
    UpstreamUnauthorized,
)
from commitwatch.engines.github.models import (
    Commit,
    RepositorySummary,
    UserProfile,
    parse_commit,
    parse_repository,
    parse_user,
)

log = structlog.get_logger("commitwatch.engine")

DEFAULT_BASE_URL = "https://api.github.com"
DEFAULT_TIMEOUT = 10.0  # seconds, per call
_RATE_LIMIT_FALLBACK = 60  # seconds

_DEFAULT_HEADERS = {
    "Accept": "application/vnd.github.v3+json",
    "User-Agent": "CommitWatch/1.0",
}


def _segment(value: str) -> str:
    """Percent-encode one URL path segment, slashes and query characters included."""
    return quote(value, safe="")


class GitHubClient:
    """Thin async wrapper around the three GitHub REST endpoints we read.

    No retries: callers decide whether to surface or skip a failure.
    """

    def __init__(
        self,
        token_provider: TokenProvider | None = None,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._token_provider = token_provider or EnvTokenProvider()
        if timeout is None:
            timeout = float(os.environ.get("COMMITWATCH_GITHUB_TIMEOUT", DEFAULT_TIMEOUT))
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=_DEFAULT_HEADERS,
            timeout=timeout,
            transport=transport,
        )

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── public ─────────────────────────────────────────────────────────────

    async def request(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        *,
        token: str | None = None,
    ) -> Any:
        """GET *path* and return the parsed JSON body.

        *token* overrides the provider's token for this call only. Raises an
        :class:`UpstreamError` subclass on any non-2xx status, timeout, or
        transport failure.
        """
        headers: dict[str, str] = {}
        auth_token = token or self._token_provider.resolve_token()
        if auth_token:
            headers["Authorization"] = f"Bearer {auth_token}"

        try:
            response = await self._client.get(path, params=params, headers=headers)
        except httpx.TimeoutException as exc:
            log.warning("github.timeout", path=path)
            raise UpstreamFailure(None, f"timeout requesting {path}") from exc
        except httpx.HTTPError as exc:
            log.warning("github.transport_error", path=path, error=str(exc))
            raise UpstreamFailure(None, f"transport error requesting {path}: {exc}") from exc

        if not response.is_success:
            raise self._error_for(response, path)

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamFailure(response.status_code, f"invalid JSON from {path}") from exc

    async def get_user(self, username: str, *, token: str | None = None) -> UserProfile:
        """GET /users/{username}."""
        if not username:
            raise ValueError("username is required")
        path = f"/users/{_segment(username)}"
        data = await self.request(path, token=token)
        return self._parse(parse_user, data, path)

    async def list_repos(
        self, username: str, per_page: int = 100, *, token: str | None = None
    ) -> list[RepositorySummary]:
        """GET /users/{username}/repos, most recently updated first (one page)."""
        if not username:
            raise ValueError("username is required")
        path = f"/users/{_segment(username)}/repos"
        data = await self.request(
            path,
            {"per_page": per_page, "sort": "updated", "direction": "desc"},
            token=token,
        )
        return self._parse_list(parse_repository, data, path)

    async def list_commits(
        self, owner: str, repo: str, per_page: int = 10, *, token: str | None = None
    ) -> list[Commit]:
        """GET /repos/{owner}/{repo}/commits, newest first (one page)."""
        if not owner or not repo:
            raise ValueError("owner and repository are required")
        path = f"/repos/{_segment(owner)}/{_segment(repo)}/commits"
        data = await self.request(path, {"per_page": per_page}, token=token)
        return self._parse_list(parse_commit, data, path)

    # ── internal ───────────────────────────────────────────────────────────

    @classmethod
    def _error_for(cls, response: httpx.Response, path: str) -> UpstreamError:
        status = response.status_code
        if status == 404:
            return UpstreamNotFound(f"not found: {path}")
        if status in (403, 429):
            wait = cls._get_rate_limit_wait(response)
            log.warning("github.rate_limit", path=path, status=status, wait_seconds=wait)
            return UpstreamRateLimited(wait, status=status)
        if status == 401:
            return UpstreamUnauthorized(f"unauthorized: {path}")
        return UpstreamFailure(status, f"GitHub API error: {status} {response.reason_phrase}")

    @staticmethod
    def _get_rate_limit_wait(response: httpx.Response) -> int:
        """Seconds until the limit resets, from Retry-After or X-RateLimit-Reset."""
        retry_after = GitHubClient._parse_header_int(response.headers.get("Retry-After"))
        if retry_after is not None:
            return max(retry_after, 1)
        reset_ts = GitHubClient._parse_header_int(response.headers.get("X-RateLimit-Reset"))
        if reset_ts is not None:
            return max(reset_ts - int(time.time()), 1)
        return _RATE_LIMIT_FALLBACK

    @staticmethod
    def _parse_header_int(value: str | None) -> int | None:
        """Safely parse an integer header value."""
        if value is None:
            return None
        try:
            return int(value)
        except (ValueError, TypeError):
            return None

    @staticmethod
    def _parse(parser, data: Any, path: str):
        if not isinstance(data, dict):
            raise UpstreamFailure(200, f"unexpected payload from {path}")
        try:
            return parser(data)
        except (KeyError, TypeError) as exc:
            raise UpstreamFailure(200, f"malformed payload from {path}: {exc}") from exc

    @staticmethod
    def _parse_list(parser, data: Any, path: str) -> list:
        if not isinstance(data, list):
            raise UpstreamFailure(200, f"expected a list from {path}")
        try:
            return [parser(item) for item in data]
        except (KeyError, TypeError, AttributeError) as exc:
            raise UpstreamFailure(200, f"malformed payload from {path}: {exc}") from exc
