"""Upstream failure taxonomy for the GitHub REST API."""

from __future__ import annotations


class UpstreamError(Exception):
    """Base class for every non-2xx / transport failure from GitHub."""

    status: int | None = None


class UpstreamNotFound(UpstreamError):
    """404: user or repository does not exist."""

    status = 404


class UpstreamRateLimited(UpstreamError):
    """403 or 429: rate limit exhausted or abuse detection triggered."""

    status = 403

    def __init__(self, retry_after: int, status: int = 403) -> None:
        self.retry_after = retry_after
        self.status = status
        super().__init__(f"rate limit exceeded, retry after {retry_after}s")


class UpstreamUnauthorized(UpstreamError):
    """401: bad or expired token."""

    status = 401


class UpstreamFailure(UpstreamError):
    """Any other failure. ``status`` is None for timeouts and transport errors."""

    def __init__(self, status: int | None, message: str = "") -> None:
        self.status = status
        super().__init__(message or f"GitHub API error: {status}")
