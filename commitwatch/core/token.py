"""GitHub token resolution.

The engine never reads its environment directly; a :class:`TokenProvider`
is injected into :class:`~commitwatch.engines.github.client.GitHubClient`
at construction time.
"""

from __future__ import annotations

import os
from typing import Protocol, runtime_checkable


@runtime_checkable
class TokenProvider(Protocol):
    """Supplies the default GitHub token when a caller does not pass one."""

    def resolve_token(self) -> str | None: ...


class EnvTokenProvider:
    """Read the token from an environment variable on every call."""

    def __init__(self, variable: str = "GITHUB_TOKEN") -> None:
        self.variable = variable

    def resolve_token(self) -> str | None:
        return os.environ.get(self.variable) or None


class StaticTokenProvider:
    """Always return the same token (or none)."""

    def __init__(self, token: str | None = None) -> None:
        self._token = token or None

    def resolve_token(self) -> str | None:
        return self._token
