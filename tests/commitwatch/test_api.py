"""Tests for the API layer.

Subscription routes run against the test database; the GitHub client and
scanner are mocked on ``app.state``.
"""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from helpers import make_commit, make_repo, utc
from httpx import ASGITransport, AsyncClient

from commitwatch.api import create_app
from commitwatch.api.errors import register_error_handlers
from commitwatch.api.middleware.request_id import REQUEST_ID_HEADER
from commitwatch.api.routers import check_commits, github, subscriptions
from commitwatch.dao.commit_notification_dao import CommitNotificationDAO
from commitwatch.engines.commit_scanner.models import ScanResult
from commitwatch.engines.github.errors import (
    UpstreamFailure,
    UpstreamNotFound,
    UpstreamRateLimited,
    UpstreamUnauthorized,
)
from commitwatch.engines.github.models import UserProfile

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def github_client():
    client = AsyncMock()
    client.get_user.return_value = UserProfile(login="octocat", id=1)
    client.list_repos.return_value = []
    client.list_commits.return_value = []
    return client


@pytest.fixture
def scanner():
    mock = AsyncMock()
    mock.scan.return_value = ScanResult(
        started_at=utc(2024, 1, 1), subscriptions=2, groups=1, new_commits=3, notified=2
    )
    return mock


@pytest.fixture
def app(session_factory, github_client, scanner):
    """Routers wired onto a bare app; app.state stands in for the lifespan."""
    application = FastAPI()
    register_error_handlers(application)
    application.include_router(check_commits.router, prefix="/api/check-commits")
    application.include_router(github.router, prefix="/api/v1/github")
    application.include_router(subscriptions.router, prefix="/api/v1/subscriptions")

    application.state.session_factory = session_factory
    application.state.github_client = github_client
    application.state.scanner = scanner
    return application


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def _subscribe(client, email="dev@example.com", username="octocat", **extra):
    return await client.post(
        "/api/v1/subscriptions/", json={"email": email, "username": username, **extra}
    )


# ---------------------------------------------------------------------------
# Subscriptions
# ---------------------------------------------------------------------------


class TestSubscriptions:
    async def test_create(self, client):
        resp = await _subscribe(client, frequency="weekly")

        assert resp.status_code == 201
        body = resp.json()
        assert body["email"] == "dev@example.com"
        assert body["username"] == "octocat"
        assert body["frequency"] == "weekly"
        assert body["is_active"] is True
        assert body["last_checked"] is None
        uuid.UUID(body["id"])

    async def test_duplicate_is_conflict(self, client):
        await _subscribe(client)

        resp = await _subscribe(client)

        assert resp.status_code == 409
        assert resp.json()["detail"] == "You're already subscribed to this user"
        listed = await client.get("/api/v1/subscriptions/")
        assert len(listed.json()) == 1

    async def test_invalid_email(self, client):
        resp = await _subscribe(client, email="nope")
        assert resp.status_code == 422

    async def test_invalid_frequency(self, client):
        resp = await _subscribe(client, frequency="hourly")
        assert resp.status_code == 422
        assert "frequency" in resp.json()["detail"]

    async def test_list_by_email(self, client):
        await _subscribe(client, email="a@example.com")
        await _subscribe(client, email="b@example.com")

        resp = await client.get("/api/v1/subscriptions/", params={"email": "b@example.com"})

        assert resp.status_code == 200
        assert [s["email"] for s in resp.json()] == ["b@example.com"]

    async def test_get_and_delete(self, client):
        created = (await _subscribe(client)).json()
        path = f"/api/v1/subscriptions/{created['id']}"

        assert (await client.get(path)).status_code == 200
        assert (await client.delete(path)).status_code == 204
        assert (await client.get(path)).status_code == 404

    async def test_delete_unknown(self, client):
        resp = await client.delete(f"/api/v1/subscriptions/{uuid.uuid4()}")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "subscription not found"

    async def test_notifications(self, client, session_factory):
        created = (await _subscribe(client)).json()
        async with session_factory() as session:
            async with session.begin():
                await CommitNotificationDAO().insert_if_absent(
                    session,
                    subscription_id=uuid.UUID(created["id"]),
                    commit_sha="abc1234def",
                    commit_message="Fix typo",
                    repo_name="hello",
                    author="Octo Cat",
                    commit_date=utc(2024, 6, 1),
                )

        resp = await client.get(f"/api/v1/subscriptions/{created['id']}/notifications")

        assert resp.status_code == 200
        [row] = resp.json()
        assert row["commit_sha"] == "abc1234def"
        assert row["repo_name"] == "hello"

    async def test_notifications_unknown_subscription(self, client):
        resp = await client.get(f"/api/v1/subscriptions/{uuid.uuid4()}/notifications")
        assert resp.status_code == 404


# ---------------------------------------------------------------------------
# GitHub aggregation
# ---------------------------------------------------------------------------


class TestRepositories:
    async def test_ranked_repositories(self, client, github_client):
        github_client.list_repos.return_value = [make_repo("old"), make_repo("new")]

        async def list_commits(owner, repo, per_page=10, *, token=None):
            when = utc(2024, 1, 1) if repo == "old" else utc(2024, 6, 1)
            return [make_commit(f"{repo}-sha", when)]

        github_client.list_commits.side_effect = list_commits

        resp = await client.get("/api/v1/github/users/octocat/repositories")

        assert resp.status_code == 200
        body = resp.json()
        assert body["user"]["login"] == "octocat"
        assert body["repos"] == ["new", "old"]
        assert [c["sha"] for c in body["commits"]] == ["new-sha"]
        assert body["repos_with_commits"][0]["repo"]["full_name"] == "octocat/new"

    async def test_token_header_is_forwarded(self, client, github_client):
        await client.get(
            "/api/v1/github/users/octocat/repositories", headers={"X-GitHub-Token": "ghp_x"}
        )

        github_client.get_user.assert_awaited_once_with("octocat", token="ghp_x")

    async def test_zero_repositories(self, client):
        resp = await client.get("/api/v1/github/users/octocat/repositories")

        assert resp.status_code == 200
        assert resp.json()["repos"] == []
        assert resp.json()["commits"] == []

    async def test_rate_limit_sets_retry_after(self, client, github_client):
        github_client.list_repos.side_effect = UpstreamRateLimited(42)

        resp = await client.get("/api/v1/github/users/octocat/repositories")

        assert resp.status_code == 429
        assert resp.headers["Retry-After"] == "42"

    async def test_invalid_username_is_rejected_before_upstream(self, client, github_client):
        resp = await client.get("/api/v1/github/users/octocat%3Fx%3D/repositories")

        assert resp.status_code == 404
        assert resp.json()["kind"] == "not_found"
        github_client.get_user.assert_not_called()
        github_client.list_repos.assert_not_called()

    @pytest.mark.parametrize(
        ("exc", "status", "kind"),
        [
            (UpstreamNotFound("nope"), 404, "not_found"),
            (UpstreamRateLimited(60), 429, "rate_limited"),
            (UpstreamUnauthorized("bad"), 401, "unauthorized"),
            (UpstreamFailure(None, "timeout"), 502, "failed"),
        ],
    )
    async def test_upstream_errors(self, client, github_client, exc, status, kind):
        github_client.list_repos.side_effect = exc

        resp = await client.get("/api/v1/github/users/octocat/repositories")

        assert resp.status_code == status
        assert resp.json()["kind"] == kind


# ---------------------------------------------------------------------------
# Scan trigger
# ---------------------------------------------------------------------------


class TestCheckCommits:
    async def test_open_when_no_secret(self, client, scanner, monkeypatch):
        monkeypatch.delenv("CRON_SECRET", raising=False)

        resp = await client.get("/api/check-commits")

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["message"] == "Commit check completed"
        assert body["summary"]["notified"] == 2
        assert body["summary"]["new_commits"] == 3
        scanner.scan.assert_awaited_once()

    async def test_post_is_accepted(self, client, monkeypatch):
        monkeypatch.delenv("CRON_SECRET", raising=False)

        resp = await client.post("/api/check-commits")

        assert resp.status_code == 200

    async def test_secret_required(self, client, scanner, monkeypatch):
        monkeypatch.setenv("CRON_SECRET", "s3cret")

        resp = await client.get("/api/check-commits")

        assert resp.status_code == 401
        assert resp.json() == {"detail": "Unauthorized"}
        scanner.scan.assert_not_called()

    async def test_wrong_secret(self, client, scanner, monkeypatch):
        monkeypatch.setenv("CRON_SECRET", "s3cret")

        resp = await client.get("/api/check-commits", headers={"Authorization": "Bearer nope"})

        assert resp.status_code == 401
        scanner.scan.assert_not_called()

    async def test_correct_secret(self, client, scanner, monkeypatch):
        monkeypatch.setenv("CRON_SECRET", "s3cret")

        resp = await client.get("/api/check-commits", headers={"Authorization": "Bearer s3cret"})

        assert resp.status_code == 200
        scanner.scan.assert_awaited_once()

    async def test_summary_lists_errors(self, client, scanner, monkeypatch):
        monkeypatch.delenv("CRON_SECRET", raising=False)
        scanner.scan.return_value = ScanResult(
            started_at=utc(2024, 1, 1), groups=1, groups_failed=1, errors=["ghost: not found"]
        )

        resp = await client.get("/api/check-commits")

        assert resp.json()["summary"]["errors"] == ["ghost: not found"]

    async def test_scan_crash_returns_json_500(self, client, scanner, monkeypatch):
        monkeypatch.delenv("CRON_SECRET", raising=False)
        scanner.scan.side_effect = RuntimeError("database unavailable")

        resp = await client.get("/api/check-commits")

        assert resp.status_code == 500
        assert resp.json() == {"success": False, "error": "Internal server error"}


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


class TestCreateApp:
    async def test_health_and_request_id(self):
        app = create_app()
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            resp = await c.get("/health")

        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}
        uuid.UUID(resp.headers[REQUEST_ID_HEADER])

    async def test_incoming_request_id_is_echoed(self):
        app = create_app()
        rid = str(uuid.uuid4())
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            resp = await c.get("/health", headers={REQUEST_ID_HEADER: rid})

        assert resp.headers[REQUEST_ID_HEADER] == rid
