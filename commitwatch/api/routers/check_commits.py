"""Scan trigger: invoked by an external scheduler (cron) to run one scan pass."""

from __future__ import annotations

import hmac
import os
from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from commitwatch.api.deps import get_github_client, get_scanner, get_session_factory
from commitwatch.api.schemas.scan import ScanSummary, ScanTriggerResponse
from commitwatch.engines.commit_scanner.scanner import CommitScanner
from commitwatch.engines.github.client import GitHubClient

router = APIRouter()
log = structlog.get_logger("commitwatch.api")


def _authorized(request: Request) -> bool:
    """When CRON_SECRET is set, require ``Authorization: Bearer <CRON_SECRET>``."""
    secret = os.environ.get("CRON_SECRET")
    if not secret:
        return True
    header = request.headers.get("authorization", "")
    return hmac.compare_digest(header, f"Bearer {secret}")


@router.api_route("", methods=["GET", "POST"], response_model=ScanTriggerResponse)
async def check_commits(
    request: Request,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    client: GitHubClient = Depends(get_github_client),
    scanner: CommitScanner = Depends(get_scanner),
):
    if not _authorized(request):
        return JSONResponse(status_code=401, content={"detail": "Unauthorized"})

    try:
        result = await scanner.scan(session_factory, client)
    except Exception:
        log.exception("scan.failed")
        return JSONResponse(
            status_code=500, content={"success": False, "error": "Internal server error"}
        )

    return ScanTriggerResponse(
        success=True,
        message="Commit check completed",
        timestamp=datetime.now(timezone.utc),
        summary=ScanSummary(
            subscriptions=result.subscriptions,
            groups=result.groups,
            groups_failed=result.groups_failed,
            repos_failed=result.repos_failed,
            new_commits=result.new_commits,
            notified=result.notified,
            subscriptions_failed=result.subscriptions_failed,
            errors=list(result.errors),
        ),
    )
