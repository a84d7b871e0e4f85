"""FastAPI application factory.

The lifespan owns every long-lived collaborator (database engine, GitHub
client, scanner, optional scan loop) and publishes them on ``app.state``,
where :mod:`commitwatch.api.deps` picks them up per request.
"""

from __future__ import annotations

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from commitwatch.api.deps import build_scanner, database_url
from commitwatch.api.errors import register_error_handlers
from commitwatch.api.middleware.request_id import RequestIDMiddleware
from commitwatch.api.routers import check_commits, github, subscriptions
from commitwatch.core.database import create_engine, create_session_factory
from commitwatch.core.logging import setup_logging
from commitwatch.core.token import EnvTokenProvider
from commitwatch.engines.github.client import GitHubClient
from commitwatch.scheduler import create_scheduler

_ROUTERS = (
    (check_commits.router, "/api/check-commits", "scan"),
    (github.router, "/api/v1/github", "github"),
    (subscriptions.router, "/api/v1/subscriptions", "subscriptions"),
)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    engine = create_engine(database_url())
    github_client = GitHubClient(EnvTokenProvider())

    app.state.session_factory = create_session_factory(engine)
    app.state.github_client = github_client
    app.state.scanner = build_scanner()

    scheduler = create_scheduler(
        app.state.session_factory, scanner=app.state.scanner, github_client=github_client
    )
    await scheduler.start()
    try:
        yield
    finally:
        await scheduler.stop()
        await github_client.close()
        await engine.dispose()


def _cors_origins() -> list[str]:
    raw = os.environ.get("COMMITWATCH_CORS_ORIGINS", "http://localhost:3000")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def create_app() -> FastAPI:
    setup_logging()

    app = FastAPI(
        title="CommitWatch",
        version="1.0.0",
        docs_url="/api/v1/docs",
        openapi_url="/api/v1/openapi.json",
        lifespan=_lifespan,
    )
    register_error_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health", tags=["ops"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    for router, prefix, tag in _ROUTERS:
        app.include_router(router, prefix=prefix, tags=[tag])

    return app
