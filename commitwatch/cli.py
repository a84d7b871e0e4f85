"""CLI entry point: commitwatch.

Subcommands:
    commitwatch scan                 # Run one scan pass (for cron)
    commitwatch repos <username>     # Print a user's repositories, most active first
    commitwatch init-db              # Create tables
    commitwatch serve                # Run the HTTP API
"""

from __future__ import annotations

import asyncio
import sys

import click

from commitwatch.api.deps import build_scanner, database_url
from commitwatch.core.database import Base, create_engine, create_session_factory
from commitwatch.core.logging import setup_logging
from commitwatch.core.token import EnvTokenProvider, StaticTokenProvider
from commitwatch.engines.aggregator import AggregateError, aggregate
from commitwatch.engines.commit_scanner.models import ScanResult
from commitwatch.engines.github.client import GitHubClient


async def run_scan_pass() -> ScanResult:
    """Run one scan pass over all active subscriptions with env-configured collaborators."""
    engine = create_engine(database_url())
    try:
        factory = create_session_factory(engine)
        async with GitHubClient(EnvTokenProvider()) as client:
            return await build_scanner().scan(factory, client)
    finally:
        await engine.dispose()


async def _init_db() -> None:
    engine = create_engine(database_url())
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    finally:
        await engine.dispose()


async def _aggregate(username: str, token: str | None):
    provider = StaticTokenProvider(token) if token else EnvTokenProvider()
    async with GitHubClient(provider) as client:
        return await aggregate(client, username)


@click.group()
@click.option(
    "--log-level",
    default=None,
    help="Override COMMITWATCH_LOG_LEVEL (DEBUG, INFO, WARNING, ...).",
)
def main(log_level: str | None) -> None:
    """CommitWatch: email notifications for new GitHub commits."""
    setup_logging(level=log_level)


@main.command("scan")
def scan() -> None:
    """Run one scan pass and report counts."""
    result = asyncio.run(run_scan_pass())
    click.echo(
        f"subscriptions={result.subscriptions} groups={result.groups} "
        f"groups_failed={result.groups_failed} repos_failed={result.repos_failed} "
        f"notified={result.notified}"
    )
    for error in result.errors:
        click.echo(f"error: {error}", err=True)


@main.command("repos")
@click.argument("username")
@click.option("--token", default=None, help="GitHub token (defaults to GITHUB_TOKEN)")
def repos(username: str, token: str | None) -> None:
    """List USERNAME's repositories, most recently committed first."""
    try:
        result = asyncio.run(_aggregate(username, token))
    except AggregateError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    if not result.repo_details:
        click.echo(f"{username} has no public repositories")
        return
    for detail in result.repo_details:
        when = detail.last_commit_date.isoformat() if detail.last_commit_date else "unknown"
        click.echo(f"{detail.name:<40} {when}")
    click.echo("")
    click.echo(f"Latest commits in {result.ordered_repo_names[0]}:")
    for commit in result.default_repo_commits:
        click.echo(f"  {commit.short_sha}  {commit.title}")


@main.command("init-db")
def init_db() -> None:
    """Create all tables in COMMITWATCH_DATABASE_URL."""
    asyncio.run(_init_db())
    click.echo("Tables created")


@main.command("serve")
@click.option("--host", default="127.0.0.1")
@click.option("--port", default=8000, type=int)
def serve(host: str, port: int) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run("commitwatch.api:create_app", host=host, port=port, factory=True)


if __name__ == "__main__":
    main()
