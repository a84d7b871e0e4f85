"""Commit scanner: periodic detection of unseen commits per subscription."""

from commitwatch.engines.commit_scanner.models import ScanResult
from commitwatch.engines.commit_scanner.scanner import (
    CommitScanner,
    group_by_username,
    select_new_commits,
)

__all__ = [
    "CommitScanner",
    "ScanResult",
    "group_by_username",
    "select_new_commits",
]
