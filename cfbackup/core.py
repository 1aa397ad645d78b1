# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
cfbackup Core - Runtime state shared by the backup, list and restore paths.

The state holds the two service clients and a few counters. It is created
once from a BackupConfig and passed explicitly to every operation, so
tests can build a state around fake collaborators.
"""

from datetime import datetime, UTC
from typing import Any, TypedDict

import structlog

from cfbackup.config import BackupConfig

logger = structlog.get_logger()


class BackupState(TypedDict):
    """Runtime state for backup operations."""

    cloudflare: Any  # CloudflareClient or compatible
    github: Any  # GitHubClient or compatible
    last_run_at: datetime | None
    total_runs: int
    total_snapshots: int
    last_error: str | None


def create_backup_state(cloudflare: Any, github: Any) -> BackupState:
    """Wrap already-constructed clients in a fresh state."""
    return BackupState(
        cloudflare=cloudflare,
        github=github,
        last_run_at=None,
        total_runs=0,
        total_snapshots=0,
        last_error=None,
    )


async def initialize_backup_state(config: BackupConfig) -> BackupState:
    """
    Initialize runtime state for backup operations.

    Args:
        config: Backup configuration

    Returns:
        Initialized BackupState dictionary
    """
    from cfbackup.clients import CloudflareClient, GitHubClient

    cloudflare = CloudflareClient(
        config.cloudflare_api_token,
        base_url=config.cloudflare_api_url,
        timeout=config.http_timeout,
    )
    github = GitHubClient(
        config.github_access_token,
        base_url=config.github_api_url,
        timeout=config.http_timeout,
    )

    logger.info("backup_state_initialized", repo=config.repo_full_name)
    return create_backup_state(cloudflare, github)


async def shutdown_backup_state(state: BackupState) -> None:
    """Close both service clients."""
    for name in ("cloudflare", "github"):
        client = state[name]
        close = getattr(client, "aclose", None)
        if close is None:
            continue
        try:
            await close()
        except Exception as e:
            logger.warning("client_close_failed", client=name, error=str(e))

    logger.info("backup_state_shutdown_complete")


def make_snapshot_timestamp(now: datetime | None = None) -> str:
    """
    Build a path-safe snapshot timestamp.

    ISO-8601 UTC with millisecond precision and a ``Z`` suffix, with every
    ``:`` replaced by ``-``, e.g. ``2024-01-01T00-00-00.000Z``. Timestamps
    in this form sort lexically in chronological order.
    """
    moment = (now or datetime.now(UTC)).astimezone(UTC)
    iso = moment.strftime("%Y-%m-%dT%H:%M:%S") + f".{moment.microsecond // 1000:03d}Z"
    return iso.replace(":", "-")
