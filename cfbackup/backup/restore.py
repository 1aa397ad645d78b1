# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
cfbackup Restore Manager - Snapshot selection and restore dispatch.

A snapshot is chosen (explicit timestamp or newest), its folder is listed,
and every recognized file is handed to the restore handler registered for
its name. The default handlers do not write to Cloudflare yet: they log
what they would restore and report ``not_implemented``, so callers can
tell a real restore from a skipped one.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, UTC
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Mapping

import structlog

from cfbackup.backup.collector import WORKERS_DIR
from cfbackup.backup.index import list_zone_snapshots, resolve_zone
from cfbackup.backup.writer import decode_content
from cfbackup.config import BackupConfig
from cfbackup.core import BackupState
from cfbackup.exceptions import CFBackupError, NotFoundError, RestoreError

logger = structlog.get_logger()


class HandlerStatus(str, Enum):
    """Outcome of one restore handler."""

    RESTORED = "restored"
    NOT_IMPLEMENTED = "not_implemented"


@dataclass
class RestoreContext:
    """What a handler needs to write configuration back."""

    config: BackupConfig
    state: BackupState
    zone_id: str
    zone_name: str
    timestamp: str
    path: str  # repository path of the file or folder being restored


@dataclass
class HandlerOutcome:
    """Result reported by a restore handler."""

    kind: str
    status: HandlerStatus
    item_count: int = 0
    message: str = ""


RestoreHandler = Callable[[RestoreContext, Any], Awaitable[HandlerOutcome]]


@dataclass
class RestoreResult:
    """Result of a restore operation."""

    zone_id: str
    zone_name: str
    timestamp: str
    outcomes: Dict[str, HandlerOutcome] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def restored(self) -> List[str]:
        return [name for name, o in self.outcomes.items() if o.status == HandlerStatus.RESTORED]

    @property
    def not_implemented(self) -> List[str]:
        return [
            name for name, o in self.outcomes.items()
            if o.status == HandlerStatus.NOT_IMPLEMENTED
        ]


def _placeholder_handler(kind: str, label: str) -> RestoreHandler:
    async def handler(ctx: RestoreContext, payload: Any) -> HandlerOutcome:
        count = len(payload) if isinstance(payload, list) else 0
        logger.info(
            "restore_handler_not_implemented",
            kind=kind,
            zone_id=ctx.zone_id,
            timestamp=ctx.timestamp,
            items=count,
        )
        return HandlerOutcome(
            kind=kind,
            status=HandlerStatus.NOT_IMPLEMENTED,
            item_count=count,
            message=f"Restoring {label} is not implemented; no changes were made",
        )

    handler.__name__ = f"restore_{kind}"
    return handler


async def restore_workers(ctx: RestoreContext, folder: str) -> HandlerOutcome:
    """Workers are restored from their folder rather than a parsed file."""
    logger.info(
        "restore_handler_not_implemented",
        kind="workers",
        zone_id=ctx.zone_id,
        timestamp=ctx.timestamp,
        folder=folder,
    )
    return HandlerOutcome(
        kind="workers",
        status=HandlerStatus.NOT_IMPLEMENTED,
        message="Restoring Workers is not implemented; no changes were made",
    )


# File name (or folder name for workers) -> handler
DEFAULT_HANDLERS: Dict[str, RestoreHandler] = {
    "dns_records.json": _placeholder_handler("dns_records", "DNS records"),
    "page_rules.json": _placeholder_handler("page_rules", "Page Rules"),
    "firewall_rules.json": _placeholder_handler("firewall_rules", "Firewall Rules"),
    "access_rules.json": _placeholder_handler("access_rules", "Access Rules"),
    "rate_limit_rules.json": _placeholder_handler("rate_limit_rules", "Rate Limit Rules"),
    "ssl_tls_settings.json": _placeholder_handler("ssl_tls_settings", "SSL/TLS settings"),
    WORKERS_DIR: restore_workers,
}


def select_snapshot(snapshots: List[Dict[str, str]], timestamp: str | None) -> str:
    """
    Pick the snapshot timestamp to restore.

    Raises:
        NotFoundError: If there are no snapshots or the timestamp is unknown
    """
    if not snapshots:
        raise NotFoundError("No backups found")

    if timestamp is None:
        return snapshots[0]["timestamp"]

    if not any(item["timestamp"] == timestamp for item in snapshots):
        raise NotFoundError(
            f"Backup with timestamp {timestamp} not found",
            details={"timestamp": timestamp},
        )
    return timestamp


async def _read_json_file(config: BackupConfig, state: BackupState, path: str) -> Any:
    github = state["github"]
    owner, repo = config.github_username, config.github_repo_name

    descriptor = await github.get_file_contents(owner, repo, path, ref=config.branch)
    if descriptor.get("encoding") == "base64" and descriptor.get("content"):
        text = decode_content(descriptor["content"]).decode("utf-8")
    else:
        # Files over 1 MB come back without inline content
        logger.debug("snapshot_file_read_raw", path=path, size=descriptor.get("size"))
        text = await github.get_raw_file(owner, repo, path, ref=config.branch)
    return json.loads(text)


async def restore_zone(
    config: BackupConfig,
    state: BackupState,
    zone_id: str,
    timestamp: str | None = None,
    handlers: Mapping[str, RestoreHandler] | None = None,
) -> RestoreResult:
    """
    Restore a zone from one of its snapshots.

    Args:
        config: Backup configuration
        state: Runtime state
        zone_id: Cloudflare zone identifier
        timestamp: Snapshot to restore; newest if omitted
        handlers: Dispatch table overriding DEFAULT_HANDLERS

    Returns:
        RestoreResult with one outcome per dispatched file

    Raises:
        NotFoundError: If the zone has no snapshots or the timestamp is unknown
        RestoreError: If reading a snapshot file or running a handler fails
    """
    handlers = DEFAULT_HANDLERS if handlers is None else handlers
    start_time = datetime.now(UTC)

    zone = await resolve_zone(state, zone_id)
    zone_name = zone["name"]

    snapshots = await list_zone_snapshots(config, state, zone_name)
    try:
        chosen = select_snapshot(snapshots, timestamp)
    except NotFoundError as e:
        raise NotFoundError(
            f"{e.message} for zone {zone_name} ({zone_id})",
            details={"zone_id": zone_id, **e.details},
        ) from e

    folder = config.snapshot_folder(zone_name, chosen)
    logger.info("restore_started", zone_id=zone_id, zone_name=zone_name, timestamp=chosen)

    try:
        items = await state["github"].list_dir_contents(
            config.github_username, config.github_repo_name, folder
        )
    except CFBackupError as e:
        raise RestoreError(
            f"Failed to list backup folder {folder}: {e.message}",
            details={"zone_id": zone_id, "folder": folder},
        ) from e

    result = RestoreResult(zone_id=zone_id, zone_name=zone_name, timestamp=chosen)

    for item in items:
        name = item.get("name", "")
        item_type = item.get("type")
        handler = handlers.get(name)
        path = item.get("path") or f"{folder}/{name}"

        # Only the workers entry is dispatched as a folder; everything else must be a file
        if handler is None or (item_type == "dir") != (name == WORKERS_DIR):
            result.skipped.append(name)
            continue

        ctx = RestoreContext(
            config=config,
            state=state,
            zone_id=zone_id,
            zone_name=zone_name,
            timestamp=chosen,
            path=path,
        )

        try:
            payload = path if item_type == "dir" else await _read_json_file(config, state, path)
            result.outcomes[name] = await handler(ctx, payload)
        except Exception as e:
            logger.error("restore_file_failed", zone_id=zone_id, path=path, error=str(e))
            raise RestoreError(
                f"Failed to restore {name} for zone {zone_name}: {e}",
                details={"zone_id": zone_id, "path": path},
            ) from e

    result.duration_seconds = (datetime.now(UTC) - start_time).total_seconds()

    logger.info(
        "restore_completed",
        zone_id=zone_id,
        zone_name=zone_name,
        timestamp=chosen,
        restored=len(result.restored),
        not_implemented=len(result.not_implemented),
        skipped=len(result.skipped),
    )
    return result
