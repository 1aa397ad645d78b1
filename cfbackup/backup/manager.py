# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
cfbackup Backup Manager - Backup orchestration.

This module selects the zones to back up, makes sure the destination
repository exists, and writes one timestamped snapshot per zone under
``<backup_root>/<zone name>/<timestamp>/``.
"""

from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Any, Callable, Dict, List, Sequence, Tuple

import structlog

from cfbackup.backup.collector import collect_zone_entries
from cfbackup.backup.writer import write_snapshot_file
from cfbackup.config import BackupConfig
from cfbackup.core import BackupState, make_snapshot_timestamp
from cfbackup.exceptions import BackupError, CFBackupError, NotFoundError, RemoteServiceError

logger = structlog.get_logger()

Clock = Callable[[], datetime]


@dataclass
class ZoneBackupResult:
    """Result of backing up one zone."""

    zone_id: str
    zone_name: str
    timestamp: str
    folder: str
    files_written: List[str] = field(default_factory=list)
    script_errors: Dict[str, str] = field(default_factory=dict)


@dataclass
class BackupRunResult:
    """Result of a backup run across zones."""

    run_id: str  # ULID
    zones: List[ZoneBackupResult]
    missing_zone_ids: List[str]
    repo_created: bool
    duration_seconds: float = 0.0


def select_zones(
    all_zones: List[Dict[str, Any]],
    zone_ids: Sequence[str] | None,
) -> Tuple[List[Dict[str, Any]], List[str]]:
    """
    Filter zones to the requested identifiers.

    An empty or missing request selects every zone.

    Returns:
        Tuple of (selected zones, requested ids with no matching zone)
    """
    if not zone_ids:
        return list(all_zones), []

    requested = set(zone_ids)
    selected = [zone for zone in all_zones if zone["id"] in requested]
    found = {zone["id"] for zone in selected}
    missing = [zone_id for zone_id in dict.fromkeys(zone_ids) if zone_id not in found]
    return selected, missing


async def ensure_repository(config: BackupConfig, state: BackupState) -> bool:
    """
    Create the destination repository if it does not exist.

    Returns:
        True if the repository was created by this call
    """
    github = state["github"]
    try:
        await github.get_repo(config.github_username, config.github_repo_name)
        return False
    except NotFoundError:
        pass
    except CFBackupError as e:
        raise RemoteServiceError(
            f"Failed to check for GitHub repository: {e.message}",
            details={"repo": config.repo_full_name},
        ) from e

    logger.info("github_repo_missing", repo=config.repo_full_name)
    try:
        await github.create_repo(
            config.github_repo_name,
            description=config.repo_description,
            private=config.repo_private,
        )
    except CFBackupError as e:
        raise RemoteServiceError(
            f"Failed to create GitHub repository: {e.message}",
            details={"repo": config.repo_full_name},
        ) from e
    return True


async def backup_zone(
    config: BackupConfig,
    state: BackupState,
    zone: Dict[str, Any],
    clock: Clock | None = None,
) -> ZoneBackupResult:
    """
    Write one new snapshot for a zone.

    Args:
        config: Backup configuration
        state: Runtime state
        zone: Zone object from Cloudflare
        clock: Time source for the snapshot timestamp (default: now, UTC)

    Returns:
        ZoneBackupResult for the written snapshot
    """
    timestamp = make_snapshot_timestamp(clock() if clock else None)
    folder = config.snapshot_folder(zone["name"], timestamp)

    logger.info(
        "zone_backup_started",
        zone_id=zone["id"],
        zone_name=zone["name"],
        timestamp=timestamp,
    )

    entries = await collect_zone_entries(state["cloudflare"], zone, timestamp)

    result = ZoneBackupResult(
        zone_id=zone["id"],
        zone_name=zone["name"],
        timestamp=timestamp,
        folder=folder,
    )

    for entry in entries:
        path = f"{folder}/{entry.path}"
        await write_snapshot_file(state["github"], config, path, entry.content)
        result.files_written.append(path)
        if entry.error:
            result.script_errors[entry.path] = entry.error

    logger.info(
        "zone_backup_completed",
        zone_id=zone["id"],
        zone_name=zone["name"],
        files=len(result.files_written),
        script_errors=len(result.script_errors),
    )
    return result


async def backup_zones(
    config: BackupConfig,
    state: BackupState,
    zone_ids: Sequence[str] | None = None,
    clock: Clock | None = None,
) -> BackupRunResult:
    """
    Back up every zone, or the requested subset.

    Zones are processed one at a time. The first failing zone aborts the
    run; snapshots already written for earlier zones are kept.

    Args:
        config: Backup configuration
        state: Runtime state
        zone_ids: Optional zone identifiers; None or empty means all zones
        clock: Time source for snapshot timestamps

    Returns:
        BackupRunResult with one ZoneBackupResult per zone

    Raises:
        BackupError: If listing zones, preparing the repository, or any
            zone's backup fails
    """
    from ulid import ULID

    run_id = str(ULID())
    start_time = datetime.now(UTC)

    logger.info("backup_run_started", run_id=run_id, requested=list(zone_ids or []))

    try:
        all_zones = await state["cloudflare"].list_zones()
    except CFBackupError as e:
        state["last_error"] = str(e)
        raise BackupError(
            f"Failed to fetch Cloudflare zones: {e.message}",
            details={"run_id": run_id},
        ) from e

    zones, missing = select_zones(all_zones, zone_ids)
    if missing:
        logger.warning("requested_zones_missing", run_id=run_id, missing=missing)

    try:
        repo_created = await ensure_repository(config, state)
    except CFBackupError as e:
        state["last_error"] = str(e)
        raise BackupError(e.message, details={"run_id": run_id}) from e

    results: List[ZoneBackupResult] = []
    for zone in zones:
        try:
            results.append(await backup_zone(config, state, zone, clock))
        except CFBackupError as e:
            state["last_error"] = str(e)
            state["total_snapshots"] += len(results)
            logger.error(
                "backup_run_failed",
                run_id=run_id,
                zone_id=zone["id"],
                zone_name=zone.get("name"),
                completed=len(results),
                error=str(e),
            )
            raise BackupError(
                f"Backup failed for zone {zone.get('name')} ({zone['id']}): {e.message}",
                details={
                    "run_id": run_id,
                    "zone_id": zone["id"],
                    "completed_zones": [r.zone_id for r in results],
                },
            ) from e

    duration = (datetime.now(UTC) - start_time).total_seconds()

    state["last_run_at"] = datetime.now(UTC)
    state["total_runs"] += 1
    state["total_snapshots"] += len(results)

    logger.info(
        "backup_run_completed",
        run_id=run_id,
        zones=len(results),
        missing=len(missing),
        duration=duration,
    )

    return BackupRunResult(
        run_id=run_id,
        zones=results,
        missing_zone_ids=missing,
        repo_created=repo_created,
        duration_seconds=duration,
    )
