# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Snapshot Index - List a zone's snapshots, newest first.
"""

from typing import Any, Dict, List, TypedDict
from urllib.parse import quote

import structlog

from cfbackup.clients.github import CONTENTS_LISTING_LIMIT
from cfbackup.config import BackupConfig
from cfbackup.core import BackupState
from cfbackup.exceptions import CFBackupError, NotFoundError, RemoteServiceError

logger = structlog.get_logger()


class SnapshotInfo(TypedDict):
    """One snapshot folder."""

    timestamp: str
    url: str


async def resolve_zone(state: BackupState, zone_id: str) -> Dict[str, Any]:
    """Fetch a zone by id."""
    try:
        return await state["cloudflare"].get_zone(zone_id)
    except NotFoundError as e:
        raise NotFoundError(
            f"Cloudflare zone {zone_id} not found",
            details={"zone_id": zone_id},
        ) from e
    except CFBackupError as e:
        raise RemoteServiceError(
            f"Failed to fetch Cloudflare zone {zone_id}: {e.message}",
            details={"zone_id": zone_id},
        ) from e


async def _list_zone_folder_tree(
    config: BackupConfig,
    state: BackupState,
    folder: str,
    listed: List[Dict[str, Any]],
) -> List[Dict[str, Any]]:
    """Re-list a zone folder through the git tree, which has no entry cap."""
    tree = await state["github"].get_tree(
        config.github_username, config.github_repo_name, f"{config.branch}:{folder}"
    )
    if tree.get("truncated"):
        logger.warning("zone_folder_tree_truncated", folder=folder)

    # Tree entries have no html_url; derive it from a listed sibling
    sample = next((entry["html_url"] for entry in listed if entry.get("html_url")), "")
    base_url = sample.rsplit("/", 1)[0] if sample else ""

    return [
        {
            "name": item["path"],
            "type": "dir" if item.get("type") == "tree" else "file",
            "html_url": f"{base_url}/{quote(item['path'])}" if base_url else "",
        }
        for item in tree.get("tree", [])
    ]


async def list_zone_snapshots(
    config: BackupConfig,
    state: BackupState,
    zone_name: str,
) -> List[SnapshotInfo]:
    """
    List snapshot folders for a zone name.

    Timestamps are compared as plain strings; the path-safe ISO-8601 form
    sorts chronologically, so descending order puts the newest first.
    A missing zone folder (or repository) yields an empty list. Folders
    with more entries than the contents API returns are re-listed from the
    git tree so the newest snapshots are not cut off.
    """
    folder = config.zone_folder(zone_name)
    try:
        entries = await state["github"].list_dir_contents(
            config.github_username, config.github_repo_name, folder
        )
    except NotFoundError:
        logger.debug("zone_folder_missing", folder=folder)
        return []

    if len(entries) >= CONTENTS_LISTING_LIMIT:
        logger.info("zone_folder_listing_capped", folder=folder, listed=len(entries))
        entries = await _list_zone_folder_tree(config, state, folder, entries)

    snapshots = [
        SnapshotInfo(timestamp=entry["name"], url=entry.get("html_url", ""))
        for entry in entries
        if entry.get("type") == "dir"
    ]
    snapshots.sort(key=lambda item: item["timestamp"], reverse=True)
    return snapshots


async def list_snapshots(
    config: BackupConfig,
    state: BackupState,
    zone_id: str,
) -> List[SnapshotInfo]:
    """
    List snapshots for a zone id, newest first.

    Args:
        config: Backup configuration
        state: Runtime state
        zone_id: Cloudflare zone identifier

    Returns:
        List of {timestamp, url} dicts
    """
    zone = await resolve_zone(state, zone_id)
    snapshots = await list_zone_snapshots(config, state, zone["name"])

    logger.info(
        "snapshots_listed",
        zone_id=zone_id,
        zone_name=zone["name"],
        count=len(snapshots),
    )
    return snapshots
