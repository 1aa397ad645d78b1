# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Backup Engine - Snapshot writing, collection, listing and restore.
"""

from cfbackup.backup.writer import (
    write_snapshot_file,
    encode_content,
    decode_content,
)

from cfbackup.backup.collector import (
    collect_zone_entries,
    collect_worker_entries,
    group_routes_by_script,
    SnapshotEntry,
)

from cfbackup.backup.manager import (
    backup_zones,
    backup_zone,
    ensure_repository,
    select_zones,
    BackupRunResult,
    ZoneBackupResult,
)

from cfbackup.backup.index import (
    list_snapshots,
    list_zone_snapshots,
    SnapshotInfo,
)

from cfbackup.backup.restore import (
    restore_zone,
    select_snapshot,
    DEFAULT_HANDLERS,
    HandlerOutcome,
    HandlerStatus,
    RestoreContext,
    RestoreResult,
)

__all__ = [
    # Writer
    "write_snapshot_file",
    "encode_content",
    "decode_content",
    # Collector
    "collect_zone_entries",
    "collect_worker_entries",
    "group_routes_by_script",
    "SnapshotEntry",
    # Manager
    "backup_zones",
    "backup_zone",
    "ensure_repository",
    "select_zones",
    "BackupRunResult",
    "ZoneBackupResult",
    # Index
    "list_snapshots",
    "list_zone_snapshots",
    "SnapshotInfo",
    # Restore
    "restore_zone",
    "select_snapshot",
    "DEFAULT_HANDLERS",
    "HandlerOutcome",
    "HandlerStatus",
    "RestoreContext",
    "RestoreResult",
]
