# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
cfbackup Tools - Tool-facing entry points.

Exposes backup_projects, list_backups and restore_project to an external
tool-invocation caller. Every entry point validates its arguments before
any remote call and converts all failures into an error ToolResult;
nothing raises past this module.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Mapping

import structlog

from cfbackup.backup.index import list_snapshots
from cfbackup.backup.manager import backup_zones
from cfbackup.backup.restore import RestoreHandler, restore_zone
from cfbackup.config import BackupConfig
from cfbackup.core import BackupState
from cfbackup.exceptions import CFBackupError, NotFoundError, ValidationError

logger = structlog.get_logger()


class ErrorCategory(str, Enum):
    """Machine-checkable error category of a failed tool call."""

    INVALID_PARAMS = "invalid_params"
    INTERNAL_ERROR = "internal_error"
    NOT_FOUND = "not_found"
    METHOD_NOT_FOUND = "method_not_found"


@dataclass
class ToolResult:
    """Text result of a tool call, or an error flag plus message."""

    text: str
    is_error: bool = False
    category: ErrorCategory | None = None

    def to_dict(self) -> dict:
        payload: Dict[str, Any] = {"content": [{"type": "text", "text": self.text}]}
        if self.is_error:
            payload["isError"] = True
            payload["category"] = self.category.value if self.category else None
        return payload


TOOL_DEFINITIONS: List[Dict[str, Any]] = [
    {
        "name": "backup_projects",
        "description": "Backup Cloudflare projects to GitHub",
        "inputSchema": {
            "type": "object",
            "properties": {
                "projectIds": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": (
                        "Optional array of Cloudflare project IDs to backup. "
                        "If not provided, all projects will be backed up."
                    ),
                },
            },
            "required": [],
        },
    },
    {
        "name": "restore_project",
        "description": "Restore a Cloudflare project from a backup",
        "inputSchema": {
            "type": "object",
            "properties": {
                "projectId": {
                    "type": "string",
                    "description": "ID of the Cloudflare project to restore",
                },
                "timestamp": {
                    "type": "string",
                    "description": (
                        "Optional timestamp of the backup to restore. "
                        "If not provided, the most recent backup will be used."
                    ),
                },
            },
            "required": ["projectId"],
        },
    },
    {
        "name": "list_backups",
        "description": "List available backups for a Cloudflare project",
        "inputSchema": {
            "type": "object",
            "properties": {
                "projectId": {
                    "type": "string",
                    "description": "ID of the Cloudflare project",
                },
            },
            "required": ["projectId"],
        },
    },
]


def _error(prefix: str, exc: Exception) -> ToolResult:
    if isinstance(exc, ValidationError):
        category = ErrorCategory.INVALID_PARAMS
    elif isinstance(exc, NotFoundError):
        category = ErrorCategory.NOT_FOUND
    else:
        category = ErrorCategory.INTERNAL_ERROR
    message = exc.message if isinstance(exc, CFBackupError) else str(exc)
    return ToolResult(text=f"{prefix}: {message}", is_error=True, category=category)


def _require_project_id(value: Any, action: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Project ID is required {action}")
    return value.strip()


def _optional_project_ids(value: Any) -> List[str] | None:
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(v, str) and v for v in value):
        raise ValidationError("projectIds must be an array of non-empty strings")
    return value


def _optional_timestamp(value: Any) -> str | None:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValidationError("timestamp must be a string")
    return value


async def backup_projects(
    config: BackupConfig,
    state: BackupState,
    project_ids: Any = None,
) -> ToolResult:
    """Back up all zones, or the listed ones."""
    try:
        zone_ids = _optional_project_ids(project_ids)
        run = await backup_zones(config, state, zone_ids)
    except Exception as e:
        logger.error("tool_backup_failed", error=str(e))
        return _error("Error during backup", e)

    lines = ["Cloudflare projects backed up successfully."]
    for zone in run.zones:
        line = f"- {zone.zone_name} ({zone.zone_id}): {len(zone.files_written)} files at {zone.folder}"
        if zone.script_errors:
            line += f" ({len(zone.script_errors)} worker scripts could not be fetched)"
        lines.append(line)
    if run.missing_zone_ids:
        lines.append(
            "Warning: Some requested project IDs were not found: "
            + ", ".join(run.missing_zone_ids)
        )
    return ToolResult(text="\n".join(lines))


async def list_backups(
    config: BackupConfig,
    state: BackupState,
    project_id: Any,
) -> ToolResult:
    """List a zone's snapshots as pretty JSON, newest first."""
    try:
        zone_id = _require_project_id(project_id, "to list backups")
        snapshots = await list_snapshots(config, state, zone_id)
    except Exception as e:
        logger.error("tool_list_backups_failed", project_id=project_id, error=str(e))
        return _error("Error listing backups", e)

    return ToolResult(text=json.dumps(snapshots, indent=2))


async def restore_project(
    config: BackupConfig,
    state: BackupState,
    project_id: Any,
    timestamp: Any = None,
    handlers: Mapping[str, RestoreHandler] | None = None,
) -> ToolResult:
    """Restore a zone from a snapshot and summarize each handler's outcome."""
    try:
        zone_id = _require_project_id(project_id, "for restore")
        chosen = _optional_timestamp(timestamp)
        result = await restore_zone(config, state, zone_id, chosen, handlers)
    except Exception as e:
        logger.error("tool_restore_failed", project_id=project_id, error=str(e))
        return _error("Error during restore", e)

    lines = [
        f"Project {result.zone_name} ({result.zone_id}) processed from backup {result.timestamp}."
    ]
    for name, outcome in result.outcomes.items():
        line = f"- {name}: {outcome.status.value}"
        if outcome.message:
            line += f" ({outcome.message})"
        lines.append(line)
    if result.skipped:
        lines.append("Skipped: " + ", ".join(result.skipped))
    return ToolResult(text="\n".join(lines))


ToolFunc = Callable[[BackupConfig, BackupState, Mapping[str, Any]], Awaitable[ToolResult]]

_TOOLS: Dict[str, ToolFunc] = {
    "backup_projects": lambda c, s, a: backup_projects(c, s, a.get("projectIds")),
    "list_backups": lambda c, s, a: list_backups(c, s, a.get("projectId")),
    "restore_project": lambda c, s, a: restore_project(
        c, s, a.get("projectId"), a.get("timestamp")
    ),
}


def list_tools() -> List[Dict[str, Any]]:
    """Tool definitions with JSON input schemas."""
    return [dict(tool) for tool in TOOL_DEFINITIONS]


async def call_tool(
    config: BackupConfig,
    state: BackupState,
    name: str,
    arguments: Mapping[str, Any] | None = None,
) -> ToolResult:
    """
    Dispatch a tool call by name.

    Unknown names produce a method_not_found error result.
    """
    tool = _TOOLS.get(name)
    if tool is None:
        return ToolResult(
            text=f"Unknown tool: {name}",
            is_error=True,
            category=ErrorCategory.METHOD_NOT_FOUND,
        )
    if arguments is not None and not isinstance(arguments, Mapping):
        return ToolResult(
            text="Tool arguments must be an object",
            is_error=True,
            category=ErrorCategory.INVALID_PARAMS,
        )

    logger.info("tool_called", tool=name)
    return await tool(config, state, arguments or {})
