# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
cfbackup - Back up Cloudflare zone configuration to a GitHub repository.

Each backup run writes one timestamped snapshot per zone under
cloudflare_backup/<zone name>/<timestamp>/. Snapshots can be listed
(newest first) and selected for restore.
"""

__version__ = "0.1.0"

# Configuration creation (user-facing API)
from cfbackup.builder import create_config
from cfbackup.env import create_config_from_env

# Runtime state
from cfbackup.core import (
    initialize_backup_state,
    shutdown_backup_state,
)

# Core operations
from cfbackup.backup import (
    backup_zones,
    list_snapshots,
    restore_zone,
)

# Tool-facing entry points
from cfbackup.tools import (
    backup_projects,
    call_tool,
    list_backups,
    list_tools,
    restore_project,
)

__all__ = [
    # Version
    "__version__",
    # Configuration
    "create_config",
    "create_config_from_env",
    # State
    "initialize_backup_state",
    "shutdown_backup_state",
    # Operations
    "backup_zones",
    "list_snapshots",
    "restore_zone",
    # Tools
    "backup_projects",
    "call_tool",
    "list_backups",
    "list_tools",
    "restore_project",
]
