# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Example: invoke one cfbackup tool from the command line.

Run with:
    python examples/run_tool.py backup_projects
    python examples/run_tool.py backup_projects '{"projectIds": ["<zone id>"]}'
    python examples/run_tool.py list_backups '{"projectId": "<zone id>"}'
    python examples/run_tool.py restore_project '{"projectId": "<zone id>"}'

Environment variables:
    CLOUDFLARE_API_TOKEN: Cloudflare API token with read access
    GITHUB_ACCESS_TOKEN: GitHub personal access token with repo scope
    GITHUB_REPO_NAME: Repository that stores backups
    GITHUB_USERNAME: Owner of that repository
"""

import asyncio
import json
import sys

from cfbackup import (
    call_tool,
    create_config_from_env,
    initialize_backup_state,
    shutdown_backup_state,
)
from cfbackup.exceptions import ConfigurationError


async def main(name: str, arguments: dict) -> int:
    try:
        config = create_config_from_env()
    except ConfigurationError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    state = await initialize_backup_state(config)
    try:
        result = await call_tool(config, state, name, arguments)
    finally:
        await shutdown_backup_state(state)

    print(result.text)
    return 1 if result.is_error else 0


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__, file=sys.stderr)
        sys.exit(2)
    args = json.loads(sys.argv[2]) if len(sys.argv) > 2 else {}
    sys.exit(asyncio.run(main(sys.argv[1], args)))
