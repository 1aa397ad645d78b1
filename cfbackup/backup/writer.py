# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Snapshot Writer - Idempotent create-or-update of one repository file.

The contents API requires the current blob sha to overwrite a file, so
every write first reads the existing descriptor. A missing file is created
without a sha. Two writers racing on the same path will make the service
reject one of them; snapshot paths are unique per run so that does not
happen during a backup.
"""

import base64
from typing import Any

import structlog

from cfbackup.config import BackupConfig
from cfbackup.exceptions import CFBackupError, NotFoundError, RemoteServiceError, ValidationError

logger = structlog.get_logger()

CREATED = "created"
UPDATED = "updated"


def encode_content(content: str | bytes) -> str:
    """Base64 encode text (as UTF-8) or raw bytes for the contents API."""
    raw = content.encode("utf-8") if isinstance(content, str) else content
    return base64.b64encode(raw).decode("ascii")


def decode_content(encoded: str) -> bytes:
    """Decode a contents API ``content`` field (base64, may contain newlines)."""
    return base64.b64decode("".join(encoded.split()))


async def write_snapshot_file(
    github: Any,
    config: BackupConfig,
    path: str,
    content: str | bytes,
    message: str | None = None,
) -> str:
    """
    Ensure ``content`` exists at ``path`` on the configured branch.

    Args:
        github: GitHub client
        config: Backup configuration (repository identity and branch)
        path: Repository-relative POSIX path; missing folders are implied
        content: File content
        message: Commit message (default: config.commit_message)

    Returns:
        "created" or "updated"

    Raises:
        ValidationError: If path is empty
        RemoteServiceError: If reading or writing the file fails
    """
    path = path.strip("/")
    if not path:
        raise ValidationError("Snapshot file path must not be empty")

    owner = config.github_username
    repo = config.github_repo_name
    encoded = encode_content(content)
    message = message or config.commit_message

    try:
        try:
            existing = await github.get_file_contents(owner, repo, path, ref=config.branch)
        except NotFoundError:
            existing = None

        # A directory at this path comes back as a listing
        if existing is not None and not isinstance(existing, dict):
            raise RemoteServiceError(
                f"Path {path} is a directory, not a file",
                details={"path": path},
            )

        if existing is None:
            await github.put_file_contents(
                owner, repo, path, message=message, content=encoded, branch=config.branch
            )
            outcome = CREATED
        else:
            await github.put_file_contents(
                owner,
                repo,
                path,
                message=message,
                content=encoded,
                branch=config.branch,
                sha=existing["sha"],
            )
            outcome = UPDATED

    except CFBackupError as e:
        raise RemoteServiceError(
            f"Failed to create or update file {path}: {e.message}",
            details={"path": path, "cause": e.details},
        ) from e

    logger.debug("snapshot_file_written", path=path, outcome=outcome, size=len(encoded))
    return outcome
