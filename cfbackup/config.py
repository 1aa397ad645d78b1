# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
cfbackup Configuration - Immutable configuration data structures.

The configuration is built once at process start and passed by reference
into every component. It is frozen so that a backup run cannot change the
destination repository or credentials halfway through.
"""

from dataclasses import dataclass
from typing import List
import re


DEFAULT_BRANCH = "main"
DEFAULT_BACKUP_ROOT = "cloudflare_backup"
DEFAULT_COMMIT_MESSAGE = "chore(backup): update backup"
DEFAULT_REPO_DESCRIPTION = (
    "Cloudflare projects backup repository created by cloudflare-github-backup"
)


def _validate_repo_name(name: str) -> bool:
    """
    Validate a GitHub repository name.

    Rules:
    - 1-100 characters
    - Letters, numbers, hyphens, underscores and periods
    - Not "." or ".."
    """
    if not name or len(name) > 100:
        return False
    if name in (".", ".."):
        return False
    return re.match(r"^[A-Za-z0-9._-]+$", name) is not None


def _validate_owner(owner: str) -> bool:
    """Validate a GitHub user/organization login."""
    if not owner or len(owner) > 39:
        return False
    return re.match(r"^[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?$", owner) is not None


def _validate_backup_root(root: str) -> bool:
    """Backup root must be a relative POSIX path without empty segments."""
    if not root or root.startswith("/") or root.endswith("/"):
        return False
    return all(part not in ("", ".", "..") for part in root.split("/"))


@dataclass(frozen=True)
class BackupConfig:
    """
    Immutable configuration for zone backups.

    Holds both service credentials and the identity of the destination
    repository. All snapshot paths are rooted at ``backup_root``.
    """

    # Required: zone-management service credential
    cloudflare_api_token: str

    # Required: code-hosting service credential
    github_access_token: str

    # Required: destination repository name
    github_repo_name: str

    # Required: destination repository owner
    github_username: str

    # Branch all snapshot files are committed to
    branch: str = DEFAULT_BRANCH

    # Top-level folder holding every zone's snapshots
    backup_root: str = DEFAULT_BACKUP_ROOT

    # Commit message used for every snapshot file write
    commit_message: str = DEFAULT_COMMIT_MESSAGE

    # Description used when the repository has to be created
    repo_description: str = DEFAULT_REPO_DESCRIPTION

    # Create the repository as private
    repo_private: bool = True

    # Per-request HTTP timeout in seconds
    http_timeout: float = 30.0

    cloudflare_api_url: str = "https://api.cloudflare.com/client/v4"
    github_api_url: str = "https://api.github.com"

    def __post_init__(self) -> None:
        """Validate configuration after creation."""
        errors: List[str] = []

        if not self.cloudflare_api_token:
            errors.append("cloudflare_api_token is required")

        if not self.github_access_token:
            errors.append("github_access_token is required")

        if not _validate_repo_name(self.github_repo_name):
            errors.append(f"Invalid repository name: {self.github_repo_name!r}")

        if not _validate_owner(self.github_username):
            errors.append(f"Invalid repository owner: {self.github_username!r}")

        if not self.branch:
            errors.append("branch must not be empty")

        if not _validate_backup_root(self.backup_root):
            errors.append(f"Invalid backup_root: {self.backup_root!r}")

        if not self.commit_message:
            errors.append("commit_message must not be empty")

        if self.http_timeout <= 0:
            errors.append(f"http_timeout must be > 0, got {self.http_timeout}")

        # Raise all errors at once
        if errors:
            from cfbackup.exceptions import ConfigurationError

            raise ConfigurationError(
                "Configuration validation failed",
                details={"errors": errors},
            )

    @property
    def repo_full_name(self) -> str:
        return f"{self.github_username}/{self.github_repo_name}"

    def zone_folder(self, zone_name: str) -> str:
        """Folder holding every snapshot of one zone."""
        return f"{self.backup_root}/{zone_name}"

    def snapshot_folder(self, zone_name: str, timestamp: str) -> str:
        """Folder holding one snapshot."""
        return f"{self.backup_root}/{zone_name}/{timestamp}"

    def with_updates(self, **kwargs) -> "BackupConfig":
        """
        Create a new config with updated values.

        Since the config is frozen, this creates a new instance.
        """
        from dataclasses import asdict

        current = asdict(self)
        current.update(kwargs)
        return BackupConfig(**current)

    def __repr__(self) -> str:
        return (
            f"BackupConfig(repo={self.repo_full_name!r}, branch={self.branch!r}, "
            f"backup_root={self.backup_root!r}, repo_private={self.repo_private})"
        )
