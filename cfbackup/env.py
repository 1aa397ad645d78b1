# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Environment-based configuration.

Credentials and the repository identity are read once at process start.
Any missing required variable fails immediately with a ConfigurationError.
"""

from __future__ import annotations

import os

from cfbackup.builder import create_config
from cfbackup.config import BackupConfig
from cfbackup.errors import (
    explain_invalid_bool_env,
    explain_invalid_timeout_env,
    explain_missing_env,
)
from cfbackup.exceptions import ConfigurationError


_REQUIRED = (
    ("CLOUDFLARE_API_TOKEN", "a Cloudflare API token with read access"),
    ("GITHUB_ACCESS_TOKEN", "a GitHub personal access token with repo scope"),
    ("GITHUB_REPO_NAME", "the name of the repository that stores backups"),
    ("GITHUB_USERNAME", "the GitHub user that owns the backup repository"),
)

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off")


def _require(name: str, purpose: str) -> str:
    value = os.getenv(name)
    if not value:
        raise ConfigurationError(explain_missing_env(name, purpose))
    return value


def _parse_timeout(value: str | None) -> float | None:
    if not value:
        return None
    try:
        seconds = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(explain_invalid_timeout_env(value)) from exc
    if seconds <= 0:
        raise ConfigurationError(explain_invalid_timeout_env(value))
    return seconds


def _parse_bool(name: str, value: str | None, default: bool) -> bool:
    if not value:
        return default
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigurationError(explain_invalid_bool_env(name, value))


def create_config_from_env() -> BackupConfig:
    """
    Create a BackupConfig from environment variables.

    Required:
        - CLOUDFLARE_API_TOKEN
        - GITHUB_ACCESS_TOKEN
        - GITHUB_REPO_NAME
        - GITHUB_USERNAME

    Optional:
        - CFBACKUP_BRANCH: Branch to commit to (default: main)
        - CFBACKUP_ROOT: Top-level snapshot folder (default: cloudflare_backup)
        - CFBACKUP_HTTP_TIMEOUT: Per-request timeout in seconds (default: 30)
        - CFBACKUP_REPO_PRIVATE: Create the repository as private (default: true)
    """

    cloudflare_token, github_token, repo_name, username = (
        _require(name, purpose) for name, purpose in _REQUIRED
    )

    return create_config(
        cloudflare_api_token=cloudflare_token,
        github_access_token=github_token,
        github_repo_name=repo_name,
        github_username=username,
        branch=os.getenv("CFBACKUP_BRANCH"),
        backup_root=os.getenv("CFBACKUP_ROOT"),
        repo_private=_parse_bool(
            "CFBACKUP_REPO_PRIVATE", os.getenv("CFBACKUP_REPO_PRIVATE"), True
        ),
        http_timeout=_parse_timeout(os.getenv("CFBACKUP_HTTP_TIMEOUT")),
    )
