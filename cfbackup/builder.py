# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
cfbackup Builder - Functional builder pattern for configuration.

This module provides pure functions for building BackupConfig objects.
Each function takes a config dict and returns a new dict with the
modification applied (immutable updates).
"""

from typing import Any, Callable, Dict

from cfbackup.config import (
    DEFAULT_BACKUP_ROOT,
    DEFAULT_BRANCH,
    DEFAULT_COMMIT_MESSAGE,
    DEFAULT_REPO_DESCRIPTION,
    BackupConfig,
)


# Type alias for builder functions
ConfigDict = Dict[str, Any]
BuilderFunc = Callable[[ConfigDict], ConfigDict]


def create_empty_config() -> ConfigDict:
    """
    Create an initial empty configuration dictionary.

    Returns:
        Dict with default values for all configuration fields
    """
    return {
        "cloudflare_api_token": "",
        "github_access_token": "",
        "github_repo_name": "",
        "github_username": "",
        "branch": DEFAULT_BRANCH,
        "backup_root": DEFAULT_BACKUP_ROOT,
        "commit_message": DEFAULT_COMMIT_MESSAGE,
        "repo_description": DEFAULT_REPO_DESCRIPTION,
        "repo_private": True,
        "http_timeout": 30.0,
    }


def with_cloudflare_token(config: ConfigDict, token: str) -> ConfigDict:
    """
    Set the Cloudflare API token.

    Args:
        config: Current configuration dictionary
        token: API token with read access to zones

    Returns:
        New configuration dictionary with the token set
    """
    return {**config, "cloudflare_api_token": token}


def with_github_token(config: ConfigDict, token: str) -> ConfigDict:
    """
    Set the GitHub access token.

    Args:
        config: Current configuration dictionary
        token: Personal access token with repo scope

    Returns:
        New configuration dictionary with the token set
    """
    return {**config, "github_access_token": token}


def with_repository(config: ConfigDict, owner: str, name: str) -> ConfigDict:
    """
    Set the destination repository.

    Args:
        config: Current configuration dictionary
        owner: GitHub user that owns the repository
        name: Repository name

    Returns:
        New configuration dictionary with the repository set
    """
    return {**config, "github_username": owner, "github_repo_name": name}


def with_branch(config: ConfigDict, branch: str) -> ConfigDict:
    """Set the branch snapshot files are committed to."""
    return {**config, "branch": branch}


def with_backup_root(config: ConfigDict, root: str) -> ConfigDict:
    """Set the top-level folder for all snapshots."""
    return {**config, "backup_root": root.strip("/")}


def with_commit_message(config: ConfigDict, message: str) -> ConfigDict:
    """Set the commit message used for snapshot file writes."""
    return {**config, "commit_message": message}


def with_http_timeout(config: ConfigDict, seconds: float) -> ConfigDict:
    """Set the per-request HTTP timeout."""
    return {**config, "http_timeout": float(seconds)}


def public_repository(config: ConfigDict) -> ConfigDict:
    """
    Create the destination repository as public if it does not exist.

    Snapshots contain DNS and firewall configuration. Keep the default
    (private) unless the data is already public.
    """
    return {**config, "repo_private": False}


def build_config(config_dict: ConfigDict) -> BackupConfig:
    """
    Build and validate the final BackupConfig.

    Args:
        config_dict: Configuration dictionary

    Returns:
        Validated, immutable BackupConfig

    Raises:
        ConfigurationError: If configuration is invalid
    """
    return BackupConfig(**config_dict)


def pipe(*funcs: BuilderFunc) -> BuilderFunc:
    """
    Compose builder functions left to right.

    Example:
        configure = pipe(
            lambda c: with_cloudflare_token(c, "cf-token"),
            lambda c: with_github_token(c, "gh-token"),
            lambda c: with_repository(c, "octocat", "zone-backups"),
        )
        config = build_config(configure(create_empty_config()))
    """

    def composed(config: ConfigDict) -> ConfigDict:
        for func in funcs:
            config = func(config)
        return config

    return composed


def build_from_steps(*steps: BuilderFunc) -> BackupConfig:
    """Apply builder steps to an empty config and build it."""
    return build_config(pipe(*steps)(create_empty_config()))


def create_config(
    cloudflare_api_token: str,
    github_access_token: str,
    github_repo_name: str,
    github_username: str,
    branch: str | None = None,
    backup_root: str | None = None,
    repo_private: bool = True,
    http_timeout: float | None = None,
    **kwargs: Any,
) -> BackupConfig:
    """
    Create a BackupConfig with a simple, flat API.

    Example:
        config = create_config(
            cloudflare_api_token="cf-token",
            github_access_token="gh-token",
            github_repo_name="zone-backups",
            github_username="octocat",
        )
    """
    config_dict = create_empty_config()
    config_dict = with_cloudflare_token(config_dict, cloudflare_api_token)
    config_dict = with_github_token(config_dict, github_access_token)
    config_dict = with_repository(config_dict, github_username, github_repo_name)

    if branch:
        config_dict = with_branch(config_dict, branch)

    if backup_root:
        config_dict = with_backup_root(config_dict, backup_root)

    if not repo_private:
        config_dict = public_repository(config_dict)

    if http_timeout is not None:
        config_dict = with_http_timeout(config_dict, http_timeout)

    # Apply any additional kwargs
    for key, value in kwargs.items():
        if key in config_dict or key in ("cloudflare_api_url", "github_api_url"):
            config_dict[key] = value

    return build_config(config_dict)
