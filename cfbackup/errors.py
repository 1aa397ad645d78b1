# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Human-friendly error message helpers for cfbackup.

These helpers centralize wording for common configuration errors so that
all modules present consistent, actionable messages.
"""


def explain_missing_env(name: str, purpose: str) -> str:
    """
    Explain that a required environment variable is missing.
    """

    return (
        f"{name} environment variable is required. "
        f"Set it to {purpose} or pass the value to create_config()."
    )


def explain_invalid_timeout_env(value: str | None) -> str:
    """
    Explain that CFBACKUP_HTTP_TIMEOUT is invalid.
    """

    return (
        f"Invalid CFBACKUP_HTTP_TIMEOUT value: {value!r}. "
        "It must be a positive number of seconds."
    )


def explain_invalid_bool_env(name: str, value: str | None) -> str:
    """
    Explain that a boolean environment variable could not be parsed.
    """

    return (
        f"Invalid {name} value: {value!r}. "
        "Expected one of: 'true', 'false', '1', '0', 'yes', 'no'."
    )
