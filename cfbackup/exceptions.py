# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
cfbackup Exceptions - Error taxonomy for the cfbackup package.
"""


class CFBackupError(Exception):
    """Base exception for all cfbackup errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(CFBackupError):
    """Raised when configuration is invalid or missing."""

    pass


class ValidationError(CFBackupError):
    """Raised when a caller-supplied argument is missing or invalid."""

    pass


class NotFoundError(CFBackupError):
    """Raised when a zone, repository, file, or snapshot does not exist."""

    pass


class RemoteServiceError(CFBackupError):
    """Raised when a remote API call fails for any reason other than 404."""

    pass


class CollectionError(RemoteServiceError):
    """Raised when a resource category cannot be fetched for a zone."""

    pass


class BackupError(CFBackupError):
    """Raised when a backup run is aborted."""

    pass


class RestoreError(CFBackupError):
    """Raised when restore operations fail."""

    pass
