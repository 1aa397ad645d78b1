# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Remote service clients - Cloudflare (source) and GitHub (destination).
"""

from cfbackup.clients.cloudflare import CloudflareClient
from cfbackup.clients.github import GitHubClient

__all__ = [
    "CloudflareClient",
    "GitHubClient",
]
