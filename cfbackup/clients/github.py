# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
GitHub client - repository and contents API access.

Covers repository probing/creation and the contents endpoints used to
write and read snapshot files. 404 responses raise NotFoundError so callers
can use them as an existence signal.
"""

from typing import Any, Dict, List
from urllib.parse import quote

import httpx
import structlog

from cfbackup.exceptions import NotFoundError, RemoteServiceError

logger = structlog.get_logger()

USER_AGENT = "Cloudflare-GitHub-Backup"
RAW_MEDIA_TYPE = "application/vnd.github.raw"

# The contents API returns at most this many entries for one directory
CONTENTS_LISTING_LIMIT = 1000


class GitHubClient:
    """Async client for the GitHub REST API (v3 media type)."""

    def __init__(
        self,
        access_token: str,
        base_url: str = "https://api.github.com",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={
                "Authorization": f"token {access_token}",
                "Accept": "application/vnd.github.v3+json",
                "User-Agent": USER_AGENT,
            },
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _perform(
        self,
        method: str,
        path: str,
        params: dict | None = None,
        json: dict | None = None,
        headers: dict | None = None,
    ) -> httpx.Response:
        try:
            response = await self._client.request(
                method, path, params=params, json=json, headers=headers
            )
        except httpx.HTTPError as e:
            raise RemoteServiceError(
                f"GitHub request failed: {e}",
                details={"method": method, "path": path},
            ) from e

        if response.status_code == 404:
            raise NotFoundError(
                f"GitHub resource not found: {path}",
                details={"path": path},
            )
        if response.is_error:
            raise RemoteServiceError(
                f"GitHub returned HTTP {response.status_code}: {_error_message(response)}",
                details={"method": method, "path": path, "status": response.status_code},
            )
        return response

    async def _send(
        self,
        method: str,
        path: str,
        params: dict | None = None,
        json: dict | None = None,
    ) -> Any:
        response = await self._perform(method, path, params=params, json=json)
        return response.json()

    async def get_repo(self, owner: str, repo: str) -> Dict[str, Any]:
        return await self._send("GET", f"/repos/{owner}/{repo}")

    async def create_repo(
        self,
        name: str,
        description: str = "",
        private: bool = True,
        auto_init: bool = True,
    ) -> Dict[str, Any]:
        """Create a repository for the authenticated user."""
        repo = await self._send(
            "POST",
            "/user/repos",
            json={
                "name": name,
                "description": description,
                "private": private,
                "auto_init": auto_init,
            },
        )
        logger.info("github_repo_created", repo=repo.get("full_name", name), private=private)
        return repo

    async def get_file_contents(
        self,
        owner: str,
        repo: str,
        path: str,
        ref: str | None = None,
    ) -> Dict[str, Any]:
        """
        Get one file's content descriptor.

        Returns the API object, which carries ``content`` (base64) and
        ``sha`` (the version token required to update the file).
        """
        params = {"ref": ref} if ref else None
        return await self._send("GET", _contents_path(owner, repo, path), params=params)

    async def get_raw_file(
        self,
        owner: str,
        repo: str,
        path: str,
        ref: str | None = None,
    ) -> str:
        """
        Get one file's raw text.

        Works for files up to 100 MB. Above 1 MB the JSON descriptor from
        get_file_contents carries an empty ``content`` field.
        """
        params = {"ref": ref} if ref else None
        response = await self._perform(
            "GET",
            _contents_path(owner, repo, path),
            params=params,
            headers={"Accept": RAW_MEDIA_TYPE},
        )
        return response.text

    async def put_file_contents(
        self,
        owner: str,
        repo: str,
        path: str,
        message: str,
        content: str,
        branch: str,
        sha: str | None = None,
    ) -> Dict[str, Any]:
        """
        Create or update one file.

        ``content`` must already be base64 encoded. ``sha`` is required when
        the file exists and must be omitted when it does not.
        """
        body = {"message": message, "content": content, "branch": branch}
        if sha:
            body["sha"] = sha
        return await self._send("PUT", _contents_path(owner, repo, path), json=body)

    async def list_dir_contents(
        self,
        owner: str,
        repo: str,
        path: str,
        ref: str | None = None,
    ) -> List[Dict[str, Any]]:
        """List the immediate entries of a directory."""
        params = {"ref": ref} if ref else None
        entries = await self._send("GET", _contents_path(owner, repo, path), params=params)
        if not isinstance(entries, list):
            raise RemoteServiceError(
                f"Expected a directory listing at {path}",
                details={"path": path, "type": entries.get("type")},
            )
        return entries

    async def get_tree(self, owner: str, repo: str, tree_ish: str) -> Dict[str, Any]:
        """
        Get a git tree, e.g. ``main:cloudflare_backup/example.com``.

        Unlike list_dir_contents, the listing is not capped at 1,000 entries.
        Entries carry ``path`` (relative to the tree) and ``type`` (``tree``
        or ``blob``); ``truncated`` is set if GitHub cut the response short.
        """
        return await self._send(
            "GET", f"/repos/{owner}/{repo}/git/trees/{quote(tree_ish, safe='/:')}"
        )


def _contents_path(owner: str, repo: str, path: str) -> str:
    return f"/repos/{owner}/{repo}/contents/{quote(path.strip('/'), safe='/')}"


def _error_message(response: httpx.Response) -> str:
    try:
        return response.json().get("message", response.reason_phrase)
    except ValueError:
        return response.reason_phrase
