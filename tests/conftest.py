# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Test fixtures for cfbackup tests.

Provides in-memory Cloudflare and GitHub collaborators, a test
configuration and a runtime state wired to the fakes.
"""

import base64
import hashlib
from datetime import datetime, UTC
from typing import Any, Dict, List

import pytest

from cfbackup.exceptions import NotFoundError, RemoteServiceError


class FakeCloudflare:
    """In-memory stand-in for CloudflareClient."""

    def __init__(self) -> None:
        self.zones: List[Dict[str, Any]] = []
        self.resources: Dict[str, Dict[str, Any]] = {}
        self.scripts: Dict[tuple, str] = {}
        self.failing: set = set()  # method names, or ("get_worker_script", name)
        self.calls: List[tuple] = []

    def add_zone(self, zone_id: str, name: str, **resources: Any) -> Dict[str, Any]:
        zone = {
            "id": zone_id,
            "name": name,
            "status": "active",
            "paused": False,
            "type": "full",
            "created_on": "2023-05-01T10:00:00Z",
            "modified_on": "2023-06-01T10:00:00Z",
        }
        self.zones.append(zone)
        self.resources[zone_id] = {
            "list_dns_records": [],
            "list_page_rules": [],
            "list_custom_pages": [],
            "list_settings": [],
            "list_firewall_rules": [],
            "list_access_rules": [],
            "list_rate_limit_rules": [],
            "list_worker_routes": [],
            **resources,
        }
        return zone

    def _check(self, key: Any) -> None:
        if key in self.failing:
            raise RemoteServiceError(f"simulated failure: {key}", details={"status": 500})

    async def list_zones(self) -> List[Dict[str, Any]]:
        self.calls.append(("list_zones",))
        self._check("list_zones")
        return list(self.zones)

    async def get_zone(self, zone_id: str) -> Dict[str, Any]:
        self.calls.append(("get_zone", zone_id))
        self._check("get_zone")
        for zone in self.zones:
            if zone["id"] == zone_id:
                return zone
        raise NotFoundError(f"zone {zone_id} not found")

    def _resource(self, method: str, zone_id: str) -> Any:
        self.calls.append((method, zone_id))
        self._check(method)
        if zone_id not in self.resources:
            raise NotFoundError(f"zone {zone_id} not found")
        return self.resources[zone_id][method]

    async def list_dns_records(self, zone_id: str) -> Any:
        return self._resource("list_dns_records", zone_id)

    async def list_page_rules(self, zone_id: str) -> Any:
        return self._resource("list_page_rules", zone_id)

    async def list_custom_pages(self, zone_id: str) -> Any:
        return self._resource("list_custom_pages", zone_id)

    async def list_settings(self, zone_id: str) -> Any:
        return self._resource("list_settings", zone_id)

    async def list_firewall_rules(self, zone_id: str) -> Any:
        return self._resource("list_firewall_rules", zone_id)

    async def list_access_rules(self, zone_id: str) -> Any:
        return self._resource("list_access_rules", zone_id)

    async def list_rate_limit_rules(self, zone_id: str) -> Any:
        return self._resource("list_rate_limit_rules", zone_id)

    async def list_worker_routes(self, zone_id: str) -> Any:
        return self._resource("list_worker_routes", zone_id)

    async def get_worker_script(self, zone_id: str, script_name: str) -> str:
        self.calls.append(("get_worker_script", zone_id, script_name))
        self._check(("get_worker_script", script_name))
        try:
            return self.scripts[(zone_id, script_name)]
        except KeyError:
            raise NotFoundError(f"script {script_name} not found")


class FakeGitHub:
    """In-memory stand-in for GitHubClient with sha-checked writes."""

    def __init__(self, repo_exists: bool = True) -> None:
        self.repo_exists = repo_exists
        self.created_repos: List[Dict[str, Any]] = []
        self.files: Dict[str, Dict[str, str]] = {}  # path -> {content, sha}
        self.puts: List[Dict[str, Any]] = []
        self.failing_paths: set = set()
        self.large_paths: set = set()  # served without inline content
        self.raw_reads: List[str] = []
        self.tree_reads: List[str] = []
        self.listing_limit: int | None = None

    async def get_repo(self, owner: str, repo: str) -> Dict[str, Any]:
        if not self.repo_exists:
            raise NotFoundError(f"repo {owner}/{repo} not found")
        return {"full_name": f"{owner}/{repo}"}

    async def create_repo(self, name: str, description: str = "", private: bool = True,
                          auto_init: bool = True) -> Dict[str, Any]:
        self.created_repos.append(
            {"name": name, "description": description, "private": private, "auto_init": auto_init}
        )
        self.repo_exists = True
        return {"name": name}

    async def get_file_contents(self, owner: str, repo: str, path: str,
                                ref: str | None = None) -> Dict[str, Any]:
        if path in self.failing_paths:
            raise RemoteServiceError("simulated read failure", details={"status": 500})
        if path not in self.files:
            # Directories come back as a listing
            return await self.list_dir_contents(owner, repo, path, ref)
        stored = self.files[path]
        if path in self.large_paths:
            return {"type": "file", "path": path, "content": "", "encoding": "none",
                    "sha": stored["sha"]}
        # The API wraps base64 at 60 columns
        wrapped = "\n".join(
            stored["content"][i:i + 60] for i in range(0, len(stored["content"]), 60)
        )
        return {"type": "file", "path": path, "content": wrapped, "encoding": "base64",
                "sha": stored["sha"]}

    async def get_raw_file(self, owner: str, repo: str, path: str,
                           ref: str | None = None) -> str:
        self.raw_reads.append(path)
        if path not in self.files:
            raise NotFoundError(f"{path} not found")
        return self.read_text(path)

    async def put_file_contents(self, owner: str, repo: str, path: str, message: str,
                                content: str, branch: str, sha: str | None = None) -> Dict[str, Any]:
        self.puts.append({"path": path, "message": message, "branch": branch, "sha": sha})
        current = self.files.get(path)
        if current is not None and sha != current["sha"]:
            raise RemoteServiceError("sha mismatch", details={"status": 409})
        if current is None and sha is not None:
            raise RemoteServiceError("sha given for new file", details={"status": 422})
        new_sha = hashlib.sha1(base64.b64decode(content)).hexdigest()
        self.files[path] = {"content": content, "sha": new_sha}
        return {"content": {"path": path, "sha": new_sha}}

    def _children(self, path: str) -> Dict[str, str]:
        prefix = path.strip("/") + "/"
        children: Dict[str, str] = {}
        for file_path in self.files:
            if not file_path.startswith(prefix):
                continue
            rest = file_path[len(prefix):]
            name, _, remainder = rest.partition("/")
            children[name] = "dir" if remainder else "file"
        if not children:
            raise NotFoundError(f"{path} not found")
        return children

    async def list_dir_contents(self, owner: str, repo: str, path: str,
                                ref: str | None = None) -> List[Dict[str, Any]]:
        prefix = path.strip("/") + "/"
        children = self._children(path)
        names = list(children)
        if self.listing_limit is not None:
            # The API caps listings, ordered by name
            names = sorted(names)[:self.listing_limit]
        return [
            {
                "name": name,
                "path": f"{prefix}{name}",
                "type": children[name],
                "html_url": f"https://github.com/{owner}/{repo}/tree/main/{prefix}{name}",
            }
            for name in names
        ]

    async def get_tree(self, owner: str, repo: str, tree_ish: str) -> Dict[str, Any]:
        self.tree_reads.append(tree_ish)
        _, _, path = tree_ish.partition(":")
        children = self._children(path)
        return {
            "tree": [
                {"path": name, "type": "tree" if kind == "dir" else "blob"}
                for name, kind in children.items()
            ],
            "truncated": False,
        }

    def read_text(self, path: str) -> str:
        return base64.b64decode(self.files[path]["content"]).decode("utf-8")

    def seed(self, path: str, text: str) -> None:
        encoded = base64.b64encode(text.encode("utf-8")).decode("ascii")
        self.files[path] = {"content": encoded, "sha": hashlib.sha1(text.encode()).hexdigest()}


@pytest.fixture
def test_config():
    """Create a test configuration."""
    from cfbackup.config import BackupConfig

    return BackupConfig(
        cloudflare_api_token="cf-test-token",
        github_access_token="gh-test-token",
        github_repo_name="zone-backups",
        github_username="octocat",
    )


@pytest.fixture
def cloudflare() -> FakeCloudflare:
    return FakeCloudflare()


@pytest.fixture
def github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def test_state(cloudflare: FakeCloudflare, github: FakeGitHub):
    """Runtime state wired to the fake collaborators."""
    from cfbackup.core import create_backup_state

    return create_backup_state(cloudflare, github)


def fixed_clock(*moments: datetime):
    """Clock returning the given moments in order, then repeating the last."""
    remaining = list(moments)

    def clock() -> datetime:
        return remaining.pop(0) if len(remaining) > 1 else remaining[0]

    return clock


JAN_1 = datetime(2024, 1, 1, 0, 0, 0, tzinfo=UTC)
