# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Backup Tests for cfbackup.

These tests cover the write path:
1. Snapshot writer - create, update, idempotence, error surfacing
2. Resource collector - category reads, SSL/TLS filter, worker dedupe
3. Backup orchestrator - zone selection, repository creation, layout,
   abort behavior
"""

import json
from datetime import datetime, UTC

import pytest

from cfbackup.backup.collector import (
    SCRIPT_PLACEHOLDER,
    collect_zone_entries,
    group_routes_by_script,
)
from cfbackup.backup.manager import backup_zones, select_zones
from cfbackup.backup.writer import write_snapshot_file
from cfbackup.exceptions import (
    BackupError,
    CollectionError,
    RemoteServiceError,
    ValidationError,
)

from conftest import JAN_1, fixed_clock


# ============================================================================
# Snapshot Writer
# ============================================================================

@pytest.mark.asyncio
async def test_writer_creates_missing_file_without_sha(test_config, github):
    outcome = await write_snapshot_file(github, test_config, "a/b/c.json", "{}")

    assert outcome == "created"
    assert github.puts[-1]["sha"] is None
    assert github.puts[-1]["branch"] == "main"
    assert github.puts[-1]["message"] == "chore(backup): update backup"
    assert github.read_text("a/b/c.json") == "{}"


@pytest.mark.asyncio
async def test_writer_updates_existing_file_with_current_sha(test_config, github):
    github.seed("notes.txt", "old")
    old_sha = github.files["notes.txt"]["sha"]

    outcome = await write_snapshot_file(github, test_config, "notes.txt", "new", message="msg")

    assert outcome == "updated"
    assert github.puts[-1]["sha"] == old_sha
    assert github.puts[-1]["message"] == "msg"
    assert github.read_text("notes.txt") == "new"


@pytest.mark.asyncio
async def test_writer_is_idempotent(test_config, github):
    content = '{\n  "ünïcode": true\n}'

    first = await write_snapshot_file(github, test_config, "x/y.json", content)
    second = await write_snapshot_file(github, test_config, "x/y.json", content)

    assert (first, second) == ("created", "updated")
    assert github.read_text("x/y.json") == content


@pytest.mark.asyncio
async def test_writer_surfaces_non_404_read_failure(test_config, github):
    github.failing_paths.add("broken.json")

    with pytest.raises(RemoteServiceError) as exc_info:
        await write_snapshot_file(github, test_config, "broken.json", "{}")

    assert "broken.json" in exc_info.value.message
    assert github.puts == [], "No write may be attempted after a failed read"


@pytest.mark.asyncio
async def test_writer_refuses_to_overwrite_a_directory(test_config, github):
    github.seed("snapshots/example.com/metadata.json", "{}")

    with pytest.raises(RemoteServiceError) as exc_info:
        await write_snapshot_file(github, test_config, "snapshots/example.com", "{}")

    assert "snapshots/example.com" in exc_info.value.message
    assert exc_info.value.details["path"] == "snapshots/example.com"
    assert github.puts == []


@pytest.mark.asyncio
async def test_writer_rejects_empty_path(test_config, github):
    with pytest.raises(ValidationError):
        await write_snapshot_file(github, test_config, "/", "{}")


# ============================================================================
# Resource Collector
# ============================================================================

def test_routes_for_same_script_collapse_into_one_entry():
    routes = [
        {"script": "worker-a", "pattern": "a.example.com/*"},
        {"script": "worker-a", "pattern": "b.example.com/*"},
        {"script": "worker-b", "pattern": "c.example.com/*"},
        {"pattern": "disabled.example.com/*"},
    ]

    grouped = group_routes_by_script(routes)

    assert grouped == {
        "worker-a": ["a.example.com/*", "b.example.com/*"],
        "worker-b": ["c.example.com/*"],
    }


@pytest.mark.asyncio
async def test_collector_fetches_each_script_once(cloudflare):
    zone = cloudflare.add_zone(
        "abc123",
        "example.com",
        list_worker_routes=[
            {"script": "worker-a", "pattern": "a.example.com/*"},
            {"script": "worker-a", "pattern": "b.example.com/*"},
        ],
    )
    cloudflare.scripts[("abc123", "worker-a")] = "export default {}"

    entries = await collect_zone_entries(cloudflare, zone, "2024-01-01T00-00-00.000Z")
    by_path = {e.path: e for e in entries}

    script_calls = [c for c in cloudflare.calls if c[0] == "get_worker_script"]
    assert script_calls == [("get_worker_script", "abc123", "worker-a")]

    worker = by_path["workers/worker-a.js"]
    assert worker.content == "export default {}"
    assert worker.routes == ["a.example.com/*", "b.example.com/*"]
    assert worker.error is None

    manifest = json.loads(by_path["workers/routes.json"].content)
    assert manifest == [{"script": "worker-a", "routes": ["a.example.com/*", "b.example.com/*"]}]


@pytest.mark.asyncio
async def test_collector_isolates_script_fetch_failure(cloudflare):
    zone = cloudflare.add_zone(
        "abc123",
        "example.com",
        list_worker_routes=[
            {"script": "broken", "pattern": "a.example.com/*"},
            {"script": "fine", "pattern": "b.example.com/*"},
        ],
    )
    cloudflare.scripts[("abc123", "fine")] = "ok"
    cloudflare.failing.add(("get_worker_script", "broken"))

    entries = await collect_zone_entries(cloudflare, zone, "ts")
    by_path = {e.path: e for e in entries}

    assert by_path["workers/broken.js"].content == SCRIPT_PLACEHOLDER
    assert by_path["workers/broken.js"].error
    assert by_path["workers/fine.js"].content == "ok"
    assert by_path["workers/fine.js"].error is None

    manifest = json.loads(by_path["workers/routes.json"].content)
    assert "error" in manifest[0]
    assert "error" not in manifest[1]


@pytest.mark.asyncio
async def test_collector_keeps_only_ssl_and_tls_settings(cloudflare):
    zone = cloudflare.add_zone(
        "abc123",
        "example.com",
        list_settings=[
            {"id": "ssl", "value": "strict"},
            {"id": "tls_1_3", "value": "on"},
            {"id": "always_use_https", "value": "on"},
            {"id": "min_tls_version", "value": "1.2"},
        ],
    )

    entries = await collect_zone_entries(cloudflare, zone, "ts")
    ssl = next(e for e in entries if e.path == "ssl_tls_settings.json")

    assert [s["id"] for s in json.loads(ssl.content)] == ["ssl", "tls_1_3"]


@pytest.mark.asyncio
async def test_collector_serializes_results_verbatim_in_fixed_order(cloudflare):
    records = [{"id": "r1", "type": "A", "name": "example.com", "content": "192.0.2.1"}]
    zone = cloudflare.add_zone("abc123", "example.com", list_dns_records=records)

    entries = await collect_zone_entries(cloudflare, zone, "2024-01-01T00-00-00.000Z")

    assert [e.path for e in entries] == [
        "metadata.json",
        "dns_records.json",
        "page_rules.json",
        "custom_pages.json",
        "ssl_tls_settings.json",
        "firewall_rules.json",
        "access_rules.json",
        "rate_limit_rules.json",
    ]
    assert entries[1].content == json.dumps(records, indent=2)

    metadata = json.loads(entries[0].content)
    assert metadata["id"] == "abc123"
    assert metadata["backup_timestamp"] == "2024-01-01T00-00-00.000Z"


@pytest.mark.asyncio
async def test_collector_category_failure_names_category(cloudflare):
    zone = cloudflare.add_zone("abc123", "example.com")
    cloudflare.failing.add("list_firewall_rules")

    with pytest.raises(CollectionError) as exc_info:
        await collect_zone_entries(cloudflare, zone, "ts")

    assert exc_info.value.details["category"] == "firewall_rules"
    assert exc_info.value.details["zone_id"] == "abc123"


@pytest.mark.asyncio
async def test_collector_route_listing_failure_is_fatal(cloudflare):
    zone = cloudflare.add_zone("abc123", "example.com")
    cloudflare.failing.add("list_worker_routes")

    with pytest.raises(CollectionError) as exc_info:
        await collect_zone_entries(cloudflare, zone, "ts")

    assert exc_info.value.details["category"] == "worker_routes"


# ============================================================================
# Backup Orchestrator
# ============================================================================

def test_select_zones_reports_missing_ids():
    zones = [{"id": "a"}, {"id": "b"}, {"id": "c"}]

    assert select_zones(zones, None) == (zones, [])
    assert select_zones(zones, []) == (zones, [])

    selected, missing = select_zones(zones, ["c", "x", "a", "y"])
    assert [z["id"] for z in selected] == ["a", "c"]
    assert missing == ["x", "y"]


@pytest.mark.asyncio
async def test_backup_writes_expected_snapshot_path(test_config, test_state, cloudflare, github):
    records = [{"id": "r1", "type": "A", "name": "example.com", "content": "192.0.2.1"}]
    cloudflare.add_zone("abc123", "example.com", list_dns_records=records)

    result = await backup_zones(test_config, test_state, clock=fixed_clock(JAN_1))

    path = "cloudflare_backup/example.com/2024-01-01T00-00-00.000Z/dns_records.json"
    assert github.read_text(path) == json.dumps(records, indent=2)
    assert result.zones[0].timestamp == "2024-01-01T00-00-00.000Z"
    assert path in result.zones[0].files_written
    assert test_state["total_runs"] == 1
    assert test_state["total_snapshots"] == 1


@pytest.mark.asyncio
async def test_backup_all_zones_when_no_filter(test_config, test_state, cloudflare, github):
    cloudflare.add_zone("z1", "one.example")
    cloudflare.add_zone("z2", "two.example")

    result = await backup_zones(test_config, test_state, [], clock=fixed_clock(JAN_1))

    assert [z.zone_id for z in result.zones] == ["z1", "z2"]
    assert result.missing_zone_ids == []
    assert any(p.startswith("cloudflare_backup/one.example/") for p in github.files)
    assert any(p.startswith("cloudflare_backup/two.example/") for p in github.files)


@pytest.mark.asyncio
async def test_backup_subset_warns_about_missing_ids(test_config, test_state, cloudflare, github):
    cloudflare.add_zone("z1", "one.example")
    cloudflare.add_zone("z2", "two.example")

    result = await backup_zones(test_config, test_state, ["z2", "nope"], clock=fixed_clock(JAN_1))

    assert [z.zone_id for z in result.zones] == ["z2"]
    assert result.missing_zone_ids == ["nope"]
    assert not any(p.startswith("cloudflare_backup/one.example/") for p in github.files)


@pytest.mark.asyncio
async def test_backup_creates_private_repository_once(test_config, test_state, cloudflare, github):
    github.repo_exists = False
    cloudflare.add_zone("z1", "one.example")
    cloudflare.add_zone("z2", "two.example")

    result = await backup_zones(test_config, test_state, clock=fixed_clock(JAN_1))

    assert result.repo_created is True
    assert len(github.created_repos) == 1
    created = github.created_repos[0]
    assert created["name"] == "zone-backups"
    assert created["private"] is True
    assert created["auto_init"] is True


@pytest.mark.asyncio
async def test_each_run_writes_a_new_snapshot(test_config, test_state, cloudflare, github):
    cloudflare.add_zone("z1", "one.example")
    later = datetime(2024, 1, 2, 12, 30, 5, 250000, tzinfo=UTC)

    await backup_zones(test_config, test_state, clock=fixed_clock(JAN_1))
    await backup_zones(test_config, test_state, clock=fixed_clock(later))

    folders = {p.split("/")[2] for p in github.files}
    assert folders == {"2024-01-01T00-00-00.000Z", "2024-01-02T12-30-05.250Z"}


@pytest.mark.asyncio
async def test_zone_failure_aborts_run_and_keeps_earlier_zones(
    test_config, test_state, cloudflare, github
):
    cloudflare.add_zone("z1", "one.example")
    cloudflare.add_zone("z2", "two.example")
    cloudflare.add_zone("z3", "three.example")
    # Only z2 loses its resources, so z1 succeeds first
    del cloudflare.resources["z2"]

    with pytest.raises(BackupError) as exc_info:
        await backup_zones(test_config, test_state, clock=fixed_clock(JAN_1))

    assert exc_info.value.details["zone_id"] == "z2"
    assert exc_info.value.details["completed_zones"] == ["z1"]
    assert "two.example" in exc_info.value.message
    assert any(p.startswith("cloudflare_backup/one.example/") for p in github.files)
    assert not any(p.startswith("cloudflare_backup/three.example/") for p in github.files)
    assert test_state["last_error"]


@pytest.mark.asyncio
async def test_zone_listing_failure_raises_backup_error(test_config, test_state, cloudflare, github):
    cloudflare.failing.add("list_zones")

    with pytest.raises(BackupError):
        await backup_zones(test_config, test_state)

    assert github.puts == []
