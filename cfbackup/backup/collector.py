# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Resource Collector - Fetch one zone's configuration as snapshot entries.

Each resource category is one read against Cloudflare, serialized verbatim
as pretty-printed JSON. Worker scripts are collected in two phases (routes,
then one fetch per distinct script) and written as raw source.

Failure policy:
- A failed category read aborts collection with CollectionError.
- A failed worker script fetch only affects that script: its entry gets
  placeholder source and an error marker, and collection continues.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Tuple

import structlog

from cfbackup.exceptions import CFBackupError, CollectionError

logger = structlog.get_logger()

WORKERS_DIR = "workers"
WORKER_ROUTES_FILE = f"{WORKERS_DIR}/routes.json"
SCRIPT_PLACEHOLDER = "// Script content could not be fetched. May require account-level access.\n"

METADATA_FIELDS = ("id", "name", "status", "paused", "type", "created_on", "modified_on")


@dataclass
class SnapshotEntry:
    """One artifact inside a snapshot; maps to exactly one file."""

    path: str  # relative to the snapshot folder
    content: str
    kind: str
    routes: List[str] = field(default_factory=list)
    error: str | None = None


def _to_json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False)


def _ssl_tls_only(settings: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Keep settings whose id starts with ``ssl`` or ``tls``."""
    return [
        setting
        for setting in settings or []
        if str(setting.get("id", "")).startswith(("ssl", "tls"))
    ]


# (kind, file name, client method, transform); order is the write order
_CATEGORIES: List[Tuple[str, str, str, Callable[[Any], Any] | None]] = [
    ("dns_records", "dns_records.json", "list_dns_records", None),
    ("page_rules", "page_rules.json", "list_page_rules", None),
    ("custom_pages", "custom_pages.json", "list_custom_pages", None),
    ("ssl_tls_settings", "ssl_tls_settings.json", "list_settings", _ssl_tls_only),
    ("firewall_rules", "firewall_rules.json", "list_firewall_rules", None),
    ("access_rules", "access_rules.json", "list_access_rules", None),
    ("rate_limit_rules", "rate_limit_rules.json", "list_rate_limit_rules", None),
]


def build_metadata_entry(zone: Dict[str, Any], timestamp: str) -> SnapshotEntry:
    """Zone metadata plus the snapshot timestamp."""
    metadata = {name: zone.get(name) for name in METADATA_FIELDS}
    metadata["backup_timestamp"] = timestamp
    return SnapshotEntry(path="metadata.json", content=_to_json(metadata), kind="metadata")


async def _fetch_category(
    zone_id: str,
    kind: str,
    fetch: Callable[[str], Awaitable[Any]],
) -> Any:
    try:
        return await fetch(zone_id)
    except CFBackupError as e:
        raise CollectionError(
            f"Failed to fetch {kind} for zone {zone_id}: {e.message}",
            details={"zone_id": zone_id, "category": kind, "cause": e.details},
        ) from e


def group_routes_by_script(routes: List[Dict[str, Any]]) -> Dict[str, List[str]]:
    """
    Map each script name to every route pattern bound to it.

    Scripts keep the order of their first route. Routes without a script
    (disabled routes) are ignored.
    """
    grouped: Dict[str, List[str]] = {}
    for route in routes or []:
        script = route.get("script")
        if not script:
            continue
        patterns = grouped.setdefault(script, [])
        pattern = route.get("pattern")
        if pattern and pattern not in patterns:
            patterns.append(pattern)
    return grouped


async def collect_worker_entries(cloudflare: Any, zone_id: str) -> List[SnapshotEntry]:
    """
    Collect one entry per distinct worker script bound to the zone's routes.

    A routes manifest entry is appended when any script is found.
    """
    routes = await _fetch_category(zone_id, "worker_routes", cloudflare.list_worker_routes)
    grouped = group_routes_by_script(routes)

    entries: List[SnapshotEntry] = []
    manifest: List[Dict[str, Any]] = []
    for script_name, patterns in grouped.items():
        try:
            source = await cloudflare.get_worker_script(zone_id, script_name)
            error = None
        except CFBackupError as e:
            logger.warning(
                "worker_script_fetch_failed",
                zone_id=zone_id,
                script=script_name,
                error=str(e),
            )
            source = SCRIPT_PLACEHOLDER
            error = f"Could not fetch script content: {e.message}"

        entries.append(
            SnapshotEntry(
                path=f"{WORKERS_DIR}/{script_name}.js",
                content=source,
                kind="worker_script",
                routes=list(patterns),
                error=error,
            )
        )
        item: Dict[str, Any] = {"script": script_name, "routes": list(patterns)}
        if error:
            item["error"] = error
        manifest.append(item)

    if manifest:
        entries.append(
            SnapshotEntry(path=WORKER_ROUTES_FILE, content=_to_json(manifest), kind="worker_routes")
        )

    return entries


async def collect_zone_entries(
    cloudflare: Any,
    zone: Dict[str, Any],
    timestamp: str,
) -> List[SnapshotEntry]:
    """
    Produce every snapshot entry for one zone.

    Args:
        cloudflare: Cloudflare client
        zone: Zone object as returned by list_zones/get_zone
        timestamp: Snapshot timestamp recorded in metadata.json

    Returns:
        Entries in write order: metadata, DNS records, page rules, workers,
        then the remaining categories

    Raises:
        CollectionError: If any category read fails
    """
    zone_id = zone["id"]
    entries = [build_metadata_entry(zone, timestamp)]

    for kind, filename, method, transform in _CATEGORIES:
        result = await _fetch_category(zone_id, kind, getattr(cloudflare, method))
        if transform is not None:
            result = transform(result)
        entries.append(SnapshotEntry(path=filename, content=_to_json(result), kind=kind))

        # Worker scripts follow page rules
        if kind == "page_rules":
            entries.extend(await collect_worker_entries(cloudflare, zone_id))

    logger.debug("zone_entries_collected", zone_id=zone_id, count=len(entries))
    return entries
