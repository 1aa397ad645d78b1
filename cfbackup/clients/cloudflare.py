# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Cloudflare client - read-only access to zone configuration.

Only the calls needed to snapshot a zone are implemented. Every call
unwraps the v4 response envelope and returns its ``result`` member.
"""

from typing import Any, Dict, List

import httpx
import structlog

from cfbackup.exceptions import NotFoundError, RemoteServiceError

logger = structlog.get_logger()

ZONES_PAGE_SIZE = 50


class CloudflareClient:
    """Async client for the Cloudflare v4 API."""

    def __init__(
        self,
        api_token: str,
        base_url: str = "https://api.cloudflare.com/client/v4",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"Authorization": f"Bearer {api_token}"},
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "CloudflareClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _request(self, path: str, params: dict | None = None) -> httpx.Response:
        try:
            response = await self._client.get(path, params=params)
        except httpx.HTTPError as e:
            raise RemoteServiceError(
                f"Cloudflare request failed: {e}",
                details={"path": path},
            ) from e

        if response.status_code == 404:
            raise NotFoundError(
                f"Cloudflare resource not found: {path}",
                details={"path": path},
            )
        if response.is_error:
            raise RemoteServiceError(
                f"Cloudflare returned HTTP {response.status_code}",
                details={"path": path, "status": response.status_code,
                         "errors": _envelope_errors(response)},
            )
        return response

    def _unwrap(self, path: str, response: httpx.Response) -> Dict[str, Any]:
        payload = response.json()
        if not payload.get("success", True):
            raise RemoteServiceError(
                "Cloudflare reported an unsuccessful response",
                details={"path": path, "errors": payload.get("errors", [])},
            )
        return payload

    async def _get_result(self, path: str, params: dict | None = None) -> Any:
        response = await self._request(path, params)
        return self._unwrap(path, response).get("result")

    async def list_zones(self) -> List[Dict[str, Any]]:
        """List every zone visible to the token, following pagination."""
        zones: List[Dict[str, Any]] = []
        page = 1

        while True:
            response = await self._request(
                "/zones", params={"page": page, "per_page": ZONES_PAGE_SIZE}
            )
            payload = self._unwrap("/zones", response)
            zones.extend(payload.get("result") or [])

            total_pages = (payload.get("result_info") or {}).get("total_pages", 1)
            if page >= total_pages:
                break
            page += 1

        logger.debug("zones_listed", count=len(zones), pages=page)
        return zones

    async def get_zone(self, zone_id: str) -> Dict[str, Any]:
        return await self._get_result(f"/zones/{zone_id}")

    async def list_dns_records(self, zone_id: str) -> List[Dict[str, Any]]:
        return await self._get_result(f"/zones/{zone_id}/dns_records")

    async def list_page_rules(self, zone_id: str) -> List[Dict[str, Any]]:
        return await self._get_result(f"/zones/{zone_id}/pagerules")

    async def list_custom_pages(self, zone_id: str) -> List[Dict[str, Any]]:
        return await self._get_result(f"/zones/{zone_id}/custom_pages")

    async def list_settings(self, zone_id: str) -> List[Dict[str, Any]]:
        return await self._get_result(f"/zones/{zone_id}/settings")

    async def list_firewall_rules(self, zone_id: str) -> List[Dict[str, Any]]:
        return await self._get_result(f"/zones/{zone_id}/firewall/rules")

    async def list_access_rules(self, zone_id: str) -> List[Dict[str, Any]]:
        return await self._get_result(f"/zones/{zone_id}/firewall/access_rules/rules")

    async def list_rate_limit_rules(self, zone_id: str) -> List[Dict[str, Any]]:
        return await self._get_result(f"/zones/{zone_id}/rate_limits")

    async def list_worker_routes(self, zone_id: str) -> List[Dict[str, Any]]:
        return await self._get_result(f"/zones/{zone_id}/workers/routes") or []

    async def get_worker_script(self, zone_id: str, script_name: str) -> str:
        """Fetch raw worker source. The endpoint returns text, not an envelope."""
        response = await self._request(f"/zones/{zone_id}/workers/scripts/{script_name}")
        return response.text


def _envelope_errors(response: httpx.Response) -> list:
    try:
        return response.json().get("errors", [])
    except ValueError:
        return []
