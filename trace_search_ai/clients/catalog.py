"""Service and operation catalog backed by the trace backend's query API.

The catalog is fetched lazily the first time a translation needs it and kept
for the lifetime of the instance. Per-service operation lookups fan out
concurrently; a failing lookup degrades that service to an empty route set
instead of aborting the whole load.
"""

import asyncio
import logging
from typing import Any
from urllib.parse import quote

import httpx

from ..config import DEFAULT_METADATA_TIMEOUT_SECONDS
from ..exceptions import MetadataFetchError

logger = logging.getLogger(__name__)


def _is_success(resp: httpx.Response) -> bool:
    return 200 <= resp.status_code < 300


def _names_from_payload(payload: Any) -> list[str]:
    """Pull the name list out of a ``{"data": [...]}`` metadata payload.

    Entries may be plain strings or objects carrying a ``name`` key; other
    entries are skipped. A null ``data`` means no names.

    Raises:
        ValueError: If the payload is not an object or ``data`` is not a list.
    """
    if not isinstance(payload, dict):
        raise ValueError(f"expected a JSON object, got {type(payload).__name__}")
    data = payload.get("data")
    if data is None:
        return []
    if not isinstance(data, list):
        raise ValueError(f"expected 'data' to be a list, got {type(data).__name__}")
    names: list[str] = []
    for item in data:
        if isinstance(item, str):
            name = item
        elif isinstance(item, dict) and isinstance(item.get("name"), str):
            name = item["name"]
        else:
            continue
        if name:
            names.append(name)
    return names


class ServiceCatalog:
    """Cached mapping of known services to their operations/routes."""

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_METADATA_TIMEOUT_SECONDS,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._routes: dict[str, set[str]] = {}
        self._lock = asyncio.Lock()

    @property
    def is_loaded(self) -> bool:
        return bool(self._routes)

    def services(self) -> set[str]:
        return set(self._routes)

    def routes_of(self, service: str | None) -> set[str]:
        if service is None:
            return set()
        return set(self._routes.get(service, set()))

    async def ensure_loaded(self) -> None:
        """Load the catalog if it is empty.

        Concurrent callers share a single population pass.

        Raises:
            MetadataFetchError: If the service list cannot be fetched.
        """
        if self._routes:
            return
        async with self._lock:
            if self._routes:
                return
            await self._populate()

    async def refresh(self) -> None:
        """Drop the cached catalog and load it again."""
        async with self._lock:
            self._routes = {}
            await self._populate()

    async def _populate(self) -> None:
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            services = await self._fetch_services(client)
            route_sets = await asyncio.gather(
                *(self._fetch_routes(client, service) for service in services)
            )

        # Published in one assignment so readers never see a half-built map.
        self._routes = dict(zip(services, route_sets, strict=True))
        logger.info(
            f"Service catalog loaded: {len(self._routes)} services, "
            f"{sum(len(r) for r in route_sets)} routes"
        )

    async def _fetch_services(self, client: httpx.AsyncClient) -> list[str]:
        url = f"{self._base_url}/services"
        try:
            resp = await client.get(url)
        except httpx.HTTPError as e:
            raise MetadataFetchError(str(e) or type(e).__name__) from e

        if not _is_success(resp):
            raise MetadataFetchError(f"HTTP {resp.status_code}")

        try:
            payload = resp.json()
        except ValueError as e:
            logger.debug(f"Service list response is not JSON: {resp.text[:200]}")
            raise MetadataFetchError("invalid JSON in service list response") from e

        try:
            names = _names_from_payload(payload)
        except ValueError as e:
            logger.debug(f"Unexpected service list payload from {url}: {e}")
            raise MetadataFetchError("unexpected service list payload") from e

        # dict.fromkeys drops repeats but keeps the backend's order.
        return list(dict.fromkeys(names))

    async def _fetch_routes(self, client: httpx.AsyncClient, service: str) -> set[str]:
        url = f"{self._base_url}/services/{quote(service, safe='')}/operations"
        try:
            resp = await client.get(url)
            if not _is_success(resp):
                logger.warning(
                    f"Operations lookup for {service!r} returned HTTP "
                    f"{resp.status_code}; continuing with no routes"
                )
                return set()
            return set(_names_from_payload(resp.json()))
        except (httpx.HTTPError, ValueError):
            logger.warning(
                f"Operations lookup for {service!r} failed; continuing with no routes",
                exc_info=True,
            )
            return set()
