"""Tests for the service catalog client.

All external HTTP calls are mocked via httpx.AsyncClient.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from trace_search_ai.clients.catalog import ServiceCatalog
from trace_search_ai.exceptions import MetadataFetchError

BASE_URL = "http://jaeger:16686/api"
CLIENT_PATH = "trace_search_ai.clients.catalog.httpx.AsyncClient"


def _routing_get(responses: dict[str, object]) -> AsyncMock:
    """Build a client.get mock answering by URL; exception values are raised."""

    async def _get(url: str, **kwargs: object) -> object:
        result = responses[url]
        if isinstance(result, Exception):
            raise result
        return result

    return AsyncMock(side_effect=_get)


@pytest.fixture
def service_catalog() -> ServiceCatalog:
    return ServiceCatalog(BASE_URL, timeout=3.0)


class TestEnsureLoaded:
    @pytest.mark.asyncio
    async def test_loads_services_and_routes(
        self, service_catalog, http_client, http_response
    ) -> None:
        http_client.get = _routing_get(
            {
                f"{BASE_URL}/services": http_response(
                    200, {"data": ["auth-service", "payment"]}
                ),
                f"{BASE_URL}/services/auth-service/operations": http_response(
                    200, {"data": ["/v1/login", "/v1/logout"]}
                ),
                f"{BASE_URL}/services/payment/operations": http_response(
                    200, {"data": []}
                ),
            }
        )

        with patch(CLIENT_PATH, return_value=http_client) as client_cls:
            await service_catalog.ensure_loaded()

        client_cls.assert_called_once_with(timeout=3.0)
        assert service_catalog.is_loaded
        assert service_catalog.services() == {"auth-service", "payment"}
        assert service_catalog.routes_of("auth-service") == {"/v1/login", "/v1/logout"}
        assert service_catalog.routes_of("payment") == set()
        assert service_catalog.routes_of("unknown") == set()
        assert service_catalog.routes_of(None) == set()

    @pytest.mark.asyncio
    async def test_cached_after_first_load(
        self, service_catalog, http_client, http_response
    ) -> None:
        http_client.get = _routing_get(
            {
                f"{BASE_URL}/services": http_response(200, {"data": ["payment"]}),
                f"{BASE_URL}/services/payment/operations": http_response(
                    200, {"data": ["charge"]}
                ),
            }
        )

        with patch(CLIENT_PATH, return_value=http_client):
            await service_catalog.ensure_loaded()
            await service_catalog.ensure_loaded()

        assert http_client.get.await_count == 2

    @pytest.mark.asyncio
    async def test_empty_service_list_refetched(
        self, service_catalog, http_client, http_response
    ) -> None:
        http_client.get = _routing_get(
            {f"{BASE_URL}/services": http_response(200, {"data": None})}
        )

        with patch(CLIENT_PATH, return_value=http_client):
            await service_catalog.ensure_loaded()
            await service_catalog.ensure_loaded()

        assert not service_catalog.is_loaded
        assert http_client.get.await_count == 2

    @pytest.mark.asyncio
    async def test_operation_failure_degrades_to_empty_routes(
        self, service_catalog, http_client, http_response, caplog
    ) -> None:
        http_client.get = _routing_get(
            {
                f"{BASE_URL}/services": http_response(
                    200, {"data": ["order", "payment", "search"]}
                ),
                f"{BASE_URL}/services/order/operations": httpx.ConnectError("refused"),
                f"{BASE_URL}/services/payment/operations": http_response(500),
                f"{BASE_URL}/services/search/operations": http_response(
                    200, {"data": ["/q"]}
                ),
            }
        )

        with patch(CLIENT_PATH, return_value=http_client):
            await service_catalog.ensure_loaded()

        assert service_catalog.services() == {"order", "payment", "search"}
        assert service_catalog.routes_of("order") == set()
        assert service_catalog.routes_of("payment") == set()
        assert service_catalog.routes_of("search") == {"/q"}
        assert "Operations lookup for 'order' failed" in caplog.text

    @pytest.mark.asyncio
    async def test_operation_objects_and_quoted_names(
        self, service_catalog, http_client, http_response
    ) -> None:
        http_client.get = _routing_get(
            {
                f"{BASE_URL}/services": http_response(200, {"data": ["api gateway"]}),
                f"{BASE_URL}/services/api%20gateway/operations": http_response(
                    200,
                    {"data": [{"name": "GET /health", "spanKind": "server"}, {"x": 1}]},
                ),
            }
        )

        with patch(CLIENT_PATH, return_value=http_client):
            await service_catalog.ensure_loaded()

        assert service_catalog.routes_of("api gateway") == {"GET /health"}

    @pytest.mark.asyncio
    async def test_duplicate_service_names_collapsed(
        self, service_catalog, http_client, http_response
    ) -> None:
        http_client.get = _routing_get(
            {
                f"{BASE_URL}/services": http_response(
                    200, {"data": ["payment", "payment", "", 7]}
                ),
                f"{BASE_URL}/services/payment/operations": http_response(
                    200, {"data": []}
                ),
            }
        )

        with patch(CLIENT_PATH, return_value=http_client):
            await service_catalog.ensure_loaded()

        assert service_catalog.services() == {"payment"}
        assert http_client.get.await_count == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [{"data": 5}, {"data": "abc"}, ["/x"]])
    async def test_malformed_operations_payload_degrades(
        self, service_catalog, http_client, http_response, payload
    ) -> None:
        http_client.get = _routing_get(
            {
                f"{BASE_URL}/services": http_response(200, {"data": ["order", "payment"]}),
                f"{BASE_URL}/services/order/operations": http_response(200, payload),
                f"{BASE_URL}/services/payment/operations": http_response(
                    200, {"data": ["charge"]}
                ),
            }
        )

        with patch(CLIENT_PATH, return_value=http_client):
            await service_catalog.ensure_loaded()

        assert service_catalog.services() == {"order", "payment"}
        assert service_catalog.routes_of("order") == set()
        assert service_catalog.routes_of("payment") == {"charge"}


class TestServiceListFailures:
    @pytest.mark.asyncio
    async def test_transport_error(self, service_catalog, http_client) -> None:
        http_client.get = AsyncMock(side_effect=httpx.ConnectError("refused"))

        with patch(CLIENT_PATH, return_value=http_client):
            with pytest.raises(MetadataFetchError, match="Failed to fetch available services"):
                await service_catalog.ensure_loaded()

        assert not service_catalog.is_loaded

    @pytest.mark.asyncio
    async def test_timeout(self, service_catalog, http_client) -> None:
        http_client.get = AsyncMock(side_effect=httpx.ReadTimeout("slow"))

        with patch(CLIENT_PATH, return_value=http_client):
            with pytest.raises(MetadataFetchError):
                await service_catalog.ensure_loaded()

    @pytest.mark.asyncio
    async def test_non_2xx(self, service_catalog, http_client, http_response) -> None:
        http_client.get = AsyncMock(return_value=http_response(503))

        with patch(CLIENT_PATH, return_value=http_client):
            with pytest.raises(MetadataFetchError) as exc_info:
                await service_catalog.ensure_loaded()

        assert exc_info.value.reason == "HTTP 503"
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_invalid_json(self, service_catalog, http_client, http_response) -> None:
        http_client.get = AsyncMock(return_value=http_response(200, text="<html>"))

        with patch(CLIENT_PATH, return_value=http_client):
            with pytest.raises(MetadataFetchError):
                await service_catalog.ensure_loaded()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [{"data": 5}, {"data": "ab"}, ["payment"]])
    async def test_unexpected_payload_shape(
        self, service_catalog, http_client, http_response, payload
    ) -> None:
        http_client.get = AsyncMock(return_value=http_response(200, payload))

        with patch(CLIENT_PATH, return_value=http_client):
            with pytest.raises(MetadataFetchError) as exc_info:
                await service_catalog.ensure_loaded()

        assert exc_info.value.reason == "unexpected service list payload"
        assert service_catalog.services() == set()
        http_client.get.assert_awaited_once()


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_concurrent_first_calls_share_one_load(
        self, service_catalog, http_response
    ) -> None:
        calls: list[str] = []
        release = asyncio.Event()

        async def _get(url: str, **kwargs: object) -> MagicMock:
            calls.append(url)
            if url.endswith("/services"):
                await release.wait()
                return http_response(200, {"data": ["payment"]})
            return http_response(200, {"data": ["charge"]})

        def _new_client(**kwargs: object) -> AsyncMock:
            client = AsyncMock()
            client.__aenter__ = AsyncMock(return_value=client)
            client.__aexit__ = AsyncMock(return_value=False)
            client.get = AsyncMock(side_effect=_get)
            return client

        with patch(CLIENT_PATH, side_effect=_new_client):
            tasks = [
                asyncio.create_task(service_catalog.ensure_loaded()) for _ in range(3)
            ]
            await asyncio.sleep(0)
            release.set()
            await asyncio.gather(*tasks)

        assert calls.count(f"{BASE_URL}/services") == 1
        assert service_catalog.routes_of("payment") == {"charge"}

    @pytest.mark.asyncio
    async def test_refresh_reloads(
        self, service_catalog, http_client, http_response
    ) -> None:
        http_client.get = _routing_get(
            {
                f"{BASE_URL}/services": http_response(200, {"data": ["payment"]}),
                f"{BASE_URL}/services/payment/operations": http_response(
                    200, {"data": []}
                ),
            }
        )

        with patch(CLIENT_PATH, return_value=http_client):
            await service_catalog.ensure_loaded()
            await service_catalog.refresh()

        assert http_client.get.await_count == 4

    @pytest.mark.asyncio
    async def test_operation_lookups_run_concurrently(
        self, service_catalog, http_client, http_response
    ) -> None:
        services = ["auth-service", "order", "payment", "search"]
        in_flight = 0
        all_started = asyncio.Event()

        async def _get(url: str, **kwargs: object) -> MagicMock:
            nonlocal in_flight
            if url == f"{BASE_URL}/services":
                return http_response(200, {"data": services})
            in_flight += 1
            if in_flight == len(services):
                all_started.set()
            # Every lookup blocks until all of them have been issued.
            await all_started.wait()
            return http_response(200, {"data": ["/" + url.split("/")[-2]]})

        http_client.get = AsyncMock(side_effect=_get)

        with patch(CLIENT_PATH, return_value=http_client):
            await asyncio.wait_for(service_catalog.ensure_loaded(), timeout=2.0)

        assert service_catalog.routes_of("search") == {"/search"}
        assert http_client.get.await_count == len(services) + 1
