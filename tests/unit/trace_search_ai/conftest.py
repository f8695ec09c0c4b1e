"""Shared fixtures for translator tests."""

from collections.abc import Callable
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest


class StaticCatalog:
    """In-memory stand-in for ServiceCatalog with a fixed service -> routes map."""

    def __init__(self, routes: dict[str, list[str]]) -> None:
        self._routes = {name: set(r) for name, r in routes.items()}

    def services(self) -> set[str]:
        return set(self._routes)

    def routes_of(self, service: str | None) -> set[str]:
        if service is None:
            return set()
        return set(self._routes.get(service, set()))


@pytest.fixture
def make_catalog() -> Callable[[dict[str, list[str]]], StaticCatalog]:
    return StaticCatalog


@pytest.fixture
def catalog() -> StaticCatalog:
    return StaticCatalog(
        {
            "payment": [],
            "order": ["/orders", "/orders/{id}"],
            "auth-service": ["/v1/login", "/v1/logout"],
        }
    )


def mock_response(
    status_code: int = 200, json_data: object = None, text: str = ""
) -> MagicMock:
    """Create a mock httpx.Response."""
    resp = MagicMock(spec=httpx.Response)
    resp.status_code = status_code
    resp.text = text
    if json_data is not None:
        resp.json.return_value = json_data
    else:
        resp.json.side_effect = ValueError("No JSON object could be decoded")
    return resp


def mock_async_client() -> AsyncMock:
    """Create an AsyncMock usable as ``async with httpx.AsyncClient(...)``."""
    client = AsyncMock()
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)
    return client


@pytest.fixture
def http_response() -> Callable[..., MagicMock]:
    return mock_response


@pytest.fixture
def http_client() -> AsyncMock:
    return mock_async_client()
