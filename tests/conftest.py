"""Shared test fixtures for shopcheck tests.

This module provides fixtures for running scenarios without a real server:
- mock_shop: In-process mock of the shop API (FastAPI)
- shop_transport: httpx transport routing requests to mock_shop
- refused_transport: httpx transport failing every request with ConnectError
- isolated_home: Config, secrets and scenario paths under a temp directory
"""

from collections.abc import Callable
from unittest.mock import patch

import httpx
import pytest

from shopcheck.config import ENV_VARS
from shopcheck.shared.auth import SECRET_ENV_VARS

from tests.mocks import BASE_URL, MockShopServer

# =============================================================================
# Mock shop API
# =============================================================================


@pytest.fixture
def mock_shop() -> MockShopServer:
    """Fixture providing a fresh MockShopServer."""
    return MockShopServer()


@pytest.fixture
def shop_transport(mock_shop: MockShopServer) -> httpx.ASGITransport:
    """Transport routing httpx requests to the mock shop in-process."""
    return mock_shop.get_transport()


@pytest.fixture
def shop_url() -> str:
    """Base URL the mock shop is mounted under."""
    return BASE_URL


@pytest.fixture
def refused_transport() -> httpx.MockTransport:
    """Transport that behaves like a server that is not running."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    return httpx.MockTransport(handler)


# =============================================================================
# External API stubs
# =============================================================================


@pytest.fixture
def json_transport() -> Callable[..., httpx.MockTransport]:
    """Build a MockTransport from a ``{(method, path): response}`` mapping.

    Values are either a JSON-serializable body (status 200) or a
    ``(status_code, body)`` tuple. Every request is appended to
    ``transport.requests``.
    """

    def build(routes: dict[tuple[str, str], object]) -> httpx.MockTransport:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            route = routes.get((request.method, request.url.path))
            if route is None:
                return httpx.Response(404, json={"message": "not found"})
            if isinstance(route, tuple):
                status_code, body = route
            else:
                status_code, body = 200, route
            return httpx.Response(status_code, json=body)

        transport = httpx.MockTransport(handler)
        transport.requests = requests
        return transport

    return build


# =============================================================================
# Local state isolation
# =============================================================================


@pytest.fixture
def isolated_home(tmp_path, monkeypatch):
    """Point config, secrets and scenario lookups at a temp directory.

    Also clears every SHOPCHECK_* variable so the developer's environment
    does not leak into tests.
    """
    for env_var in list(ENV_VARS.values()) + list(SECRET_ENV_VARS.values()):
        monkeypatch.delenv(env_var, raising=False)

    home = tmp_path / ".shopcheck"
    secrets_dir = home / "secrets"
    scenarios_dir = home / "scenarios"
    scenarios_dir.mkdir(parents=True)

    with (
        patch("shopcheck.config.get_config_path", return_value=home / "config.yaml"),
        patch("shopcheck.shared.auth.SECRETS_DIR", secrets_dir),
        patch("shopcheck.loader.SCENARIOS_DIR", scenarios_dir),
    ):
        yield home
