"""Test mocks for shopcheck.

Provides mock implementations for testing:
- MockShopServer: Simulates the shop REST API for scenario runs
"""

from .mock_shop_server import BASE_URL, MockShopServer

__all__ = ["BASE_URL", "MockShopServer"]
