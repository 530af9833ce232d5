"""HTTP client for the shop REST API.

Unlike a regular API client, error statuses are not raised: negative-test
steps expect them, so every response that arrives is handed back to the
caller for classification. Only failures without a response raise.
"""

from typing import Any

import httpx

from .errors import ApiClientError
from .shared.logging import get_logger

logger = get_logger(__name__)

START_SERVER_HINT = "Is the server running? Start it with: npm start"


class ApiClient:
    """Async HTTP client bound to a base URL."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        insecure: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize client.

        Args:
            base_url: API root (e.g., http://localhost:4000/api)
            timeout: Request timeout in seconds
            insecure: Skip SSL certificate verification (like curl -k)
            transport: Optional transport override (tests, ASGI apps)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.insecure = insecure
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "ApiClient":
        """Enter async context."""
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={"Content-Type": "application/json"},
            verify=not self.insecure,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure client is initialized."""
        if not self._client:
            raise ApiClientError("Client not initialized. Use 'async with' context.")
        return self._client

    async def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Send a request and return the response whatever its status.

        Args:
            method: HTTP method
            path: Path relative to the base URL (e.g., /auth/login)
            json: JSON body
            params: Query parameters
            headers: Extra headers

        Returns:
            The httpx response

        Raises:
            ApiClientError: When no response was received
        """
        client = self._ensure_client()
        url = self.base_url + "/" + path.lstrip("/")
        logger.debug("http_request", method=method, url=url)
        try:
            response = await client.request(
                method, url, json=json, params=params or None, headers=headers
            )
        except httpx.ConnectError:
            raise ApiClientError(
                f"Cannot connect to server at {self.base_url}", hint=START_SERVER_HINT
            )
        except httpx.TimeoutException:
            raise ApiClientError(
                f"Request timed out after {self.timeout}s", hint=START_SERVER_HINT
            )
        except httpx.TransportError as e:
            raise ApiClientError(f"Transport error: {e}", hint=START_SERVER_HINT)
        logger.debug("http_response", method=method, url=url, status=response.status_code)
        return response


def response_json(response: httpx.Response) -> Any:
    """Decode a JSON body, or return None when the body is not JSON."""
    try:
        return response.json()
    except ValueError:
        return None


def response_message(response: httpx.Response) -> str | None:
    """Extract a human-readable message from a response body."""
    data = response_json(response)
    if isinstance(data, dict):
        for key in ("message", "detail", "error"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return value
            if isinstance(value, dict) and isinstance(value.get("message"), str):
                return value["message"]
        return None
    if data is None and response.text:
        text = response.text.strip()
        return text[:200] if text else None
    return None
