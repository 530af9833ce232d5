"""Read-only inspection of the payment processor.

Lists the registered webhook endpoints and the recent payment events, so a
developer can tell whether checkout webhooks reach the shop API.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import httpx

from .errors import ApiClientError, ShopcheckError
from .shared.logging import get_logger

logger = get_logger(__name__)

PAYMENT_EVENT_TYPES = (
    "checkout.session.completed",
    "payment_intent.succeeded",
    "payment_intent.payment_failed",
)

WEBHOOK_SETUP_HINT = (
    "To receive webhooks in development, forward them to the API:\n"
    "  stripe listen --forward-to localhost:4000/api/payments/webhook\n"
    "or expose the API with a tunnel and register https://<tunnel>/api/payments/webhook"
)


@dataclass
class ProcessorError(ShopcheckError):
    """The payment processor answered with an error."""

    status_code: int | None = None


@dataclass
class WebhookEndpoint:
    id: str
    url: str
    status: str
    enabled_events: list[str]
    created: datetime | None = None


@dataclass
class PaymentEvent:
    id: str
    type: str
    created: datetime | None = None
    pending_webhooks: int = 0
    order_id: str | None = None
    user_id: str | None = None
    amount: float | None = None
    currency: str | None = None


@dataclass
class WebhookStatus:
    """Everything `webhooks status` reports."""

    endpoints: list[WebhookEndpoint] = field(default_factory=list)
    events: list[PaymentEvent] = field(default_factory=list)
    secret_key_configured: bool = False
    webhook_secret_configured: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "endpoints": [
                {
                    "id": e.id,
                    "url": e.url,
                    "status": e.status,
                    "enabled_events": e.enabled_events,
                    "created": e.created.isoformat() if e.created else None,
                }
                for e in self.endpoints
            ],
            "events": [
                {
                    "id": e.id,
                    "type": e.type,
                    "created": e.created.isoformat() if e.created else None,
                    "pending_webhooks": e.pending_webhooks,
                    "order_id": e.order_id,
                    "user_id": e.user_id,
                    "amount": e.amount,
                    "currency": e.currency,
                }
                for e in self.events
            ],
            "secret_key_configured": self.secret_key_configured,
            "webhook_secret_configured": self.webhook_secret_configured,
        }


def _timestamp(value: Any) -> datetime | None:
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    return None


class PaymentProcessorClient:
    """HTTP client for the payment processor's REST API (read-only calls)."""

    def __init__(
        self,
        secret_key: str,
        base_url: str = "https://api.stripe.com",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._secret_key = secret_key
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "PaymentProcessorClient":
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={"Authorization": f"Bearer {self._secret_key}"},
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _get(self, path: str, params: Any = None) -> dict[str, Any]:
        if not self._client:
            raise ApiClientError("Client not initialized. Use 'async with' context.")
        try:
            response = await self._client.get(path, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.ConnectError:
            raise ApiClientError(f"Cannot connect to payment processor at {self.base_url}")
        except httpx.TimeoutException:
            raise ApiClientError(f"Request timed out after {self.timeout}s")
        except httpx.TransportError as e:
            raise ApiClientError(f"Transport error: {e}")
        except httpx.HTTPStatusError as e:
            try:
                message = e.response.json()["error"]["message"]
            except (ValueError, KeyError, TypeError):
                message = str(e)
            raise ProcessorError(message, status_code=e.response.status_code)

    async def list_webhook_endpoints(self) -> list[WebhookEndpoint]:
        data = await self._get("/v1/webhook_endpoints")
        return [
            WebhookEndpoint(
                id=item["id"],
                url=item.get("url", ""),
                status=item.get("status", "unknown"),
                enabled_events=list(item.get("enabled_events") or []),
                created=_timestamp(item.get("created")),
            )
            for item in data.get("data", [])
        ]

    async def list_events(
        self,
        types: tuple[str, ...] = PAYMENT_EVENT_TYPES,
        limit: int = 10,
    ) -> list[PaymentEvent]:
        params: list[tuple[str, Any]] = [("limit", limit)]
        params.extend(("types[]", t) for t in types)
        data = await self._get("/v1/events", params=params)

        events = []
        for item in data.get("data", []):
            event = PaymentEvent(
                id=item["id"],
                type=item.get("type", ""),
                created=_timestamp(item.get("created")),
                pending_webhooks=int(item.get("pending_webhooks") or 0),
            )
            if event.type == "checkout.session.completed":
                session = (item.get("data") or {}).get("object") or {}
                metadata = session.get("metadata") or {}
                event.order_id = metadata.get("orderId")
                event.user_id = metadata.get("userId")
                if session.get("amount_total") is not None:
                    event.amount = session["amount_total"] / 100
                event.currency = session.get("currency")
            events.append(event)
        return events


async def collect_webhook_status(
    client: PaymentProcessorClient,
    webhook_secret_configured: bool,
    event_limit: int = 10,
) -> WebhookStatus:
    """Gather endpoints and recent events from an entered client."""
    endpoints = await client.list_webhook_endpoints()
    events = await client.list_events(limit=event_limit) if endpoints else []
    logger.info("webhook_status", endpoints=len(endpoints), events=len(events))
    return WebhookStatus(
        endpoints=endpoints,
        events=events,
        secret_key_configured=True,
        webhook_secret_configured=webhook_secret_configured,
    )
