"""Payment return URL parsing.

After checkout the payment processor redirects the shopper back to the app
through a custom scheme, e.g. ``ecommerceshop://payment/success?session_id=cs_...``
or ``ecommerceshop://payment/cancel``.

Classification order:

1. ``success`` in the path or the full URL -> success
2. ``cancel`` in the path or the full URL -> cancelled
3. a ``session_id`` query parameter -> success
4. lower-cased URL contains ``success`` / ``cancel`` -> success / cancelled
5. anything else -> error

A URL containing both keywords is a success.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any
from urllib.parse import parse_qs, urlsplit

from .shared.logging import get_logger

logger = get_logger(__name__)

SESSION_ID_PARAM = "session_id"


class PaymentResultType(str, Enum):
    SUCCESS = "success"
    CANCELLED = "cancelled"
    ERROR = "error"


@dataclass(frozen=True)
class PaymentResult:
    """Outcome carried by a payment return URL."""

    type: PaymentResultType
    session_id: str | None = None
    message: str | None = None

    @classmethod
    def success(cls, session_id: str | None = None) -> PaymentResult:
        return cls(PaymentResultType.SUCCESS, session_id=session_id)

    @classmethod
    def cancelled(cls) -> PaymentResult:
        return cls(PaymentResultType.CANCELLED)

    @classmethod
    def error(cls, message: str) -> PaymentResult:
        return cls(PaymentResultType.ERROR, message=message)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type.value}
        if self.session_id is not None:
            data["session_id"] = self.session_id
        if self.message is not None:
            data["message"] = self.message
        return data


def parse_payment_return(url: str) -> PaymentResult:
    """Classify a payment return URL.

    Args:
        url: Full return URL as received by the app

    Returns:
        PaymentResult
    """
    parts = urlsplit(url)
    path = parts.path
    query = parse_qs(parts.query, keep_blank_values=True)
    has_session_id = SESSION_ID_PARAM in query
    session_id = (query[SESSION_ID_PARAM][0] or None) if has_session_id else None

    logger.debug(
        "payment_return_url",
        scheme=parts.scheme,
        host=parts.netloc,
        path=path,
        query=sorted(query),
    )

    if "success" in path or "success" in url:
        return PaymentResult.success(session_id)
    if "cancel" in path or "cancel" in url:
        return PaymentResult.cancelled()
    if has_session_id:
        return PaymentResult.success(session_id)

    lowered = url.lower()
    if "success" in lowered:
        return PaymentResult.success(session_id)
    if "cancel" in lowered:
        return PaymentResult.cancelled()
    return PaymentResult.error(f"Unknown return URL: {url}")


class PaymentReturnHandler:
    """Routes incoming app URLs to the parser.

    URLs with another scheme are not payment returns. The same URL delivered
    twice in a row is ignored until ``reset()``.
    """

    def __init__(self, scheme: str = "ecommerceshop"):
        self.scheme = scheme.lower()
        self.last_processed_url: str | None = None
        self.last_result: PaymentResult | None = None

    def handle(self, url: str) -> PaymentResult | None:
        """Parse a URL if it is a new payment return.

        Returns:
            PaymentResult, or None when the URL is ignored
        """
        if urlsplit(url).scheme.lower() != self.scheme:
            logger.debug("payment_return_ignored", reason="scheme", url=url)
            return None
        if url == self.last_processed_url:
            logger.debug("payment_return_ignored", reason="duplicate", url=url)
            return None

        self.last_processed_url = url
        self.last_result = parse_payment_return(url)
        logger.info("payment_return", url=url, result=self.last_result.type.value)
        return self.last_result

    def reset(self) -> None:
        self.last_processed_url = None
        self.last_result = None
