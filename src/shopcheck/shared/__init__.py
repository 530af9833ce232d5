"""Shared modules for shopcheck: paths, credentials and logging."""

from .auth import bearer_headers, get_secret, mask, save_secret
from .logging import configure_logging, get_logger
from .paths import SCENARIOS_DIR, SECRETS_DIR, SHOPCHECK_DIR

__all__ = [
    # Paths
    "SHOPCHECK_DIR",
    "SECRETS_DIR",
    "SCENARIOS_DIR",
    # Credentials
    "get_secret",
    "save_secret",
    "bearer_headers",
    "mask",
    # Logging
    "configure_logging",
    "get_logger",
]
