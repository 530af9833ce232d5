"""Credential helpers.

Bearer tokens for the shop API are captured during a scenario run and never
stored. Long-lived keys for the BaaS and the payment processor are resolved
from the command line, the environment or a file under ~/.shopcheck/secrets/.
"""

import os

from .paths import SECRETS_DIR

BAAS_SERVICE_KEY = "baas-service-key"
PAYMENT_SECRET_KEY = "payment-secret-key"
PAYMENT_WEBHOOK_SECRET = "payment-webhook-secret"

SECRET_ENV_VARS = {
    BAAS_SERVICE_KEY: "SHOPCHECK_BAAS_SERVICE_KEY",
    PAYMENT_SECRET_KEY: "SHOPCHECK_PAYMENT_SECRET_KEY",
    PAYMENT_WEBHOOK_SECRET: "SHOPCHECK_PAYMENT_WEBHOOK_SECRET",
}


def get_secret(name: str, secret_arg: str | None = None) -> str | None:
    """Resolve a secret from: CLI arg > env var > stored file.

    Args:
        name: Secret name (BAAS_SERVICE_KEY or PAYMENT_SECRET_KEY)
        secret_arg: Value passed on the command line

    Returns:
        Secret string if found, None otherwise
    """
    if secret_arg:
        return secret_arg

    env_var = SECRET_ENV_VARS.get(name)
    if env_var and os.environ.get(env_var):
        return os.environ[env_var]

    secret_file = SECRETS_DIR / f"{name}.key"
    if secret_file.exists():
        return secret_file.read_text().strip()

    return None


def save_secret(name: str, value: str) -> None:
    """Store a secret with owner-only permissions."""
    secret_file = SECRETS_DIR / f"{name}.key"
    secret_file.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    secret_file.write_text(value)
    secret_file.chmod(0o600)


def bearer_headers(token: str | None) -> dict[str, str]:
    """Build an Authorization header dict, empty when there is no token."""
    if token:
        return {"Authorization": f"Bearer {token}"}
    return {}


def mask(secret: str | None, visible: int = 4) -> str:
    """Mask a secret for display."""
    if not secret:
        return "(not set)"
    if len(secret) <= visible * 2:
        return "*" * len(secret)
    return f"{secret[:visible]}...{secret[-visible:]}"
