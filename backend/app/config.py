"""
Runtime configuration.

Secrets are supplied by the hosting environment (or a local .env file) and
read at call time so that tests can patch os.environ.

Environment variables
---------------------
CLOUDMAILIN_BASIC_AUTH     Expected "user:password" pair for inbound webhooks.
DISCORD_WEBHOOK_URL        Destination chat webhook URL.
DELIVERY_TIMEOUT_SECONDS   Per-request HTTP timeout for the destination (default 10).
LOG_LEVEL                  Root log level (default INFO).
"""

import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

# Name used in user-facing error bodies, e.g. "Discord error: 500"
DESTINATION_PLATFORM = "Discord"

_DEFAULT_TIMEOUT_SECONDS = 10.0


def get_basic_auth() -> str:
    """Return the expected "user:password" pair, or "" when unset."""
    return os.getenv("CLOUDMAILIN_BASIC_AUTH", "")


def get_destination_webhook_url() -> Optional[str]:
    """Return the destination webhook URL, or None when unset."""
    return os.getenv("DISCORD_WEBHOOK_URL") or None


def get_delivery_timeout() -> float:
    """
    Return the per-request timeout for destination calls, in seconds.

    Falls back to the default when the variable is unset or not a positive
    number.
    """
    raw = os.getenv("DELIVERY_TIMEOUT_SECONDS", "").strip()
    if not raw:
        return _DEFAULT_TIMEOUT_SECONDS
    try:
        value = float(raw)
    except ValueError:
        return _DEFAULT_TIMEOUT_SECONDS
    return value if value > 0 else _DEFAULT_TIMEOUT_SECONDS


def get_log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()
