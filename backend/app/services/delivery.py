"""
Chat webhook delivery service.

POSTs formatted messages to the destination webhook, retrying on rate
limits (429), server errors (5xx) and transport errors.

Each message is attempted up to MAX_ATTEMPTS times. Between attempts the
wait is taken from the destination's rate-limit hint when it sends one:

  1. Retry-After header as seconds ("2", "0.5")
  2. Retry-After header as an HTTP date (wait = date - now, floored at 0)
  3. "retry_after" field (seconds) in a JSON response body

and otherwise falls back to exponential backoff:
min(MAX_BACKOFF_SECONDS, BASE_BACKOFF_SECONDS * 2 ** attempt_index).

The decision logic (compute_retry_delay, is_retryable_status) is pure; the
only suspension point is _wait, awaited between attempts.
"""

import asyncio
import logging
import math
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional, Sequence

import httpx

from app.config import get_delivery_timeout
from app.models.delivery import ChatWebhookMessage, DeliveryOutcome, DeliveryState

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Retry policy
# ---------------------------------------------------------------------------

MAX_ATTEMPTS = 3
BASE_BACKOFF_SECONDS = 0.5
MAX_BACKOFF_SECONDS = 10.0

_JSON_HEADERS = {"Content-Type": "application/json"}


def is_retryable_status(status: int) -> bool:
    return status == 429 or status >= 500


def backoff_delay(attempt_index: int) -> float:
    """Exponential backoff for a 0-based attempt index, capped at MAX_BACKOFF_SECONDS."""
    return min(MAX_BACKOFF_SECONDS, BASE_BACKOFF_SECONDS * (2 ** attempt_index))


def _parse_seconds(value) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(seconds):
        return None
    return max(0.0, seconds)


def _parse_retry_after_header(value: str, now: datetime) -> Optional[float]:
    """
    Interpret a Retry-After header value, first as seconds, then as an
    HTTP date. Returns None if it is neither.
    """
    value = value.strip()
    if not value:
        return None

    seconds = _parse_seconds(value)
    if seconds is not None:
        return seconds

    try:
        retry_at = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if retry_at is None:
        return None
    if retry_at.tzinfo is None:
        retry_at = retry_at.replace(tzinfo=timezone.utc)
    return max(0.0, (retry_at - now).total_seconds())


def _parse_retry_after_body(response: httpx.Response) -> Optional[float]:
    """Read a "retry_after" (seconds) field from a JSON error body."""
    try:
        data = response.json()
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    return _parse_seconds(data.get("retry_after"))


def compute_retry_delay(
    response: Optional[httpx.Response],
    attempt_index: int,
    now: Optional[datetime] = None,
) -> float:
    """
    Return how long to wait (seconds) before the attempt after ``attempt_index``.

    ``response`` is None when the previous attempt never got an HTTP
    response (transport error); backoff is used in that case.
    """
    if response is not None:
        now = now or datetime.now(timezone.utc)

        header = response.headers.get("Retry-After")
        if header is not None:
            delay = _parse_retry_after_header(header, now)
            if delay is not None:
                return delay

        delay = _parse_retry_after_body(response)
        if delay is not None:
            return delay

    return backoff_delay(attempt_index)


# ---------------------------------------------------------------------------
# Delivery
# ---------------------------------------------------------------------------

def _make_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=get_delivery_timeout())


async def _wait(seconds: float) -> None:
    await asyncio.sleep(seconds)


async def _attempt_delivery(
    client: httpx.AsyncClient,
    message: str,
    destination_url: str,
) -> DeliveryOutcome:
    """
    Run the attempting → waiting → attempting ... loop for one message until
    it ends in DELIVERED or FAILED.
    """
    body = ChatWebhookMessage(content=message).model_dump()
    state = DeliveryState.ATTEMPTING
    attempt = 0
    delay = 0.0

    while True:
        if state == DeliveryState.WAITING:
            await _wait(delay)
            attempt += 1
            state = DeliveryState.ATTEMPTING
            continue

        final = attempt >= MAX_ATTEMPTS - 1

        try:
            response = await client.post(destination_url, json=body, headers=_JSON_HEADERS)
        except httpx.TransportError as exc:
            error = str(exc) or exc.__class__.__name__
            if final:
                logger.error(
                    "Destination unreachable after %d attempts: %s", attempt + 1, error
                )
                return DeliveryOutcome.failure(None, error)
            delay = compute_retry_delay(None, attempt)
            logger.warning(
                "Destination unreachable (attempt %d/%d), retrying in %.2fs: %s",
                attempt + 1, MAX_ATTEMPTS, delay, error,
            )
            state = DeliveryState.WAITING
            continue

        status = response.status_code
        if response.is_success:
            return DeliveryOutcome.success(status)

        if not is_retryable_status(status) or final:
            logger.error(
                "Destination rejected message with status %d (attempt %d/%d)",
                status, attempt + 1, MAX_ATTEMPTS,
            )
            return DeliveryOutcome.failure(status, response.text)

        delay = compute_retry_delay(response, attempt)
        logger.warning(
            "Destination returned %d (attempt %d/%d), retrying in %.2fs",
            status, attempt + 1, MAX_ATTEMPTS, delay,
        )
        state = DeliveryState.WAITING


async def deliver_message(
    message: str,
    destination_url: str,
    client: Optional[httpx.AsyncClient] = None,
) -> DeliveryOutcome:
    """
    Deliver a single message to the destination webhook.

    Pass ``client`` to reuse a connection pool across messages; otherwise a
    short-lived client is created for this call.
    """
    if client is not None:
        return await _attempt_delivery(client, message, destination_url)

    async with _make_client() as own_client:
        return await _attempt_delivery(own_client, message, destination_url)


async def deliver_all(
    messages: Sequence[str],
    destination_url: str,
) -> DeliveryOutcome:
    """
    Deliver ``messages`` strictly in order over one client.

    Stops at the first message that cannot be delivered and returns its
    outcome; later messages are not sent.
    """
    async with _make_client() as client:
        for index, message in enumerate(messages, start=1):
            outcome = await deliver_message(message, destination_url, client)
            if not outcome.delivered:
                logger.error(
                    "Delivery stopped at part %d/%d (status=%s)",
                    index, len(messages), outcome.status,
                )
                return outcome

    return DeliveryOutcome.success()
