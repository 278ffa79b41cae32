"""
Inbound relay webhook router.

Endpoints:
  POST /webhooks/{relay}   — relay webhook (auth: HTTP Basic)

Flow per request:
  1. verify Basic credentials (401 on mismatch)
  2. parse the JSON body (400 on malformed JSON)
  3. format the payload into one or more chat messages
  4. deliver each message in order, stopping at the first failure

Any delivery failure is answered with 502 so the relay redelivers the whole
notification; partial progress is not tracked.
"""

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import PlainTextResponse

from app.auth import verify_basic_auth
from app.config import DESTINATION_PLATFORM, get_destination_webhook_url
from app.services.delivery import deliver_all
from app.services.formatter import format_email
from app.services.inbound_email_adapter import is_supported_provider, normalize_webhook

logger = logging.getLogger(__name__)

router = APIRouter()


def _require_known_relay(relay: str) -> str:
    if not is_supported_provider(relay):
        raise HTTPException(status_code=404, detail="Not found")
    return relay


@router.post("/{relay}", response_class=PlainTextResponse)
async def receive_inbound_email(
    request: Request,
    provider: str = Depends(_require_known_relay),
    _auth: None = Depends(verify_basic_auth),
):
    """
    Relay an inbound-email notification to the destination chat webhook.

    Returns "ok" once every formatted part has been delivered, or 502 with
    "<platform> error: <status>" as soon as one part cannot be delivered.
    """
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.warning("Rejected %s webhook with malformed JSON body", provider)
        raise HTTPException(status_code=400, detail="Invalid JSON")

    destination_url = get_destination_webhook_url()
    if not destination_url:
        logger.error("DISCORD_WEBHOOK_URL is not configured; cannot relay message")
        raise HTTPException(status_code=503, detail="Destination webhook not configured")

    email = normalize_webhook(payload, provider)
    messages = format_email(email)
    logger.info(
        "Relaying %s message %s as %d part(s)",
        provider, email.message_id or "(no message id)", len(messages),
    )

    outcome = await deliver_all(messages, destination_url)
    if not outcome.delivered:
        status = outcome.status if outcome.status is not None else "unreachable"
        return PlainTextResponse(f"{DESTINATION_PLATFORM} error: {status}", status_code=502)

    return PlainTextResponse("ok")
