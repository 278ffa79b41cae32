"""
Mail relay API
FastAPI application relaying inbound-email webhooks to a chat webhook.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import get_basic_auth, get_destination_webhook_url, get_log_level
from app.routers import webhooks

# Configure logging to output to console
logging.basicConfig(
    level=get_log_level(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Mail Relay API",
    description="Relays inbound email notifications to a chat webhook",
    version="0.1.0",
)


@app.exception_handler(StarletteHTTPException)
async def plain_text_http_error(request: Request, exc: StarletteHTTPException):
    """
    Render HTTP errors as plain text, the way the relay expects them.

    Unknown routes and known paths hit with the wrong method are both
    reported as 404.
    """
    if exc.status_code in (404, 405):
        return PlainTextResponse("Not found", status_code=404)
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)


app.include_router(webhooks.router, prefix="/webhooks", tags=["webhooks"])


@app.on_event("startup")
async def log_startup_config() -> None:
    """Warn early when a required secret is missing."""
    if not get_basic_auth():
        logger.warning("CLOUDMAILIN_BASIC_AUTH is not set; inbound webhooks will be rejected")
    if not get_destination_webhook_url():
        logger.warning("DISCORD_WEBHOOK_URL is not set; messages cannot be relayed")
    logger.info("Mail relay API started")


@app.get("/health", response_class=PlainTextResponse)
async def health():
    return "ok"
