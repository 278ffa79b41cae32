"""
HTTP Basic authentication for inbound relay webhooks.

The relay is configured with a "user:password" pair (CLOUDMAILIN_BASIC_AUTH)
and sends it on every request as ``Authorization: Basic <base64>``.
"""

import base64
import hmac
import logging
import re
from typing import Optional

from fastapi import Header, HTTPException

from app.config import get_basic_auth

logger = logging.getLogger(__name__)

_BASIC_RE = re.compile(r"^Basic\s+(.+)$", re.IGNORECASE)


def parse_basic_auth(authorization: Optional[str]) -> Optional[str]:
    """
    Return the base64 credential token from a Basic Authorization header,
    or None if the header is missing or uses another scheme.
    """
    if not authorization:
        return None
    match = _BASIC_RE.match(authorization.strip())
    if not match:
        return None
    return match.group(1).strip() or None


def credentials_match(authorization: Optional[str], expected_user_pass: str) -> bool:
    """
    Compare the provided credentials with ``expected_user_pass`` in
    constant time.
    """
    provided = parse_basic_auth(authorization)
    if not provided or not expected_user_pass:
        return False
    expected = base64.b64encode(expected_user_pass.encode("utf-8")).decode("ascii")
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("ascii"))


def verify_basic_auth(authorization: Optional[str] = Header(None)) -> None:
    """
    FastAPI dependency guarding the webhook endpoint.

    Raises 401 if the credentials are missing, unconfigured, or do not match.
    """
    expected = get_basic_auth()
    if not expected:
        logger.warning(
            "No webhook credentials configured (CLOUDMAILIN_BASIC_AUTH); "
            "all inbound webhook requests will be rejected"
        )
        raise HTTPException(status_code=401, detail="Invalid authorization")

    if not credentials_match(authorization, expected):
        logger.warning("Rejected inbound webhook with invalid credentials")
        raise HTTPException(status_code=401, detail="Invalid authorization")
