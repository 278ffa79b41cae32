"""
Inbound email adapter service.

Normalizes provider-specific inbound webhook payloads into a single
provider-agnostic InboundEmail model.

Supported providers:
  - cloudmailin  (JSON "normalized" format)

Adding a new provider:
  1. Write a normalize_<provider>(payload: dict) -> InboundEmail function.
  2. Register it in _NORMALIZERS.
  3. The provider becomes reachable at POST /webhooks/<provider>.

CloudMailin field assumptions
-----------------------------
The payload is loosely typed and every key is optional. A value of the
wrong type is treated exactly like a missing one.

  headers      dict  — from, to, subject, date, message_id (or messageId)
  envelope     dict  — from, recipients (list) or to (str), spf, tls
  plain        str   — plain-text body
  reply_plain  str   — reply-only body, used when plain is empty
  attachments  list  — each item has:
                         file_name     str
                         content_type  str
                         size          int
                         disposition   str
                         content       str  (base64, ignored here)
"""

from typing import Any, Callable, Optional

from app.models.inbound_email import InboundAttachment, InboundEmail


# ---------------------------------------------------------------------------
# Optional-field accessors
# ---------------------------------------------------------------------------

def _get_mapping(source: Any, key: str) -> dict:
    """Return source[key] if it is a dict, else an empty dict."""
    if not isinstance(source, dict):
        return {}
    value = source.get(key)
    return value if isinstance(value, dict) else {}


def _get_text(source: dict, *keys: str) -> Optional[str]:
    """
    Return the first non-empty string found under any of ``keys``.

    The keys are tried in order, so the argument list doubles as the
    fallback chain for the field.
    """
    for key in keys:
        value = source.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def _normalize_recipients(value: Any) -> Optional[str]:
    """Join a recipient list with ", ", dropping empty entries."""
    if isinstance(value, list):
        joined = ", ".join(item for item in value if isinstance(item, str) and item)
        return joined or None
    if isinstance(value, str) and value:
        return value
    return None


def _normalize_attachment(raw: Any) -> InboundAttachment:
    if not isinstance(raw, dict):
        return InboundAttachment()
    size = raw.get("size")
    return InboundAttachment(
        file_name=_get_text(raw, "file_name"),
        content_type=_get_text(raw, "content_type"),
        size=size if isinstance(size, int) and not isinstance(size, bool) else None,
    )


# ---------------------------------------------------------------------------
# CloudMailin normalizer
# ---------------------------------------------------------------------------

def normalize_cloudmailin(payload: Any) -> InboundEmail:
    """
    Convert a CloudMailin JSON payload to InboundEmail.

    Fallback chains:
      sender      headers.from → envelope.from
      recipients  headers.to → envelope.recipients → envelope.to
      message_id  headers.message_id → headers.messageId
      body        plain → reply_plain → ""

    subject and date come from headers only.
    """
    if not isinstance(payload, dict):
        payload = {}

    headers = _get_mapping(payload, "headers")
    envelope = _get_mapping(payload, "envelope")

    recipients = _get_text(headers, "to")
    if recipients is None:
        recipients = _normalize_recipients(envelope.get("recipients"))
    if recipients is None:
        recipients = _normalize_recipients(envelope.get("to"))

    raw_attachments = payload.get("attachments")
    if not isinstance(raw_attachments, list):
        raw_attachments = []

    return InboundEmail(
        sender=_get_text(headers, "from") or _get_text(envelope, "from"),
        recipients=recipients,
        subject=_get_text(headers, "subject"),
        date=_get_text(headers, "date"),
        message_id=_get_text(headers, "message_id", "messageId"),
        body=_get_text(payload, "plain", "reply_plain") or "",
        attachments=[_normalize_attachment(a) for a in raw_attachments],
    )


# ---------------------------------------------------------------------------
# Registry and dispatcher
# ---------------------------------------------------------------------------

_NORMALIZERS: dict[str, Callable[[Any], InboundEmail]] = {
    "cloudmailin": normalize_cloudmailin,
}


def is_supported_provider(provider: str) -> bool:
    return provider.lower().strip() in _NORMALIZERS


def normalize_webhook(payload: Any, provider: str = "cloudmailin") -> InboundEmail:
    """
    Route to the correct normalizer for ``provider``.

    Raises ValueError for unknown provider names.
    """
    resolved = provider.lower().strip()

    normalizer = _NORMALIZERS.get(resolved)
    if normalizer is None:
        raise ValueError(
            f"Unknown email provider {resolved!r}. "
            f"Supported providers: {sorted(_NORMALIZERS)}"
        )

    return normalizer(payload)
