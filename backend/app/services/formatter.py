"""
Chat message formatter.

Turns a normalized InboundEmail into one or more chat messages, each no
longer than the destination's hard per-message limit.

Layout of a single message:

    From: `Sender <sender@example.com>`
    Subject: **Hello**
    Date: `Mon, 16 Jan 2012 17:00:01 +0000`
    Attachments: `2` (a.txt, b.txt)

    <body>

When the body does not fit, it is split on whitespace into numbered parts.
Only the first part carries the header block:

    <header>

    [part 1/3]
    <chunk 1>

    [part 2/3]
    <chunk 2>
    ...

Everything here is pure: no I/O, no logging, identical input gives
identical output.
"""

from typing import Any

from app.models.inbound_email import InboundEmail
from app.services.inbound_email_adapter import normalize_webhook

# Discord rejects message content longer than this
MESSAGE_LIMIT = 2000

SEPARATOR = "\n\n"

# Worst-case marker, reserved up front so that part numbering never pushes
# a message over the limit
MAX_PARTS = 999
MARKER_RESERVE = len(f"[part {MAX_PARTS}/{MAX_PARTS}]\n")

_WHITESPACE = " \t\r\n"


# ---------------------------------------------------------------------------
# Header block
# ---------------------------------------------------------------------------

def _attachments_line(email: InboundEmail) -> str:
    count = len(email.attachments)
    names = [
        a.file_name.strip()
        for a in email.attachments
        if a.file_name and a.file_name.strip()
    ]
    if len(names) == count:
        return f"Attachments: `{count}` ({', '.join(names)})"
    return f"Attachments: `{count}`"


def build_header_block(email: InboundEmail) -> str:
    """
    Build the fixed-order header block: From, Subject, Date, Attachments.

    Lines whose source field is missing are omitted. Returns "" when no
    line applies.
    """
    lines = []
    if email.sender:
        lines.append(f"From: `{email.sender}`")
    if email.subject:
        lines.append(f"Subject: **{email.subject}**")
    if email.date:
        lines.append(f"Date: `{email.date}`")
    if email.attachments:
        lines.append(_attachments_line(email))
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Body splitting
# ---------------------------------------------------------------------------

def _find_break(text: str, limit: int) -> int:
    """
    Return the index of the whitespace character nearest to ``limit``
    (scanning backward), or -1 if there is none past the leading whitespace.

    Assumes len(text) > limit.
    """
    content_start = len(text) - len(text.lstrip(_WHITESPACE))
    for i in range(limit, content_start, -1):
        if text[i] in _WHITESPACE:
            return i
    return -1


def split_body(body: str, first_limit: int, rest_limit: int) -> list[str]:
    """
    Split ``body`` into chunks of at most ``first_limit`` characters for the
    first chunk and ``rest_limit`` for every later one.

    Splits on whitespace where possible and trims the whitespace at each cut.
    A run of text with no whitespace is hard-cut at the limit and the raw
    slices are kept, so no characters are lost. At most MAX_PARTS chunks are
    returned.
    """
    chunks: list[str] = []
    remaining = body
    limit = first_limit

    while remaining and len(chunks) < MAX_PARTS:
        if len(remaining) <= limit:
            chunks.append(remaining)
            break

        cut = _find_break(remaining, limit)
        if cut == -1:
            chunks.append(remaining[:limit])
            remaining = remaining[limit:]
        else:
            chunks.append(remaining[:cut].rstrip(_WHITESPACE))
            remaining = remaining[cut:].lstrip(_WHITESPACE)

        limit = rest_limit

    return chunks


# ---------------------------------------------------------------------------
# Message assembly
# ---------------------------------------------------------------------------

def format_email(email: InboundEmail, limit: int = MESSAGE_LIMIT) -> list[str]:
    """
    Format ``email`` into an ordered list of chat messages.

    Always returns at least one message and every message is at most
    ``limit`` characters long. A single-part message carries no part marker.
    """
    header = build_header_block(email)
    body = email.body

    if not body:
        return [header[:limit]]

    separator = SEPARATOR if header else ""
    if len(header) + len(separator) + len(body) <= limit:
        return [f"{header}{separator}{body}"]

    first_space = limit - len(header) - len(separator) - MARKER_RESERVE
    if first_space <= 0:
        # Header wins over body content
        return [header[:limit]]

    chunks = split_body(body, first_space, limit - MARKER_RESERVE)
    if len(chunks) == 1:
        return [f"{header}{separator}{chunks[0]}"]

    total = len(chunks)
    messages = [f"{header}{separator}[part 1/{total}]\n{chunks[0]}"]
    for index, chunk in enumerate(chunks[1:], start=2):
        messages.append(f"[part {index}/{total}]\n{chunk}")
    return messages


def format_payload(payload: Any, provider: str = "cloudmailin") -> list[str]:
    """Normalize a raw provider payload and format it into chat messages."""
    return format_email(normalize_webhook(payload, provider))
