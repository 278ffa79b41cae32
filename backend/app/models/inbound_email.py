"""
Provider-agnostic inbound email model.

These models represent a normalized inbound email after provider-specific
fields have been resolved. The formatter works exclusively with these
models; only the adapter layer knows about the CloudMailin payload format.
"""

from typing import Optional
from pydantic import BaseModel


class InboundAttachment(BaseModel):
    """Attachment metadata. Content is never decoded, only counted and named."""

    file_name: Optional[str] = None
    content_type: Optional[str] = None
    size: Optional[int] = None


class InboundEmail(BaseModel):
    """
    Normalized inbound email.

    Every header field is optional: a missing value means the corresponding
    header line is omitted, never rendered as a placeholder.
    """

    sender: Optional[str] = None
    recipients: Optional[str] = None
    subject: Optional[str] = None
    date: Optional[str] = None
    message_id: Optional[str] = None
    body: str = ""
    attachments: list[InboundAttachment] = []
