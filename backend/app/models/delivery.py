"""
Pydantic models for outbound chat webhook delivery.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel


class DeliveryState(str, Enum):
    ATTEMPTING = "attempting"
    WAITING = "waiting"
    DELIVERED = "delivered"
    FAILED = "failed"


class AllowedMentions(BaseModel):
    # Must stay empty: forwarded mail may contain "@everyone"
    parse: list[str] = []


class ChatWebhookMessage(BaseModel):
    """JSON body POSTed to the destination webhook."""

    content: str
    allowed_mentions: AllowedMentions = AllowedMentions()


class DeliveryOutcome(BaseModel):
    """
    Result of delivering one message.

    state is either DELIVERED or FAILED. For failures, status is the last
    HTTP status received (None when the destination was never reached) and
    body is the response text or the transport error.
    """

    state: DeliveryState
    status: Optional[int] = None
    body: Optional[str] = None

    @property
    def delivered(self) -> bool:
        return self.state == DeliveryState.DELIVERED

    @classmethod
    def success(cls, status: Optional[int] = None) -> "DeliveryOutcome":
        return cls(state=DeliveryState.DELIVERED, status=status)

    @classmethod
    def failure(cls, status: Optional[int], body: Optional[str]) -> "DeliveryOutcome":
        return cls(state=DeliveryState.FAILED, status=status, body=body)
