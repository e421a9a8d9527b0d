from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

from .enums import CallStatus, MessageStatus, ProviderName


class SendSmsResult(BaseModel):
    """Standardized result returned by adapters after a successful send.

    Attributes:
        message_id: Provider-assigned identifier for the outbound message.
        status: Normalized status from the provider's synchronous response.
        provider: Which adapter handled the send.
        segments: Segment count, when the provider's API reports one.

    Example:
        >>> from telephony.types import SendSmsResult, MessageStatus, ProviderName
        >>> SendSmsResult(message_id="SM1", status=MessageStatus.QUEUED, provider=ProviderName.TWILIO)
    """

    model_config = ConfigDict(frozen=True)

    message_id: str
    status: MessageStatus
    provider: ProviderName
    segments: Optional[int] = None


class InitiateCallResult(BaseModel):
    """Result of a voice call request."""

    model_config = ConfigDict(frozen=True)

    call_id: str
    status: CallStatus
    provider: ProviderName
