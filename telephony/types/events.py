from __future__ import annotations

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .enums import MessageStatus


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Unix epoch milliseconds
    timestamp: int


class InboundSmsEvent(_Event):
    """An SMS or MMS received by one of our numbers.

    Attributes:
        message_id: Provider-assigned identifier (synthesized if the provider omitted it).
        from_number: Sender in E.164 form, as reported by the provider.
        to_number: Our receiving number in E.164 form.
        body: Message text, possibly empty for media-only MMS.
        media_urls: Attached media, when the provider reported any.
        num_segments: Carrier segment count, when the provider reported it.

    Example:
        >>> from telephony.types import InboundSmsEvent
        >>> InboundSmsEvent(message_id="SM1", from_number="+1", to_number="+2", body="Hi", timestamp=0)
    """

    type: Literal["inbound_sms"] = "inbound_sms"
    message_id: str
    from_number: str
    to_number: str
    body: str = ""
    media_urls: Optional[List[str]] = None
    num_segments: Optional[int] = None


class DeliveryStatusEvent(_Event):
    """A status change for a message we sent earlier."""

    type: Literal["delivery_status"] = "delivery_status"
    message_id: str
    status: MessageStatus
    error_code: Optional[str] = None
    error_message: Optional[str] = None


class SmsErrorEvent(_Event):
    """A provider-reported error not tied to a specific send."""

    type: Literal["sms_error"] = "sms_error"
    message_id: Optional[str] = None
    error_code: str
    error_message: str


NormalizedSmsEvent = Annotated[
    Union[InboundSmsEvent, DeliveryStatusEvent, SmsErrorEvent],
    Field(discriminator="type"),
]
