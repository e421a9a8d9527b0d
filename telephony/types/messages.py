from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, PositiveInt, field_validator

from .enums import ChunkMode


class SendSmsParams(BaseModel):
    """Outbound SMS request shared by all providers.

    `from_number` is ignored by providers that send through a configured
    sender pool (Twilio messaging services).

    Example:
        >>> from telephony.types import SendSmsParams
        >>> SendSmsParams(to="+15550005678", from_number="+15550001234", body="Hello")
    """

    model_config = ConfigDict(frozen=True)

    to: str
    from_number: str = ""
    body: str
    status_callback: Optional[str] = None


class SendMmsParams(SendSmsParams):
    """Outbound MMS request: an SMS plus at least one media URL."""

    media_urls: List[str]

    @field_validator("media_urls")
    @classmethod
    def _require_media(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("media_urls must contain at least one URL")
        return v


class InitiateCallParams(BaseModel):
    """Outbound voice call request.

    Fields:
        webhook_url: URL the provider fetches call instructions from
        timeout_sec: ring timeout before giving up
    """

    model_config = ConfigDict(frozen=True)

    to: str
    from_number: str
    webhook_url: Optional[str] = None
    timeout_sec: Optional[PositiveInt] = None


class ChunkOptions(BaseModel):
    """Options for splitting outbound text into SMS segments.

    Attributes:
        mode: auto, single or multi (see `ChunkMode`).
        max_length: Hard ceiling on total characters before truncation.
        segment_numbering: Prefix multi-part segments with "[i/n] ".
    """

    model_config = ConfigDict(frozen=True)

    mode: ChunkMode = ChunkMode.AUTO
    max_length: PositiveInt = 1600
    segment_numbering: bool = True
