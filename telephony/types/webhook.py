from __future__ import annotations

import time
from typing import Dict, List, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .events import NormalizedSmsEvent


def _now_ms() -> int:
    return int(time.time() * 1000)


class WebhookContext(BaseModel):
    """Snapshot of one inbound webhook request.

    Built once per request by the ingress server and handed to the active
    provider, first to `verify_webhook` and then to `parse_inbound_sms`.
    Header names are stored lower-cased and every header keeps all of its
    values, so lookups are case-insensitive.

    `received_at` is captured at construction. Event timestamps and any
    synthesized identifiers derive from it, which keeps parsing repeatable.

    Example:
        >>> from telephony.types import WebhookContext
        >>> ctx = WebhookContext(
        ...     headers={"X-Twilio-Signature": "abc"},
        ...     raw_body="Body=Hi",
        ...     url="https://example.com/telephony/webhook",
        ... )
        >>> ctx.header("x-twilio-signature")
        'abc'
    """

    model_config = ConfigDict(frozen=True)

    headers: Dict[str, List[str]] = Field(default_factory=dict)
    raw_body: str = ""
    url: str
    method: str = "POST"
    query: Dict[str, str] = Field(default_factory=dict)
    remote_address: Optional[str] = None
    received_at: int = Field(default_factory=_now_ms)

    @field_validator("headers", mode="before")
    @classmethod
    def _normalize_headers(
        cls, v: Optional[Mapping[str, Union[str, Sequence[str], None]]]
    ) -> Dict[str, List[str]]:
        normalized: Dict[str, List[str]] = {}
        for name, value in (v or {}).items():
            if value is None:
                continue
            values = [value] if isinstance(value, str) else list(value)
            normalized.setdefault(name.lower(), []).extend(values)
        return normalized

    def header(self, name: str) -> Optional[str]:
        """Return the first value of header `name`, or None when absent."""
        values = self.headers.get(name.lower())
        if not values:
            return None
        return values[0]

    @property
    def content_type(self) -> str:
        return self.header("content-type") or ""


class WebhookVerificationResult(BaseModel):
    """Outcome of a webhook signature check.

    `reason` is diagnostic text for logs only.
    """

    model_config = ConfigDict(frozen=True)

    ok: bool
    reason: Optional[str] = None

    @classmethod
    def success(cls) -> "WebhookVerificationResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, reason: str) -> "WebhookVerificationResult":
        return cls(ok=False, reason=reason)


class InboundSmsParseResult(BaseModel):
    """Events parsed from one webhook plus the acknowledgement to send back.

    Attributes:
        events: Normalized events in the order the provider reported them.
        status_code: HTTP status for the provider (200 when unset).
        response_body: Body for the provider ("OK" when unset).
        response_headers: Extra response headers, e.g. an XML content type.
    """

    model_config = ConfigDict(frozen=True)

    events: List[NormalizedSmsEvent] = Field(default_factory=list)
    status_code: Optional[int] = None
    response_body: Optional[str] = None
    response_headers: Dict[str, str] = Field(default_factory=dict)


