from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from .enums import ProviderName
from .messages import SendMmsParams, SendSmsParams
from .results import SendSmsResult
from .webhook import InboundSmsParseResult, WebhookContext, WebhookVerificationResult


@runtime_checkable
class TelephonyProvider(Protocol):
    """Protocol for telephony providers.

    Concrete implementations encapsulate provider-specific HTTP calls and
    webhook formats so the ingress server and callers stay provider-agnostic.

    Responsibilities:
        - Verify incoming webhook authenticity (`verify_webhook`)
        - Normalize provider webhook bodies to events (`parse_inbound_sms`)
        - Send SMS and MMS through the provider's REST API

    `verify_webhook` and `parse_inbound_sms` are pure and never raise; every
    failure is expressed in their return values. `verify_webhook` must be
    called first and a failed verification means the parse result must not
    be trusted.

    Voice is optional. Adapters that can place calls also define
    `initiate_call(params: InitiateCallParams) -> InitiateCallResult`; use
    `supports_voice` before calling it.
    """

    name: ProviderName

    def verify_webhook(self, ctx: WebhookContext) -> WebhookVerificationResult:
        """Check the request signature. Never raises."""
        ...

    def parse_inbound_sms(self, ctx: WebhookContext) -> InboundSmsParseResult:
        """Normalize the webhook payload. Never raises."""
        ...

    async def send_sms(self, params: SendSmsParams) -> SendSmsResult:
        """Send an SMS; raise `ProviderSendError` on failure."""
        ...

    async def send_mms(self, params: SendMmsParams) -> SendSmsResult:
        """Send an MMS; raise `ProviderSendError` on failure."""
        ...


def supports_voice(provider: Any) -> bool:
    """Return True when `provider` can place voice calls."""
    return callable(getattr(provider, "initiate_call", None))
