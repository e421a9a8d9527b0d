from __future__ import annotations

import json
import logging
import threading
from typing import List, Union

from telephony.types import (
    CallStatus,
    InboundSmsEvent,
    InboundSmsParseResult,
    InitiateCallParams,
    InitiateCallResult,
    MessageStatus,
    ProviderName,
    SendMmsParams,
    SendSmsParams,
    SendSmsResult,
    WebhookContext,
    WebhookVerificationResult,
)

logger = logging.getLogger(__name__)

DEFAULT_FROM = "+15550000000"
DEFAULT_TO = "+15550000001"


def _preview(text: str, limit: int) -> str:
    return text[:limit] + ("…" if len(text) > limit else "")


class MockClient:
    """Offline provider for development and tests.

    Accepts every webhook, turns a generic JSON body into one inbound
    message and records outbound calls in memory instead of sending them.
    Counters belong to the instance, so separate mocks never interfere.
    """

    name = ProviderName.MOCK

    def __init__(self) -> None:
        self.sent_messages: List[Union[SendSmsParams, SendMmsParams]] = []
        self.initiated_calls: List[InitiateCallParams] = []
        self._message_counter = 0
        self._call_counter = 0
        self._lock = threading.Lock()

    def verify_webhook(self, ctx: WebhookContext) -> WebhookVerificationResult:
        return WebhookVerificationResult.success()

    def parse_inbound_sms(self, ctx: WebhookContext) -> InboundSmsParseResult:
        """Parse {messageId?, from?, to?, body|text?} into a single inbound event."""
        try:
            body = json.loads(ctx.raw_body)
        except (ValueError, RecursionError):
            return InboundSmsParseResult(status_code=200, response_body="OK")
        if not isinstance(body, dict):
            return InboundSmsParseResult(status_code=200, response_body="OK")

        event = InboundSmsEvent(
            message_id=str(body.get("messageId") or f"mock-{ctx.received_at}"),
            from_number=str(body.get("from") or DEFAULT_FROM),
            to_number=str(body.get("to") or DEFAULT_TO),
            body=str(body.get("body") or body.get("text") or ""),
            timestamp=ctx.received_at,
        )
        return InboundSmsParseResult(events=[event], status_code=200, response_body="OK")

    def _record_message(self, params: Union[SendSmsParams, SendMmsParams]) -> int:
        with self._lock:
            self.sent_messages.append(params)
            self._message_counter += 1
            return self._message_counter

    async def send_sms(self, params: SendSmsParams) -> SendSmsResult:
        count = self._record_message(params)
        logger.info("Mock SMS to %s: %s", params.to, _preview(params.body, 80))
        return SendSmsResult(
            message_id=f"mock-msg-{count}",
            status=MessageStatus.SENT,
            provider=self.name,
            segments=1,
        )

    async def send_mms(self, params: SendMmsParams) -> SendSmsResult:
        count = self._record_message(params)
        logger.info(
            "Mock MMS to %s: %s [%d media]", params.to, _preview(params.body, 60), len(params.media_urls)
        )
        return SendSmsResult(
            message_id=f"mock-mms-{count}",
            status=MessageStatus.SENT,
            provider=self.name,
            segments=1,
        )

    async def initiate_call(self, params: InitiateCallParams) -> InitiateCallResult:
        with self._lock:
            self.initiated_calls.append(params)
            self._call_counter += 1
            count = self._call_counter
        logger.info("Mock call to %s from %s", params.to, params.from_number)
        return InitiateCallResult(call_id=f"mock-call-{count}", status=CallStatus.INITIATED, provider=self.name)
