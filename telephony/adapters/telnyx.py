from __future__ import annotations

import base64
import json
import time
from typing import Any, Callable, Dict, List, Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from telephony.adapters._http import DEFAULT_TIMEOUT_SECONDS, post_to_provider
from telephony.errors import ProviderConfigError
from telephony.types import (
    CallStatus,
    DeliveryStatusEvent,
    InboundSmsEvent,
    InboundSmsParseResult,
    InitiateCallParams,
    InitiateCallResult,
    MessageStatus,
    PayloadKind,
    ProviderName,
    SendMmsParams,
    SendSmsParams,
    SendSmsResult,
    WebhookContext,
    WebhookVerificationResult,
)

TELNYX_API_BASE = "https://api.telnyx.com/v2"
SIGNATURE_HEADER = "telnyx-signature-ed25519"
TIMESTAMP_HEADER = "telnyx-timestamp"
REPLAY_WINDOW_SECONDS = 300

# Raw Ed25519 public keys are 32 bytes; anything longer is treated as SPKI DER
_RAW_KEY_LENGTH = 32

_DELIVERY_EVENTS = {
    "message.sent": MessageStatus.SENT,
    "message.delivered": MessageStatus.DELIVERED,
    "message.failed": MessageStatus.FAILED,
}
_INBOUND_EVENT = "message.received"

_SEND_STATUS_MAP = {
    "queued": MessageStatus.QUEUED,
    "sending": MessageStatus.SENDING,
    "sent": MessageStatus.SENT,
    "delivered": MessageStatus.DELIVERED,
}


def map_telnyx_send_status(status: Optional[str]) -> MessageStatus:
    # Telnyx acknowledges with "queued" before async delivery events arrive
    return _SEND_STATUS_MAP.get(status or "", MessageStatus.QUEUED)


def classify_telnyx_event(event_type: Any) -> PayloadKind:
    if not isinstance(event_type, str):
        return PayloadKind.IGNORED
    if event_type in _DELIVERY_EVENTS:
        return PayloadKind.DELIVERY_STATUS
    if event_type == _INBOUND_EVENT:
        return PayloadKind.INBOUND_MESSAGE
    return PayloadKind.IGNORED


def load_public_key(encoded: str) -> Ed25519PublicKey:
    """Load a base64 Ed25519 public key, either raw or SPKI DER encoded."""
    key_bytes = base64.b64decode(encoded)
    if len(key_bytes) == _RAW_KEY_LENGTH:
        return Ed25519PublicKey.from_public_bytes(key_bytes)
    key = serialization.load_der_public_key(key_bytes)
    if not isinstance(key, Ed25519PublicKey):
        raise ValueError("Telnyx public key is not an Ed25519 key")
    return key


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _first_dict(value: Any) -> Dict[str, Any]:
    if isinstance(value, list) and value:
        return _as_dict(value[0])
    return {}


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


class TelnyxClient:
    """Telnyx v2 adapter implementing the TelephonyProvider protocol.

    Outbound calls use JSON bodies with Bearer auth. Webhooks are signed
    with Ed25519 over "{timestamp}|{raw body}"; verification requires the
    account's public key and rejects timestamps outside a five minute
    window before checking the signature.
    """

    name = ProviderName.TELNYX

    def __init__(
        self,
        api_key: Optional[str],
        *,
        messaging_profile_id: Optional[str] = None,
        public_key: Optional[str] = None,
        connection_id: Optional[str] = None,
        skip_signature_verification: bool = False,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not api_key:
            raise ProviderConfigError("Telnyx api_key is required")
        self.api_key = api_key
        self.messaging_profile_id = messaging_profile_id
        self.public_key = public_key
        self.connection_id = connection_id
        self.skip_signature_verification = skip_signature_verification
        self.timeout = timeout
        self._clock = clock

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def messages_endpoint(self) -> str:
        return f"{TELNYX_API_BASE}/messages"

    def calls_endpoint(self) -> str:
        return f"{TELNYX_API_BASE}/calls"

    # --- Webhook verification ---
    def verify_webhook(self, ctx: WebhookContext) -> WebhookVerificationResult:
        if self.skip_signature_verification:
            return WebhookVerificationResult.success()

        if not self.public_key:
            return WebhookVerificationResult.failure("No Telnyx public key configured for verification")

        signature = ctx.header(SIGNATURE_HEADER)
        if not signature:
            return WebhookVerificationResult.failure("Missing telnyx-signature-ed25519 header")
        timestamp = ctx.header(TIMESTAMP_HEADER)
        if not timestamp:
            return WebhookVerificationResult.failure("Missing telnyx-timestamp header")

        try:
            sent_at = int(timestamp)
        except ValueError:
            return WebhookVerificationResult.failure("Invalid telnyx-timestamp header")
        if abs(self._clock() - sent_at) > REPLAY_WINDOW_SECONDS:
            return WebhookVerificationResult.failure(
                f"Stale webhook timestamp (outside {REPLAY_WINDOW_SECONDS}s window)"
            )

        try:
            key = load_public_key(self.public_key)
            key.verify(
                base64.b64decode(signature),
                f"{timestamp}|{ctx.raw_body}".encode("utf-8"),
            )
        except InvalidSignature:
            return WebhookVerificationResult.failure("Signature mismatch")
        except Exception as e:
            return WebhookVerificationResult.failure(f"Verification error: {e}")
        return WebhookVerificationResult.success()

    # --- Normalization ---
    def parse_inbound_sms(self, ctx: WebhookContext) -> InboundSmsParseResult:
        """Normalize a Telnyx messaging webhook.

        Envelope: {"data": {"id", "event_type", "payload": {...}}}. Delivery
        events are message.sent/delivered/failed; inbound messages arrive as
        message.received. Other event types are acknowledged and dropped.
        """
        try:
            envelope = json.loads(ctx.raw_body)
        except (ValueError, RecursionError):
            return InboundSmsParseResult(status_code=400, response_body="Invalid JSON")

        data = _as_dict(envelope).get("data")
        if not isinstance(data, dict):
            return InboundSmsParseResult(status_code=200, response_body="")

        event_type = data.get("event_type")
        message = _as_dict(data.get("payload"))
        kind = classify_telnyx_event(event_type)

        events: List[Any] = []
        if kind is PayloadKind.DELIVERY_STATUS:
            error = _first_dict(message.get("errors"))
            events.append(
                DeliveryStatusEvent(
                    message_id=str(message.get("id") or data.get("id") or ""),
                    status=_DELIVERY_EVENTS[event_type],
                    error_code=_optional_str(error.get("code")),
                    error_message=_optional_str(error.get("title")),
                    timestamp=ctx.received_at,
                )
            )
        elif kind is PayloadKind.INBOUND_MESSAGE and message:
            media = message.get("media") if isinstance(message.get("media"), list) else []
            media_urls = [str(m["url"]) for m in media if isinstance(m, dict) and m.get("url")]
            events.append(
                InboundSmsEvent(
                    message_id=str(data.get("id") or message.get("id") or ""),
                    from_number=str(_as_dict(message.get("from")).get("phone_number") or ""),
                    to_number=str(_first_dict(message.get("to")).get("phone_number") or ""),
                    body=str(message.get("text") or ""),
                    media_urls=media_urls or None,
                    timestamp=ctx.received_at,
                )
            )

        return InboundSmsParseResult(events=events, status_code=200, response_body="")

    # --- Outbound ---
    def _message_body(self, params: SendSmsParams, message_type: str) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "from": params.from_number,
            "to": params.to,
            "text": params.body,
            "type": message_type,
        }
        if self.messaging_profile_id:
            body["messaging_profile_id"] = self.messaging_profile_id
        if params.status_callback:
            body["webhook_url"] = params.status_callback
        return body

    def _send_result(self, payload: Dict[str, Any]) -> SendSmsResult:
        data = _as_dict(payload.get("data"))
        recipient = _first_dict(data.get("to"))
        return SendSmsResult(
            message_id=str(data.get("id") or ""),
            status=map_telnyx_send_status(recipient.get("status")),
            provider=self.name,
        )

    async def send_sms(self, params: SendSmsParams) -> SendSmsResult:
        payload = await post_to_provider(
            self.name.value,
            "SMS send",
            self.messages_endpoint(),
            timeout=self.timeout,
            headers=self._headers(),
            json=self._message_body(params, "SMS"),
        )
        return self._send_result(payload)

    async def send_mms(self, params: SendMmsParams) -> SendSmsResult:
        body = self._message_body(params, "MMS")
        body["media_urls"] = list(params.media_urls)
        payload = await post_to_provider(
            self.name.value,
            "MMS send",
            self.messages_endpoint(),
            timeout=self.timeout,
            headers=self._headers(),
            json=body,
        )
        return self._send_result(payload)

    async def initiate_call(self, params: InitiateCallParams) -> InitiateCallResult:
        body: Dict[str, Any] = {
            "to": params.to,
            "from": params.from_number,
            "connection_id": self.connection_id or self.messaging_profile_id,
        }
        if params.webhook_url:
            body["webhook_url"] = params.webhook_url
        if params.timeout_sec:
            body["timeout_secs"] = params.timeout_sec

        payload = await post_to_provider(
            self.name.value,
            "call initiation",
            self.calls_endpoint(),
            timeout=self.timeout,
            headers=self._headers(),
            json=body,
        )
        data = _as_dict(payload.get("data"))
        return InitiateCallResult(
            call_id=str(data.get("call_control_id") or ""),
            status=CallStatus.INITIATED,
            provider=self.name,
        )
