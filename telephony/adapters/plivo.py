from __future__ import annotations

import base64
import hashlib
import hmac
import json
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import parse_qsl

from telephony.adapters._http import DEFAULT_TIMEOUT_SECONDS, post_to_provider
from telephony.adapters._signing import resolve_signed_url, signatures_match
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

PLIVO_API_BASE = "https://api.plivo.com/v1"
SIGNATURE_HEADER = "x-plivo-signature-v3"
NONCE_HEADER = "x-plivo-signature-v3-nonce"

EMPTY_XML = "<Response></Response>"
XML_HEADERS = {"Content-Type": "application/xml"}

_STATUS_MAP = {
    "queued": MessageStatus.QUEUED,
    "sent": MessageStatus.SENT,
    "delivered": MessageStatus.DELIVERED,
    "undelivered": MessageStatus.UNDELIVERED,
    "failed": MessageStatus.FAILED,
    "rejected": MessageStatus.FAILED,
}


def map_plivo_status(status: Optional[str]) -> MessageStatus:
    return _STATUS_MAP.get((status or "").lower(), MessageStatus.UNKNOWN)


def compute_plivo_signature(auth_token: str, url: str, nonce: str, raw_body: str) -> str:
    """Plivo V3 signature: base64 HMAC-SHA256 over URL + nonce + raw body."""
    signing_string = url + nonce + raw_body
    digest = hmac.new(auth_token.encode("utf-8"), signing_string.encode("utf-8"), hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def read_plivo_fields(ctx: WebhookContext) -> Optional[Dict[str, Any]]:
    """Decode the webhook body by content type; None means malformed JSON."""
    if "application/json" in ctx.content_type:
        try:
            body = json.loads(ctx.raw_body)
        except (ValueError, RecursionError):
            return None
        return body if isinstance(body, dict) else {}

    fields: Dict[str, Any] = {}
    for key, value in parse_qsl(ctx.raw_body, keep_blank_values=True):
        fields.setdefault(key, value)
    return fields


def _text_field(fields: Mapping[str, Any], key: str) -> str:
    value = fields.get(key)
    return "" if value is None else str(value)


def is_delivery_report(fields: Mapping[str, Any]) -> bool:
    """DLRs say Type=dlr, or carry a message id without any text."""
    if fields.get("Type") == "dlr":
        return True
    return not _text_field(fields, "Text") and bool(_text_field(fields, "MessageUUID"))


def classify_plivo_payload(fields: Mapping[str, Any]) -> PayloadKind:
    if is_delivery_report(fields):
        return PayloadKind.DELIVERY_STATUS
    if _text_field(fields, "MessageUUID") or _text_field(fields, "Text"):
        return PayloadKind.INBOUND_MESSAGE
    return PayloadKind.IGNORED


def split_media_urls(raw: Any) -> List[str]:
    if not raw:
        return []
    return [url.strip() for url in str(raw).split(",") if url.strip()]


class PlivoClient:
    """Plivo adapter implementing the TelephonyProvider protocol.

    Uses the Plivo REST API with JSON bodies and Basic auth
    (AuthId:AuthToken). Webhooks are verified with the V3 HMAC-SHA256
    scheme and may be either JSON or form-encoded.
    """

    name = ProviderName.PLIVO

    def __init__(
        self,
        auth_id: Optional[str],
        auth_token: Optional[str],
        *,
        public_url: Optional[str] = None,
        skip_signature_verification: bool = False,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        if not auth_id or not auth_token:
            raise ProviderConfigError("Plivo auth_id and auth_token are required")
        self.auth_id = auth_id
        self.auth_token = auth_token
        self.public_url = public_url
        self.skip_signature_verification = skip_signature_verification
        self.timeout = timeout

    @property
    def _auth(self) -> tuple[str, str]:
        return (self.auth_id, self.auth_token)

    def messages_endpoint(self) -> str:
        return f"{PLIVO_API_BASE}/Account/{self.auth_id}/Message/"

    def calls_endpoint(self) -> str:
        return f"{PLIVO_API_BASE}/Account/{self.auth_id}/Call/"

    # --- Webhook verification ---
    def verify_webhook(self, ctx: WebhookContext) -> WebhookVerificationResult:
        if self.skip_signature_verification:
            return WebhookVerificationResult.success()

        signature = ctx.header(SIGNATURE_HEADER)
        if not signature:
            return WebhookVerificationResult.failure("Missing X-Plivo-Signature-V3 header")
        nonce = ctx.header(NONCE_HEADER)
        if not nonce:
            return WebhookVerificationResult.failure("Missing X-Plivo-Signature-V3-Nonce header")

        url = resolve_signed_url(ctx.url, self.public_url)
        expected = compute_plivo_signature(self.auth_token, url, nonce, ctx.raw_body)
        if not signatures_match(expected, signature):
            return WebhookVerificationResult.failure("Signature mismatch")
        return WebhookVerificationResult.success()

    # --- Normalization ---
    def parse_inbound_sms(self, ctx: WebhookContext) -> InboundSmsParseResult:
        fields = read_plivo_fields(ctx)
        if fields is None:
            return InboundSmsParseResult(status_code=400, response_body="Invalid JSON")

        message_uuid = _text_field(fields, "MessageUUID")
        kind = classify_plivo_payload(fields)

        events: List[Any] = []
        if kind is PayloadKind.DELIVERY_STATUS:
            events.append(
                DeliveryStatusEvent(
                    message_id=message_uuid,
                    status=map_plivo_status(_text_field(fields, "Status") or "unknown"),
                    timestamp=ctx.received_at,
                )
            )
        elif kind is PayloadKind.INBOUND_MESSAGE:
            media_urls = split_media_urls(fields.get("MediaUrls"))
            events.append(
                InboundSmsEvent(
                    message_id=message_uuid or f"plivo-{ctx.received_at}",
                    from_number=_text_field(fields, "From"),
                    to_number=_text_field(fields, "To"),
                    body=_text_field(fields, "Text"),
                    media_urls=media_urls or None,
                    timestamp=ctx.received_at,
                )
            )

        return InboundSmsParseResult(
            events=events,
            status_code=200,
            response_body=EMPTY_XML,
            response_headers=XML_HEADERS,
        )

    # --- Outbound ---
    def _message_body(self, params: SendSmsParams) -> Dict[str, Any]:
        body: Dict[str, Any] = {"src": params.from_number, "dst": params.to, "text": params.body}
        if params.status_callback:
            body["url"] = params.status_callback
        return body

    def _send_result(self, payload: Dict[str, Any]) -> SendSmsResult:
        uuids = payload.get("message_uuid")
        message_id = str(uuids[0]) if isinstance(uuids, list) and uuids else ""
        # The synchronous REST ack only means Plivo accepted the message
        return SendSmsResult(message_id=message_id, status=MessageStatus.QUEUED, provider=self.name)

    async def send_sms(self, params: SendSmsParams) -> SendSmsResult:
        payload = await post_to_provider(
            self.name.value,
            "SMS send",
            self.messages_endpoint(),
            timeout=self.timeout,
            auth=self._auth,
            json=self._message_body(params),
        )
        return self._send_result(payload)

    async def send_mms(self, params: SendMmsParams) -> SendSmsResult:
        body = self._message_body(params)
        body["type"] = "mms"
        body["media_urls"] = list(params.media_urls)
        payload = await post_to_provider(
            self.name.value,
            "MMS send",
            self.messages_endpoint(),
            timeout=self.timeout,
            auth=self._auth,
            json=body,
        )
        return self._send_result(payload)

    async def initiate_call(self, params: InitiateCallParams) -> InitiateCallResult:
        body: Dict[str, Any] = {"from": params.from_number, "to": params.to}
        if params.webhook_url:
            body["answer_url"] = params.webhook_url
        if params.timeout_sec:
            body["ring_timeout"] = params.timeout_sec

        payload = await post_to_provider(
            self.name.value,
            "call initiation",
            self.calls_endpoint(),
            timeout=self.timeout,
            auth=self._auth,
            json=body,
        )
        return InitiateCallResult(
            call_id=str(payload.get("request_uuid") or ""),
            status=CallStatus.INITIATED,
            provider=self.name,
        )
