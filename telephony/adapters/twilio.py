from __future__ import annotations

import base64
import hashlib
import hmac
import re
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

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"
SIGNATURE_HEADER = "x-twilio-signature"

# Empty TwiML: acknowledge without an auto-reply
EMPTY_TWIML = "<Response></Response>"
XML_HEADERS = {"Content-Type": "application/xml"}

_MEDIA_URL_KEY = re.compile(r"MediaUrl(0|[1-9][0-9]*)")

_STATUS_MAP = {
    "queued": MessageStatus.QUEUED,
    "accepted": MessageStatus.QUEUED,
    "sending": MessageStatus.SENDING,
    "sent": MessageStatus.SENT,
    "delivered": MessageStatus.DELIVERED,
    "undelivered": MessageStatus.UNDELIVERED,
    "failed": MessageStatus.FAILED,
}


def map_twilio_status(status: Optional[str]) -> MessageStatus:
    return _STATUS_MAP.get((status or "").lower(), MessageStatus.UNKNOWN)


def parse_form(raw_body: str) -> Dict[str, str]:
    """Decode a form body, keeping the first value of repeated keys."""
    fields: Dict[str, str] = {}
    for key, value in parse_qsl(raw_body, keep_blank_values=True):
        fields.setdefault(key, value)
    return fields


def _message_sid(fields: Mapping[str, str]) -> str:
    return fields.get("MessageSid") or fields.get("SmsSid") or ""


def _message_status(fields: Mapping[str, str]) -> str:
    return fields.get("MessageStatus") or fields.get("SmsStatus") or ""


def _parse_int(value: Optional[str]) -> Optional[int]:
    try:
        return int(value) if value else None
    except ValueError:
        return None


def media_urls_from_fields(fields: Mapping[str, str]) -> List[str]:
    """MediaUrl0..MediaUrl{NumMedia-1} in index order, skipping blank entries."""
    count = _parse_int(fields.get("NumMedia")) or 0
    indexed = []
    for key, value in fields.items():
        match = _MEDIA_URL_KEY.fullmatch(key)
        if match and int(match.group(1)) < count and value:
            indexed.append((int(match.group(1)), value))
    return [url for _, url in sorted(indexed)]


def is_status_callback(fields: Mapping[str, str]) -> bool:
    """Status callbacks carry a message status and no message body."""
    return bool(_message_status(fields)) and not fields.get("Body")


def classify_twilio_payload(fields: Mapping[str, str]) -> PayloadKind:
    if not _message_sid(fields):
        return PayloadKind.IGNORED
    if is_status_callback(fields):
        return PayloadKind.DELIVERY_STATUS
    return PayloadKind.INBOUND_MESSAGE


def compute_twilio_signature(auth_token: str, url: str, raw_body: str) -> str:
    """Twilio's request signature: base64 HMAC-SHA1 over URL + sorted params.

    Every POST parameter is appended as key followed by value, ordered by
    key, with no separators.
    """
    params = sorted(parse_qsl(raw_body, keep_blank_values=True), key=lambda kv: kv[0])
    signing_string = url + "".join(key + value for key, value in params)
    digest = hmac.new(auth_token.encode("utf-8"), signing_string.encode("utf-8"), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")


class TwilioClient:
    """Twilio adapter implementing the TelephonyProvider protocol.

    Notes:
    - Talks to the REST API directly with httpx; form-encoded bodies and
      Basic auth (AccountSid:AuthToken).
    - Webhooks are verified with the X-Twilio-Signature HMAC-SHA1 scheme.
      When `public_url` is set, its scheme and host are used for the signed
      URL because tunnels rewrite what we observe.
    - When a messaging service SID is configured it replaces `From` on every
      outbound message.
    """

    name = ProviderName.TWILIO

    def __init__(
        self,
        account_sid: Optional[str],
        auth_token: Optional[str],
        *,
        messaging_service_sid: Optional[str] = None,
        public_url: Optional[str] = None,
        skip_signature_verification: bool = False,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        if not account_sid or not auth_token:
            raise ProviderConfigError("Twilio account_sid and auth_token are required")
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.messaging_service_sid = messaging_service_sid
        self.public_url = public_url
        self.skip_signature_verification = skip_signature_verification
        self.timeout = timeout

    @property
    def _auth(self) -> tuple[str, str]:
        return (self.account_sid, self.auth_token)

    def messages_endpoint(self) -> str:
        return f"{TWILIO_API_BASE}/Accounts/{self.account_sid}/Messages.json"

    def calls_endpoint(self) -> str:
        return f"{TWILIO_API_BASE}/Accounts/{self.account_sid}/Calls.json"

    # --- Webhook verification ---
    def verify_webhook(self, ctx: WebhookContext) -> WebhookVerificationResult:
        if self.skip_signature_verification:
            return WebhookVerificationResult.success()

        signature = ctx.header(SIGNATURE_HEADER)
        if not signature:
            return WebhookVerificationResult.failure("Missing X-Twilio-Signature header")

        url = resolve_signed_url(ctx.url, self.public_url)
        expected = compute_twilio_signature(self.auth_token, url, ctx.raw_body)
        if not signatures_match(expected, signature):
            return WebhookVerificationResult.failure("Signature mismatch")
        return WebhookVerificationResult.success()

    # --- Normalization ---
    def parse_inbound_sms(self, ctx: WebhookContext) -> InboundSmsParseResult:
        """Normalize a Twilio messaging webhook.

        Twilio posts form-encoded fields: MessageSid, From, To, Body,
        NumMedia/MediaUrlN for inbound messages, and MessageStatus plus
        ErrorCode/ErrorMessage for status callbacks. Legacy Sms* names are
        accepted too.
        """
        fields = parse_form(ctx.raw_body)
        kind = classify_twilio_payload(fields)

        if kind is PayloadKind.DELIVERY_STATUS:
            events = [
                DeliveryStatusEvent(
                    message_id=_message_sid(fields),
                    status=map_twilio_status(_message_status(fields)),
                    error_code=fields.get("ErrorCode") or None,
                    error_message=fields.get("ErrorMessage") or None,
                    timestamp=ctx.received_at,
                )
            ]
        elif kind is PayloadKind.INBOUND_MESSAGE:
            media_urls = media_urls_from_fields(fields)
            events = [
                InboundSmsEvent(
                    message_id=_message_sid(fields),
                    from_number=fields.get("From", ""),
                    to_number=fields.get("To", ""),
                    body=fields.get("Body", ""),
                    media_urls=media_urls or None,
                    num_segments=_parse_int(fields.get("NumSegments")),
                    timestamp=ctx.received_at,
                )
            ]
        else:
            events = []

        return InboundSmsParseResult(
            events=events,
            status_code=200,
            response_body=EMPTY_TWIML,
            response_headers=XML_HEADERS,
        )

    # --- Outbound ---
    def _message_form(self, params: SendSmsParams) -> Dict[str, Any]:
        form: Dict[str, Any] = {"To": params.to, "Body": params.body}
        if self.messaging_service_sid:
            form["MessagingServiceSid"] = self.messaging_service_sid
        elif params.from_number:
            form["From"] = params.from_number
        else:
            raise ValueError("Twilio requires from_number when no messaging service is configured")
        if params.status_callback:
            form["StatusCallback"] = params.status_callback
        return form

    def _send_result(self, data: Dict[str, Any]) -> SendSmsResult:
        return SendSmsResult(
            message_id=str(data.get("sid") or ""),
            status=map_twilio_status(data.get("status")),
            provider=self.name,
            segments=_parse_int(str(data.get("num_segments") or "1")),
        )

    async def send_sms(self, params: SendSmsParams) -> SendSmsResult:
        """Send an SMS via POST /Accounts/{AccountSid}/Messages.json."""
        data = await post_to_provider(
            self.name.value,
            "SMS send",
            self.messages_endpoint(),
            timeout=self.timeout,
            auth=self._auth,
            data=self._message_form(params),
        )
        return self._send_result(data)

    async def send_mms(self, params: SendMmsParams) -> SendSmsResult:
        """Send an MMS; each media URL becomes a repeated MediaUrl field."""
        form = self._message_form(params)
        form["MediaUrl"] = list(params.media_urls)
        data = await post_to_provider(
            self.name.value,
            "MMS send",
            self.messages_endpoint(),
            timeout=self.timeout,
            auth=self._auth,
            data=form,
        )
        return self._send_result(data)

    async def initiate_call(self, params: InitiateCallParams) -> InitiateCallResult:
        form: Dict[str, Any] = {"To": params.to, "From": params.from_number}
        if params.webhook_url:
            form["Url"] = params.webhook_url
        if params.timeout_sec:
            form["Timeout"] = str(params.timeout_sec)

        data = await post_to_provider(
            self.name.value,
            "call initiation",
            self.calls_endpoint(),
            timeout=self.timeout,
            auth=self._auth,
            data=form,
        )
        status = CallStatus.QUEUED if data.get("status") == "queued" else CallStatus.INITIATED
        return InitiateCallResult(call_id=str(data.get("sid") or ""), status=status, provider=self.name)
