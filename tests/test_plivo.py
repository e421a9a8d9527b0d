from __future__ import annotations

import base64
import hashlib
import hmac
import json
from typing import Any, Dict

import httpx
import pytest
import respx

from telephony.adapters.plivo import (
    EMPTY_XML,
    PlivoClient,
    classify_plivo_payload,
    is_delivery_report,
    map_plivo_status,
    split_media_urls,
)
from telephony.errors import ProviderConfigError, ProviderSendError
from telephony.types import (
    CallStatus,
    InitiateCallParams,
    MessageStatus,
    PayloadKind,
    SendMmsParams,
    SendSmsParams,
)
from tests.conftest import RECEIVED_AT, form_headers, make_context

AUTH_TOKEN = "plivo-token"
WEBHOOK_URL = "https://example.com/telephony/webhook"
JSON_HEADERS = {"Content-Type": "application/json"}


def sign(url: str, nonce: str, body: str, token: str = AUTH_TOKEN) -> str:
    digest = hmac.new(token.encode(), (url + nonce + body).encode(), hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


def signed_headers(body: str, nonce: str = "12345", url: str = WEBHOOK_URL) -> Dict[str, str]:
    return {
        "X-Plivo-Signature-V3": sign(url, nonce, body),
        "X-Plivo-Signature-V3-Nonce": nonce,
    }


def make_client(**kwargs: Any) -> PlivoClient:
    return PlivoClient("MA123", AUTH_TOKEN, **kwargs)


def test_requires_credentials() -> None:
    with pytest.raises(ProviderConfigError):
        PlivoClient("MA123", "")


def test_verify_valid_signature() -> None:
    body = "From=15550001234&To=15550005678&Text=Hi&MessageUUID=u1"
    ctx = make_context(body, signed_headers(body))
    assert make_client().verify_webhook(ctx).ok is True


def test_verify_rejects_wrong_nonce() -> None:
    body = "Text=Hi"
    headers = signed_headers(body)
    headers["X-Plivo-Signature-V3-Nonce"] = "54321"
    result = make_client().verify_webhook(make_context(body, headers))
    assert result.ok is False
    assert result.reason == "Signature mismatch"


def test_verify_requires_both_headers() -> None:
    body = "Text=Hi"
    headers = signed_headers(body)
    only_signature = {"X-Plivo-Signature-V3": headers["X-Plivo-Signature-V3"]}
    only_nonce = {"X-Plivo-Signature-V3-Nonce": headers["X-Plivo-Signature-V3-Nonce"]}

    assert make_client().verify_webhook(make_context(body, only_signature)).ok is False
    assert make_client().verify_webhook(make_context(body, only_nonce)).ok is False


def test_verify_uses_public_url_host() -> None:
    body = "Text=Hi"
    ctx = make_context(body, signed_headers(body), url="http://10.0.0.5:3335/telephony/webhook")
    assert make_client().verify_webhook(ctx).ok is False
    assert make_client(public_url="https://example.com/").verify_webhook(ctx).ok is True


def test_verify_keeps_public_url_path_prefix() -> None:
    body = "Text=Hi"
    signed_url = "https://tunnel.example/gw/telephony/webhook?x=1"
    ctx = make_context(body, signed_headers(body, url=signed_url), url="http://10.0.0.5:3335/telephony/webhook?x=1")
    assert make_client(public_url="https://tunnel.example/gw/").verify_webhook(ctx).ok is True
    assert make_client(public_url="https://tunnel.example").verify_webhook(ctx).ok is False


def test_parse_json_inbound_message() -> None:
    body = json.dumps({"From": "15550001234", "To": "15550005678", "Text": "Hello", "MessageUUID": "u1"})
    result = make_client().parse_inbound_sms(make_context(body, JSON_HEADERS))

    assert result.status_code == 200
    assert result.response_body == EMPTY_XML
    assert result.response_headers == {"Content-Type": "application/xml"}
    [event] = result.events
    assert event.type == "inbound_sms"
    assert event.body == "Hello"
    assert event.message_id == "u1"
    assert event.from_number == "15550001234"
    assert event.timestamp == RECEIVED_AT


def test_parse_form_inbound_with_media() -> None:
    body = "From=1&To=2&Text=pics&MessageUUID=u2&MediaUrls=https%3A%2F%2Fm%2F1%2C%20https%3A%2F%2Fm%2F2"
    [event] = make_client().parse_inbound_sms(make_context(body, form_headers())).events
    assert event.media_urls == ["https://m/1", "https://m/2"]


def test_parse_inbound_without_uuid_synthesizes_id() -> None:
    [event] = make_client().parse_inbound_sms(make_context("From=1&To=2&Text=hey", form_headers())).events
    assert event.message_id == f"plivo-{RECEIVED_AT}"


def test_parse_delivery_report() -> None:
    body = "MessageUUID=u3&Status=rejected&Type=dlr"
    result = make_client().parse_inbound_sms(make_context(body, form_headers()))

    [event] = result.events
    assert event.type == "delivery_status"
    assert event.message_id == "u3"
    assert event.status is MessageStatus.FAILED
    assert result.response_body == EMPTY_XML


def test_parse_invalid_json() -> None:
    result = make_client().parse_inbound_sms(make_context("{oops", JSON_HEADERS))
    assert result.events == []
    assert result.status_code == 400


def test_parse_deeply_nested_json_is_rejected() -> None:
    result = make_client().parse_inbound_sms(make_context("[" * 100_000, JSON_HEADERS))
    assert result.events == []
    assert result.status_code == 400


def test_parse_empty_payload_is_acknowledged() -> None:
    result = make_client().parse_inbound_sms(make_context("", form_headers()))
    assert result.events == []
    assert result.status_code == 200


def test_parse_is_repeatable() -> None:
    ctx = make_context("From=1&To=2&Text=hey", form_headers())
    client = make_client()
    assert client.parse_inbound_sms(ctx) == client.parse_inbound_sms(ctx)


def test_payload_predicates() -> None:
    assert is_delivery_report({"Type": "dlr", "Text": "x"})
    assert is_delivery_report({"MessageUUID": "u1"})
    assert not is_delivery_report({"MessageUUID": "u1", "Text": "hi"})
    assert classify_plivo_payload({"Text": "hi"}) is PayloadKind.INBOUND_MESSAGE
    assert classify_plivo_payload({"From": "1"}) is PayloadKind.IGNORED
    assert split_media_urls(" a , ,b ") == ["a", "b"]
    assert split_media_urls(None) == []


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("queued", MessageStatus.QUEUED),
        ("sent", MessageStatus.SENT),
        ("delivered", MessageStatus.DELIVERED),
        ("undelivered", MessageStatus.UNDELIVERED),
        ("failed", MessageStatus.FAILED),
        ("rejected", MessageStatus.FAILED),
        ("read", MessageStatus.UNKNOWN),
    ],
)
def test_status_mapping(raw: str, expected: MessageStatus) -> None:
    assert map_plivo_status(raw) is expected


@pytest.mark.asyncio
@respx.mock
async def test_send_sms() -> None:
    client = make_client()
    route = respx.post(client.messages_endpoint()).mock(
        return_value=httpx.Response(202, json={"message": "message(s) queued", "message_uuid": ["u10"]})
    )

    result = await client.send_sms(
        SendSmsParams(to="+1", from_number="+2", body="Hi", status_callback="https://example.com/s")
    )

    assert result.message_id == "u10"
    assert result.status is MessageStatus.QUEUED
    request = route.calls.last.request
    assert request.headers["Authorization"].startswith("Basic ")
    assert json.loads(request.content) == {"src": "+2", "dst": "+1", "text": "Hi", "url": "https://example.com/s"}


@pytest.mark.asyncio
@respx.mock
async def test_send_mms() -> None:
    client = make_client()
    route = respx.post(client.messages_endpoint()).mock(
        return_value=httpx.Response(202, json={"message_uuid": ["u11"]})
    )

    await client.send_mms(SendMmsParams(to="+1", from_number="+2", body="pic", media_urls=["https://m/1"]))

    sent = json.loads(route.calls.last.request.content)
    assert sent["type"] == "mms"
    assert sent["media_urls"] == ["https://m/1"]


@pytest.mark.asyncio
@respx.mock
async def test_send_failure_names_provider_and_status() -> None:
    client = make_client()
    respx.post(client.messages_endpoint()).mock(return_value=httpx.Response(401, text="unauthorized"))

    with pytest.raises(ProviderSendError) as exc_info:
        await client.send_sms(SendSmsParams(to="+1", from_number="+2", body="x"))

    assert "Plivo" in str(exc_info.value)
    assert "401" in str(exc_info.value)


@pytest.mark.asyncio
@respx.mock
async def test_initiate_call() -> None:
    client = make_client()
    route = respx.post(client.calls_endpoint()).mock(
        return_value=httpx.Response(201, json={"request_uuid": "call-1"})
    )

    result = await client.initiate_call(
        InitiateCallParams(to="+1", from_number="+2", webhook_url="https://example.com/answer")
    )

    assert result.call_id == "call-1"
    assert result.status is CallStatus.INITIATED
    sent = json.loads(route.calls.last.request.content)
    assert sent["answer_url"] == "https://example.com/answer"
