from __future__ import annotations

import asyncio
import json

import pytest

from telephony.adapters.mock import MockClient
from telephony.types import CallStatus, InitiateCallParams, MessageStatus, SendMmsParams, SendSmsParams
from tests.conftest import RECEIVED_AT, make_context


def test_always_verifies() -> None:
    assert MockClient().verify_webhook(make_context("anything")).ok is True


def test_parse_json_with_defaults() -> None:
    result = MockClient().parse_inbound_sms(make_context(json.dumps({"text": "hello"})))

    assert result.status_code == 200
    assert result.response_body == "OK"
    [event] = result.events
    assert event.body == "hello"
    assert event.from_number == "+15550000000"
    assert event.to_number == "+15550000001"
    assert event.message_id == f"mock-{RECEIVED_AT}"


def test_parse_explicit_fields() -> None:
    body = json.dumps({"messageId": "m-7", "from": "+1", "to": "+2", "body": "b", "text": "ignored"})
    [event] = MockClient().parse_inbound_sms(make_context(body)).events
    assert (event.message_id, event.from_number, event.to_number, event.body) == ("m-7", "+1", "+2", "b")


@pytest.mark.parametrize("raw", ["not json", "[1, 2]", "42"])
def test_parse_non_object_yields_no_events(raw: str) -> None:
    result = MockClient().parse_inbound_sms(make_context(raw))
    assert result.events == []
    assert result.status_code == 200


def test_parse_deeply_nested_json_yields_no_events() -> None:
    result = MockClient().parse_inbound_sms(make_context("[" * 100_000))
    assert result.events == []
    assert result.status_code == 200


@pytest.mark.asyncio
async def test_sequential_identifiers_and_log() -> None:
    mock = MockClient()
    sms = SendSmsParams(to="+1", from_number="+2", body="one")
    mms = SendMmsParams(to="+1", from_number="+2", body="two", media_urls=["https://m/1"])

    first = await mock.send_sms(sms)
    second = await mock.send_mms(mms)
    call = await mock.initiate_call(InitiateCallParams(to="+1", from_number="+2"))

    assert first.message_id == "mock-msg-1"
    assert first.status is MessageStatus.SENT
    assert first.segments == 1
    assert second.message_id == "mock-mms-2"
    assert call.call_id == "mock-call-1"
    assert call.status is CallStatus.INITIATED
    assert mock.sent_messages == [sms, mms]
    assert len(mock.initiated_calls) == 1


@pytest.mark.asyncio
async def test_instances_do_not_share_counters() -> None:
    a, b = MockClient(), MockClient()
    params = SendSmsParams(to="+1", from_number="+2", body="x")
    await a.send_sms(params)
    await a.send_sms(params)
    assert (await b.send_sms(params)).message_id == "mock-msg-1"


@pytest.mark.asyncio
async def test_concurrent_sends_get_unique_ids() -> None:
    mock = MockClient()
    params = SendSmsParams(to="+1", from_number="+2", body="x")
    results = await asyncio.gather(*(mock.send_sms(params) for _ in range(50)))
    assert len({r.message_id for r in results}) == 50
