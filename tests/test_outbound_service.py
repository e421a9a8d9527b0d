from __future__ import annotations

import pytest

from telephony.adapters.mock import MockClient
from telephony.config import SmsConfig, TelephonyConfig, VoiceConfig
from telephony.errors import TelephonyError
from telephony.services import OutboundSmsService
from telephony.types import ChunkMode, ProviderName, SendSmsParams, SendSmsResult


class SmsOnlyProvider:
    name = ProviderName.MOCK

    async def send_sms(self, params: SendSmsParams) -> SendSmsResult:
        raise NotImplementedError


def make_service(**overrides: object) -> tuple[OutboundSmsService, MockClient]:
    mock = MockClient()
    config = TelephonyConfig(from_number="+15550001234").model_copy(update=overrides)
    return OutboundSmsService(mock, config), mock


@pytest.mark.asyncio
async def test_send_text_sends_segments_in_order() -> None:
    service, mock = make_service()

    results = await service.send_text("+15550005678", "A" * 320, status_callback="https://example.com/s")

    assert [r.message_id for r in results] == ["mock-msg-1", "mock-msg-2", "mock-msg-3"]
    bodies = [m.body for m in mock.sent_messages]
    assert [b[:6] for b in bodies] == ["[1/3] ", "[2/3] ", "[3/3] "]
    assert all(m.from_number == "+15550001234" for m in mock.sent_messages)
    assert all(m.status_callback == "https://example.com/s" for m in mock.sent_messages)


@pytest.mark.asyncio
async def test_send_text_respects_single_mode() -> None:
    service, mock = make_service(sms=SmsConfig(chunk_mode=ChunkMode.SINGLE))
    results = await service.send_text("+1", "word " * 100)
    assert len(results) == 1
    assert len(mock.sent_messages[0].body) == 160


@pytest.mark.asyncio
async def test_send_text_empty_sends_nothing() -> None:
    service, mock = make_service()
    assert await service.send_text("+1", "") == []
    assert mock.sent_messages == []


@pytest.mark.asyncio
async def test_send_media() -> None:
    service, mock = make_service()
    result = await service.send_media("+1", ["https://m/1"], text="look")
    assert result.message_id == "mock-mms-1"
    assert mock.sent_messages[0].media_urls == ["https://m/1"]


@pytest.mark.asyncio
async def test_missing_sender_raises() -> None:
    service, _ = make_service(from_number=None)
    with pytest.raises(TelephonyError):
        await service.send_text("+1", "hi")


@pytest.mark.asyncio
async def test_start_call_requires_voice_enabled() -> None:
    service, _ = make_service()
    with pytest.raises(TelephonyError):
        await service.start_call("+1")

    service, mock = make_service(voice=VoiceConfig(enabled=True))
    result = await service.start_call("+1", webhook_url="https://example.com/voice", timeout_sec=25)
    assert result.call_id == "mock-call-1"
    assert mock.initiated_calls[0].timeout_sec == 25


@pytest.mark.asyncio
async def test_start_call_without_voice_capability() -> None:
    config = TelephonyConfig(from_number="+2", voice=VoiceConfig(enabled=True))
    service = OutboundSmsService(SmsOnlyProvider(), config)  # type: ignore[arg-type]
    with pytest.raises(TelephonyError, match="does not support voice"):
        await service.start_call("+1")
