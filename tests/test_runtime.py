from __future__ import annotations

import json
from typing import Any, List

import httpx
import pytest

from gateway.runtime import create_telephony_runtime
from telephony.adapters.mock import MockClient
from telephony.config import ServeConfig, TelephonyConfig
from telephony.errors import ProviderConfigError
from telephony.types import ProviderName


@pytest.mark.asyncio
async def test_runtime_serves_webhooks() -> None:
    events: List[Any] = []
    config = TelephonyConfig(serve=ServeConfig(port=0))
    runtime = await create_telephony_runtime(config, events.append)
    try:
        assert isinstance(runtime.provider, MockClient)
        assert runtime.port != 0
        assert runtime.webhook_url == f"http://127.0.0.1:{runtime.port}/telephony/webhook"

        async with httpx.AsyncClient() as client:
            health = await client.get(runtime.webhook_url.replace("/telephony/webhook", "/health"))
            r = await client.post(runtime.webhook_url, content=json.dumps({"body": "ping"}))

        assert health.json() == {"ok": True, "provider": "mock"}
        assert r.status_code == 200
        assert [e.body for e in events] == ["ping"]
    finally:
        await runtime.stop()


@pytest.mark.asyncio
async def test_runtime_fails_before_binding_without_credentials() -> None:
    with pytest.raises(ProviderConfigError):
        await create_telephony_runtime(TelephonyConfig(provider=ProviderName.TWILIO))
