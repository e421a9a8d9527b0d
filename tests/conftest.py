from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Union

import pytest
from fastapi.testclient import TestClient

from gateway.app import create_app
from gateway.config import get_settings
from telephony.adapters.mock import MockClient
from telephony.adapters.registry import AdapterRegistry
from telephony.config import ServeConfig
from telephony.types import WebhookContext

RECEIVED_AT = 1_700_000_000_000


@pytest.fixture(autouse=True)
def test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENV", "test")
    monkeypatch.delenv("TELEPHONY_PROVIDER", raising=False)
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def adapter_registry(monkeypatch: pytest.MonkeyPatch) -> Dict[str, Any]:
    """Give each test its own copy of the factory table."""
    registry = dict(AdapterRegistry._registry)
    monkeypatch.setattr(AdapterRegistry, "_registry", registry)
    return registry


def make_context(
    raw_body: str = "",
    headers: Optional[Mapping[str, Union[str, List[str]]]] = None,
    url: str = "https://example.com/telephony/webhook",
    received_at: int = RECEIVED_AT,
) -> WebhookContext:
    return WebhookContext(
        headers=dict(headers or {}),
        raw_body=raw_body,
        url=url,
        received_at=received_at,
    )


@pytest.fixture()
def received_events() -> List[Any]:
    return []


@pytest.fixture()
def mock_provider() -> MockClient:
    return MockClient()


@pytest.fixture()
def client(mock_provider: MockClient, received_events: List[Any]) -> TestClient:
    app = create_app(mock_provider, received_events.append, ServeConfig())
    return TestClient(app)


def form_headers(extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    headers = {"Content-Type": "application/x-www-form-urlencoded"}
    headers.update(extra or {})
    return headers
