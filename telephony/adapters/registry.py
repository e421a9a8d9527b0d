from __future__ import annotations

from typing import Callable, Dict, Union

from telephony.adapters.mock import MockClient
from telephony.adapters.plivo import PlivoClient
from telephony.adapters.telnyx import TelnyxClient
from telephony.adapters.twilio import TwilioClient
from telephony.config import TelephonyConfig
from telephony.errors import ProviderConfigError
from telephony.types import ProviderName, TelephonyProvider

ProviderFactory = Callable[[TelephonyConfig], TelephonyProvider]


def _twilio(config: TelephonyConfig) -> TelephonyProvider:
    return TwilioClient(
        config.twilio.account_sid,
        config.twilio.auth_token,
        messaging_service_sid=config.twilio.messaging_service_sid,
        public_url=config.public_url,
        skip_signature_verification=config.skip_signature_verification,
    )


def _telnyx(config: TelephonyConfig) -> TelephonyProvider:
    return TelnyxClient(
        config.telnyx.api_key,
        messaging_profile_id=config.telnyx.messaging_profile_id,
        public_key=config.telnyx.public_key,
        connection_id=config.telnyx.connection_id,
        skip_signature_verification=config.skip_signature_verification,
    )


def _plivo(config: TelephonyConfig) -> TelephonyProvider:
    return PlivoClient(
        config.plivo.auth_id,
        config.plivo.auth_token,
        public_url=config.public_url,
        skip_signature_verification=config.skip_signature_verification,
    )


def _mock(config: TelephonyConfig) -> TelephonyProvider:
    return MockClient()


class AdapterRegistry:
    """Registry of provider factories keyed by provider name.

    Each factory builds an adapter from a `TelephonyConfig` and raises
    `ProviderConfigError` when the provider's credentials are missing, so a
    misconfigured gateway fails at startup rather than on the first webhook.
    """

    _registry: Dict[str, ProviderFactory] = {
        ProviderName.TWILIO.value: _twilio,
        ProviderName.TELNYX.value: _telnyx,
        ProviderName.PLIVO.value: _plivo,
        ProviderName.MOCK.value: _mock,
    }

    @classmethod
    def create(cls, name: Union[ProviderName, str], config: TelephonyConfig) -> TelephonyProvider:
        key = name.value if isinstance(name, ProviderName) else name
        factory = cls._registry.get(key)
        if factory is None:
            raise ProviderConfigError(f"Unknown telephony provider: {key}")
        return factory(config)

    @classmethod
    def register(cls, name: str, factory: ProviderFactory) -> None:
        cls._registry[name] = factory

    @classmethod
    def names(cls) -> list[str]:
        return sorted(cls._registry)


def create_provider(config: TelephonyConfig) -> TelephonyProvider:
    """Build the adapter selected by `config.provider`."""
    return AdapterRegistry.create(config.provider, config)
