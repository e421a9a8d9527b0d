"""Process settings for the telephony gateway.

Every field defaults from an environment variable. A `.env` file at the
repository root is loaded first without overriding variables that are
already set.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from telephony.config import (
    PlivoConfig,
    ServeConfig,
    SmsConfig,
    TelephonyConfig,
    TelnyxConfig,
    TwilioConfig,
    VoiceConfig,
)
from telephony.types import ChunkMode, ProviderName


def _load_env_file() -> None:
    """Load .env from root directory if present."""
    env_path = Path(__file__).parent.parent / ".env"
    if not env_path.is_file():
        return
    for line in env_path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if stripped and not stripped.startswith("#") and "=" in stripped:
            key, value = stripped.split("=", 1)
            key, value = key.strip(), value.strip().strip("'\"")
            if key and value and key not in os.environ:
                os.environ[key] = value


_load_env_file()


DEFAULT_APP_NAME = "Telephony Gateway"
DEFAULT_APP_VERSION = "0.1.0"


def _env_int(name: str, fallback: int) -> int:
    try:
        return int(os.getenv(name, str(fallback)))
    except (TypeError, ValueError):
        return fallback


def _env_bool(name: str, fallback: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return fallback
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Gateway settings read from the environment."""

    # App metadata
    app_name: str = Field(default=DEFAULT_APP_NAME)
    app_version: str = Field(default=DEFAULT_APP_VERSION)
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    # Provider selection
    provider: ProviderName = Field(
        default_factory=lambda: ProviderName(os.getenv("TELEPHONY_PROVIDER", "mock").lower())
    )
    from_number: Optional[str] = Field(default_factory=lambda: os.getenv("TELEPHONY_FROM_NUMBER"))

    # Twilio configuration
    twilio_account_sid: Optional[str] = Field(default_factory=lambda: os.getenv("TWILIO_ACCOUNT_SID"))
    twilio_auth_token: Optional[str] = Field(default_factory=lambda: os.getenv("TWILIO_AUTH_TOKEN"))
    twilio_messaging_service_sid: Optional[str] = Field(
        default_factory=lambda: os.getenv("TWILIO_MESSAGING_SERVICE_SID")
    )

    # Telnyx configuration
    telnyx_api_key: Optional[str] = Field(default_factory=lambda: os.getenv("TELNYX_API_KEY"))
    telnyx_messaging_profile_id: Optional[str] = Field(
        default_factory=lambda: os.getenv("TELNYX_MESSAGING_PROFILE_ID")
    )
    telnyx_public_key: Optional[str] = Field(default_factory=lambda: os.getenv("TELNYX_PUBLIC_KEY"))
    telnyx_connection_id: Optional[str] = Field(default_factory=lambda: os.getenv("TELNYX_CONNECTION_ID"))

    # Plivo configuration
    plivo_auth_id: Optional[str] = Field(default_factory=lambda: os.getenv("PLIVO_AUTH_ID"))
    plivo_auth_token: Optional[str] = Field(default_factory=lambda: os.getenv("PLIVO_AUTH_TOKEN"))

    # Outbound SMS
    sms_chunk_mode: ChunkMode = Field(
        default_factory=lambda: ChunkMode(os.getenv("TELEPHONY_SMS_CHUNK_MODE", "auto").lower())
    )
    sms_max_length: int = Field(default_factory=lambda: _env_int("TELEPHONY_SMS_MAX_LENGTH", 1600))
    voice_enabled: bool = Field(default_factory=lambda: _env_bool("TELEPHONY_VOICE_ENABLED"))

    # Webhook server
    server_host: str = Field(default_factory=lambda: os.getenv("TELEPHONY_HOST", "127.0.0.1"))
    server_port: int = Field(default_factory=lambda: _env_int("TELEPHONY_PORT", 3335))
    webhook_path: str = Field(default_factory=lambda: os.getenv("TELEPHONY_WEBHOOK_PATH", "/telephony/webhook"))
    status_path: str = Field(default_factory=lambda: os.getenv("TELEPHONY_STATUS_PATH", "/telephony/status"))
    public_url: Optional[str] = Field(default_factory=lambda: os.getenv("TELEPHONY_PUBLIC_URL"))
    skip_signature_verification: bool = Field(
        default_factory=lambda: _env_bool("TELEPHONY_SKIP_SIGNATURE_VERIFICATION")
    )

    def to_telephony_config(self) -> TelephonyConfig:
        """Build the core configuration record from these settings."""
        return TelephonyConfig(
            provider=self.provider,
            twilio=TwilioConfig(
                account_sid=self.twilio_account_sid,
                auth_token=self.twilio_auth_token,
                messaging_service_sid=self.twilio_messaging_service_sid,
            ),
            telnyx=TelnyxConfig(
                api_key=self.telnyx_api_key,
                messaging_profile_id=self.telnyx_messaging_profile_id,
                public_key=self.telnyx_public_key,
                connection_id=self.telnyx_connection_id,
            ),
            plivo=PlivoConfig(auth_id=self.plivo_auth_id, auth_token=self.plivo_auth_token),
            from_number=self.from_number,
            sms=SmsConfig(chunk_mode=self.sms_chunk_mode, max_length=self.sms_max_length),
            voice=VoiceConfig(enabled=self.voice_enabled),
            serve=ServeConfig(
                port=self.server_port,
                bind=self.server_host,
                path=self.webhook_path,
                status_path=self.status_path,
            ),
            public_url=self.public_url,
            skip_signature_verification=self.skip_signature_verification,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
