"""Telephony configuration record consumed by the core.

Values arrive already validated; this module only gives them a shape and
defaults. See `gateway.config` for how the process builds one from the
environment.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, PositiveInt

from telephony.types import ChunkMode, ChunkOptions, ProviderName


class TwilioConfig(BaseModel):
    account_sid: Optional[str] = None
    auth_token: Optional[str] = None
    # Sender pool; replaces From on outbound messages when set
    messaging_service_sid: Optional[str] = None


class TelnyxConfig(BaseModel):
    api_key: Optional[str] = None
    messaging_profile_id: Optional[str] = None
    # Base64 Ed25519 key used to verify webhooks
    public_key: Optional[str] = None
    # Call Control connection for outbound voice
    connection_id: Optional[str] = None


class PlivoConfig(BaseModel):
    auth_id: Optional[str] = None
    auth_token: Optional[str] = None


class SmsConfig(BaseModel):
    """Outbound chunking behaviour.

    `max_length` defaults to 1600 characters (about ten segments) to bound
    cost per reply.
    """

    chunk_mode: ChunkMode = ChunkMode.AUTO
    max_length: PositiveInt = 1600
    segment_numbering: bool = True

    def chunk_options(self) -> ChunkOptions:
        return ChunkOptions(
            mode=self.chunk_mode,
            max_length=self.max_length,
            segment_numbering=self.segment_numbering,
        )


class VoiceConfig(BaseModel):
    enabled: bool = False
    max_duration_seconds: PositiveInt = 300


class ServeConfig(BaseModel):
    """Webhook listener address and route prefixes."""

    port: int = 3335
    bind: str = "127.0.0.1"
    path: str = "/telephony/webhook"
    status_path: str = "/telephony/status"


class TelephonyConfig(BaseModel):
    """Top-level telephony configuration.

    Attributes:
        provider: Active provider.
        twilio / telnyx / plivo: Credentials for the matching provider.
        from_number: Default sender number in E.164 form.
        public_url: Externally visible base URL used when checking webhook
            signatures behind proxies and tunnels.
        skip_signature_verification: Accept unsigned webhooks. Development only.
    """

    provider: ProviderName = ProviderName.MOCK
    twilio: TwilioConfig = Field(default_factory=TwilioConfig)
    telnyx: TelnyxConfig = Field(default_factory=TelnyxConfig)
    plivo: PlivoConfig = Field(default_factory=PlivoConfig)
    from_number: Optional[str] = None
    sms: SmsConfig = Field(default_factory=SmsConfig)
    voice: VoiceConfig = Field(default_factory=VoiceConfig)
    serve: ServeConfig = Field(default_factory=ServeConfig)
    public_url: Optional[str] = None
    skip_signature_verification: bool = False
