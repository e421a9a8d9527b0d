"""Outbound messaging on top of a telephony provider.

Long replies are chunked with the configured SMS options and sent one
segment at a time, in order. Provider errors propagate to the caller
unchanged; nothing here retries.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from telephony.config import TelephonyConfig
from telephony.errors import TelephonyError
from telephony.types import (
    InitiateCallParams,
    InitiateCallResult,
    SendMmsParams,
    SendSmsParams,
    SendSmsResult,
    TelephonyProvider,
    supports_voice,
)
from telephony.utils import chunk_sms

logger = logging.getLogger(__name__)


class OutboundSmsService:
    """Send text, media and calls through the active provider."""

    def __init__(self, provider: TelephonyProvider, config: TelephonyConfig) -> None:
        self.provider = provider
        self.config = config

    def _sender(self) -> str:
        if not self.config.from_number:
            raise TelephonyError("Telephony from_number not configured")
        return self.config.from_number

    async def send_text(
        self, to: str, text: str, status_callback: Optional[str] = None
    ) -> List[SendSmsResult]:
        """Chunk `text` and send every segment; returns one result per segment."""
        sender = self._sender()
        segments = chunk_sms(text, self.config.sms.chunk_options())
        results: List[SendSmsResult] = []
        for segment in segments:
            result = await self.provider.send_sms(
                SendSmsParams(to=to, from_number=sender, body=segment, status_callback=status_callback)
            )
            results.append(result)
        logger.debug("Sent %d segment(s) to %s via %s", len(results), to, self.provider.name)
        return results

    async def send_media(
        self,
        to: str,
        media_urls: Sequence[str],
        text: str = "",
        status_callback: Optional[str] = None,
    ) -> SendSmsResult:
        """Send one MMS carrying `text` as its body."""
        return await self.provider.send_mms(
            SendMmsParams(
                to=to,
                from_number=self._sender(),
                body=text,
                media_urls=list(media_urls),
                status_callback=status_callback,
            )
        )

    async def start_call(
        self, to: str, webhook_url: Optional[str] = None, timeout_sec: Optional[int] = None
    ) -> InitiateCallResult:
        if not self.config.voice.enabled:
            raise TelephonyError("Voice calls are disabled in telephony config")
        if not supports_voice(self.provider):
            raise TelephonyError(f"Provider {self.provider.name} does not support voice calls")
        params = InitiateCallParams(
            to=to, from_number=self._sender(), webhook_url=webhook_url, timeout_sec=timeout_sec
        )
        return await self.provider.initiate_call(params)  # type: ignore[attr-defined]
