"""Core types for the telephony gateway.

This package centralizes enums, normalized events, webhook context and
results, outbound request/response models, and the provider protocol so the
rest of the codebase has one place to import vocabulary from.

Usage:
    from telephony.types import WebhookContext, InboundSmsEvent, TelephonyProvider
"""

from .enums import CallStatus, ChunkMode, MessageStatus, PayloadKind, ProviderName
from .events import DeliveryStatusEvent, InboundSmsEvent, NormalizedSmsEvent, SmsErrorEvent
from .messages import ChunkOptions, InitiateCallParams, SendMmsParams, SendSmsParams
from .protocols import TelephonyProvider, supports_voice
from .results import InitiateCallResult, SendSmsResult
from .webhook import InboundSmsParseResult, WebhookContext, WebhookVerificationResult

__all__ = [
    "ProviderName",
    "MessageStatus",
    "CallStatus",
    "ChunkMode",
    "PayloadKind",
    "InboundSmsEvent",
    "DeliveryStatusEvent",
    "SmsErrorEvent",
    "NormalizedSmsEvent",
    "SendSmsParams",
    "SendMmsParams",
    "InitiateCallParams",
    "ChunkOptions",
    "SendSmsResult",
    "InitiateCallResult",
    "WebhookContext",
    "WebhookVerificationResult",
    "InboundSmsParseResult",
    "TelephonyProvider",
    "supports_voice",
]
