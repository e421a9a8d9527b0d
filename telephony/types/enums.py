from __future__ import annotations

from enum import Enum


class ProviderName(str, Enum):
    """Telephony providers the gateway can talk to.

    Each adapter instance reports exactly one of these via its `name`
    attribute; it never changes after construction.

    Example:
        >>> from telephony.types import ProviderName
        >>> ProviderName("twilio") is ProviderName.TWILIO
        True
    """

    TWILIO = "twilio"
    TELNYX = "telnyx"
    PLIVO = "plivo"
    MOCK = "mock"


class MessageStatus(str, Enum):
    """Normalized delivery status shared by every provider.

    Adapters map their provider-specific status strings into this set.
    Anything they do not recognize becomes UNKNOWN rather than an error.
    """

    QUEUED = "queued"
    SENDING = "sending"
    SENT = "sent"
    DELIVERED = "delivered"
    UNDELIVERED = "undelivered"
    FAILED = "failed"
    UNKNOWN = "unknown"


class CallStatus(str, Enum):
    """Outcome of asking a provider to place a voice call."""

    INITIATED = "initiated"
    QUEUED = "queued"
    FAILED = "failed"


class ChunkMode(str, Enum):
    """How outbound text longer than one SMS is handled.

    - AUTO: detect encoding and split at word boundaries
    - SINGLE: truncate to one SMS
    - MULTI: allow multi-part SMS
    """

    AUTO = "auto"
    SINGLE = "single"
    MULTI = "multi"


class PayloadKind(str, Enum):
    """What an adapter decided a webhook payload is, before building events."""

    INBOUND_MESSAGE = "inbound_message"
    DELIVERY_STATUS = "delivery_status"
    IGNORED = "ignored"
