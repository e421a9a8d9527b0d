"""Text utilities for the telephony gateway."""

from .sms_chunker import chunk_sms, chunk_sms_for_outbound, gsm7_length, is_gsm7

__all__ = [
    "chunk_sms",
    "chunk_sms_for_outbound",
    "gsm7_length",
    "is_gsm7",
]
