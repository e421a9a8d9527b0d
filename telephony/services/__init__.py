"""Services package for the telephony gateway."""

from .outbound import OutboundSmsService

__all__ = [
    "OutboundSmsService",
]
