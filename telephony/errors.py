"""Exception taxonomy for the telephony core."""

from __future__ import annotations

from typing import Optional


class TelephonyError(RuntimeError):
    """Base for all telephony gateway errors."""


class ProviderConfigError(TelephonyError):
    """Required credentials for the selected provider are missing."""


class ProviderSendError(TelephonyError):
    """An outbound provider call failed.

    Raised for non-2xx API responses (with `status_code` and the response
    `body`) and for transport failures (`status_code` is None).
    """

    def __init__(
        self,
        provider: str,
        operation: str,
        status_code: Optional[int] = None,
        body: str = "",
    ) -> None:
        self.provider = provider
        self.operation = operation
        self.status_code = status_code
        self.body = body
        label = provider.capitalize()
        if status_code is None:
            message = f"{label} {operation} failed: {body}"
        else:
            message = f"{label} {operation} failed ({status_code}): {body}"
        super().__init__(message)


class BodyTooLargeError(TelephonyError):
    """Webhook body exceeded the ingress size ceiling."""

    def __init__(self, limit_bytes: int) -> None:
        self.limit_bytes = limit_bytes
        super().__init__(f"Request body too large (limit {limit_bytes} bytes)")


class BodyReadTimeoutError(TelephonyError):
    """Webhook body was not fully received within the read timeout."""

    def __init__(self, timeout_seconds: float) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Request body read timeout after {timeout_seconds:g}s")
