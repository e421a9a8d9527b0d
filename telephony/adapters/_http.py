from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import httpx

from telephony.errors import ProviderSendError

DEFAULT_TIMEOUT_SECONDS = 15.0


async def post_to_provider(
    provider: str,
    operation: str,
    url: str,
    *,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    auth: Optional[Tuple[str, str]] = None,
    headers: Optional[Dict[str, str]] = None,
    data: Optional[Dict[str, Any]] = None,
    json: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """POST to a provider REST API and return the decoded JSON object.

    `data` is sent form-encoded (list values repeat the key), `json` as a
    JSON body. Transport errors and non-2xx responses are raised as
    `ProviderSendError` naming the provider and operation.
    """
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.post(url, auth=auth, headers=headers, data=data, json=json)
    except httpx.RequestError as e:
        raise ProviderSendError(provider, operation, body=f"{type(e).__name__}: {e}") from e

    if not response.is_success:
        raise ProviderSendError(provider, operation, response.status_code, response.text)

    try:
        payload = response.json()
    except ValueError as e:
        raise ProviderSendError(provider, operation, response.status_code, response.text) from e
    return payload if isinstance(payload, dict) else {}
