from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import PlainTextResponse

from telephony.config import ServeConfig
from telephony.errors import BodyReadTimeoutError, BodyTooLargeError
from telephony.types import NormalizedSmsEvent, TelephonyProvider, WebhookContext

logger = logging.getLogger(__name__)

router = APIRouter(tags=["webhooks"])

MAX_BODY_BYTES = 512 * 1024
BODY_READ_TIMEOUT_SECONDS = 30.0

WebhookEventHandler = Callable[[NormalizedSmsEvent], Union[None, Awaitable[None]]]

_ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


async def read_body(
    request: Request,
    max_bytes: int = MAX_BODY_BYTES,
    timeout: float = BODY_READ_TIMEOUT_SECONDS,
) -> bytes:
    """Read the request body, bounded by `max_bytes` and `timeout`.

    A declared Content-Length above the ceiling is rejected before reading.
    """
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > max_bytes:
        raise BodyTooLargeError(max_bytes)

    async def _collect() -> bytes:
        buffer = bytearray()
        async for chunk in request.stream():
            buffer.extend(chunk)
            if len(buffer) > max_bytes:
                raise BodyTooLargeError(max_bytes)
        return bytes(buffer)

    try:
        return await asyncio.wait_for(_collect(), timeout)
    except asyncio.TimeoutError as exc:
        raise BodyReadTimeoutError(timeout) from exc


def build_context(request: Request, raw_body: bytes) -> WebhookContext:
    headers: Dict[str, List[str]] = {}
    for raw_name, raw_value in request.headers.raw:
        headers.setdefault(raw_name.decode("latin-1").lower(), []).append(raw_value.decode("latin-1"))
    return WebhookContext(
        headers=headers,
        raw_body=raw_body.decode("utf-8", errors="replace"),
        url=str(request.url),
        method=request.method,
        query=dict(request.query_params),
        remote_address=request.client.host if request.client else None,
    )


async def dispatch_events(events: List[Any], on_event: Optional[WebhookEventHandler]) -> None:
    """Hand each event to the handler; a failing event never blocks its siblings."""
    if on_event is None:
        return
    for event in events:
        try:
            outcome = on_event(event)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception:
            logger.exception("Error processing %s event", event.type)


def _matches_route(path: str, serve: ServeConfig) -> bool:
    return path.startswith(serve.path) or path.startswith(serve.status_path)


@router.api_route("/{full_path:path}", methods=_ALL_METHODS)
async def webhook(request: Request, full_path: str) -> PlainTextResponse:
    """Verify, parse and dispatch a provider webhook.

    Inbound messages and status callbacks share this pipeline; the parsed
    event type decides what each payload is, not the path it arrived on.
    """
    serve: ServeConfig = request.app.state.serve
    provider: TelephonyProvider = request.app.state.provider

    if not _matches_route(request.url.path, serve):
        raise HTTPException(status_code=404, detail="Not Found")
    if request.method != "POST":
        raise HTTPException(status_code=405, detail="Method Not Allowed")

    raw_body = await read_body(request)
    ctx = build_context(request, raw_body)

    verification = provider.verify_webhook(ctx)
    if not verification.ok:
        logger.warning("Webhook verification failed: %s", verification.reason)
        raise HTTPException(status_code=401, detail="Unauthorized")

    result = provider.parse_inbound_sms(ctx)
    await dispatch_events(result.events, request.app.state.on_event)

    return PlainTextResponse(
        result.response_body if result.response_body is not None else "OK",
        status_code=result.status_code or 200,
        headers=result.response_headers,
    )
