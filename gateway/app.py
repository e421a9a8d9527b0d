"""FastAPI application factory for the webhook ingress server."""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from telephony.config import ServeConfig
from telephony.errors import BodyReadTimeoutError, BodyTooLargeError
from telephony.routers.webhooks import WebhookEventHandler
from telephony.types import TelephonyProvider

from .config import get_settings
from .logging_config import logger
from .routes import api_router


# Provider-facing responses are plain text; providers only look at the status
def register_exception_handlers(app: FastAPI) -> None:
    """Register handlers for HTTP errors, body limits and unexpected failures."""

    @app.exception_handler(StarletteHTTPException)
    async def _http_exception_handler(request: Request, exc: StarletteHTTPException):
        logger.debug("http error %s on %s", exc.status_code, request.url.path)
        return PlainTextResponse(str(exc.detail), status_code=exc.status_code)

    @app.exception_handler(BodyTooLargeError)
    async def _body_too_large_handler(request: Request, exc: BodyTooLargeError):
        logger.warning("Rejected webhook body on %s: %s", request.url.path, exc)
        return PlainTextResponse(
            "Payload Too Large",
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            headers={"Connection": "close"},
        )

    @app.exception_handler(BodyReadTimeoutError)
    async def _body_timeout_handler(request: Request, exc: BodyReadTimeoutError):
        logger.warning("Abandoned webhook read on %s: %s", request.url.path, exc)
        return PlainTextResponse(
            "Request Timeout",
            status_code=status.HTTP_408_REQUEST_TIMEOUT,
            headers={"Connection": "close"},
        )

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Webhook error on %s", request.url.path)
        return PlainTextResponse(
            "Internal Server Error",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


def create_app(
    provider: TelephonyProvider,
    on_event: Optional[WebhookEventHandler] = None,
    serve: Optional[ServeConfig] = None,
) -> FastAPI:
    """Build the ingress app for `provider`, dispatching events to `on_event`."""
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.provider = provider
    app.state.on_event = on_event
    app.state.serve = serve or ServeConfig()

    register_exception_handlers(app)
    app.include_router(api_router)
    return app


__all__ = ["create_app", "register_exception_handlers"]
