"""Runtime assembly: provider selection wired to a running webhook server."""

from __future__ import annotations

import asyncio
from typing import Optional

import uvicorn
from fastapi import FastAPI

from telephony.adapters.registry import create_provider
from telephony.config import TelephonyConfig
from telephony.errors import TelephonyError
from telephony.routers.webhooks import WebhookEventHandler
from telephony.types import TelephonyProvider

from .app import create_app
from .logging_config import logger

_STARTUP_POLL_SECONDS = 0.05


class TelephonyRuntime:
    """A provider plus the uvicorn server feeding it webhooks.

    Created by `create_telephony_runtime`; call `stop()` to shut the server
    down.
    """

    def __init__(
        self,
        config: TelephonyConfig,
        provider: TelephonyProvider,
        app: FastAPI,
        server: uvicorn.Server,
        task: "asyncio.Task[None]",
    ) -> None:
        self.config = config
        self.provider = provider
        self.app = app
        self._server = server
        self._task = task

    @property
    def port(self) -> int:
        """Bound port; differs from the configured one when that was 0."""
        for listener in getattr(self._server, "servers", []):
            for sock in listener.sockets:
                return sock.getsockname()[1]
        return self.config.serve.port

    def _base_url(self) -> str:
        return f"http://{self.config.serve.bind}:{self.port}"

    @property
    def webhook_url(self) -> str:
        return self._base_url() + self.config.serve.path

    @property
    def status_url(self) -> str:
        return self._base_url() + self.config.serve.status_path

    async def wait(self) -> None:
        """Block until the server exits."""
        await self._task

    async def stop(self) -> None:
        if self._task.done():
            return
        self._server.should_exit = True
        await self._task
        logger.info("Telephony webhook server stopped")


async def create_telephony_runtime(
    config: TelephonyConfig,
    on_event: Optional[WebhookEventHandler] = None,
) -> TelephonyRuntime:
    """Select the configured provider and start serving its webhooks.

    Must be awaited inside a running event loop; the server runs as a task
    on that loop. Raises `ProviderConfigError` before anything is bound when
    credentials are missing.
    """
    provider = create_provider(config)
    app = create_app(provider, on_event, config.serve)
    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=config.serve.bind,
            port=config.serve.port,
            lifespan="off",
            log_config=None,
            access_log=False,
        )
    )
    task = asyncio.create_task(server.serve())

    while not server.started:
        if task.done():
            task.result()
            raise TelephonyError("Telephony webhook server exited during startup")
        await asyncio.sleep(_STARTUP_POLL_SECONDS)

    runtime = TelephonyRuntime(config, provider, app, server, task)
    logger.info("Telephony webhook server listening on %s (provider=%s)", runtime.webhook_url, provider.name)
    logger.info("Status callback URL: %s", runtime.status_url)
    return runtime
