"""Run the telephony gateway: `python -m gateway`."""

from __future__ import annotations

import asyncio

from telephony.types import NormalizedSmsEvent

from .config import get_settings
from .logging_config import configure_logging, logger
from .runtime import create_telephony_runtime


def log_event(event: NormalizedSmsEvent) -> None:
    logger.info("Telephony event: %s", event.model_dump_json())


async def _serve() -> None:
    settings = get_settings()
    runtime = await create_telephony_runtime(settings.to_telephony_config(), log_event)
    try:
        await runtime.wait()
    finally:
        await runtime.stop()


def main() -> None:
    configure_logging(get_settings().log_level)
    asyncio.run(_serve())


if __name__ == "__main__":
    main()
