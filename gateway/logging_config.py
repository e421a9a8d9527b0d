"""Logging configuration for the telephony gateway."""

from __future__ import annotations

import logging
import os
from typing import Optional

logger = logging.getLogger("gateway")


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging once; level comes from `level` or LOG_LEVEL."""
    if logger.handlers or logging.getLogger().handlers:
        return

    log_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    numeric_level = getattr(logging, log_level, logging.INFO)

    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Suppress noisy HTTP client logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
