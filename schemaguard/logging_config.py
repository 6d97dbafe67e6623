"""Logging configuration for schemaguard.

The library itself only emits through ``logging.getLogger(__name__)``;
applications (and the CLI) call ``configure_logging()`` to get console
output.
"""

import logging
import sys
from typing import Literal

from schemaguard.settings import get_settings

# Loggers that stay quiet unless something is wrong
NOISY_LOGGERS = [
    "asyncio",
    "markdown_it",
]


def suppress_noisy_loggers() -> None:
    """Suppress noisy third-party loggers."""
    for logger_name in NOISY_LOGGERS:
        logger = logging.getLogger(logger_name)
        logger.setLevel(logging.WARNING)
        logger.handlers.clear()


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None,
) -> None:
    """Configure application logging.

    Sets up console logging with:
    - schemaguard logs at the configured level
    - Third-party library logs suppressed to WARNING+

    Args:
        level: Override log level (defaults to settings.log_level or INFO)
    """
    settings = get_settings()
    log_level = level or getattr(settings, "log_level", "INFO")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Capture all, filter at handler level

    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(getattr(logging, log_level))

    formatter = logging.Formatter(
        "%(levelname)s | %(name)s | %(message)s",
        datefmt="%H:%M:%S",
    )
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    logging.getLogger("schemaguard").setLevel(getattr(logging, log_level))

    suppress_noisy_loggers()

