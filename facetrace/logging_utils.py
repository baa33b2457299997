# SPDX-License-Identifier: Apache-2.0
import logging

import structlog

_CONFIGURED = False


def configure_logging(level: str = "INFO", json: bool = True) -> None:
    """Configure structlog once for the whole process."""
    global _CONFIGURED
    renderer = (
        structlog.processors.JSONRenderer()
        if json
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        cache_logger_on_first_use=False,
    )
    _CONFIGURED = True


def get_logger(name: str = __name__):
    """Return a configured structlog logger."""
    if not _CONFIGURED:
        configure_logging()
    return structlog.get_logger(name)
