"""
Structured logging setup.

Library modules only call ``get_logger``; applications (the CLI) call
``configure_logging`` once at start-up.
"""

import logging
import sys
from typing import List, cast

import structlog


def configure_logging(level: str = "INFO", json: bool = False) -> None:
    """Configure structlog on top of stdlib logging.

    Args:
        level: Standard logging level name, e.g. "DEBUG" or "WARNING"
        json: Render JSON lines when True, coloured console output otherwise
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    shared_processors: List[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )

    # Logs go to stderr so report output on stdout stays clean.
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a structlog logger named after the calling module.

    The logger wraps a stdlib logger, so until ``configure_logging`` runs
    events go through stdlib ``logging`` and never to stdout.
    """
    return cast(structlog.BoundLogger, structlog.wrap_logger(logging.getLogger(name)))
