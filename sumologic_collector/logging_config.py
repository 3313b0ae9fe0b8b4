"""Structured logging setup for callers of the collector client."""

import logging
import sys
from typing import IO, Optional

import structlog

from .config import CollectorClientConfig


def setup_logging(config: CollectorClientConfig, stream: Optional[IO[str]] = None) -> None:
    """Route the client's structlog events and stdlib records to one handler.

    Events from ``structlog.get_logger`` keep their keyword context; records
    from plain stdlib loggers (httpx, for instance) pass through the same
    pre-chain so both come out in the configured format.

    Args:
        config: Client configuration providing ``log_level`` and ``log_format``
        stream: Output stream, stderr when omitted
    """
    shared_processors = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if config.log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(getattr(logging, config.log_level))
