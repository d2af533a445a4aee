"""
Logging configuration for the API and the command-line jobs.
"""
import logging
import sys
from typing import Optional

import structlog

from lumidex.core.config import settings


def setup_logging(debug: Optional[bool] = None, component: str = "api") -> None:
    """
    Configure structured logging.

    Args:
        debug: Console output at DEBUG level; defaults to settings.api_debug.
        component: Bound to every event so API and job logs can be told apart.
    """
    if debug is None:
        debug = settings.api_debug
    log_level = logging.DEBUG if debug else logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            # Console renderer in debug mode, JSON otherwise
            structlog.dev.ConsoleRenderer()
            if debug
            else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
    structlog.contextvars.bind_contextvars(service=settings.app_name.lower(), component=component)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    # Driver and client libraries only report problems
    for name in ("httpx", "httpcore", "asyncpg", "aiosqlite"):
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
