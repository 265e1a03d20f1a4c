"""Structured logging setup shared by the web app and the CLI scripts."""
import logging
import sys

import structlog

from docqa import config


def configure_logging(level: str = None, json_output: bool = True) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        level: Log level name (default from config.LOG_LEVEL)
        json_output: Render JSON lines; otherwise a human readable console format
    """
    level = (level or config.LOG_LEVEL).upper()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level, logging.INFO),
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )
