"""structlog configuration for the scoring engine.

Modules obtain a logger with ``logger = get_logger(__name__)`` and log events
with keyword context, e.g. ``logger.info("Assessment completed", team_id=...)``.
"""

import logging
import sys
from typing import Any

import structlog

from jira_health.settings import get_settings


def configure_logging(level: str | None = None, json_logs: bool | None = None) -> None:
    """Configure structlog processors for the process.

    Args:
        level: Minimum log level name (e.g. 'DEBUG', 'INFO'). Defaults to
            the ``log_level`` setting.
        json_logs: Render events as JSON lines instead of console output.
            Defaults to the ``log_json`` setting.
    """
    if level is None:
        level = get_settings().log_level
    if json_logs is None:
        json_logs = get_settings().log_json

    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        raise ValueError(f"Unknown log level: {level!r}")

    renderer: Any = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> Any:
    """Return a structlog logger bound to the given module name."""
    return structlog.get_logger(name)
