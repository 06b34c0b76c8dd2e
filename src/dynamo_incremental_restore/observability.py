"""Structured logging setup.

All modules obtain their logger through get_logger(__name__) and log an event
string with keyword context, e.g. ``logger.info("Restore complete", restored=4)``.
"""

import logging

import structlog

_configured = False


def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    """Configure structlog processors and the stdlib root level.

    Safe to call more than once; only the first call takes effect.

    Args:
        level: Minimum log level name (DEBUG, INFO, WARNING, ...).
        json_output: Render log lines as JSON instead of the console renderer.
    """
    global _configured
    if _configured:
        return

    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO
    logging.basicConfig(level=log_level, format="%(message)s")

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to the given module name.

    Args:
        name: Usually ``__name__`` of the calling module.

    Returns:
        A bound logger accepting keyword context on every call.
    """
    return structlog.get_logger(name)
