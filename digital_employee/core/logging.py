"""
structlog setup for the poller and its collaborators.

Every module logs snake_case events with keyword fields. Per-message
context (identity, sender) is carried in contextvars so concurrent
dispatches keep their own values.
"""

import logging
import sys

import structlog

# Chatty at INFO/DEBUG and not useful for mailbox operations
NOISY_LOGGERS = ("httpx", "httpcore", "google_genai", "matplotlib", "PIL")


def _level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(log_level: str = "INFO", json_output: bool = True) -> None:
    """
    Configure structured logging for the service.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR. Unknown names fall back to INFO.
        json_output: JSON lines when True, colored console output otherwise
    """
    level = _level(log_level)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if json_output:
        processors += [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Structured logger, usually named after the calling module."""
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    """Attach fields to every event logged from the current task."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
