"""
Structured logging setup.

All modules log through structlog with keyword events:

    logger = get_logger(__name__)
    logger.info("cog_started", cog="lint", type="cmd")

configure_logging() installs the processor chain once per process. Sensitive
values (API keys, passwords) are redacted before rendering.
"""

import logging
import sys
from typing import Any

import structlog

REDACTED = "***REDACTED***"

_SENSITIVE_KEYS = {"api_key", "password", "secret", "authorization", "access_token"}
_SENSITIVE_SUFFIXES = ("_api_key", "_password", "_secret", "_token")


def _is_sensitive(key: str) -> bool:
    lowered = key.lower()
    return lowered in _SENSITIVE_KEYS or lowered.endswith(_SENSITIVE_SUFFIXES)


def filter_sensitive_data(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """
    structlog processor that redacts credentials.

    Token counters such as ``input_tokens`` are left untouched.
    """
    for key in list(event_dict.keys()):
        if _is_sensitive(key) and event_dict[key] is not None:
            event_dict[key] = REDACTED
    return event_dict


def configure_logging(level: str | None = None, json_logs: bool | None = None) -> None:
    """
    Configure structlog for the process.

    Args:
        level: Minimum level name, defaults to COGWORK_LOG_LEVEL
        json_logs: Render JSON lines instead of console output,
            defaults to COGWORK_LOG_JSON
    """
    from cogwork.config.settings import settings

    level_name = (level or settings.log_level).upper()
    use_json = settings.log_json if json_logs is None else json_logs

    renderer: Any
    if use_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            filter_sensitive_data,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level_name)
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structlog logger bound to a module name."""
    if name:
        return structlog.get_logger(logger=name)
    return structlog.get_logger()


__all__ = ["configure_logging", "filter_sensitive_data", "get_logger", "REDACTED"]
