"""
Structured logging for GravityPulse.

Every module obtains its logger through get_logger(__name__) and logs snake_case
events with key-value context:

    logger.warning("wallet_fetch_rpc_failed", wallet_id=address, error=str(e))

Output is one JSON object per line (LOG_FORMAT=json, default) or structlog's
console view (LOG_FORMAT=console). LOG_LEVEL and LOG_FORMAT are read through
config.env, so values from the project .env apply as well as the process
environment. Loggers bind their processor chain when created, so the chain is
configured here at import, before any module-level get_logger() runs.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from typing import Any

import structlog

from gravity_pulse.config.env import get_log_format, get_log_level

EventDict = dict[str, Any]


def _stamp(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
    return event_dict


def _event_type(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """structlog's positional 'event' is published as event_type."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    return event_dict


def level_value(level: str | None) -> int:
    """Map a level name (any case) to its logging constant; unknown names mean INFO."""
    value = logging.getLevelName((level or "INFO").strip().upper())
    return value if isinstance(value, int) else logging.INFO


def configure_structlog(level: str | None = None, fmt: str | None = None) -> None:
    """
    (Re)configure structlog.

    Args:
        level: Minimum level name; defaults to LOG_LEVEL.
        fmt: "json" or "console"; defaults to LOG_FORMAT.
    """
    level = level or get_log_level()
    fmt = (fmt or get_log_format()).strip().lower()

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.format_exc_info,
        _stamp,
        _event_type,
    ]
    if fmt == "console":
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    else:
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level_value(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a structured logger bound to the given module name."""
    return structlog.get_logger(name).bind(logger=name)


def bind_wallet(wallet_id: str) -> structlog.BoundLogger:
    """Return a logger with wallet_id bound to all subsequent log calls."""
    return get_logger("gravity_pulse").bind(wallet_id=wallet_id)
