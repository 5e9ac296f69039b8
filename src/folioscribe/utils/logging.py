"""Structured logging setup for Folioscribe."""

import os
from pathlib import Path
from typing import Any, Optional

import structlog

DEFAULT_LOG_FILE = Path.home() / ".cache" / "folioscribe" / "logs" / "folioscribe.log"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def resolve_log_level() -> str:
    """Read FOLIOSCRIBE_LOG_LEVEL, falling back to INFO for unset or unknown values."""
    level = os.environ.get("FOLIOSCRIBE_LOG_LEVEL", "INFO").upper()
    return level if level in LOG_LEVELS else "INFO"


def configure_logging(log_file: Optional[Path] = None) -> None:
    """
    Send structlog events as JSON lines to ``log_file``.

    The default file is ~/.cache/folioscribe/logs/folioscribe.log. DEBUG adds
    collaborator payloads and preview patch details; WARNING and above cover
    stale responses, sync fallbacks and malformed collaborator output.

    Example:
        FOLIOSCRIBE_LOG_LEVEL=DEBUG folioscribe edit portfolio.json "shorter about"
        tail -f ~/.cache/folioscribe/logs/folioscribe.log | jq .
    """
    log_file = log_file or DEFAULT_LOG_FILE
    log_file.parent.mkdir(parents=True, exist_ok=True)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(resolve_log_level()),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=log_file.open("a", encoding="utf-8")),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:
    """Return a lazy logger whose events carry the calling module's name."""
    return structlog.get_logger(name, module=name)
