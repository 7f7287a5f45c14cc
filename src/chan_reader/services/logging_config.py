"""Structured JSON-line logging built on structlog's stdlib bridge."""

from __future__ import annotations

import logging
import sys

import structlog

_NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def _coerce_level(level_name: str | int) -> int:
    if isinstance(level_name, int):
        return level_name
    value = str(level_name).strip()
    if value.isdigit():
        return int(value)
    return getattr(logging, value.upper(), logging.INFO)


def build_formatter() -> structlog.stdlib.ProcessorFormatter:
    # "event" holds the extra= event name; the log message goes under "message".
    pre_chain = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.EventRenamer("message"),
        structlog.stdlib.ExtraAdder(),
        structlog.processors.format_exc_info,
    ]
    return structlog.stdlib.ProcessorFormatter(
        processor=structlog.processors.JSONRenderer(sort_keys=True),
        foreign_pre_chain=pre_chain,
    )


def configure_logging(level: str | int = "INFO") -> None:
    effective_level = _coerce_level(level)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(build_formatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(effective_level)
    root_logger.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(effective_level, logging.WARNING))
