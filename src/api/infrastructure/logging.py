"""Structlog configuration for the application.

Console rendering for local development, JSON lines everywhere else.
Data-source keys and bearer tokens are masked before any renderer sees
an event.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog

REDACTED = "***"

SENSITIVE_KEYS = frozenset(
    {
        "anon_key",
        "service_key",
        "apikey",
        "authorization",
        "token",
        "encryption_key",
        "password",
    }
)


def redact_credentials(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Mask values of keys that may carry credentials."""
    for key in event_dict.keys() & SENSITIVE_KEYS:
        if event_dict[key] is not None:
            event_dict[key] = REDACTED
    return event_dict


def _use_console_renderer() -> bool:
    # FORCE_COLOR=1 keeps colors in non-TTY environments such as Docker.
    if os.environ.get("FORCE_COLOR", "").lower() in ("1", "true", "yes"):
        return True
    return sys.stdout.isatty()


def configure_logging(debug: bool = False) -> None:
    """Configure structlog once at application startup.

    Debug events, such as per-request cache hits, are dropped unless
    ``debug`` is set.
    """
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        redact_credentials,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if _use_console_renderer():
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if debug else logging.INFO
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
