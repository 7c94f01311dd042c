"""Structured logging configuration using structlog."""

import logging
import sys
from typing import Any, Dict, Optional

import structlog
from rich.logging import RichHandler

from school_auto_apply.config import settings

# Event keys whose values never reach the log output.
REDACTED_KEYS = frozenset({"password", "authorization", "token", "api_tokens"})
REDACTED = "***"


def redact_credentials(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Mask credential values, including those nested one level inside dicts."""
    for key, value in list(event_dict.items()):
        if key.lower() in REDACTED_KEYS:
            event_dict[key] = REDACTED
        elif isinstance(value, dict):
            event_dict[key] = {
                k: REDACTED if str(k).lower() in REDACTED_KEYS else v
                for k, v in value.items()
            }
    return event_dict


def configure_logging(level: Optional[str] = None) -> None:
    """Configure structured logging with rich output."""
    log_level = getattr(logging, (level or settings.log_level).upper())

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
        handlers=[RichHandler(rich_tracebacks=True, markup=True)],
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            redact_credentials,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.dev.ConsoleRenderer() if settings.debug else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.WriteLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def run_log_context(school_id: str, run_id: str, **extra: Any) -> Dict[str, Any]:
    """Create the log context shared by every line of one automation run."""
    context = {"school_id": school_id, "run_id": run_id}
    context.update({k: v for k, v in extra.items() if v is not None})
    return context
