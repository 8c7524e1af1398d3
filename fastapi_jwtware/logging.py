"""
Structured logging for the token signer.
"""

import logging
import sys
from typing import Any

import structlog

LOGGER_PREFIX = "jwtware"


def configure_logging(log_level: str = "info") -> None:
    """Configure structlog on top of the standard library logging."""
    level = getattr(logging, log_level.upper(), None)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level!r}")

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            add_component,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )


def add_component(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Tag events with the component part of the logger name."""
    logger_name = event_dict.get("logger", "")
    if logger_name.startswith(f"{LOGGER_PREFIX}."):
        event_dict["component"] = logger_name.split(".", 1)[1]
    return event_dict


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger under the package prefix."""
    return structlog.get_logger(f"{LOGGER_PREFIX}.{name}")
