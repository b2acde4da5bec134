"""
Shared logging configuration for the Game Store Gateway.

Log events are JSON lines. Per-request correlation (``request_id`` and, once
the bearer token is verified, ``user_id``) lives in structlog's context
variables and is merged into every event logged while the request runs.
"""

import sys
import structlog
import logging
import uuid
from typing import Any, Dict, Optional

from structlog.contextvars import bind_contextvars, clear_contextvars, get_contextvars, merge_contextvars

REQUEST_ID_HEADER = "X-Request-ID"


def configure_logging(service_name: str, log_level: str = "info") -> None:
    """Configure structured logging for a service."""

    structlog.configure(
        processors=[
            merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            add_service_context,
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )


def add_service_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add service context to log events."""
    # Logger names are "<service>.<component>"
    logger_name = event_dict.get("logger", "")
    if "." in logger_name:
        event_dict["service"] = logger_name.split(".")[0]

    return event_dict


def start_request_context(request_id: Optional[str] = None) -> str:
    """Reset correlation context for a new request and bind its id.

    The caller's ``X-Request-ID`` is kept when present; otherwise one is
    generated. Returns the id so it can be echoed on the response.
    """
    clear_contextvars()
    request_id = request_id or str(uuid.uuid4())
    bind_contextvars(request_id=request_id)
    return request_id


def set_user_context(user_id: Optional[str] = None):
    """Attach the verified caller to the current request's log events."""
    if user_id:
        bind_contextvars(user_id=user_id)


def current_context() -> Dict[str, Any]:
    return get_contextvars()


def clear_context():
    clear_contextvars()


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
