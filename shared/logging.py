"""
Shared logging configuration for worker-manager.

Events are rendered as JSON on stderr. Every event carries the request id and
the authenticated user's email when they are known, and credential-looking
fields are masked before rendering.
"""

import sys
import structlog
import logging
import uuid
from typing import Any, Dict, Optional
from contextvars import ContextVar

# Correlation for the request being handled
request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
user_email_var: ContextVar[Optional[str]] = ContextVar('user_email', default=None)

REDACTED = "***"
SENSITIVE_KEYS = frozenset({
    "api_token",
    "authorization",
    "cookie",
    "password",
    "secret",
    "token",
    "value",
})


def configure_logging(service_name: str, log_level: str = "info") -> None:
    """Configure structlog and stdlib logging for ``service_name``."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", key="timestamp"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            component_processor(service_name),
            add_correlation_context,
            redact_sensitive,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Unhandled exceptions end up on stderr through this handler.
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)
    logging.getLogger().setLevel(level)


def component_processor(service_name: str):
    """Tag events with the service and, for dotted logger names, the component."""

    def add_component(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
        event_dict.setdefault("service", service_name)
        logger_name = event_dict.get("logger", "")
        if "." in logger_name:
            event_dict["component"] = logger_name.split(".", 1)[1]
        return event_dict

    return add_component


def add_correlation_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    request_id = request_id_var.get()
    if request_id:
        event_dict["request_id"] = request_id
    user_email = user_email_var.get()
    if user_email:
        event_dict["user_email"] = user_email
    return event_dict


def redact_sensitive(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Mask credential-looking fields, including one level of nested dicts."""
    for key, value in list(event_dict.items()):
        if key.lower() in SENSITIVE_KEYS and value:
            event_dict[key] = REDACTED
        elif isinstance(value, dict):
            event_dict[key] = {
                inner: REDACTED if isinstance(inner, str) and inner.lower() in SENSITIVE_KEYS and item else item
                for inner, item in value.items()
            }
    return event_dict


def set_request_id(request_id: Optional[str] = None) -> str:
    """Bind a request id (generated when absent) to the current context."""
    if request_id is None:
        request_id = str(uuid.uuid4())
    request_id_var.set(request_id)
    return request_id


def set_user_context(user_email: Optional[str] = None):
    if user_email:
        user_email_var.set(user_email)


def clear_context():
    request_id_var.set(None)
    user_email_var.set(None)


def get_logger(name: str) -> structlog.BoundLogger:
    return structlog.get_logger(name)
