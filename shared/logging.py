"""
Structured logging for the SkillSnap Access Layer.

Every event is rendered as one JSON line. Request-scoped values (request id,
caller, and the portfolio operation being served) live in context variables
and are merged into each event by the processors below, so call sites only
pass what is specific to the event.
"""

import logging
import sys
import uuid
from contextvars import ContextVar
from typing import Any, Dict, Optional

import structlog

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar("user_id", default=None)

# Portfolio operation currently being served, e.g. ("Project", "update", "authenticated")
entity_type_var: ContextVar[Optional[str]] = ContextVar("entity_type", default=None)
operation_var: ContextVar[Optional[str]] = ContextVar("operation", default=None)
operation_class_var: ContextVar[Optional[str]] = ContextVar("operation_class", default=None)

_CONTEXT_FIELDS = (
    ("request_id", request_id_var),
    ("user_id", user_id_var),
    ("entity_type", entity_type_var),
    ("operation", operation_var),
    ("operation_class", operation_class_var),
)


def configure_logging(service_name: str, log_level: str = "info") -> None:
    """Route structlog through stdlib logging as JSON lines on stdout."""
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
            add_request_context,
            add_operation_context,
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
        level=getattr(logging, log_level.upper()),
    )


def add_component(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Split ``portfolio.read_cache`` style logger names into service and component."""
    service, _, component = event_dict.get("logger", "").partition(".")
    if component:
        event_dict["service"] = service
        event_dict["component"] = component
    return event_dict


def add_request_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Attach the request id and authenticated caller."""
    for key, var in _CONTEXT_FIELDS[:2]:
        value = var.get()
        if value:
            event_dict.setdefault(key, value)
    return event_dict


def add_operation_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Attach the entity type, operation and access class being served.

    Values passed explicitly at the call site win over the bound ones.
    """
    for key, var in _CONTEXT_FIELDS[2:]:
        value = var.get()
        if value:
            event_dict.setdefault(key, value)
    return event_dict


def set_request_id(request_id: Optional[str] = None) -> str:
    """Bind the inbound request id, minting one when the client sent none."""
    request_id = request_id or str(uuid.uuid4())
    request_id_var.set(request_id)
    return request_id


def set_user_context(user_id: Optional[str] = None):
    if user_id:
        user_id_var.set(user_id)


def bind_operation(
    operation: str,
    entity_type: Optional[str] = None,
    operation_class: Optional[str] = None,
) -> None:
    """Bind the portfolio operation for the rest of the request."""
    operation_var.set(operation)
    entity_type_var.set(entity_type)
    operation_class_var.set(operation_class)


def clear_context():
    """Reset every request-scoped logging field."""
    for _, var in _CONTEXT_FIELDS:
        var.set(None)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
