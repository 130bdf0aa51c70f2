"""Structured logging for the admin core, built on structlog.

Request and session context (request id, identity, tenant, role) travel in
contextvars and are merged into every event. Credentials never reach a sink:
events carrying token, password or code fields are redacted before rendering.
"""

import logging
import sys
from collections.abc import MutableMapping
from typing import Any
from uuid import UUID

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars

from src.inbox_admin.core.config import get_settings

# Event keys whose values are bearer material or secrets
REDACTED_KEYS = frozenset(
    {
        "access_token",
        "backup_code",
        "password",
        "secret",
        "setup_token",
        "token",
        "two_factor_code",
    }
)
REDACTED = "[redacted]"

# Libraries that are noisy at INFO
_QUIET_LOGGERS = ("sqlalchemy.engine", "httpx", "httpcore", "aiosqlite")


def redact_credentials(
    _logger: Any, _method: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """structlog processor: mask values of credential-bearing keys."""
    for key in REDACTED_KEYS.intersection(event_dict):
        event_dict[key] = REDACTED
    return event_dict


def setup_logging(debug: bool = False) -> None:
    """Route stdlib logging through stdout and configure structlog on top of it.

    Args:
        debug: Colored console rendering when True, one JSON object per line otherwise.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=logging.DEBUG if debug else logging.INFO,
    )

    processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        redact_credentials,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if debug:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        # Tracebacks become a string field so each event stays one JSON line
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_request_context(request_id: str | None) -> None:
    """Tag every later event in this request with its correlation id."""
    if request_id:
        bind_contextvars(request_id=request_id)


def bind_user_context(
    user_id: UUID,
    tenant_id: UUID,
    email: str | None = None,
    role: str | None = None,
) -> None:
    """Tag every later event in this request with the resolved session.

    Args:
        user_id: The authenticated identity's ID.
        tenant_id: The tenant the session is scoped to.
        email: Bound as ``user_email`` only when LOG_USER_EMAILS is on.
        role: The membership role, when known.
    """
    bind_contextvars(user_id=str(user_id), tenant_id=str(tenant_id))
    if role:
        bind_contextvars(role=role)
    if email:
        user_email = email_for_log(email)
        if user_email:
            bind_contextvars(user_email=user_email)


def email_for_log(email: str) -> str | None:
    """The email if LOG_USER_EMAILS allows it, else None."""
    return email if get_settings().log_user_emails else None


def clear_request_context() -> None:
    clear_contextvars()
