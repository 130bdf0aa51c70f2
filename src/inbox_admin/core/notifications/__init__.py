"""Notification utilities - email."""

from src.inbox_admin.core.notifications.email import EmailSender
from src.inbox_admin.core.notifications.templates import (
    EmailNotice,
    EmailTemplate,
    render_email,
)

__all__ = [
    "EmailNotice",
    "EmailSender",
    "EmailTemplate",
    "render_email",
]
