"""HTML email templates. All user-supplied text is escaped."""

import html
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum


class EmailTemplate(str, Enum):
    CONFIRMATION = "confirmation"
    PASSWORD_RESET = "password_reset"
    INVITATION = "invitation"
    WELCOME = "welcome"
    FIRST_LOGIN = "first_login"


@dataclass
class EmailNotice:
    """An email to send: recipient, template and template variables."""

    to: str
    template: EmailTemplate
    context: dict[str, str] = field(default_factory=dict)


_BODY_STYLE = (
    "font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; "
    "line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;"
)
_BUTTON_STYLE = (
    "background-color: #2563eb; color: white; padding: 12px 24px; "
    "text-decoration: none; border-radius: 6px; display: inline-block; font-weight: 500;"
)
_LINK_STYLE = "color: #2563eb; word-break: break-all;"
_MUTED_STYLE = "color: #666; font-size: 14px;"


def _layout(
    heading: str,
    paragraphs: list[str],
    link: str | None = None,
    button: str | None = None,
    footer: str | None = None,
) -> str:
    body = "\n    ".join(f"<p>{p}</p>" for p in paragraphs)
    action = ""
    if link and button:
        safe_link = html.escape(link, quote=True)
        action = f"""
    <p style="margin: 32px 0;">
        <a href="{safe_link}" style="{_BUTTON_STYLE}">{button}</a>
    </p>
    <p style="{_MUTED_STYLE}">
        Or copy and paste this link into your browser:<br>
        <a href="{safe_link}" style="{_LINK_STYLE}">{safe_link}</a>
    </p>"""
    closing = f'\n    <p style="{_MUTED_STYLE} margin-top: 32px;">{footer}</p>' if footer else ""
    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
</head>
<body style="{_BODY_STYLE}">
    <h1 style="color: #2563eb; margin-bottom: 24px;">{heading}</h1>
    {body}{action}{closing}
</body>
</html>"""


def _confirmation(ctx: Mapping[str, str], app_name: str) -> tuple[str, str]:
    name = html.escape(ctx.get("first_name", ""))
    return "Confirm your email address", _layout(
        "Confirm your email",
        [f"Hi {name},", f"Thanks for signing up for {html.escape(app_name)}! "
         "Please confirm your email address to activate your account:"],
        link=ctx["link"],
        button="Confirm Email",
        footer="This link will expire in 24 hours. If you didn't create an account, "
        "you can safely ignore this email.",
    )


def _password_reset(ctx: Mapping[str, str], app_name: str) -> tuple[str, str]:
    return "Reset your password", _layout(
        "Reset your password",
        ["We received a request to reset your password. Click below to choose a new one:"],
        link=ctx["link"],
        button="Reset Password",
        footer="This link will expire in 1 hour. If you didn't request a reset, "
        "you can safely ignore this email.",
    )


def _invitation(ctx: Mapping[str, str], app_name: str) -> tuple[str, str]:
    tenant_name = html.escape(ctx.get("tenant_name", ""))
    inviter_name = html.escape(ctx.get("inviter_name", "A team member"))
    role = html.escape(ctx.get("role", ""))
    return f"You've been invited to join {ctx.get('tenant_name', '')}", _layout(
        "You're invited!",
        [f"{inviter_name} has invited you to join <strong>{tenant_name}</strong> as {role}.",
         "Click the button below to accept the invitation:"],
        link=ctx["link"],
        button="Accept Invitation",
        footer="This invitation will expire in 7 days. If you didn't expect this invitation, "
        "you can safely ignore this email.",
    )


def _welcome(ctx: Mapping[str, str], app_name: str) -> tuple[str, str]:
    name = html.escape(ctx.get("first_name", ""))
    safe_app = html.escape(app_name)
    return f"Welcome to {app_name}!", _layout(
        f"Welcome to {safe_app}!",
        [f"Hi {name},", "Your email has been confirmed and your account is now active.",
         f"Best regards,<br>The {safe_app} Team"],
    )


def _first_login(ctx: Mapping[str, str], app_name: str) -> tuple[str, str]:
    safe_app = html.escape(app_name)
    return f"Your {app_name} administrator account", _layout(
        "Set up your administrator account",
        [f"A platform administrator account has been created for you on {safe_app}.",
         "Choose a password, then enable two-factor authentication on first login:"],
        link=ctx["link"],
        button="Set Password",
        footer="This link will expire in 1 hour.",
    )


_RENDERERS: dict[EmailTemplate, Callable[[Mapping[str, str], str], tuple[str, str]]] = {
    EmailTemplate.CONFIRMATION: _confirmation,
    EmailTemplate.PASSWORD_RESET: _password_reset,
    EmailTemplate.INVITATION: _invitation,
    EmailTemplate.WELCOME: _welcome,
    EmailTemplate.FIRST_LOGIN: _first_login,
}


def render_email(notice: EmailNotice, app_name: str) -> tuple[str, str]:
    """Return (subject, html) for a notice."""
    return _RENDERERS[notice.template](notice.context, app_name)
