"""Tests for email templates and best-effort delivery."""

import pytest

from src.inbox_admin.core.config import get_settings
from src.inbox_admin.core.notifications import (
    EmailNotice,
    EmailSender,
    EmailTemplate,
    render_email,
)
from tests.helpers import RecordingEmailSender

pytestmark = pytest.mark.unit

LINK = "http://localhost:3000/accept-invitation?token=abc"


class TestTemplates:
    @pytest.mark.parametrize(
        "template",
        [
            EmailTemplate.CONFIRMATION,
            EmailTemplate.PASSWORD_RESET,
            EmailTemplate.INVITATION,
            EmailTemplate.FIRST_LOGIN,
        ],
    )
    def test_link_templates_embed_link(self, template: EmailTemplate):
        subject, body = render_email(EmailNotice("a@example.com", template, {"link": LINK}), "App")
        assert subject
        assert LINK in body

    def test_welcome_needs_no_link(self):
        subject, body = render_email(
            EmailNotice("a@example.com", EmailTemplate.WELCOME, {"first_name": "Ana"}),
            "Unified Inbox",
        )
        assert subject == "Welcome to Unified Inbox!"
        assert "Hi Ana," in body

    def test_user_supplied_text_is_escaped(self):
        notice = EmailNotice(
            "a@example.com",
            EmailTemplate.INVITATION,
            {
                "link": LINK,
                "tenant_name": "<script>alert(1)</script>",
                "inviter_name": "Eve & Co",
                "role": "TENANT_USER",
            },
        )
        _, body = render_email(notice, "App")
        assert "<script>" not in body
        assert "&lt;script&gt;" in body
        assert "Eve &amp; Co" in body

    def test_link_is_attribute_escaped(self):
        notice = EmailNotice(
            "a@example.com", EmailTemplate.PASSWORD_RESET, {"link": 'http://x/"onmouseover="x'}
        )
        _, body = render_email(notice, "App")
        assert 'href="http://x/&quot;onmouseover=&quot;x"' in body


class TestEmailSender:
    async def test_without_api_key_logs_and_reports_sent(self, captured_logs):
        settings = get_settings().model_copy(update={"resend_api_key": None})
        sent = await EmailSender(settings).send(
            EmailNotice("a@example.com", EmailTemplate.PASSWORD_RESET, {"link": LINK})
        )
        assert sent is True
        assert any(e["event"] == "RESEND_API_KEY not set - email not sent" for e in captured_logs)

    async def test_delivery_failure_returns_false(self, email_sender: RecordingEmailSender):
        email_sender.fail = True
        sent = await email_sender.send(
            EmailNotice("a@example.com", EmailTemplate.PASSWORD_RESET, {"link": LINK})
        )
        assert sent is False
        assert email_sender.sent == []

    async def test_timeout_returns_false(self, captured_logs):
        class SlowSender(EmailSender):
            async def _deliver(self, notice, subject, body):
                raise TimeoutError

        sent = await SlowSender().send(
            EmailNotice("a@example.com", EmailTemplate.PASSWORD_RESET, {"link": LINK})
        )
        assert sent is False
        assert any(e["event"] == "Email send timed out" for e in captured_logs)

    async def test_recorded_token_is_extracted_from_link(self, email_sender):
        await email_sender.send(
            EmailNotice("a@example.com", EmailTemplate.INVITATION, {"link": LINK})
        )
        assert email_sender.last_token(EmailTemplate.INVITATION) == "abc"
