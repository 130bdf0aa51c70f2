"""Password reset through single-use tokens."""

from datetime import timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from src.inbox_admin.core.exceptions import AuthenticationError, InvalidTokenError
from src.inbox_admin.core.notifications import EmailTemplate
from src.inbox_admin.models import Role, TokenKind
from src.inbox_admin.services import CurrentSession
from tests.factories import DEFAULT_TEST_PASSWORD, PasswordResetFactory
from tests.helpers import RecordingEmailSender, Services

pytestmark = pytest.mark.integration

NEW_PASSWORD = "violet-tangerine-submarine-42"


class TestPasswordReset:
    async def test_reset_end_to_end(
        self,
        services: Services,
        owner: CurrentSession,
        email_sender: RecordingEmailSender,
    ):
        email = owner.identity.email
        issued = await services.passwords.request_reset(email)

        assert issued is not None
        lifetime = issued.record.expires_at - issued.record.created_at
        assert timedelta(hours=1) <= lifetime < timedelta(hours=1, seconds=5)
        token = email_sender.last_token(EmailTemplate.PASSWORD_RESET)
        assert token == issued.token

        await services.passwords.reset_password(token, NEW_PASSWORD)

        signed_in = await services.resolver.sign_in(email, NEW_PASSWORD)
        assert signed_in.session.role == Role.TENANT_OWNER.value
        with pytest.raises(AuthenticationError):
            await services.resolver.sign_in(email, DEFAULT_TEST_PASSWORD)

    async def test_reused_token_is_invalid(self, services: Services, owner: CurrentSession):
        issued = await services.passwords.request_reset(owner.identity.email)
        await services.passwords.reset_password(issued.token, NEW_PASSWORD)

        with pytest.raises(InvalidTokenError):
            await services.passwords.reset_password(issued.token, "another-long-passphrase-7")

    async def test_unknown_email_sends_nothing(
        self, services: Services, email_sender: RecordingEmailSender
    ):
        assert await services.passwords.request_reset("ghost@example.com") is None
        assert email_sender.sent == []

    async def test_new_request_invalidates_earlier_link(
        self, services: Services, owner: CurrentSession
    ):
        first = await services.passwords.request_reset(owner.identity.email)
        second = await services.passwords.request_reset(owner.identity.email)

        with pytest.raises(InvalidTokenError):
            await services.tokens.validate(TokenKind.PASSWORD_RESET, first.token)
        await services.passwords.reset_password(second.token, NEW_PASSWORD)

    async def test_expired_token_is_invalid(
        self, db_session: AsyncSession, services: Services, owner: CurrentSession
    ):
        record, token = PasswordResetFactory.expired(user_id=owner.identity.id)
        db_session.add(record)
        await db_session.commit()

        with pytest.raises(InvalidTokenError):
            await services.passwords.reset_password(token, NEW_PASSWORD)
