"""Token lifecycle: issue, validate, consume exactly once, reissue, cleanup."""

from datetime import timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.inbox_admin.core.db import Database
from src.inbox_admin.core.exceptions import InvalidTokenError, NotFoundError
from src.inbox_admin.core.notifications import EmailNotice, EmailTemplate
from src.inbox_admin.core.security import generate_token, hash_token
from src.inbox_admin.models import (
    EmailConfirmation,
    PasswordReset,
    TokenKind,
    TokenState,
    User,
    utc_now,
)
from src.inbox_admin.repositories import EmailConfirmationRepository
from tests.factories import EmailConfirmationFactory, PasswordResetFactory, UserFactory
from tests.helpers import RecordingEmailSender, Services, build_services

pytestmark = pytest.mark.integration

KIND = TokenKind.EMAIL_CONFIRMATION


@pytest.fixture
async def identity(db_session: AsyncSession) -> User:
    user = UserFactory.unconfirmed(email="dana@example.com")
    db_session.add(user)
    await db_session.commit()
    return user


def confirmation_notice(email: str) -> EmailNotice:
    return EmailNotice(to=email, template=EmailTemplate.CONFIRMATION, context={"first_name": "D"})


class TestIssueAndValidate:
    async def test_issued_token_validates(self, services: Services, identity: User):
        issued = await services.tokens.issue(KIND, EmailConfirmation(user_id=identity.id))

        record = await services.tokens.validate(KIND, issued.token)
        assert record.id == issued.record.id

    async def test_any_other_string_is_invalid(self, services: Services, identity: User):
        await services.tokens.issue(KIND, EmailConfirmation(user_id=identity.id))

        with pytest.raises(InvalidTokenError):
            await services.tokens.validate(KIND, generate_token())

    async def test_only_hash_is_stored(self, services: Services, identity: User):
        issued = await services.tokens.issue(KIND, EmailConfirmation(user_id=identity.id))

        assert issued.record.token_hash == hash_token(issued.token)
        assert issued.record.token_hash != issued.token
        assert issued.record.used_at is None

    @pytest.mark.parametrize(
        ("kind", "ttl"),
        [
            (TokenKind.EMAIL_CONFIRMATION, timedelta(hours=24)),
            (TokenKind.PASSWORD_RESET, timedelta(hours=1)),
        ],
    )
    async def test_expiry_follows_kind_policy(
        self, services: Services, identity: User, kind: TokenKind, ttl: timedelta
    ):
        model = EmailConfirmation if kind is TokenKind.EMAIL_CONFIRMATION else PasswordReset
        before = utc_now()
        issued = await services.tokens.issue(kind, model(user_id=identity.id))

        assert before + ttl <= issued.record.expires_at <= utc_now() + ttl

    async def test_token_of_one_kind_is_invalid_as_another(
        self, services: Services, identity: User
    ):
        issued = await services.tokens.issue(KIND, EmailConfirmation(user_id=identity.id))

        with pytest.raises(InvalidTokenError):
            await services.tokens.validate(TokenKind.PASSWORD_RESET, issued.token)

    async def test_expired_token_is_invalid(self, db_session: AsyncSession, services, identity):
        record, token = EmailConfirmationFactory.expired(user_id=identity.id)
        db_session.add(record)
        await db_session.commit()

        with pytest.raises(InvalidTokenError):
            await services.tokens.validate(KIND, token)
        assert await services.tokens.inspect(KIND, token) is TokenState.EXPIRED

    async def test_inspect_unknown_token(self, services: Services):
        assert await services.tokens.inspect(KIND, generate_token()) is None


class TestNotification:
    async def test_link_embeds_token(
        self, services: Services, identity: User, email_sender: RecordingEmailSender
    ):
        issued = await services.tokens.issue(
            KIND, EmailConfirmation(user_id=identity.id), confirmation_notice(identity.email)
        )

        assert issued.email_sent is True
        link = email_sender.sent[-1].context["link"]
        assert link == f"http://localhost:3000/confirm-email?token={issued.token}"

    async def test_delivery_failure_keeps_token(
        self, services: Services, identity: User, email_sender: RecordingEmailSender
    ):
        email_sender.fail = True
        issued = await services.tokens.issue(
            KIND, EmailConfirmation(user_id=identity.id), confirmation_notice(identity.email)
        )

        assert issued.email_sent is False
        assert await services.tokens.validate(KIND, issued.token)


class TestConsume:
    async def test_consume_is_exactly_once(self, services: Services, identity: User):
        issued = await services.tokens.issue(KIND, EmailConfirmation(user_id=identity.id))
        applied = []

        async def effect(record: EmailConfirmation) -> str:
            applied.append(record.id)
            return "done"

        assert await services.tokens.consume(KIND, issued.token, effect) == "done"
        with pytest.raises(InvalidTokenError):
            await services.tokens.consume(KIND, issued.token, effect)

        assert applied == [issued.record.id]
        assert await services.tokens.inspect(KIND, issued.token) is TokenState.CONSUMED

    async def test_failed_effect_leaves_token_usable(self, services: Services, identity: User):
        issued = await services.tokens.issue(KIND, EmailConfirmation(user_id=identity.id))

        async def broken(record: EmailConfirmation) -> None:
            raise RuntimeError("identity provider unavailable")

        with pytest.raises(RuntimeError):
            await services.tokens.consume(KIND, issued.token, broken)

        assert await services.tokens.inspect(KIND, issued.token) is TokenState.ISSUED

    async def test_domain_error_in_effect_rolls_back_staged_changes(
        self, db_session: AsyncSession, services: Services, identity: User
    ):
        issued = await services.tokens.issue(KIND, EmailConfirmation(user_id=identity.id))
        user_id = identity.id

        async def half_done(record: EmailConfirmation) -> None:
            user = await db_session.get(User, record.user_id)
            user.email_confirmed_at = utc_now()
            db_session.add(user)
            await db_session.flush()
            raise NotFoundError("Tenant not found")

        with pytest.raises(NotFoundError):
            await services.tokens.consume(KIND, issued.token, half_done)

        user = await db_session.get(User, user_id)
        assert user.email_confirmed_at is None
        assert await services.tokens.validate(KIND, issued.token)

    async def test_concurrent_redemption_has_one_winner(
        self,
        database: Database,
        services: Services,
        identity: User,
        email_sender: RecordingEmailSender,
    ):
        """The loser's conditional update matches no row, so its effect is undone."""
        issued = await services.tokens.issue(KIND, EmailConfirmation(user_id=identity.id))
        winners = []

        def mark(name: str):
            async def effect(record: EmailConfirmation) -> str:
                winners.append(name)
                return name

            return effect

        async def race(record: EmailConfirmation) -> str:
            # The other request redeems the token while this one is mid-flight
            async with database.session() as other_session:
                other = build_services(other_session, email_sender)
                await other.tokens.consume(KIND, issued.token, mark("other"))
            winners.append("first")
            return "first"

        with pytest.raises(InvalidTokenError):
            await services.tokens.consume(KIND, issued.token, race)

        assert winners == ["other", "first"]
        assert await services.tokens.inspect(KIND, issued.token) is TokenState.CONSUMED

    async def test_conditional_update_succeeds_once(
        self, db_session: AsyncSession, identity: User
    ):
        record, _ = EmailConfirmationFactory.with_token(user_id=identity.id)
        db_session.add(record)
        await db_session.commit()
        repo = EmailConfirmationRepository(db_session)

        assert await repo.mark_consumed(record) is True
        assert await repo.mark_consumed(record) is False


class TestReissue:
    async def test_reissue_invalidates_previous_token(self, services: Services, identity: User):
        first = await services.tokens.issue(KIND, EmailConfirmation(user_id=identity.id))
        second = await services.tokens.reissue(KIND, EmailConfirmation(user_id=identity.id))

        assert second.token != first.token
        with pytest.raises(InvalidTokenError):
            await services.tokens.validate(KIND, first.token)
        assert (await services.tokens.validate(KIND, second.token)).id == second.record.id

    async def test_at_most_one_valid_token_per_owner(
        self, db_session: AsyncSession, services: Services, identity: User
    ):
        for _ in range(3):
            await services.tokens.reissue(KIND, EmailConfirmation(user_id=identity.id))

        valid = await db_session.scalar(
            select(func.count())
            .select_from(EmailConfirmation)
            .where(
                EmailConfirmation.user_id == identity.id,
                EmailConfirmation.used_at.is_(None),
            )
        )
        assert valid == 1

    async def test_reissue_leaves_other_owners_alone(
        self, db_session: AsyncSession, services: Services, identity: User
    ):
        other = UserFactory.build()
        db_session.add(other)
        await db_session.commit()
        others = await services.tokens.issue(KIND, EmailConfirmation(user_id=other.id))

        await services.tokens.reissue(KIND, EmailConfirmation(user_id=identity.id))

        assert await services.tokens.validate(KIND, others.token)


class TestCleanup:
    async def test_deletes_only_long_dead_tokens(
        self, db_session: AsyncSession, services: Services, identity: User
    ):
        long_expired, _ = PasswordResetFactory.with_token(
            user_id=identity.id, expires_at=utc_now() - timedelta(days=45)
        )
        long_used, _ = PasswordResetFactory.with_token(
            user_id=identity.id, used_at=utc_now() - timedelta(days=40)
        )
        recently_expired, _ = PasswordResetFactory.expired(user_id=identity.id)
        live, live_token = PasswordResetFactory.with_token(user_id=identity.id)
        db_session.add_all([long_expired, long_used, recently_expired, live])
        await db_session.commit()

        deleted = await services.tokens.cleanup_expired(retention_days=30)

        assert deleted == {"email_confirmation": 0, "password_reset": 2, "invitation": 0}
        assert await services.tokens.validate(TokenKind.PASSWORD_RESET, live_token)
        remaining = await db_session.scalar(select(func.count()).select_from(PasswordReset))
        assert remaining == 2
