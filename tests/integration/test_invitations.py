"""Invitation workflow against a real database."""

from datetime import timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.inbox_admin.core.exceptions import (
    AccountCreationFailedError,
    DuplicateMemberError,
    InvalidTokenError,
    NotFoundError,
    PermissionDeniedError,
    StateConflictError,
)
from src.inbox_admin.core.notifications import EmailTemplate
from src.inbox_admin.models import (
    InvitationStatus,
    MemberStatus,
    Role,
    Tenant,
    TokenKind,
    TokenState,
    UserInvitation,
    utc_now,
)
from src.inbox_admin.services import CurrentSession
from tests.factories import DEFAULT_TEST_PASSWORD, UserInvitationFactory
from tests.helpers import RecordingEmailSender, Services, create_member, create_tenant

pytestmark = pytest.mark.integration

INVITEE = "bob@co.com"


async def count_invitations(session: AsyncSession) -> int:
    return await session.scalar(select(func.count()).select_from(UserInvitation))


class TestInvite:
    async def test_invite_and_accept_end_to_end(
        self,
        db_session: AsyncSession,
        services: Services,
        owner: CurrentSession,
        email_sender: RecordingEmailSender,
    ):
        issued = await services.invitations.invite(owner, INVITEE, Role.TENANT_MANAGER)

        assert issued.email_sent is True
        notice = email_sender.of_template(EmailTemplate.INVITATION)[-1]
        assert notice.to == INVITEE
        assert notice.context["tenant_name"] == "Acme Support"
        assert notice.context["inviter_name"] == "Olivia Owner"
        token = email_sender.last_token(EmailTemplate.INVITATION)
        assert token == issued.token

        member = await services.invitations.accept(token, "Bob", "Builder", DEFAULT_TEST_PASSWORD)

        assert member.tenant_id == owner.tenant.id
        assert member.role == Role.TENANT_MANAGER.value
        assert member.status == MemberStatus.ACTIVE.value
        assert member.email_verified is True
        assert member.email == INVITEE

        invitation = await db_session.get(UserInvitation, issued.record.id)
        assert invitation.status == InvitationStatus.ACCEPTED.value
        assert invitation.accepted_at is not None
        assert invitation.accepted_by_user_id == member.user_id

        signed_in = await services.resolver.sign_in(INVITEE, DEFAULT_TEST_PASSWORD)
        assert signed_in.session.membership.id == member.id

    async def test_invite_normalizes_email(self, services: Services, owner: CurrentSession):
        issued = await services.invitations.invite(owner, "  Bob@Co.COM ", Role.TENANT_USER)
        assert issued.record.email == INVITEE

    async def test_invitation_expires_in_seven_days(
        self, services: Services, owner: CurrentSession
    ):
        issued = await services.invitations.invite(owner, INVITEE, Role.TENANT_USER)
        remaining = issued.record.expires_at - utc_now()
        assert timedelta(days=6, hours=23) < remaining <= timedelta(days=7)

    async def test_existing_member_is_rejected_without_token(
        self,
        db_session: AsyncSession,
        services: Services,
        tenant: Tenant,
        owner: CurrentSession,
        email_sender: RecordingEmailSender,
    ):
        await create_member(db_session, tenant, Role.TENANT_USER, email=INVITEE)

        with pytest.raises(DuplicateMemberError):
            await services.invitations.invite(owner, INVITEE, Role.TENANT_ADMIN)

        assert await count_invitations(db_session) == 0
        assert email_sender.sent == []

    async def test_suspended_member_still_counts_as_member(
        self, db_session: AsyncSession, services: Services, tenant: Tenant, owner: CurrentSession
    ):
        await create_member(
            db_session, tenant, Role.TENANT_USER, MemberStatus.SUSPENDED, email=INVITEE
        )

        with pytest.raises(DuplicateMemberError):
            await services.invitations.invite(owner, INVITEE, Role.TENANT_USER)

    async def test_email_with_account_elsewhere_is_rejected_without_token(
        self,
        db_session: AsyncSession,
        services: Services,
        owner: CurrentSession,
        email_sender: RecordingEmailSender,
    ):
        other_tenant = await create_tenant(db_session)
        await create_member(db_session, other_tenant, Role.TENANT_USER, email=INVITEE)

        with pytest.raises(StateConflictError, match="already has an account"):
            await services.invitations.invite(owner, "Bob@co.com", Role.TENANT_USER)

        assert await count_invitations(db_session) == 0
        assert email_sender.sent == []

    @pytest.mark.parametrize(
        "role", [Role.TENANT_ADMIN, Role.TENANT_MANAGER, Role.TENANT_USER]
    )
    async def test_roles_without_invite_capability_are_denied(
        self, db_session: AsyncSession, services: Services, tenant: Tenant, role: Role
    ):
        actor = await create_member(db_session, tenant, role)

        with pytest.raises(PermissionDeniedError):
            await services.invitations.invite(actor, INVITEE, Role.TENANT_USER)
        assert await count_invitations(db_session) == 0

    @pytest.mark.parametrize("role", [Role.TENANT_OWNER, Role.SUPER_ADMIN, "JANITOR"])
    async def test_non_invitable_role_is_denied(
        self, services: Services, owner: CurrentSession, role: Role | str
    ):
        with pytest.raises(PermissionDeniedError):
            await services.invitations.invite(owner, INVITEE, role)

    async def test_reinvite_replaces_pending_invitation(
        self, db_session: AsyncSession, services: Services, owner: CurrentSession
    ):
        first = await services.invitations.invite(owner, INVITEE, Role.TENANT_USER)
        second = await services.invitations.invite(owner, INVITEE, Role.TENANT_ADMIN)

        assert await services.tokens.inspect(TokenKind.INVITATION, first.token) is (
            TokenState.CANCELLED
        )
        valid = await services.tokens.validate(TokenKind.INVITATION, second.token)
        assert valid.role == Role.TENANT_ADMIN.value

    async def test_email_failure_keeps_invitation(
        self,
        db_session: AsyncSession,
        services: Services,
        owner: CurrentSession,
        email_sender: RecordingEmailSender,
    ):
        email_sender.fail = True

        issued = await services.invitations.invite(owner, INVITEE, Role.TENANT_USER)

        assert issued.email_sent is False
        assert await count_invitations(db_session) == 1
        assert await services.tokens.validate(TokenKind.INVITATION, issued.token)


class TestAccept:
    async def test_token_is_single_use(self, services: Services, owner: CurrentSession):
        issued = await services.invitations.invite(owner, INVITEE, Role.TENANT_USER)
        await services.invitations.accept(issued.token, "Bob", "Builder", DEFAULT_TEST_PASSWORD)

        with pytest.raises(InvalidTokenError):
            await services.invitations.accept(
                issued.token, "Bob", "Builder", DEFAULT_TEST_PASSWORD
            )

    async def test_identity_created_after_invite_cannot_accept(
        self, db_session: AsyncSession, services: Services, owner: CurrentSession
    ):
        issued = await services.invitations.invite(owner, INVITEE, Role.TENANT_USER)
        token = issued.token
        # The email signs up elsewhere while the invitation is outstanding
        other_tenant = await create_tenant(db_session)
        await create_member(db_session, other_tenant, Role.TENANT_USER, email=INVITEE)

        with pytest.raises(AccountCreationFailedError):
            await services.invitations.accept(token, "Bob", "Builder", DEFAULT_TEST_PASSWORD)

        # The failed attempt must not burn the invitation
        assert await services.tokens.inspect(TokenKind.INVITATION, token) is TokenState.ISSUED

    async def test_cancelled_invitation_cannot_be_accepted(
        self, db_session: AsyncSession, services: Services, owner: CurrentSession
    ):
        record, token = UserInvitationFactory.cancelled(
            tenant_id=owner.tenant.id, invited_by_user_id=owner.membership.id, email=INVITEE
        )
        db_session.add(record)
        await db_session.commit()

        with pytest.raises(InvalidTokenError):
            await services.invitations.accept(token, "Bob", "Builder", DEFAULT_TEST_PASSWORD)

    async def test_expired_invitation_cannot_be_accepted(
        self, db_session: AsyncSession, services: Services, owner: CurrentSession
    ):
        record, token = UserInvitationFactory.expired(
            tenant_id=owner.tenant.id, invited_by_user_id=owner.membership.id, email=INVITEE
        )
        db_session.add(record)
        await db_session.commit()

        with pytest.raises(InvalidTokenError):
            await services.invitations.accept(token, "Bob", "Builder", DEFAULT_TEST_PASSWORD)

    async def test_invitation_info(self, services: Services, owner: CurrentSession):
        issued = await services.invitations.invite(owner, INVITEE, Role.TENANT_MANAGER)

        info = await services.invitations.get_invitation_info(issued.token)

        assert info.email == INVITEE
        assert info.role == Role.TENANT_MANAGER.value
        assert info.tenant_name == "Acme Support"
        assert info.inviter_name == "Olivia Owner"
        assert info.expires_at == issued.record.expires_at

    async def test_invitation_info_rejects_unknown_token(self, services: Services):
        with pytest.raises(InvalidTokenError):
            await services.invitations.get_invitation_info("not-a-real-token")


class TestCancel:
    async def test_cancel_is_idempotent(self, services: Services, owner: CurrentSession):
        issued = await services.invitations.invite(owner, INVITEE, Role.TENANT_USER)

        first = await services.invitations.cancel(owner, issued.record.id)
        cancelled_at = first.used_at
        second = await services.invitations.cancel(owner, issued.record.id)

        assert second.status == InvitationStatus.CANCELLED.value
        assert second.used_at == cancelled_at
        with pytest.raises(InvalidTokenError):
            await services.tokens.validate(TokenKind.INVITATION, issued.token)

    async def test_cannot_cancel_accepted(self, services: Services, owner: CurrentSession):
        issued = await services.invitations.invite(owner, INVITEE, Role.TENANT_USER)
        await services.invitations.accept(issued.token, "Bob", "Builder", DEFAULT_TEST_PASSWORD)

        with pytest.raises(StateConflictError):
            await services.invitations.cancel(owner, issued.record.id)

    async def test_cannot_cancel_expired(
        self, db_session: AsyncSession, services: Services, owner: CurrentSession
    ):
        record, _ = UserInvitationFactory.expired(
            tenant_id=owner.tenant.id, invited_by_user_id=owner.membership.id
        )
        db_session.add(record)
        await db_session.commit()

        with pytest.raises(StateConflictError):
            await services.invitations.cancel(owner, record.id)

    async def test_other_tenants_invitation_is_not_found(
        self, db_session: AsyncSession, services: Services, owner: CurrentSession
    ):
        other_tenant = await create_tenant(db_session)
        other_owner = await create_member(db_session, other_tenant, Role.TENANT_OWNER)
        issued = await services.invitations.invite(other_owner, INVITEE, Role.TENANT_USER)

        with pytest.raises(NotFoundError):
            await services.invitations.cancel(owner, issued.record.id)


class TestResend:
    async def test_resend_issues_fresh_token(
        self,
        db_session: AsyncSession,
        services: Services,
        owner: CurrentSession,
        email_sender: RecordingEmailSender,
    ):
        original = await services.invitations.invite(owner, INVITEE, Role.TENANT_MANAGER)

        resent = await services.invitations.resend(owner, original.record.id)

        assert resent.token != original.token
        assert resent.record.id != original.record.id
        assert resent.record.role == Role.TENANT_MANAGER.value
        assert resent.record.status == InvitationStatus.PENDING.value
        assert email_sender.last_token(EmailTemplate.INVITATION) == resent.token
        with pytest.raises(InvalidTokenError):
            await services.tokens.validate(TokenKind.INVITATION, original.token)

        old = await db_session.get(UserInvitation, original.record.id)
        assert old.status == InvitationStatus.CANCELLED.value

    async def test_resend_revives_expired_invitation(
        self, db_session: AsyncSession, services: Services, owner: CurrentSession
    ):
        record, _ = UserInvitationFactory.expired(
            tenant_id=owner.tenant.id, invited_by_user_id=owner.membership.id, email=INVITEE
        )
        db_session.add(record)
        await db_session.commit()

        resent = await services.invitations.resend(owner, record.id)

        assert resent.record.expires_at > utc_now()
        assert await services.tokens.validate(TokenKind.INVITATION, resent.token)

    async def test_cannot_resend_accepted(self, services: Services, owner: CurrentSession):
        issued = await services.invitations.invite(owner, INVITEE, Role.TENANT_USER)
        await services.invitations.accept(issued.token, "Bob", "Builder", DEFAULT_TEST_PASSWORD)

        with pytest.raises(StateConflictError):
            await services.invitations.resend(owner, issued.record.id)


class TestListInvitations:
    async def test_lists_with_derived_status(
        self, db_session: AsyncSession, services: Services, owner: CurrentSession
    ):
        expired, _ = UserInvitationFactory.expired(
            tenant_id=owner.tenant.id, invited_by_user_id=owner.membership.id
        )
        db_session.add(expired)
        await db_session.commit()
        pending = await services.invitations.invite(owner, INVITEE, Role.TENANT_USER)

        invitations, total = await services.invitations.list_invitations(owner)

        statuses = {inv.id: inv.display_status for inv in invitations}
        assert statuses == {
            expired.id: InvitationStatus.EXPIRED,
            pending.record.id: InvitationStatus.PENDING,
        }

    async def test_manager_can_list(
        self, db_session: AsyncSession, services: Services, tenant: Tenant, owner: CurrentSession
    ):
        await services.invitations.invite(owner, INVITEE, Role.TENANT_USER)
        manager = await create_member(db_session, tenant, Role.TENANT_MANAGER)

        invitations, total = await services.invitations.list_invitations(manager)
        assert len(invitations) == total == 1

    async def test_user_cannot_list(
        self, db_session: AsyncSession, services: Services, tenant: Tenant
    ):
        user = await create_member(db_session, tenant, Role.TENANT_USER)

        with pytest.raises(PermissionDeniedError):
            await services.invitations.list_invitations(user)
