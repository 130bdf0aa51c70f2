"""Invitation workflow - invite, accept, cancel, resend."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.inbox_admin.core.exceptions import (
    ConsoleError,
    DuplicateMemberError,
    NotFoundError,
    PermissionDeniedError,
    StateConflictError,
)
from src.inbox_admin.core.logging import email_for_log, get_logger
from src.inbox_admin.core.notifications import EmailNotice, EmailTemplate
from src.inbox_admin.core.permissions import INVITABLE_ROLES, authorize
from src.inbox_admin.models import (
    MemberStatus,
    Role,
    TenantUser,
    TokenKind,
    TokenState,
    UserInvitation,
    token_state,
)
from src.inbox_admin.repositories import (
    TenantRepository,
    TenantUserRepository,
    UserInvitationRepository,
)
from src.inbox_admin.services.identity_service import IdentityService, normalize_email
from src.inbox_admin.services.session_service import CurrentSession
from src.inbox_admin.services.token_service import IssuedToken, TokenLifecycleManager

logger = get_logger(__name__)


@dataclass
class InvitationInfo:
    """What the accept page may show before the invitee has an account."""

    email: str
    role: str
    tenant_name: str
    inviter_name: str
    expires_at: datetime


class InvitationService:
    """Tenant invitations backed by the shared token lifecycle."""

    def __init__(
        self,
        token_manager: TokenLifecycleManager,
        identity_service: IdentityService,
        invitation_repo: UserInvitationRepository,
        tenant_user_repo: TenantUserRepository,
        tenant_repo: TenantRepository,
        session: AsyncSession,
    ):
        self.token_manager = token_manager
        self.identity_service = identity_service
        self.invitation_repo = invitation_repo
        self.tenant_user_repo = tenant_user_repo
        self.tenant_repo = tenant_repo
        self.session = session

    async def invite(
        self, actor: CurrentSession, email: str, role: Role | str
    ) -> IssuedToken[UserInvitation]:
        """Invite an email into the actor's tenant.

        Any pending invitation for the same email is cancelled first.

        Raises:
            PermissionDeniedError: actor cannot invite, or the role is not invitable.
            DuplicateMemberError: the email already belongs to a member of the tenant.
            StateConflictError: the email already has an identity (in another tenant);
                accepting always creates a new identity, so the link could never be used.
        """
        authorize(actor.role, "can_invite_users")
        try:
            role = Role(role)
        except ValueError as e:
            raise PermissionDeniedError("This role cannot be assigned by invitation") from e
        if role not in INVITABLE_ROLES:
            raise PermissionDeniedError("This role cannot be assigned by invitation")

        return await self._issue_invitation(actor, normalize_email(email), role)

    async def resend(
        self, actor: CurrentSession, invitation_id: UUID
    ) -> IssuedToken[UserInvitation]:
        """Send a fresh invitation (new token and expiry) for the same email and role.

        The old row is cancelled if still pending; terminal rows stay as they are.
        """
        authorize(actor.role, "can_invite_users")
        invitation = await self._get_in_tenant(actor, invitation_id)
        if token_state(invitation) is TokenState.CONSUMED:
            raise StateConflictError("Invitation has already been accepted")

        return await self._issue_invitation(actor, invitation.email, Role(invitation.role))

    async def cancel(self, actor: CurrentSession, invitation_id: UUID) -> UserInvitation:
        """Cancel a pending invitation. Cancelling twice is a no-op."""
        authorize(actor.role, "can_invite_users")
        invitation = await self._get_in_tenant(actor, invitation_id)

        state = token_state(invitation)
        if state is TokenState.CANCELLED:
            return invitation
        if state is TokenState.CONSUMED:
            raise StateConflictError("Invitation has already been accepted")
        if state is TokenState.EXPIRED:
            raise StateConflictError("Invitation has expired")

        try:
            if not await self.token_manager.revoke(TokenKind.INVITATION, invitation):
                raise StateConflictError("Invitation is no longer pending")
            await self.session.commit()
        except ConsoleError:
            await self.session.rollback()
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error("Failed to cancel invitation", error=str(e))
            raise

        logger.info(
            "Invitation cancelled",
            invitation_id=str(invitation.id),
            tenant_id=str(actor.tenant.id),
        )
        return invitation

    async def accept(
        self, token: str, first_name: str, last_name: str, password: str
    ) -> TenantUser:
        """Redeem an invitation: create the identity and an ACTIVE membership.

        On any failure the invitation stays redeemable.

        Raises:
            InvalidTokenError: unknown, expired, cancelled or already accepted.
            AccountCreationFailedError: an account with the invited email exists.
        """

        async def join(invitation: UserInvitation) -> TenantUser:
            if await self.tenant_user_repo.get_by_tenant_and_email(
                invitation.tenant_id, invitation.email
            ):
                raise DuplicateMemberError()

            identity = await self.identity_service.create_identity(
                invitation.email, password, confirmed=True
            )
            membership = TenantUser(
                user_id=identity.id,
                tenant_id=invitation.tenant_id,
                first_name=first_name.strip(),
                last_name=last_name.strip(),
                email=invitation.email,
                role=invitation.role,
                status=MemberStatus.ACTIVE.value,
                email_verified=True,
            )
            self.tenant_user_repo.add(membership)
            invitation.accepted_by_user_id = identity.id
            self.invitation_repo.add(invitation)
            return membership

        membership = await self.token_manager.consume(TokenKind.INVITATION, token, join)
        logger.info(
            "Invitation accepted",
            tenant_id=str(membership.tenant_id),
            user_id=str(membership.user_id),
            role=membership.role,
        )
        return membership

    async def get_invitation_info(self, token: str) -> InvitationInfo:
        """Public details of a redeemable invitation."""
        invitation: UserInvitation = await self.token_manager.validate(TokenKind.INVITATION, token)
        tenant = await self.tenant_repo.get_by_id(invitation.tenant_id)
        inviter = await self.tenant_user_repo.get_by_id(invitation.invited_by_user_id)
        return InvitationInfo(
            email=invitation.email,
            role=invitation.role,
            tenant_name=tenant.name if tenant else "",
            inviter_name=inviter.full_name if inviter else "A team member",
            expires_at=invitation.expires_at,
        )

    async def list_invitations(
        self, actor: CurrentSession, limit: int = 100, offset: int = 0
    ) -> tuple[list[UserInvitation], int]:
        """One page of the tenant's invitations, newest first, and the total count."""
        authorize(actor.role, "can_view_users")
        invitations = await self.invitation_repo.list_by_tenant(actor.tenant.id, limit, offset)
        total = await self.invitation_repo.count_by_tenant(actor.tenant.id)
        return invitations, total

    async def _issue_invitation(
        self, actor: CurrentSession, email: str, role: Role
    ) -> IssuedToken[UserInvitation]:
        # Racy against a concurrent invite, accept or signup for the same email.
        # The unique constraints on tenant_users (tenant_id, email) and users.email
        # are the backstop: a losing accept fails and leaves the token usable.
        if await self.tenant_user_repo.get_by_tenant_and_email(actor.tenant.id, email):
            logger.info(
                "Invitation rejected",
                reason="duplicate_member",
                tenant_id=str(actor.tenant.id),
                email=email_for_log(email),
            )
            raise DuplicateMemberError()
        if await self.identity_service.get_by_email(email) is not None:
            logger.info(
                "Invitation rejected",
                reason="existing_identity",
                tenant_id=str(actor.tenant.id),
                email=email_for_log(email),
            )
            raise StateConflictError("This email already has an account and cannot be invited")

        issued = await self.token_manager.reissue(
            TokenKind.INVITATION,
            UserInvitation(
                tenant_id=actor.tenant.id,
                invited_by_user_id=actor.membership.id,
                email=email,
                role=role.value,
            ),
            EmailNotice(
                to=email,
                template=EmailTemplate.INVITATION,
                context={
                    "tenant_name": actor.tenant.name,
                    "inviter_name": actor.membership.full_name,
                    "role": role.value,
                },
            ),
        )
        logger.info(
            "Invitation created",
            tenant_id=str(actor.tenant.id),
            invitation_id=str(issued.record.id),
            invited_by=str(actor.membership.id),
            role=role.value,
            email=email_for_log(email),
        )
        return issued

    async def _get_in_tenant(self, actor: CurrentSession, invitation_id: UUID) -> UserInvitation:
        invitation = await self.invitation_repo.get_by_id(invitation_id)
        if invitation is None or invitation.tenant_id != actor.tenant.id:
            raise NotFoundError("Invitation not found")
        return invitation
