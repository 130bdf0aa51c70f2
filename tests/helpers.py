"""Test helper functions for common data creation patterns."""

from dataclasses import dataclass
from urllib.parse import parse_qs, urlparse

from sqlalchemy.ext.asyncio import AsyncSession

from src.inbox_admin.core.notifications import EmailNotice, EmailSender, EmailTemplate
from src.inbox_admin.core.security import create_access_token
from src.inbox_admin.models import MemberStatus, Role, Tenant, TenantUser, User
from src.inbox_admin.repositories import (
    EmailConfirmationRepository,
    PasswordResetRepository,
    TenantRepository,
    TenantUserRepository,
    UserInvitationRepository,
    UserRepository,
)
from src.inbox_admin.services import (
    CurrentSession,
    IdentityService,
    InvitationService,
    MemberService,
    PasswordService,
    RegistrationService,
    SessionResolver,
    SuperAdminService,
    TokenLifecycleManager,
    TwoFactorService,
)
from tests.factories import TenantFactory, TenantUserFactory, UserFactory, generate_uuid


class RecordingEmailSender(EmailSender):
    """EmailSender that keeps notices in memory. Set ``fail`` to simulate an outage."""

    def __init__(self):
        super().__init__()
        self.sent: list[EmailNotice] = []
        self.fail = False

    async def _deliver(self, notice: EmailNotice, subject: str, body: str) -> None:
        if self.fail:
            raise ConnectionError("Email provider unavailable")
        self.sent.append(notice)

    def of_template(self, template: EmailTemplate) -> list[EmailNotice]:
        return [n for n in self.sent if n.template is template]

    def last_token(self, template: EmailTemplate) -> str:
        """Plaintext token from the link in the most recent email of a template."""
        link = self.of_template(template)[-1].context["link"]
        return parse_qs(urlparse(link).query)["token"][0]


@dataclass
class Services:
    """Every service wired to one session, as the API dependencies do."""

    session: AsyncSession
    identity: IdentityService
    tokens: TokenLifecycleManager
    resolver: SessionResolver
    registration: RegistrationService
    passwords: PasswordService
    invitations: InvitationService
    members: MemberService
    two_factor: TwoFactorService
    superadmin: SuperAdminService


def build_services(session: AsyncSession, email_sender: EmailSender) -> Services:
    user_repo = UserRepository(session)
    tenant_repo = TenantRepository(session)
    tenant_user_repo = TenantUserRepository(session)
    invitation_repo = UserInvitationRepository(session)

    identity = IdentityService(user_repo, session)
    tokens = TokenLifecycleManager(
        EmailConfirmationRepository(session),
        PasswordResetRepository(session),
        invitation_repo,
        session,
        email_sender,
    )
    return Services(
        session=session,
        identity=identity,
        tokens=tokens,
        resolver=SessionResolver(identity, tenant_user_repo, tenant_repo, session),
        registration=RegistrationService(
            identity, tokens, user_repo, tenant_repo, tenant_user_repo, session, email_sender
        ),
        passwords=PasswordService(identity, tokens, user_repo),
        invitations=InvitationService(
            tokens, identity, invitation_repo, tenant_user_repo, tenant_repo, session
        ),
        members=MemberService(tenant_user_repo, session),
        two_factor=TwoFactorService(tenant_user_repo, session),
        superadmin=SuperAdminService(identity, tokens, tenant_repo, tenant_user_repo, session),
    )


async def create_tenant(session: AsyncSession, **tenant_kwargs) -> Tenant:
    """Create and commit a tenant."""
    tenant = TenantFactory.build(**tenant_kwargs)
    session.add(tenant)
    await session.commit()
    return tenant


async def create_member(
    session: AsyncSession,
    tenant: Tenant,
    role: Role = Role.TENANT_ADMIN,
    status: MemberStatus = MemberStatus.ACTIVE,
    **member_kwargs,
) -> CurrentSession:
    """Create an identity with a membership in ``tenant`` and commit.

    Args:
        session: Database session
        tenant: Tenant to create membership in
        role: Role for the membership (default: TENANT_ADMIN)
        status: Membership status (default: ACTIVE)
        **member_kwargs: Additional args passed to TenantUserFactory

    Returns:
        The (identity, membership, tenant) session for the new member
    """
    user: User = UserFactory.build(email=member_kwargs.pop("email", None) or _random_email())
    session.add(user)
    await session.flush()

    membership: TenantUser = TenantUserFactory.build(
        user_id=user.id,
        tenant_id=tenant.id,
        email=user.email,
        role=role.value,
        status=status.value,
        **member_kwargs,
    )
    session.add(membership)
    await session.commit()
    return CurrentSession(identity=user, membership=membership, tenant=tenant)


def auth_headers(current: CurrentSession) -> dict[str, str]:
    """Bearer header for a member's session."""
    token = create_access_token(current.identity.id, current.tenant.id)
    return {"Authorization": f"Bearer {token}"}


def _random_email() -> str:
    return f"member_{generate_uuid().hex[-8:]}@example.com"
