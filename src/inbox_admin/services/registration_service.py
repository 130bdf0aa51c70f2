"""Organization signup and email confirmation."""

import re
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.inbox_admin.core.exceptions import ConsoleError, InvalidTokenError, StateConflictError
from src.inbox_admin.core.logging import email_for_log, get_logger
from src.inbox_admin.core.notifications import EmailNotice, EmailSender, EmailTemplate
from src.inbox_admin.models import (
    EmailConfirmation,
    MemberStatus,
    Role,
    Tenant,
    TenantUser,
    TokenKind,
    User,
    utc_now,
)
from src.inbox_admin.models.tenant import MAX_TENANT_SLUG_LENGTH
from src.inbox_admin.repositories import (
    TenantRepository,
    TenantUserRepository,
    UserRepository,
)
from src.inbox_admin.services.identity_service import IdentityService, normalize_email
from src.inbox_admin.services.token_service import TokenLifecycleManager

logger = get_logger(__name__)

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")
# Leaves room for a "-NNN" collision suffix
_SLUG_BASE_LENGTH = MAX_TENANT_SLUG_LENGTH - 4


def derive_slug(name: str) -> str:
    """URL-safe slug from an organization name: lowercase words joined by '-'."""
    slug = _NON_SLUG_CHARS.sub("-", name.lower()).strip("-")
    slug = slug[:_SLUG_BASE_LENGTH].rstrip("-")
    return slug or "org"


@dataclass
class SignUpResult:
    tenant: Tenant
    identity: User
    membership: TenantUser
    email_sent: bool


@dataclass
class ConfirmationResult:
    identity: User
    memberships: list[TenantUser]


class RegistrationService:
    """Creates a tenant with its owner and confirms the owner's email."""

    def __init__(
        self,
        identity_service: IdentityService,
        token_manager: TokenLifecycleManager,
        user_repo: UserRepository,
        tenant_repo: TenantRepository,
        tenant_user_repo: TenantUserRepository,
        session: AsyncSession,
        email_sender: EmailSender,
    ):
        self.identity_service = identity_service
        self.token_manager = token_manager
        self.user_repo = user_repo
        self.tenant_repo = tenant_repo
        self.tenant_user_repo = tenant_user_repo
        self.session = session
        self.email_sender = email_sender

    async def sign_up(
        self,
        first_name: str,
        last_name: str,
        email: str,
        password: str,
        organization: str,
        phone: str | None = None,
    ) -> SignUpResult:
        """Create tenant, identity and PENDING owner membership, then send the confirmation.

        All rows are committed together with the confirmation token.

        Raises:
            AccountCreationFailedError: if the email is already registered.
        """
        email = normalize_email(email)
        try:
            tenant = Tenant(name=organization.strip(), slug=await self._unique_slug(organization))
            self.tenant_repo.add(tenant)
            try:
                await self.session.flush()
            except IntegrityError as e:
                raise StateConflictError("Organization name is not available, try again") from e

            identity = await self.identity_service.create_identity(email, password)

            membership = TenantUser(
                user_id=identity.id,
                tenant_id=tenant.id,
                first_name=first_name.strip(),
                last_name=last_name.strip(),
                email=email,
                phone=phone,
                role=Role.TENANT_OWNER.value,
                status=MemberStatus.PENDING.value,
                email_verified=False,
            )
            self.tenant_user_repo.add(membership)
        except ConsoleError:
            await self.session.rollback()
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error("Failed to sign up", error=str(e))
            raise

        issued = await self.token_manager.issue(
            TokenKind.EMAIL_CONFIRMATION,
            EmailConfirmation(user_id=identity.id),
            EmailNotice(
                to=email,
                template=EmailTemplate.CONFIRMATION,
                context={"first_name": membership.first_name},
            ),
        )

        logger.info(
            "Organization signed up",
            tenant_id=str(tenant.id),
            tenant_slug=tenant.slug,
            user_id=str(identity.id),
        )
        return SignUpResult(
            tenant=tenant,
            identity=identity,
            membership=membership,
            email_sent=issued.email_sent,
        )

    async def confirm_email(self, token: str) -> ConfirmationResult:
        """Consume a confirmation token and activate the identity's pending memberships."""

        async def activate(record: EmailConfirmation) -> ConfirmationResult:
            identity = await self.user_repo.get_by_id(record.user_id)
            if identity is None:
                raise InvalidTokenError()

            now = utc_now()
            identity.email_confirmed_at = identity.email_confirmed_at or now
            identity.updated_at = now
            self.user_repo.add(identity)

            memberships = await self.tenant_user_repo.list_pending_for_user(identity.id)
            for membership in memberships:
                membership.status = MemberStatus.ACTIVE.value
                membership.email_verified = True
                membership.updated_at = now
                self.tenant_user_repo.add(membership)
            return ConfirmationResult(identity=identity, memberships=memberships)

        result = await self.token_manager.consume(TokenKind.EMAIL_CONFIRMATION, token, activate)
        logger.info("Email confirmed", user_id=str(result.identity.id))

        first_name = result.memberships[0].first_name if result.memberships else ""
        await self.email_sender.send(
            EmailNotice(
                to=result.identity.email,
                template=EmailTemplate.WELCOME,
                context={"first_name": first_name},
            )
        )
        return result

    async def resend_confirmation(self, email: str) -> None:
        """Reissue a confirmation link.

        Silent for unknown or already confirmed emails so callers cannot
        learn which accounts exist.
        """
        identity = await self.identity_service.get_by_email(email)
        if identity is None or identity.email_confirmed_at is not None:
            logger.info("Confirmation resend skipped", email=email_for_log(email))
            return

        memberships = await self.tenant_user_repo.list_by_user(identity.id)
        first_name = memberships[0].first_name if memberships else ""
        await self.token_manager.reissue(
            TokenKind.EMAIL_CONFIRMATION,
            EmailConfirmation(user_id=identity.id),
            EmailNotice(
                to=identity.email,
                template=EmailTemplate.CONFIRMATION,
                context={"first_name": first_name},
            ),
        )

    async def _unique_slug(self, organization: str) -> str:
        base = derive_slug(organization)
        slug = base
        suffix = 2
        while await self.tenant_repo.slug_exists(slug):
            slug = f"{base}-{suffix}"
            suffix += 1
        return slug
