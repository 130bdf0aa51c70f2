"""Platform SuperAdmin bootstrap.

The SuperAdmin is an ordinary identity with an ACTIVE SUPER_ADMIN membership
in the platform tenant. It starts with an unusable random password and
receives a password-reset link as its first-login invitation. Sign-in is then
held until an authenticator is enrolled, and two-factor cannot be turned off.
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from src.inbox_admin.core.config import Settings, get_settings
from src.inbox_admin.core.exceptions import StateConflictError
from src.inbox_admin.core.logging import email_for_log, get_logger
from src.inbox_admin.core.notifications import EmailNotice, EmailTemplate
from src.inbox_admin.core.security import generate_token
from src.inbox_admin.models import (
    MemberStatus,
    PasswordReset,
    Role,
    Tenant,
    TenantUser,
    TokenKind,
)
from src.inbox_admin.repositories import TenantRepository, TenantUserRepository
from src.inbox_admin.services.identity_service import IdentityService
from src.inbox_admin.services.token_service import IssuedToken, TokenLifecycleManager

logger = get_logger(__name__)


@dataclass
class BootstrapResult:
    membership: TenantUser
    first_login: IssuedToken[PasswordReset]
    created: bool


class SuperAdminService:
    def __init__(
        self,
        identity_service: IdentityService,
        token_manager: TokenLifecycleManager,
        tenant_repo: TenantRepository,
        tenant_user_repo: TenantUserRepository,
        session: AsyncSession,
        settings: Settings | None = None,
    ):
        self.identity_service = identity_service
        self.token_manager = token_manager
        self.tenant_repo = tenant_repo
        self.tenant_user_repo = tenant_user_repo
        self.session = session
        self.settings = settings or get_settings()

    async def bootstrap(
        self, email: str, first_name: str = "Super", last_name: str = "Admin"
    ) -> BootstrapResult:
        """Ensure a SuperAdmin exists for ``email`` and send a first-login link.

        Re-running for an existing SuperAdmin only issues a fresh link.

        Raises:
            StateConflictError: the email belongs to an identity that is not a SuperAdmin.
        """
        try:
            tenant = await self._ensure_platform_tenant()
            identity = await self.identity_service.get_by_email(email)
            created = identity is None

            if identity is None:
                identity = await self.identity_service.create_identity(
                    email, generate_token(), confirmed=True
                )
                membership = TenantUser(
                    user_id=identity.id,
                    tenant_id=tenant.id,
                    first_name=first_name,
                    last_name=last_name,
                    email=identity.email,
                    role=Role.SUPER_ADMIN.value,
                    status=MemberStatus.ACTIVE.value,
                    email_verified=True,
                )
                self.tenant_user_repo.add(membership)
            else:
                existing = await self.tenant_user_repo.get_membership(identity.id, tenant.id)
                if existing is None or existing.role != Role.SUPER_ADMIN.value:
                    raise StateConflictError("This email belongs to a non-administrator account")
                membership = existing
        except Exception:
            await self.session.rollback()
            raise

        first_login = await self.token_manager.reissue(
            TokenKind.PASSWORD_RESET,
            PasswordReset(user_id=identity.id),
            EmailNotice(to=identity.email, template=EmailTemplate.FIRST_LOGIN),
        )
        logger.info(
            "SuperAdmin bootstrapped",
            user_id=str(identity.id),
            created=created,
            email=email_for_log(identity.email),
        )
        return BootstrapResult(membership=membership, first_login=first_login, created=created)

    async def _ensure_platform_tenant(self) -> Tenant:
        tenant = await self.tenant_repo.get_by_slug(self.settings.platform_tenant_slug)
        if tenant is None:
            tenant = Tenant(
                name=self.settings.platform_tenant_name,
                slug=self.settings.platform_tenant_slug,
            )
            self.tenant_repo.add(tenant)
            await self.session.flush()
            logger.info("Platform tenant created", tenant_id=str(tenant.id))
        return tenant
