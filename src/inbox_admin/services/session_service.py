"""Session resolution and sign-in.

A session is the triple (identity, membership, tenant). It is resolved fresh on
every request from the access token; any missing link yields no session.
"""

from dataclasses import dataclass
from datetime import timedelta
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.inbox_admin.core.config import Settings, get_settings
from src.inbox_admin.core.exceptions import (
    AuthenticationError,
    ConsoleError,
    EmailNotConfirmedError,
    TwoFactorRequiredError,
    TwoFactorSetupRequiredError,
)
from src.inbox_admin.core.logging import email_for_log, get_logger
from src.inbox_admin.core.permissions import Permission, permissions_for, requires_two_factor
from src.inbox_admin.core.security import (
    ACCESS_TOKEN_TYPE,
    TWO_FACTOR_SETUP_TOKEN_TYPE,
    create_access_token,
    is_totp_code,
    match_backup_code,
    verify_code,
)
from src.inbox_admin.models import MemberStatus, Tenant, TenantUser, User, utc_now
from src.inbox_admin.repositories import TenantRepository, TenantUserRepository
from src.inbox_admin.services.identity_service import IdentityService

logger = get_logger(__name__)


@dataclass
class CurrentSession:
    identity: User
    membership: TenantUser
    tenant: Tenant

    @property
    def role(self) -> str:
        return self.membership.role

    @property
    def permissions(self) -> Permission:
        return permissions_for(self.membership.role)


@dataclass
class SignInResult:
    access_token: str
    session: CurrentSession


class SessionResolver:
    """Resolves the caller's identity, membership and tenant."""

    def __init__(
        self,
        identity_service: IdentityService,
        tenant_user_repo: TenantUserRepository,
        tenant_repo: TenantRepository,
        session: AsyncSession,
        settings: Settings | None = None,
    ):
        self.identity_service = identity_service
        self.tenant_user_repo = tenant_user_repo
        self.tenant_repo = tenant_repo
        self.session = session
        self.settings = settings or get_settings()

    async def resolve(self, identity: User, tenant_id: UUID) -> CurrentSession | None:
        """Build a session for an identity in a tenant.

        Returns None when the membership or tenant is missing or the member
        is suspended.
        """
        membership = await self.tenant_user_repo.get_membership(identity.id, tenant_id)
        if membership is None or membership.status == MemberStatus.SUSPENDED.value:
            return None

        tenant = await self.tenant_repo.get_by_id(membership.tenant_id)
        if tenant is None:
            return None
        return CurrentSession(identity=identity, membership=membership, tenant=tenant)

    async def current_user(
        self, access_token: str | None, token_type: str = ACCESS_TOKEN_TYPE
    ) -> CurrentSession | None:
        """Resolve a bearer token to a session, or None.

        Only tokens of ``token_type`` are accepted, so a two-factor setup token
        never resolves where a full access token is required.
        """
        if not access_token:
            return None

        claims = self.identity_service.decode_access_token(access_token, token_type)
        if claims is None or claims.tenant_id is None:
            return None

        identity = await self.identity_service.current_identity(access_token, token_type)
        if identity is None:
            return None
        return await self.resolve(identity, claims.tenant_id)

    async def sign_in(
        self,
        email: str,
        password: str,
        two_factor_code: str | None = None,
        tenant_slug: str | None = None,
    ) -> SignInResult:
        """Authenticate and return an access token scoped to one membership.

        Validates:
        1. Credentials (timing-safe)
        2. Email confirmed
        3. Membership exists (in ``tenant_slug`` if given) and is not suspended
        4. TOTP or backup code when two-factor is enabled; roles that require
           two-factor get a setup token instead of a session until they enroll

        Updates ``last_login`` on success.
        """
        try:
            identity = await self.identity_service.verify_credentials(email, password)
            if identity is None:
                logger.info("Sign-in failed", reason="credentials", email=email_for_log(email))
                raise AuthenticationError()

            if identity.email_confirmed_at is None:
                raise EmailNotConfirmedError()

            membership = await self._select_membership(identity, tenant_slug)
            if membership is None:
                logger.info("Sign-in failed", reason="no_membership", user_id=str(identity.id))
                raise AuthenticationError()

            if membership.status == MemberStatus.SUSPENDED.value:
                logger.info("Sign-in failed", reason="suspended", user_id=str(identity.id))
                raise AuthenticationError("This account has been suspended")

            if membership.status == MemberStatus.PENDING.value:
                raise EmailNotConfirmedError()

            if membership.two_factor_enabled:
                if not two_factor_code:
                    raise TwoFactorRequiredError()
                if not await self._check_second_factor(membership, two_factor_code):
                    logger.info("Sign-in failed", reason="two_factor", user_id=str(identity.id))
                    raise AuthenticationError("Invalid two-factor authentication code")
            elif requires_two_factor(membership.role):
                logger.info(
                    "Sign-in held for two-factor setup",
                    user_id=str(identity.id),
                    role=membership.role,
                )
                raise TwoFactorSetupRequiredError(self._setup_token(identity, membership))

            tenant = await self.tenant_repo.get_by_id(membership.tenant_id)
            if tenant is None:
                raise AuthenticationError()

            membership.last_login = utc_now()
            self.tenant_user_repo.add(membership)
            await self.session.commit()
        except ConsoleError:
            await self.session.rollback()
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error("Sign-in error", error=str(e))
            raise

        logger.info("Signed in", user_id=str(identity.id), tenant_id=str(tenant.id))
        return SignInResult(
            access_token=create_access_token(identity.id, tenant.id),
            session=CurrentSession(identity=identity, membership=membership, tenant=tenant),
        )

    async def _check_second_factor(self, membership: TenantUser, code: str) -> bool:
        """Verify a TOTP code, or redeem a backup code (each works once)."""
        if is_totp_code(code):
            secret = membership.two_factor_secret
            return secret is not None and verify_code(secret, code)

        matched = match_backup_code(membership.two_factor_backup_codes, code)
        if matched is None:
            return False
        remaining = [h for h in membership.two_factor_backup_codes if h != matched]
        if not await self.tenant_user_repo.replace_backup_codes(membership, remaining):
            return False
        logger.info(
            "Backup code used",
            member_id=str(membership.id),
            remaining=len(membership.two_factor_backup_codes),
        )
        return True

    def _setup_token(self, identity: User, membership: TenantUser) -> str:
        return create_access_token(
            identity.id,
            membership.tenant_id,
            expires_delta=timedelta(minutes=self.settings.two_factor_setup_token_expire_minutes),
            token_type=TWO_FACTOR_SETUP_TOKEN_TYPE,
        )

    async def _select_membership(
        self, identity: User, tenant_slug: str | None
    ) -> TenantUser | None:
        if tenant_slug:
            tenant = await self.tenant_repo.get_by_slug(tenant_slug)
            if tenant is None:
                return None
            return await self.tenant_user_repo.get_membership(identity.id, tenant.id)

        # Without a slug: oldest usable membership, falling back to any
        memberships = await self.tenant_user_repo.list_by_user(identity.id)
        for membership in memberships:
            if membership.status != MemberStatus.SUSPENDED.value:
                return membership
        return memberships[0] if memberships else None
