"""TOTP two-factor enrollment for tenant members."""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from src.inbox_admin.core.exceptions import (
    InvalidTwoFactorCodeError,
    PermissionDeniedError,
    StateConflictError,
)
from src.inbox_admin.core.logging import get_logger
from src.inbox_admin.core.permissions import requires_two_factor
from src.inbox_admin.core.security import (
    generate_backup_codes,
    generate_secret,
    hash_backup_code,
    verify_code,
)
from src.inbox_admin.models import TenantUser, utc_now
from src.inbox_admin.repositories import TenantUserRepository
from src.inbox_admin.services.session_service import CurrentSession

logger = get_logger(__name__)


@dataclass(frozen=True)
class TwoFactorEnrollment:
    """Everything the user must save during setup. Plaintext codes exist only here."""

    secret: str
    otpauth_url: str
    backup_codes: list[str]


class TwoFactorService:
    """Enrollment is two-step: a secret is stored disabled until a code from it verifies."""

    def __init__(self, tenant_user_repo: TenantUserRepository, session: AsyncSession):
        self.tenant_user_repo = tenant_user_repo
        self.session = session

    async def begin_setup(self, actor: CurrentSession) -> TwoFactorEnrollment:
        """Store a fresh secret and backup codes; nothing is enforced until confirmed."""
        membership = actor.membership
        if membership.two_factor_enabled:
            raise StateConflictError("Two-factor authentication is already enabled")

        secret = generate_secret(membership.email)
        backup_codes = generate_backup_codes()
        membership.two_factor_secret = secret.secret
        membership.two_factor_backup_codes = [hash_backup_code(c) for c in backup_codes]
        await self._save(membership)
        logger.info("Two-factor setup started", member_id=str(membership.id))
        return TwoFactorEnrollment(
            secret=secret.secret,
            otpauth_url=secret.otpauth_url,
            backup_codes=backup_codes,
        )

    async def confirm_setup(self, actor: CurrentSession, code: str) -> TenantUser:
        membership = actor.membership
        if membership.two_factor_enabled:
            raise StateConflictError("Two-factor authentication is already enabled")
        if not membership.two_factor_secret:
            raise StateConflictError("Two-factor setup has not been started")
        if not verify_code(membership.two_factor_secret, code):
            raise InvalidTwoFactorCodeError()

        membership.two_factor_enabled = True
        await self._save(membership)
        logger.info("Two-factor enabled", member_id=str(membership.id))
        return membership

    async def disable(self, actor: CurrentSession, code: str) -> TenantUser:
        membership = actor.membership
        if requires_two_factor(membership.role):
            raise PermissionDeniedError("Two-factor authentication is mandatory for this role")
        if not membership.two_factor_enabled or not membership.two_factor_secret:
            raise StateConflictError("Two-factor authentication is not enabled")
        if not verify_code(membership.two_factor_secret, code):
            raise InvalidTwoFactorCodeError()

        membership.two_factor_enabled = False
        membership.two_factor_secret = None
        membership.two_factor_backup_codes = []
        await self._save(membership)
        logger.info("Two-factor disabled", member_id=str(membership.id))
        return membership

    async def _save(self, membership: TenantUser) -> None:
        membership.updated_at = utc_now()
        try:
            self.tenant_user_repo.add(membership)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
