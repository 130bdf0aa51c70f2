"""Identity provider - credentials, password changes and access tokens.

Identities (``users`` rows) carry only login data. Everything tenant-specific
lives on TenantUser.
"""

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.inbox_admin.core.exceptions import AccountCreationFailedError
from src.inbox_admin.core.logging import email_for_log, get_logger
from src.inbox_admin.core.security import (
    ACCESS_TOKEN_TYPE,
    DUMMY_PASSWORD_HASH,
    decode_token,
    hash_password,
    verify_password,
)
from src.inbox_admin.models import User, utc_now
from src.inbox_admin.repositories import UserRepository

logger = get_logger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


@dataclass(frozen=True)
class AccessClaims:
    user_id: UUID
    tenant_id: UUID | None


class IdentityService:
    """Creates and authenticates identities. Never commits; callers own the transaction."""

    def __init__(self, user_repo: UserRepository, session: AsyncSession):
        self.user_repo = user_repo
        self.session = session

    async def get_by_email(self, email: str) -> User | None:
        return await self.user_repo.get_by_email(normalize_email(email))

    async def create_identity(self, email: str, password: str, confirmed: bool = False) -> User:
        """Stage a new identity.

        Raises:
            AccountCreationFailedError: if the email is already registered.
        """
        email = normalize_email(email)
        if await self.user_repo.exists_by_email(email):
            logger.info(
                "Identity creation rejected", reason="email_taken", email=email_for_log(email)
            )
            raise AccountCreationFailedError("An account with this email already exists")

        user = User(
            email=email,
            hashed_password=hash_password(password),
            email_confirmed_at=utc_now() if confirmed else None,
        )
        self.user_repo.add(user)
        try:
            await self.session.flush()
        except IntegrityError as e:
            # Lost a race with a concurrent signup for the same email
            raise AccountCreationFailedError("An account with this email already exists") from e
        return user

    async def verify_credentials(self, email: str, password: str) -> User | None:
        """Return the identity if the password matches.

        Always runs one hash verification so unknown emails cost the same time.
        """
        user = await self.user_repo.get_by_email(normalize_email(email))
        password_hash = user.hashed_password if user else DUMMY_PASSWORD_HASH
        password_valid = verify_password(password, password_hash)

        if user is None or not password_valid or not user.is_active:
            return None
        return user

    async def set_password(self, user: User, new_password: str) -> None:
        """Stage a password change."""
        user.hashed_password = hash_password(new_password)
        user.updated_at = utc_now()
        self.user_repo.add(user)

    def decode_access_token(
        self, access_token: str, token_type: str = ACCESS_TOKEN_TYPE
    ) -> AccessClaims | None:
        """Claims of a bearer token of the given type, or None."""
        payload = decode_token(access_token)
        if payload is None or payload.get("type") != token_type:
            return None

        try:
            user_id = UUID(str(payload.get("sub")))
        except ValueError:
            return None

        tenant_id = None
        if payload.get("tenant_id"):
            try:
                tenant_id = UUID(str(payload["tenant_id"]))
            except ValueError:
                return None
        return AccessClaims(user_id=user_id, tenant_id=tenant_id)

    async def current_identity(
        self, access_token: str, token_type: str = ACCESS_TOKEN_TYPE
    ) -> User | None:
        """Resolve a bearer token to an active identity."""
        claims = self.decode_access_token(access_token, token_type)
        if claims is None:
            return None
        user = await self.user_repo.get_by_id(claims.user_id)
        if user is None or not user.is_active:
            return None
        return user
