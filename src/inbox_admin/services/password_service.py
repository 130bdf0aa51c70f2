"""Password reset via single-use tokens."""

from src.inbox_admin.core.exceptions import InvalidTokenError
from src.inbox_admin.core.logging import email_for_log, get_logger
from src.inbox_admin.core.notifications import EmailNotice, EmailTemplate
from src.inbox_admin.models import PasswordReset, TokenKind, User
from src.inbox_admin.repositories import UserRepository
from src.inbox_admin.services.identity_service import IdentityService
from src.inbox_admin.services.token_service import IssuedToken, TokenLifecycleManager

logger = get_logger(__name__)


class PasswordService:
    def __init__(
        self,
        identity_service: IdentityService,
        token_manager: TokenLifecycleManager,
        user_repo: UserRepository,
    ):
        self.identity_service = identity_service
        self.token_manager = token_manager
        self.user_repo = user_repo

    async def request_reset(self, email: str) -> IssuedToken[PasswordReset] | None:
        """Email a reset link, invalidating earlier ones.

        Returns None for unknown emails; the API reports success either way.
        """
        identity = await self.identity_service.get_by_email(email)
        if identity is None or not identity.is_active:
            logger.info("Password reset requested for unknown email", email=email_for_log(email))
            return None

        issued = await self.token_manager.reissue(
            TokenKind.PASSWORD_RESET,
            PasswordReset(user_id=identity.id),
            EmailNotice(to=identity.email, template=EmailTemplate.PASSWORD_RESET),
        )
        logger.info("Password reset requested", user_id=str(identity.id))
        return issued

    async def reset_password(self, token: str, new_password: str) -> User:
        """Consume a reset token and set the new password."""

        async def apply(record: PasswordReset) -> User:
            identity = await self.user_repo.get_by_id(record.user_id)
            if identity is None or not identity.is_active:
                raise InvalidTokenError()
            await self.identity_service.set_password(identity, new_password)
            return identity

        identity = await self.token_manager.consume(TokenKind.PASSWORD_RESET, token, apply)
        logger.info("Password reset", user_id=str(identity.id))
        return identity
