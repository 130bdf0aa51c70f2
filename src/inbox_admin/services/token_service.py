"""Token lifecycle - issue, validate, consume and reissue single-use tokens.

One manager serves email confirmation, password reset and invitation tokens.
Tokens are 256-bit random strings; only their SHA-256 hash is persisted.

Consumption runs the caller's effect and the conditional "mark consumed"
update in one transaction. If the update matches no row (a concurrent
redemption won, or the token lapsed in between) the effect is rolled back and
the token reported invalid, so an effect is applied at most once per token.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.inbox_admin.core.config import Settings, get_settings
from src.inbox_admin.core.exceptions import ConsoleError, InvalidTokenError
from src.inbox_admin.core.logging import email_for_log, get_logger
from src.inbox_admin.core.notifications import EmailNotice, EmailSender
from src.inbox_admin.core.security import generate_token, hash_token
from src.inbox_admin.models import TokenKind, TokenRecord, TokenState, token_state, utc_now
from src.inbox_admin.repositories import (
    EmailConfirmationRepository,
    PasswordResetRepository,
    TokenRepository,
    UserInvitationRepository,
)

logger = get_logger(__name__)

# Frontend routes that receive ?token=...
LINK_PATHS: dict[TokenKind, str] = {
    TokenKind.EMAIL_CONFIRMATION: "/confirm-email",
    TokenKind.PASSWORD_RESET: "/reset-password",
    TokenKind.INVITATION: "/accept-invitation",
}


@dataclass
class IssuedToken[RecordType: TokenRecord]:
    """A freshly issued token. ``token`` is the only copy of the plaintext."""

    record: RecordType
    token: str
    email_sent: bool


class TokenLifecycleManager:
    """Shared lifecycle for every single-use token kind."""

    def __init__(
        self,
        confirmation_repo: EmailConfirmationRepository,
        reset_repo: PasswordResetRepository,
        invitation_repo: UserInvitationRepository,
        session: AsyncSession,
        email_sender: EmailSender,
        settings: Settings | None = None,
    ):
        self.repos: dict[TokenKind, TokenRepository[Any]] = {
            TokenKind.EMAIL_CONFIRMATION: confirmation_repo,
            TokenKind.PASSWORD_RESET: reset_repo,
            TokenKind.INVITATION: invitation_repo,
        }
        self.session = session
        self.email_sender = email_sender
        self.settings = settings or get_settings()

    def link_for(self, kind: TokenKind, token: str) -> str:
        return f"{self.settings.app_url}{LINK_PATHS[kind]}?token={token}"

    async def issue[RecordType: TokenRecord](
        self,
        kind: TokenKind,
        record: RecordType,
        notice: EmailNotice | None = None,
    ) -> IssuedToken[RecordType]:
        """Persist a new token for ``record``'s owner and email the link.

        Commits the session, so anything the caller added beforehand lands in
        the same transaction. Email delivery happens after the commit and its
        failure is reported through ``email_sent`` rather than raised.
        """
        token = generate_token()
        record.token_hash = hash_token(token)
        record.expires_at = utc_now() + self.settings.token_ttl(kind)
        record.used_at = None

        try:
            self.repos[kind].add(record)
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error("Failed to issue token", kind=kind.value, error=str(e))
            raise

        logger.info("Token issued", kind=kind.value, token_id=str(record.id))

        email_sent = True
        if notice is not None:
            notice.context["link"] = self.link_for(kind, token)
            email_sent = await self.email_sender.send(notice)
            if not email_sent:
                logger.warning(
                    "Token issued but email delivery failed",
                    kind=kind.value,
                    token_id=str(record.id),
                    to=email_for_log(notice.to),
                )
        return IssuedToken(record=record, token=token, email_sent=email_sent)

    async def reissue[RecordType: TokenRecord](
        self,
        kind: TokenKind,
        record: RecordType,
        notice: EmailNotice | None = None,
    ) -> IssuedToken[RecordType]:
        """Invalidate the owner's outstanding tokens, then issue a fresh one.

        Afterwards at most one token for the owner is valid.
        """
        try:
            invalidated = await self.repos[kind].invalidate_for_owner(record)
        except Exception:
            await self.session.rollback()
            raise
        if invalidated:
            logger.info("Outstanding tokens invalidated", kind=kind.value, count=invalidated)
        return await self.issue(kind, record, notice)

    async def validate(self, kind: TokenKind, token: str) -> Any:
        """Return the token's record if redeemable, else raise InvalidTokenError.

        Unknown, used, expired and cancelled tokens are indistinguishable.
        """
        record = await self.repos[kind].get_valid_by_hash(hash_token(token))
        if record is None:
            logger.info("Token rejected", kind=kind.value)
            raise InvalidTokenError()
        return record

    async def consume[ResultType](
        self,
        kind: TokenKind,
        token: str,
        effect: Callable[[Any], Awaitable[ResultType]],
    ) -> ResultType:
        """Apply ``effect`` and mark the token consumed, atomically.

        ``effect`` receives the token record and may stage changes on the
        session (flush only, never commit). Any failure rolls everything back
        and leaves the token redeemable.
        """
        try:
            record = await self.validate(kind, token)
            result = await effect(record)
            await self.session.flush()

            if not await self.repos[kind].mark_consumed(record):
                logger.warning("Token consumed concurrently", kind=kind.value)
                raise InvalidTokenError()

            await self.session.commit()
        except ConsoleError:
            await self.session.rollback()
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error("Failed to consume token", kind=kind.value, error=str(e))
            raise

        logger.info("Token consumed", kind=kind.value, token_id=str(record.id))
        return result

    async def revoke(self, kind: TokenKind, record: TokenRecord) -> bool:
        """Invalidate one token. Caller commits."""
        return await self.repos[kind].revoke(record)

    async def inspect(self, kind: TokenKind, token: str) -> TokenState | None:
        """Derived state of a token, or None if it never existed."""
        record = await self.repos[kind].get_by_hash(hash_token(token))
        if record is None:
            return None
        return token_state(record)

    async def cleanup_expired(self, retention_days: int | None = None) -> dict[str, int]:
        """Delete long-dead tokens of every kind. Returns deleted counts per kind."""
        days = retention_days or self.settings.token_cleanup_retention_days
        deleted = {}
        for kind, repo in self.repos.items():
            deleted[kind.value] = await repo.cleanup_expired(days)
        logger.info("Expired tokens cleaned up", retention_days=days, **deleted)
        return deleted
