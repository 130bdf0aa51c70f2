"""Repositories for single-use token tables.

All three token kinds share the validity predicate ``used_at IS NULL AND
expires_at > now`` (invitations also require status PENDING). Consumption is a
single conditional UPDATE on that predicate, so of two concurrent redemptions
exactly one sees a matched row.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

from sqlalchemy import and_, delete, func, or_
from sqlalchemy.orm.attributes import set_committed_value
from sqlmodel import select, update

from src.inbox_admin.models import (
    EmailConfirmation,
    InvitationStatus,
    PasswordReset,
    TokenRecord,
    UserInvitation,
    utc_now,
)
from src.inbox_admin.repositories.base import BaseRepository


class TokenRepository[TokenModel: TokenRecord](BaseRepository[TokenModel], ABC):
    """Shared storage operations for a token table.

    Subclasses set ``model`` and define who owns a token via ``_owner_clauses``.
    """

    def _valid_clauses(self, now: datetime) -> list[Any]:
        return [
            self.model.used_at.is_(None),  # type: ignore[union-attr]
            self.model.expires_at > now,  # type: ignore[operator]
        ]

    @abstractmethod
    def _owner_clauses(self, record: TokenModel) -> list[Any]:
        """Clauses selecting every token that belongs to the same owner as record."""

    def _consumed_values(self, now: datetime) -> dict[str, Any]:
        return {"used_at": now}

    def _invalidated_values(self, now: datetime) -> dict[str, Any]:
        return {"used_at": now}

    async def get_by_hash(self, token_hash: str) -> TokenModel | None:
        """Get a token by its hash regardless of state."""
        result = await self.session.execute(
            select(self.model).where(self.model.token_hash == token_hash)
        )
        return result.scalar_one_or_none()

    async def get_valid_by_hash(self, token_hash: str) -> TokenModel | None:
        """Get a token by its hash only if it is currently redeemable."""
        result = await self.session.execute(
            select(self.model).where(
                self.model.token_hash == token_hash,
                *self._valid_clauses(utc_now()),
            )
        )
        return result.scalar_one_or_none()

    async def mark_consumed(self, record: TokenModel) -> bool:
        """Atomically consume a token.

        Returns False when the row no longer matches the validity predicate,
        i.e. another transaction consumed or cancelled it first, or it expired.
        """
        return await self._transition(record, self._consumed_values(utc_now()))

    async def revoke(self, record: TokenModel) -> bool:
        """Invalidate a single still-valid token."""
        return await self._transition(record, self._invalidated_values(utc_now()))

    async def invalidate_for_owner(self, record: TokenModel) -> int:
        """Invalidate every still-valid token of the same owner. Returns rows touched."""
        now = utc_now()
        result = await self.session.execute(
            update(self.model)
            .where(*self._owner_clauses(record), *self._valid_clauses(now))
            .values(**self._invalidated_values(now))
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount or 0  # type: ignore[attr-defined]

    async def _transition(self, record: TokenModel, values: dict[str, Any]) -> bool:
        now = utc_now()
        result = await self.session.execute(
            update(self.model)
            .where(self.model.id == record.id, *self._valid_clauses(now))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if (result.rowcount or 0) != 1:  # type: ignore[attr-defined]
            return False
        for key, value in values.items():
            set_committed_value(record, key, value)
        return True

    async def cleanup_expired(self, retention_days: int) -> int:
        """Delete tokens expired or used more than retention_days ago.

        Returns:
            Number of tokens deleted
        """
        cutoff = utc_now() - timedelta(days=retention_days)
        stmt = delete(self.model).where(
            or_(
                self.model.expires_at < cutoff,  # type: ignore[operator]
                and_(
                    self.model.used_at.is_not(None),  # type: ignore[union-attr]
                    self.model.used_at < cutoff,  # type: ignore[operator]
                ),
            )
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount or 0  # type: ignore[attr-defined]


class EmailConfirmationRepository(TokenRepository[EmailConfirmation]):
    model = EmailConfirmation

    def _owner_clauses(self, record: EmailConfirmation) -> list[Any]:
        return [EmailConfirmation.user_id == record.user_id]


class PasswordResetRepository(TokenRepository[PasswordReset]):
    model = PasswordReset

    def _owner_clauses(self, record: PasswordReset) -> list[Any]:
        return [PasswordReset.user_id == record.user_id]


class UserInvitationRepository(TokenRepository[UserInvitation]):
    """Invitations are owned by the (tenant, email) pair they target."""

    model = UserInvitation

    def _valid_clauses(self, now: datetime) -> list[Any]:
        return [
            *super()._valid_clauses(now),
            UserInvitation.status == InvitationStatus.PENDING.value,
        ]

    def _owner_clauses(self, record: UserInvitation) -> list[Any]:
        return [
            UserInvitation.tenant_id == record.tenant_id,
            UserInvitation.email == record.email,
        ]

    def _consumed_values(self, now: datetime) -> dict[str, Any]:
        return {
            "used_at": now,
            "accepted_at": now,
            "status": InvitationStatus.ACCEPTED.value,
        }

    def _invalidated_values(self, now: datetime) -> dict[str, Any]:
        return {"used_at": now, "status": InvitationStatus.CANCELLED.value}

    async def list_by_tenant(
        self, tenant_id: UUID, limit: int = 100, offset: int = 0
    ) -> list[UserInvitation]:
        """List invitations for a tenant, newest first."""
        result = await self.session.execute(
            select(UserInvitation)
            .where(UserInvitation.tenant_id == tenant_id)
            .order_by(UserInvitation.created_at.desc())  # type: ignore[attr-defined]
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def count_by_tenant(self, tenant_id: UUID) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(UserInvitation)
            .where(UserInvitation.tenant_id == tenant_id)
        )
        return result.scalar_one()

    async def list_valid_for_email(self, tenant_id: UUID, email: str) -> list[UserInvitation]:
        """Redeemable invitations for an email in a tenant."""
        result = await self.session.execute(
            select(UserInvitation).where(
                UserInvitation.tenant_id == tenant_id,
                UserInvitation.email == email,
                *self._valid_clauses(utc_now()),
            )
        )
        return list(result.scalars().all())
