"""Repositories for identities and tenant members."""

from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm.attributes import set_committed_value
from sqlmodel import select, update

from src.inbox_admin.models import MemberStatus, TenantUser, User, utc_now
from src.inbox_admin.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for login identities."""

    model = User

    async def get_by_email(self, email: str) -> User | None:
        """Get identity by email address."""
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def exists_by_email(self, email: str) -> bool:
        """Check if an identity with the given email exists."""
        user = await self.get_by_email(email)
        return user is not None


class TenantUserRepository(BaseRepository[TenantUser]):
    """Repository for tenant memberships (role, status and profile)."""

    model = TenantUser

    async def get_membership(self, user_id: UUID, tenant_id: UUID) -> TenantUser | None:
        """Get the membership of an identity in a tenant."""
        result = await self.session.execute(
            select(TenantUser).where(
                TenantUser.user_id == user_id,
                TenantUser.tenant_id == tenant_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_by_tenant_and_email(self, tenant_id: UUID, email: str) -> TenantUser | None:
        """Get a tenant's member by email, in any status."""
        result = await self.session.execute(
            select(TenantUser).where(
                TenantUser.tenant_id == tenant_id,
                TenantUser.email == email,
            )
        )
        return result.scalar_one_or_none()

    async def list_by_user(self, user_id: UUID) -> list[TenantUser]:
        """All memberships of an identity, oldest first."""
        result = await self.session.execute(
            select(TenantUser)
            .where(TenantUser.user_id == user_id)
            .order_by(TenantUser.created_at)  # type: ignore[arg-type]
        )
        return list(result.scalars().all())

    async def list_by_tenant(
        self, tenant_id: UUID, limit: int = 100, offset: int = 0
    ) -> list[TenantUser]:
        """Members of a tenant, oldest first."""
        result = await self.session.execute(
            select(TenantUser)
            .where(TenantUser.tenant_id == tenant_id)
            .order_by(TenantUser.created_at)  # type: ignore[arg-type]
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def count_by_tenant(self, tenant_id: UUID) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(TenantUser).where(TenantUser.tenant_id == tenant_id)
        )
        return result.scalar_one()

    async def list_pending_for_user(self, user_id: UUID) -> list[TenantUser]:
        """Memberships awaiting email confirmation."""
        result = await self.session.execute(
            select(TenantUser).where(
                TenantUser.user_id == user_id,
                TenantUser.status == MemberStatus.PENDING.value,
            )
        )
        return list(result.scalars().all())

    async def replace_backup_codes(self, membership: TenantUser, code_hashes: list[str]) -> bool:
        """Swap the stored backup code hashes if the row is unchanged since it was read.

        Returns False when a concurrent write (e.g. another sign-in spending a
        code) got there first. Caller commits.
        """
        now = utc_now()
        result = await self.session.execute(
            update(TenantUser)
            .where(
                TenantUser.id == membership.id,
                TenantUser.updated_at == membership.updated_at,
            )
            .values(two_factor_backup_codes=code_hashes, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if (result.rowcount or 0) != 1:  # type: ignore[attr-defined]
            return False
        set_committed_value(membership, "two_factor_backup_codes", code_hashes)
        set_committed_value(membership, "updated_at", now)
        return True
