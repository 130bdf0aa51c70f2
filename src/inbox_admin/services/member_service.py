"""Team member management and self-service profile edits."""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.inbox_admin.core.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    StateConflictError,
)
from src.inbox_admin.core.logging import get_logger
from src.inbox_admin.core.permissions import ASSIGNABLE_ROLES, authorize
from src.inbox_admin.models import MemberStatus, Role, TenantUser, utc_now
from src.inbox_admin.repositories import TenantUserRepository
from src.inbox_admin.services.session_service import CurrentSession

logger = get_logger(__name__)

# Members holding these roles cannot be changed or suspended through the console
_PROTECTED_ROLES = frozenset({Role.SUPER_ADMIN.value, Role.TENANT_OWNER.value})


class MemberService:
    def __init__(self, tenant_user_repo: TenantUserRepository, session: AsyncSession):
        self.tenant_user_repo = tenant_user_repo
        self.session = session

    async def list_members(
        self, actor: CurrentSession, limit: int = 100, offset: int = 0
    ) -> tuple[list[TenantUser], int]:
        """One page of the tenant's members and the total member count."""
        authorize(actor.role, "can_view_users")
        members = await self.tenant_user_repo.list_by_tenant(actor.tenant.id, limit, offset)
        total = await self.tenant_user_repo.count_by_tenant(actor.tenant.id)
        return members, total

    async def update_profile(
        self,
        actor: CurrentSession,
        first_name: str | None = None,
        last_name: str | None = None,
        phone: str | None = None,
    ) -> TenantUser:
        """Update the actor's own name and phone. None leaves a field unchanged."""
        membership = actor.membership
        if first_name is not None:
            membership.first_name = first_name.strip()
        if last_name is not None:
            membership.last_name = last_name.strip()
        if phone is not None:
            membership.phone = phone.strip() or None
        membership.updated_at = utc_now()
        return await self._save(membership, "Profile updated")

    async def change_role(
        self, actor: CurrentSession, member_id: UUID, role: Role | str
    ) -> TenantUser:
        authorize(actor.role, "can_manage_users")
        try:
            role = Role(role)
        except ValueError as e:
            raise PermissionDeniedError("This role cannot be assigned") from e
        if role not in ASSIGNABLE_ROLES:
            raise PermissionDeniedError("This role cannot be assigned")

        member = await self._get_managed_member(actor, member_id)
        if member.status == MemberStatus.SUSPENDED.value:
            raise StateConflictError("Suspended members cannot be changed")

        member.role = role.value
        member.updated_at = utc_now()
        return await self._save(member, "Member role changed", role=role.value)

    async def suspend(self, actor: CurrentSession, member_id: UUID) -> TenantUser:
        """Suspend a member. Suspension is permanent; suspending twice is a no-op."""
        authorize(actor.role, "can_manage_users")
        member = await self._get_managed_member(actor, member_id)
        if member.status == MemberStatus.SUSPENDED.value:
            return member

        member.status = MemberStatus.SUSPENDED.value
        member.updated_at = utc_now()
        return await self._save(member, "Member suspended")

    async def _get_managed_member(self, actor: CurrentSession, member_id: UUID) -> TenantUser:
        member = await self.tenant_user_repo.get_by_id(member_id)
        if member is None or member.tenant_id != actor.tenant.id:
            raise NotFoundError("Member not found")
        if member.id == actor.membership.id:
            raise PermissionDeniedError("You cannot change your own membership")
        if member.role in _PROTECTED_ROLES:
            raise PermissionDeniedError("This member cannot be changed")
        return member

    async def _save(self, member: TenantUser, event: str, **log_fields: str) -> TenantUser:
        try:
            self.tenant_user_repo.add(member)
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error("Failed to update member", member_id=str(member.id), error=str(e))
            raise

        logger.info(event, member_id=str(member.id), tenant_id=str(member.tenant_id), **log_fields)
        return member
