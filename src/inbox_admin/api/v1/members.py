"""Tenant member management endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query

from src.inbox_admin.api.dependencies import CurrentUser, MemberServiceDep
from src.inbox_admin.schemas import MemberListResponse, MemberRead, RoleChangeRequest

router = APIRouter(prefix="/members", tags=["members"])


@router.get("", response_model=MemberListResponse)
async def list_members(
    current: CurrentUser,
    service: MemberServiceDep,
    limit: Annotated[int, Query(ge=1, le=100, description="Number of items per page")] = 50,
    offset: Annotated[int, Query(ge=0, description="Number of items to skip")] = 0,
) -> MemberListResponse:
    """Members of the current tenant. ``total`` counts all members, not just this page."""
    members, total = await service.list_members(current, limit=limit, offset=offset)
    return MemberListResponse(
        members=[MemberRead.model_validate(m) for m in members],
        total=total,
    )


@router.patch(
    "/{member_id}/role",
    response_model=MemberRead,
    responses={
        403: {"description": "Not allowed to manage this member or assign this role"},
        404: {"description": "Member not found"},
        409: {"description": "Member is suspended"},
    },
)
async def change_role(
    member_id: UUID,
    role_data: RoleChangeRequest,
    current: CurrentUser,
    service: MemberServiceDep,
) -> MemberRead:
    member = await service.change_role(current, member_id, role_data.role)
    return MemberRead.model_validate(member)


@router.post(
    "/{member_id}/suspend",
    response_model=MemberRead,
    responses={
        403: {"description": "Not allowed to manage this member"},
        404: {"description": "Member not found"},
    },
)
async def suspend_member(
    member_id: UUID, current: CurrentUser, service: MemberServiceDep
) -> MemberRead:
    """Suspend a member. A suspended member cannot sign in."""
    member = await service.suspend(current, member_id)
    return MemberRead.model_validate(member)
