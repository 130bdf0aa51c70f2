"""Tenant invitation API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, status
from starlette.requests import Request

from src.inbox_admin.api.dependencies import CurrentUser, InvitationServiceDep
from src.inbox_admin.core.rate_limit import limiter
from src.inbox_admin.schemas import (
    AcceptInvitationRequest,
    AcceptInvitationResponse,
    InvitationCreateRequest,
    InvitationCreateResponse,
    InvitationInfoResponse,
    InvitationListResponse,
    InvitationRead,
    MemberRead,
)

router = APIRouter(prefix="/invitations", tags=["invitations"])


# =============================================================================
# Tenant endpoints (require a session with invite/view capability)
# =============================================================================


@router.post(
    "",
    response_model=InvitationCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create invitation",
    description="Invite an email to join the tenant. Any pending invitation for it is replaced.",
    responses={
        403: {"description": "Not allowed to invite, or role not invitable"},
        409: {"description": "Email already belongs to a member"},
    },
)
async def create_invitation(
    invitation_data: InvitationCreateRequest,
    current: CurrentUser,
    service: InvitationServiceDep,
) -> InvitationCreateResponse:
    issued = await service.invite(current, invitation_data.email, invitation_data.role)
    return InvitationCreateResponse(
        id=issued.record.id,
        email=issued.record.email,
        role=issued.record.role,
        expires_at=issued.record.expires_at,
        email_sent=issued.email_sent,
    )


@router.get(
    "",
    response_model=InvitationListResponse,
    summary="List invitations",
    description="All invitations of the tenant, newest first, with their derived status.",
)
async def list_invitations(
    current: CurrentUser,
    service: InvitationServiceDep,
    limit: Annotated[int, Query(ge=1, le=100, description="Number of items per page")] = 50,
    offset: Annotated[int, Query(ge=0, description="Number of items to skip")] = 0,
) -> InvitationListResponse:
    invitations, total = await service.list_invitations(current, limit=limit, offset=offset)
    return InvitationListResponse(
        invitations=[InvitationRead.from_model(inv) for inv in invitations],
        total=total,
    )


@router.delete(
    "/{invitation_id}",
    response_model=InvitationRead,
    summary="Cancel invitation",
    description="Cancel a pending invitation. Cancelling twice is a no-op.",
    responses={
        404: {"description": "Invitation not found"},
        409: {"description": "Invitation already accepted or expired"},
    },
)
async def cancel_invitation(
    invitation_id: UUID,
    current: CurrentUser,
    service: InvitationServiceDep,
) -> InvitationRead:
    invitation = await service.cancel(current, invitation_id)
    return InvitationRead.from_model(invitation)


@router.post(
    "/{invitation_id}/resend",
    response_model=InvitationCreateResponse,
    summary="Resend invitation",
    description="Send a new link with a fresh expiry. The previous link stops working.",
    responses={
        404: {"description": "Invitation not found"},
        409: {"description": "Invitation already accepted"},
    },
)
async def resend_invitation(
    invitation_id: UUID,
    current: CurrentUser,
    service: InvitationServiceDep,
) -> InvitationCreateResponse:
    issued = await service.resend(current, invitation_id)
    return InvitationCreateResponse(
        id=issued.record.id,
        email=issued.record.email,
        role=issued.record.role,
        expires_at=issued.record.expires_at,
        email_sent=issued.email_sent,
        message="Invitation resent successfully",
    )


# =============================================================================
# Public endpoints (token in path)
# =============================================================================


@router.get(
    "/t/{token}",
    response_model=InvitationInfoResponse,
    summary="Get invitation info",
    description="Details shown on the accept page. No authentication required.",
    responses={400: {"description": "Invalid or expired invitation"}},
)
@limiter.limit("20/minute")
async def get_invitation_info(
    request: Request, token: str, service: InvitationServiceDep
) -> InvitationInfoResponse:
    info = await service.get_invitation_info(token)
    return InvitationInfoResponse(
        email=info.email,
        role=info.role,
        tenant_name=info.tenant_name,
        inviter_name=info.inviter_name,
        expires_at=info.expires_at,
    )


@router.post(
    "/t/{token}/accept",
    response_model=AcceptInvitationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Accept invitation",
    description="Create the account and join the tenant. No authentication required.",
    responses={
        400: {"description": "Invalid or expired invitation"},
        409: {"description": "Account could not be created"},
    },
)
@limiter.limit("5/minute")
async def accept_invitation(
    request: Request,
    token: str,
    accept_data: AcceptInvitationRequest,
    service: InvitationServiceDep,
) -> AcceptInvitationResponse:
    membership = await service.accept(
        token,
        first_name=accept_data.first_name,
        last_name=accept_data.last_name,
        password=accept_data.password,
    )
    return AcceptInvitationResponse(member=MemberRead.model_validate(membership))
