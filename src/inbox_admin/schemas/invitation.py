"""Invitation schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from src.inbox_admin.models import UserInvitation
from src.inbox_admin.schemas.member import AssignableRole, MemberRead
from src.inbox_admin.schemas.validators import check_password_strength


class InvitationCreateRequest(BaseModel):
    email: EmailStr
    role: AssignableRole = "TENANT_USER"


class InvitationCreateResponse(BaseModel):
    id: UUID
    email: str
    role: str
    expires_at: datetime
    email_sent: bool
    message: str = "Invitation sent successfully"


class InvitationRead(BaseModel):
    """Admin view of an invitation. ``status`` reports expiry even though it is not stored."""

    id: UUID
    email: str
    role: str
    status: str
    created_at: datetime
    expires_at: datetime
    accepted_at: datetime | None
    invited_by_user_id: UUID

    @classmethod
    def from_model(cls, invitation: UserInvitation) -> "InvitationRead":
        return cls(
            id=invitation.id,
            email=invitation.email,
            role=invitation.role,
            status=invitation.display_status.value,
            created_at=invitation.created_at,
            expires_at=invitation.expires_at,
            accepted_at=invitation.accepted_at,
            invited_by_user_id=invitation.invited_by_user_id,
        )


class InvitationListResponse(BaseModel):
    invitations: list[InvitationRead]
    total: int


class InvitationInfoResponse(BaseModel):
    """Public info about an invitation (for the accept page)."""

    email: str
    role: str
    tenant_name: str
    inviter_name: str
    expires_at: datetime


class AcceptInvitationRequest(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=8, max_length=100)

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        return check_password_strength(v)


class AcceptInvitationResponse(BaseModel):
    message: str = "Invitation accepted. You can now sign in."
    member: MemberRead
