from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from src.inbox_admin.schemas.validators import TOTP_CODE_PATTERN

AssignableRole = Literal["TENANT_ADMIN", "TENANT_MANAGER", "TENANT_USER"]


class TenantRead(BaseModel):
    id: UUID
    name: str
    slug: str

    model_config = {"from_attributes": True}


class MemberRead(BaseModel):
    id: UUID
    user_id: UUID
    tenant_id: UUID
    first_name: str
    last_name: str
    email: str
    phone: str | None
    role: str
    status: str
    email_verified: bool
    two_factor_enabled: bool
    last_login: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class MemberListResponse(BaseModel):
    members: list[MemberRead]
    total: int


class ProfileUpdate(BaseModel):
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    phone: str | None = Field(None, max_length=50)


class RoleChangeRequest(BaseModel):
    role: AssignableRole


class TwoFactorSetupResponse(BaseModel):
    """Secret and otpauth URL for the authenticator app, and backup codes. Shown once."""

    secret: str
    otpauth_url: str
    backup_codes: list[str]


class TwoFactorCodeRequest(BaseModel):
    code: str = Field(pattern=TOTP_CODE_PATTERN)


class TwoFactorStatusResponse(BaseModel):
    two_factor_enabled: bool
