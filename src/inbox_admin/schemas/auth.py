from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from src.inbox_admin.schemas.member import MemberRead, TenantRead
from src.inbox_admin.schemas.validators import SECOND_FACTOR_PATTERN, check_password_strength


class SignUpRequest(BaseModel):
    """Signup creates the organization and its owner."""

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=8, max_length=100)
    organization: str = Field(min_length=1, max_length=100)
    phone: str | None = Field(None, max_length=50)

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        return check_password_strength(v)


class SignUpResponse(BaseModel):
    user_id: UUID
    tenant_slug: str
    email_sent: bool
    message: str = "Please check your email to confirm your account"


class TokenRequest(BaseModel):
    """Body carrying a single-use token from an emailed link."""

    token: str = Field(min_length=32, max_length=128)


class ConfirmEmailResponse(BaseModel):
    message: str = "Email confirmed successfully"
    confirmed: bool = True


class EmailRequest(BaseModel):
    email: EmailStr


class MessageResponse(BaseModel):
    message: str


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=100)
    two_factor_code: str | None = Field(None, pattern=SECOND_FACTOR_PATTERN)
    tenant_slug: str | None = Field(None, max_length=63)


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    tenant_slug: str
    role: str


class ResetPasswordRequest(BaseModel):
    token: str = Field(min_length=32, max_length=128)
    new_password: str = Field(min_length=8, max_length=100)

    @field_validator("new_password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        return check_password_strength(v)


class MeResponse(BaseModel):
    """The resolved session with the caller's capability flags."""

    user_id: UUID
    email: str
    member: MemberRead
    tenant: TenantRead
    permissions: dict[str, bool]
