from src.inbox_admin.schemas.auth import (
    ConfirmEmailResponse,
    EmailRequest,
    LoginRequest,
    LoginResponse,
    MeResponse,
    MessageResponse,
    ResetPasswordRequest,
    SignUpRequest,
    SignUpResponse,
    TokenRequest,
)
from src.inbox_admin.schemas.invitation import (
    AcceptInvitationRequest,
    AcceptInvitationResponse,
    InvitationCreateRequest,
    InvitationCreateResponse,
    InvitationInfoResponse,
    InvitationListResponse,
    InvitationRead,
)
from src.inbox_admin.schemas.member import (
    MemberListResponse,
    MemberRead,
    ProfileUpdate,
    RoleChangeRequest,
    TenantRead,
    TwoFactorCodeRequest,
    TwoFactorSetupResponse,
    TwoFactorStatusResponse,
)

__all__ = [
    # Auth
    "ConfirmEmailResponse",
    "EmailRequest",
    "LoginRequest",
    "LoginResponse",
    "MeResponse",
    "MessageResponse",
    "ResetPasswordRequest",
    "SignUpRequest",
    "SignUpResponse",
    "TokenRequest",
    # Invitations
    "AcceptInvitationRequest",
    "AcceptInvitationResponse",
    "InvitationCreateRequest",
    "InvitationCreateResponse",
    "InvitationInfoResponse",
    "InvitationListResponse",
    "InvitationRead",
    # Members
    "MemberListResponse",
    "MemberRead",
    "ProfileUpdate",
    "RoleChangeRequest",
    "TenantRead",
    "TwoFactorCodeRequest",
    "TwoFactorSetupResponse",
    "TwoFactorStatusResponse",
]
