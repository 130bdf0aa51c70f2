from src.inbox_admin.services.identity_service import IdentityService
from src.inbox_admin.services.invitation_service import InvitationService
from src.inbox_admin.services.member_service import MemberService
from src.inbox_admin.services.password_service import PasswordService
from src.inbox_admin.services.registration_service import RegistrationService
from src.inbox_admin.services.session_service import (
    CurrentSession,
    SessionResolver,
    SignInResult,
)
from src.inbox_admin.services.superadmin_service import SuperAdminService
from src.inbox_admin.services.token_service import IssuedToken, TokenLifecycleManager
from src.inbox_admin.services.two_factor_service import TwoFactorEnrollment, TwoFactorService

__all__ = [
    "CurrentSession",
    "IdentityService",
    "InvitationService",
    "IssuedToken",
    "MemberService",
    "PasswordService",
    "RegistrationService",
    "SessionResolver",
    "SignInResult",
    "SuperAdminService",
    "TokenLifecycleManager",
    "TwoFactorEnrollment",
    "TwoFactorService",
]
