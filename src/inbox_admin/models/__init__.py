"""Model exports.

Import from here: `from src.inbox_admin.models import User, Tenant`
"""

from src.inbox_admin.models.base import utc_now
from src.inbox_admin.models.enums import (
    InvitationStatus,
    MemberStatus,
    Role,
    TokenKind,
    TokenState,
)
from src.inbox_admin.models.tenant import Tenant
from src.inbox_admin.models.tokens import (
    EmailConfirmation,
    PasswordReset,
    TokenRecord,
    UserInvitation,
    token_state,
)
from src.inbox_admin.models.user import TenantUser, User

__all__ = [
    # Enums
    "InvitationStatus",
    "MemberStatus",
    "Role",
    "TokenKind",
    "TokenState",
    # Models
    "EmailConfirmation",
    "PasswordReset",
    "Tenant",
    "TenantUser",
    "TokenRecord",
    "User",
    "UserInvitation",
    # Helpers
    "token_state",
    "utc_now",
]
