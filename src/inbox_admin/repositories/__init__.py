"""Repository layer - data access abstraction."""

from src.inbox_admin.repositories.base import BaseRepository
from src.inbox_admin.repositories.tenant import TenantRepository
from src.inbox_admin.repositories.token import (
    EmailConfirmationRepository,
    PasswordResetRepository,
    TokenRepository,
    UserInvitationRepository,
)
from src.inbox_admin.repositories.user import TenantUserRepository, UserRepository

__all__ = [
    # Base
    "BaseRepository",
    "TokenRepository",
    # Entities
    "EmailConfirmationRepository",
    "PasswordResetRepository",
    "TenantRepository",
    "TenantUserRepository",
    "UserInvitationRepository",
    "UserRepository",
]
