"""FastAPI dependency injection definitions.

Re-exports all dependencies for convenience.
"""

from src.inbox_admin.api.dependencies.auth import (
    CurrentUser,
    EnrollingUser,
    get_current_session,
    get_enrolling_session,
)
from src.inbox_admin.api.dependencies.db import (
    DBSession,
    EmailSenderDep,
    SettingsDep,
    get_app_settings,
    get_database,
    get_db_session,
    get_email_sender,
)
from src.inbox_admin.api.dependencies.services import (
    InvitationServiceDep,
    MemberServiceDep,
    PasswordServiceDep,
    RegistrationServiceDep,
    SessionResolverDep,
    TwoFactorServiceDep,
)

__all__ = [
    # Database
    "DBSession",
    "EmailSenderDep",
    "SettingsDep",
    "get_app_settings",
    "get_database",
    "get_db_session",
    "get_email_sender",
    # Auth
    "CurrentUser",
    "EnrollingUser",
    "get_current_session",
    "get_enrolling_session",
    # Services
    "InvitationServiceDep",
    "MemberServiceDep",
    "PasswordServiceDep",
    "RegistrationServiceDep",
    "SessionResolverDep",
    "TwoFactorServiceDep",
]
