"""Repository factory dependencies."""

from typing import Annotated

from fastapi import Depends

from src.inbox_admin.api.dependencies.db import DBSession
from src.inbox_admin.repositories import (
    EmailConfirmationRepository,
    PasswordResetRepository,
    TenantRepository,
    TenantUserRepository,
    UserInvitationRepository,
    UserRepository,
)


def get_user_repository(session: DBSession) -> UserRepository:
    return UserRepository(session)


def get_tenant_repository(session: DBSession) -> TenantRepository:
    return TenantRepository(session)


def get_tenant_user_repository(session: DBSession) -> TenantUserRepository:
    return TenantUserRepository(session)


def get_email_confirmation_repository(session: DBSession) -> EmailConfirmationRepository:
    return EmailConfirmationRepository(session)


def get_password_reset_repository(session: DBSession) -> PasswordResetRepository:
    return PasswordResetRepository(session)


def get_invitation_repository(session: DBSession) -> UserInvitationRepository:
    return UserInvitationRepository(session)


UserRepo = Annotated[UserRepository, Depends(get_user_repository)]
TenantRepo = Annotated[TenantRepository, Depends(get_tenant_repository)]
TenantUserRepo = Annotated[TenantUserRepository, Depends(get_tenant_user_repository)]
EmailConfirmationRepo = Annotated[
    EmailConfirmationRepository, Depends(get_email_confirmation_repository)
]
PasswordResetRepo = Annotated[PasswordResetRepository, Depends(get_password_reset_repository)]
InvitationRepo = Annotated[UserInvitationRepository, Depends(get_invitation_repository)]
