"""Service factory dependencies."""

from typing import Annotated

from fastapi import Depends

from src.inbox_admin.api.dependencies.db import DBSession, EmailSenderDep, SettingsDep
from src.inbox_admin.api.dependencies.repositories import (
    EmailConfirmationRepo,
    InvitationRepo,
    PasswordResetRepo,
    TenantRepo,
    TenantUserRepo,
    UserRepo,
)
from src.inbox_admin.services import (
    IdentityService,
    InvitationService,
    MemberService,
    PasswordService,
    RegistrationService,
    SessionResolver,
    TokenLifecycleManager,
    TwoFactorService,
)


def get_identity_service(user_repo: UserRepo, session: DBSession) -> IdentityService:
    return IdentityService(user_repo, session)


IdentityServiceDep = Annotated[IdentityService, Depends(get_identity_service)]


def get_token_manager(
    confirmation_repo: EmailConfirmationRepo,
    reset_repo: PasswordResetRepo,
    invitation_repo: InvitationRepo,
    session: DBSession,
    email_sender: EmailSenderDep,
    settings: SettingsDep,
) -> TokenLifecycleManager:
    return TokenLifecycleManager(
        confirmation_repo, reset_repo, invitation_repo, session, email_sender, settings
    )


TokenManagerDep = Annotated[TokenLifecycleManager, Depends(get_token_manager)]


def get_session_resolver(
    identity_service: IdentityServiceDep,
    tenant_user_repo: TenantUserRepo,
    tenant_repo: TenantRepo,
    session: DBSession,
    settings: SettingsDep,
) -> SessionResolver:
    return SessionResolver(identity_service, tenant_user_repo, tenant_repo, session, settings)


def get_registration_service(
    identity_service: IdentityServiceDep,
    token_manager: TokenManagerDep,
    user_repo: UserRepo,
    tenant_repo: TenantRepo,
    tenant_user_repo: TenantUserRepo,
    session: DBSession,
    email_sender: EmailSenderDep,
) -> RegistrationService:
    return RegistrationService(
        identity_service,
        token_manager,
        user_repo,
        tenant_repo,
        tenant_user_repo,
        session,
        email_sender,
    )


def get_password_service(
    identity_service: IdentityServiceDep,
    token_manager: TokenManagerDep,
    user_repo: UserRepo,
) -> PasswordService:
    return PasswordService(identity_service, token_manager, user_repo)


def get_invitation_service(
    token_manager: TokenManagerDep,
    identity_service: IdentityServiceDep,
    invitation_repo: InvitationRepo,
    tenant_user_repo: TenantUserRepo,
    tenant_repo: TenantRepo,
    session: DBSession,
) -> InvitationService:
    return InvitationService(
        token_manager,
        identity_service,
        invitation_repo,
        tenant_user_repo,
        tenant_repo,
        session,
    )


def get_member_service(tenant_user_repo: TenantUserRepo, session: DBSession) -> MemberService:
    return MemberService(tenant_user_repo, session)


def get_two_factor_service(
    tenant_user_repo: TenantUserRepo, session: DBSession
) -> TwoFactorService:
    return TwoFactorService(tenant_user_repo, session)


SessionResolverDep = Annotated[SessionResolver, Depends(get_session_resolver)]
RegistrationServiceDep = Annotated[RegistrationService, Depends(get_registration_service)]
PasswordServiceDep = Annotated[PasswordService, Depends(get_password_service)]
InvitationServiceDep = Annotated[InvitationService, Depends(get_invitation_service)]
MemberServiceDep = Annotated[MemberService, Depends(get_member_service)]
TwoFactorServiceDep = Annotated[TwoFactorService, Depends(get_two_factor_service)]
