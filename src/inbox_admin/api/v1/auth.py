"""Signup, email confirmation, sign-in and password reset endpoints."""

from fastapi import APIRouter, status
from starlette.requests import Request

from src.inbox_admin.api.dependencies import (
    CurrentUser,
    PasswordServiceDep,
    RegistrationServiceDep,
    SessionResolverDep,
)
from src.inbox_admin.core.rate_limit import limiter
from src.inbox_admin.schemas import (
    ConfirmEmailResponse,
    EmailRequest,
    LoginRequest,
    LoginResponse,
    MeResponse,
    MemberRead,
    MessageResponse,
    ResetPasswordRequest,
    SignUpRequest,
    SignUpResponse,
    TenantRead,
    TokenRequest,
)

router = APIRouter(prefix="/auth", tags=["auth"])

# Same body whether or not the email is known
RESET_REQUESTED_MESSAGE = "If an account exists for this email, a reset link has been sent"
CONFIRMATION_RESENT_MESSAGE = (
    "If an unconfirmed account exists for this email, a new confirmation link has been sent"
)


@router.post(
    "/signup",
    response_model=SignUpResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        409: {"description": "Account could not be created"},
        422: {"description": "Validation error or weak password"},
    },
)
@limiter.limit("3/minute")
async def signup(
    request: Request, signup_data: SignUpRequest, service: RegistrationServiceDep
) -> SignUpResponse:
    """Create an organization with its owner and send the confirmation email.

    The owner can sign in once the email is confirmed.
    """
    result = await service.sign_up(
        first_name=signup_data.first_name,
        last_name=signup_data.last_name,
        email=signup_data.email,
        password=signup_data.password,
        organization=signup_data.organization,
        phone=signup_data.phone,
    )
    return SignUpResponse(
        user_id=result.identity.id,
        tenant_slug=result.tenant.slug,
        email_sent=result.email_sent,
    )


@router.post(
    "/confirm-email",
    response_model=ConfirmEmailResponse,
    responses={400: {"description": "Invalid or expired token"}},
)
@limiter.limit("10/minute")
async def confirm_email(
    request: Request, token_data: TokenRequest, service: RegistrationServiceDep
) -> ConfirmEmailResponse:
    """Consume an email confirmation token and activate the account."""
    await service.confirm_email(token_data.token)
    return ConfirmEmailResponse()


@router.post("/resend-confirmation", response_model=MessageResponse)
@limiter.limit("3/minute")
async def resend_confirmation(
    request: Request, email_data: EmailRequest, service: RegistrationServiceDep
) -> MessageResponse:
    """Send a fresh confirmation link. Always reports success."""
    await service.resend_confirmation(email_data.email)
    return MessageResponse(message=CONFIRMATION_RESENT_MESSAGE)


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        200: {
            "description": "Successful authentication",
            "content": {
                "application/json": {
                    "example": {
                        "access_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
                        "token_type": "bearer",
                        "tenant_slug": "acme",
                        "role": "TENANT_OWNER",
                    }
                }
            },
        },
        401: {"description": "Invalid credentials, suspended, or two-factor code required"},
        403: {
            "description": "Email not confirmed, or two-factor enrollment required "
            "(body carries a setup_token for /profile/2fa/setup and /profile/2fa/confirm)"
        },
    },
)
@limiter.limit("5/minute")
async def login(
    request: Request, login_data: LoginRequest, resolver: SessionResolverDep
) -> LoginResponse:
    """Authenticate and return an access token scoped to one membership.

    Pass ``tenant_slug`` to pick the organization when the identity belongs to several.
    """
    result = await resolver.sign_in(
        email=login_data.email,
        password=login_data.password,
        two_factor_code=login_data.two_factor_code,
        tenant_slug=login_data.tenant_slug,
    )
    return LoginResponse(
        access_token=result.access_token,
        tenant_slug=result.session.tenant.slug,
        role=result.session.role,
    )


@router.post("/forgot-password", response_model=MessageResponse)
@limiter.limit("3/minute")
async def forgot_password(
    request: Request, email_data: EmailRequest, service: PasswordServiceDep
) -> MessageResponse:
    """Email a password reset link. Always reports success."""
    await service.request_reset(email_data.email)
    return MessageResponse(message=RESET_REQUESTED_MESSAGE)


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    responses={400: {"description": "Invalid or expired token"}},
)
@limiter.limit("5/minute")
async def reset_password(
    request: Request, reset_data: ResetPasswordRequest, service: PasswordServiceDep
) -> MessageResponse:
    """Consume a reset token and set the new password."""
    await service.reset_password(reset_data.token, reset_data.new_password)
    return MessageResponse(message="Password has been reset. You can now sign in.")


@router.get("/me", response_model=MeResponse)
async def me(current: CurrentUser) -> MeResponse:
    """The current session and its capability flags."""
    return MeResponse(
        user_id=current.identity.id,
        email=current.identity.email,
        member=MemberRead.model_validate(current.membership),
        tenant=TenantRead.model_validate(current.tenant),
        permissions=current.permissions.as_dict(),
    )
