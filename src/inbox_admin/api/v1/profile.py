"""Own profile and two-factor enrollment."""

from fastapi import APIRouter

from src.inbox_admin.api.dependencies import (
    CurrentUser,
    EnrollingUser,
    MemberServiceDep,
    TwoFactorServiceDep,
)
from src.inbox_admin.schemas import (
    MemberRead,
    ProfileUpdate,
    TwoFactorCodeRequest,
    TwoFactorSetupResponse,
    TwoFactorStatusResponse,
)

router = APIRouter(prefix="/profile", tags=["profile"])


@router.patch("", response_model=MemberRead)
async def update_profile(
    profile_data: ProfileUpdate, current: CurrentUser, service: MemberServiceDep
) -> MemberRead:
    """Update name and phone on the current membership."""
    membership = await service.update_profile(
        current,
        first_name=profile_data.first_name,
        last_name=profile_data.last_name,
        phone=profile_data.phone,
    )
    return MemberRead.model_validate(membership)


@router.post(
    "/2fa/setup",
    response_model=TwoFactorSetupResponse,
    responses={409: {"description": "Two-factor authentication already enabled"}},
)
async def begin_two_factor_setup(
    current: EnrollingUser, service: TwoFactorServiceDep
) -> TwoFactorSetupResponse:
    """Generate a TOTP secret and backup codes. Enrollment completes on confirm.

    Also accepts the setup token returned by a sign-in held for enrollment.
    """
    enrollment = await service.begin_setup(current)
    return TwoFactorSetupResponse(
        secret=enrollment.secret,
        otpauth_url=enrollment.otpauth_url,
        backup_codes=enrollment.backup_codes,
    )


@router.post(
    "/2fa/confirm",
    response_model=TwoFactorStatusResponse,
    responses={400: {"description": "Invalid code"}},
)
async def confirm_two_factor_setup(
    code_data: TwoFactorCodeRequest, current: EnrollingUser, service: TwoFactorServiceDep
) -> TwoFactorStatusResponse:
    membership = await service.confirm_setup(current, code_data.code)
    return TwoFactorStatusResponse(two_factor_enabled=membership.two_factor_enabled)


@router.post(
    "/2fa/disable",
    response_model=TwoFactorStatusResponse,
    responses={
        400: {"description": "Invalid code"},
        403: {"description": "Two-factor is mandatory for this role"},
    },
)
async def disable_two_factor(
    code_data: TwoFactorCodeRequest, current: CurrentUser, service: TwoFactorServiceDep
) -> TwoFactorStatusResponse:
    membership = await service.disable(current, code_data.code)
    return TwoFactorStatusResponse(two_factor_enabled=membership.two_factor_enabled)
