"""Domain errors and exception handlers with request_id in responses."""

from typing import Any

from asgi_correlation_id import correlation_id
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.inbox_admin.core.logging import get_logger

logger = get_logger(__name__)


class ConsoleError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_detail: str = "Request could not be processed"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    def extra(self) -> dict[str, Any]:
        """Additional fields for the error response body."""
        return {}


class InvalidTokenError(ConsoleError):
    """Token not found, already used, expired or cancelled.

    One message for every cause so callers cannot tell token states apart.
    """

    default_detail = "Invalid or expired token"


class DuplicateMemberError(ConsoleError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "User is already a member of this organization"


class AccountCreationFailedError(ConsoleError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Could not create account"


class PermissionDeniedError(ConsoleError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You do not have permission to perform this action"


class NotFoundError(ConsoleError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class StateConflictError(ConsoleError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Operation not allowed in the current state"


class AuthenticationError(ConsoleError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Invalid credentials"


class EmailNotConfirmedError(ConsoleError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Email not confirmed. Please check your email for the confirmation link."


class TwoFactorRequiredError(ConsoleError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Two-factor authentication code required"

    def extra(self) -> dict[str, Any]:
        return {"two_factor_required": True}


class TwoFactorSetupRequiredError(ConsoleError):
    """Credentials are valid but the role needs two-factor enrollment first.

    Carries a short-lived setup token that only reaches the enrollment endpoints.
    """

    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Two-factor authentication must be set up before signing in"

    def __init__(self, setup_token: str, detail: str | None = None):
        super().__init__(detail)
        self.setup_token = setup_token

    def extra(self) -> dict[str, Any]:
        return {"two_factor_setup_required": True, "setup_token": self.setup_token}


class InvalidTwoFactorCodeError(ConsoleError):
    default_detail = "Invalid two-factor authentication code"


def setup_exception_handlers(app: FastAPI) -> None:
    """Configure exception handlers that include request_id in responses."""

    @app.exception_handler(ConsoleError)
    async def console_error_handler(request: Request, exc: ConsoleError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "request_id": correlation_id.get(),
                **exc.extra(),
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def starlette_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "request_id": correlation_id.get(),
            },
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "request_id": correlation_id.get(),
            },
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        request_id = correlation_id.get()
        logger.exception(
            "Unhandled exception",
            exc_info=exc,
            request_id=request_id,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "request_id": request_id,
            },
        )
