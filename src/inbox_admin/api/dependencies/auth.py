"""Authentication dependency - resolves the caller's session."""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from src.inbox_admin.api.dependencies.services import SessionResolverDep
from src.inbox_admin.core.logging import bind_user_context
from src.inbox_admin.core.security import ACCESS_TOKEN_TYPE, TWO_FACTOR_SETUP_TOKEN_TYPE
from src.inbox_admin.services import CurrentSession, SessionResolver


def _bearer_token(authorization: str | None) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid authorization header",
        )
    return authorization[7:]


async def _resolve(
    resolver: SessionResolver, token: str, token_types: tuple[str, ...]
) -> CurrentSession:
    for token_type in token_types:
        current = await resolver.current_user(token, token_type)
        if current is not None:
            bind_user_context(
                current.identity.id,
                current.tenant.id,
                current.identity.email,
                role=current.role,
            )
            return current

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
    )


async def get_current_session(
    resolver: SessionResolverDep,
    authorization: Annotated[str | None, Header()] = None,
) -> CurrentSession:
    """Validate the bearer token and return (identity, membership, tenant).

    Any missing link, including a suspended membership, is a 401.
    """
    return await _resolve(resolver, _bearer_token(authorization), (ACCESS_TOKEN_TYPE,))


async def get_enrolling_session(
    resolver: SessionResolverDep,
    authorization: Annotated[str | None, Header()] = None,
) -> CurrentSession:
    """Like get_current_session, but also accepts the setup token handed out
    when sign-in is held for two-factor enrollment."""
    return await _resolve(
        resolver,
        _bearer_token(authorization),
        (ACCESS_TOKEN_TYPE, TWO_FACTOR_SETUP_TOKEN_TYPE),
    )


CurrentUser = Annotated[CurrentSession, Depends(get_current_session)]
EnrollingUser = Annotated[CurrentSession, Depends(get_enrolling_session)]
