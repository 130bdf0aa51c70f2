"""Database session dependencies."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.inbox_admin.core.config import Settings
from src.inbox_admin.core.db import Database
from src.inbox_admin.core.notifications import EmailSender


def get_database(request: Request) -> Database:
    """The Database owned by the running application."""
    return request.app.state.database  # type: ignore[no-any-return]


async def get_db_session(
    database: Annotated[Database, Depends(get_database)],
) -> AsyncGenerator[AsyncSession]:
    """One session per request."""
    async with database.session() as session:
        yield session


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings  # type: ignore[no-any-return]


def get_email_sender(request: Request) -> EmailSender:
    return request.app.state.email_sender  # type: ignore[no-any-return]


DBSession = Annotated[AsyncSession, Depends(get_db_session)]
EmailSenderDep = Annotated[EmailSender, Depends(get_email_sender)]
SettingsDep = Annotated[Settings, Depends(get_app_settings)]
