"""Integration test fixtures for database and HTTP client operations.

Each test gets its own SQLite database file with the full schema.
Uses polyfactory for type-safe test data generation.
"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import NullPool

from src.inbox_admin.core.db import Database
from src.inbox_admin.main import create_app
from src.inbox_admin.models import Role, Tenant
from src.inbox_admin.services import CurrentSession
from tests.helpers import (
    RecordingEmailSender,
    Services,
    build_services,
    create_member,
    create_tenant,
)


@pytest.fixture
async def database(tmp_path: Path) -> AsyncGenerator[Database]:
    """Fresh database with all tables created."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'inbox.db'}", poolclass=NullPool)
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession]:
    """Provide an async session for arranging data and calling services.

    The session does NOT auto-commit; helpers in tests.helpers commit what they create.
    """
    async with database.session() as session:
        yield session


@pytest.fixture
def services(db_session: AsyncSession, email_sender: RecordingEmailSender) -> Services:
    return build_services(db_session, email_sender)


@pytest.fixture
async def tenant(db_session: AsyncSession) -> Tenant:
    return await create_tenant(db_session, name="Acme Support", slug="acme-support")


@pytest.fixture
async def owner(db_session: AsyncSession, tenant: Tenant) -> CurrentSession:
    return await create_member(
        db_session, tenant, Role.TENANT_OWNER, first_name="Olivia", last_name="Owner"
    )


@pytest.fixture
async def client(
    database: Database, email_sender: RecordingEmailSender
) -> AsyncGenerator[AsyncClient]:
    """HTTP client for an app bound to the test database and recording sender."""
    app = create_app(database=database, email_sender=email_sender)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
