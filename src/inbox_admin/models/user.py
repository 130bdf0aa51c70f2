"""Identity and tenant membership models."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field, SQLModel

from src.inbox_admin.models.base import utc_now
from src.inbox_admin.models.enums import MemberStatus, Role


class User(SQLModel, table=True):
    """Login identity. Holds credentials only; tenant data lives on TenantUser."""

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(max_length=255, unique=True, index=True)
    hashed_password: str = Field(max_length=255)
    is_active: bool = Field(default=True)
    email_confirmed_at: datetime | None = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class TenantUser(SQLModel, table=True):
    """A person's membership in one tenant, with role and profile.

    At most one row per (identity, tenant) and per (tenant, email).
    Rows are never deleted; SUSPENDED is terminal.
    """

    __tablename__ = "tenant_users"
    __table_args__ = (
        UniqueConstraint("user_id", "tenant_id", name="uq_tenant_users_user_tenant"),
        UniqueConstraint("tenant_id", "email", name="uq_tenant_users_tenant_email"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key="users.id", index=True)
    tenant_id: UUID = Field(foreign_key="tenants.id", index=True)
    first_name: str = Field(max_length=100)
    last_name: str = Field(max_length=100)
    email: str = Field(max_length=255, index=True)
    phone: str | None = Field(default=None, max_length=50)
    role: str = Field(default=Role.TENANT_USER.value, max_length=50)
    status: str = Field(default=MemberStatus.PENDING.value, max_length=20)
    email_verified: bool = Field(default=False)
    two_factor_enabled: bool = Field(default=False)
    two_factor_secret: str | None = Field(default=None, max_length=64)
    # SHA-256 hashes of unused backup codes
    two_factor_backup_codes: list[str] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    last_login: datetime | None = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def role_enum(self) -> Role:
        """Get role as Role enum."""
        return Role(self.role)

    @property
    def status_enum(self) -> MemberStatus:
        """Get status as MemberStatus enum."""
        return MemberStatus(self.status)
