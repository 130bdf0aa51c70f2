"""Single-use token models - email confirmation, password reset, invitation.

All three share the same shape: only the SHA-256 hash of the token is stored,
and a token is redeemable while ``used_at`` is empty and ``expires_at`` lies in
the future. Invitations additionally carry a status for display purposes.
"""

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from src.inbox_admin.models.base import utc_now
from src.inbox_admin.models.enums import InvitationStatus, Role, TokenState


class TokenRecord(SQLModel):
    """Fields shared by every single-use token table."""

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    token_hash: str = Field(max_length=255, unique=True, index=True)
    expires_at: datetime
    used_at: datetime | None = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)


class EmailConfirmation(TokenRecord, table=True):
    """Email confirmation token for a new signup."""

    __tablename__ = "email_confirmations"

    user_id: UUID = Field(foreign_key="users.id", index=True)


class PasswordReset(TokenRecord, table=True):
    """Password reset token, also used as the SuperAdmin first-login link."""

    __tablename__ = "password_resets"

    user_id: UUID = Field(foreign_key="users.id", index=True)


class UserInvitation(TokenRecord, table=True):
    """Invitation to join a tenant with a given role."""

    __tablename__ = "user_invitations"

    tenant_id: UUID = Field(foreign_key="tenants.id", index=True)
    invited_by_user_id: UUID = Field(foreign_key="tenant_users.id", index=True)
    email: str = Field(max_length=255, index=True)
    role: str = Field(default=Role.TENANT_USER.value, max_length=50)
    status: str = Field(default=InvitationStatus.PENDING.value, max_length=20)
    accepted_at: datetime | None = Field(default=None)
    accepted_by_user_id: UUID | None = Field(default=None, foreign_key="users.id")

    @property
    def display_status(self) -> InvitationStatus:
        """Status for listings, with expiry folded in."""
        state = token_state(self)
        if state is TokenState.EXPIRED:
            return InvitationStatus.EXPIRED
        return InvitationStatus(self.status)


def token_state(record: TokenRecord, now: datetime | None = None) -> TokenState:
    """Interpret a token row's fields as a single lifecycle state.

    Precedence: cancelled, then consumed, then expired, otherwise issued.
    """
    status = getattr(record, "status", None)
    if status == InvitationStatus.CANCELLED.value:
        return TokenState.CANCELLED
    if record.used_at is not None or status == InvitationStatus.ACCEPTED.value:
        return TokenState.CONSUMED
    if (now or utc_now()) >= record.expires_at:
        return TokenState.EXPIRED
    return TokenState.ISSUED
