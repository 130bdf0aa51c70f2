"""Shared enums for models."""

from enum import Enum


class Role(str, Enum):
    """Member role within a tenant."""

    SUPER_ADMIN = "SUPER_ADMIN"
    TENANT_OWNER = "TENANT_OWNER"
    TENANT_ADMIN = "TENANT_ADMIN"
    TENANT_MANAGER = "TENANT_MANAGER"
    TENANT_USER = "TENANT_USER"


class MemberStatus(str, Enum):
    """Lifecycle status of a tenant member."""

    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    INVITED = "INVITED"


class InvitationStatus(str, Enum):
    """User invitation status.

    EXPIRED is never written; it is derived from expires_at when reading.
    """

    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"


class TokenKind(str, Enum):
    """Kinds of single-use tokens."""

    EMAIL_CONFIRMATION = "email_confirmation"
    PASSWORD_RESET = "password_reset"
    INVITATION = "invitation"


class TokenState(str, Enum):
    """Derived state of a single-use token."""

    ISSUED = "issued"
    CONSUMED = "consumed"
    EXPIRED = "expired"
    CANCELLED = "cancelled"
