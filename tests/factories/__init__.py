"""Test factories for generating test data.

Re-exports all factories for convenient imports:
    from tests.factories import UserFactory, TenantFactory, ...
"""

from tests.factories.base import BaseFactory, generate_uuid, utc_now
from tests.factories.tenant import TenantFactory
from tests.factories.tokens import (
    EmailConfirmationFactory,
    PasswordResetFactory,
    UserInvitationFactory,
)
from tests.factories.user import DEFAULT_TEST_PASSWORD, TenantUserFactory, UserFactory

__all__ = [
    # Base
    "BaseFactory",
    "generate_uuid",
    "utc_now",
    # Tenant
    "TenantFactory",
    # Identity
    "DEFAULT_TEST_PASSWORD",
    "TenantUserFactory",
    "UserFactory",
    # Tokens
    "EmailConfirmationFactory",
    "PasswordResetFactory",
    "UserInvitationFactory",
]
