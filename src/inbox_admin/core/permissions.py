"""Role to capability matrix.

The matrix is static and lookups are total: an unknown or missing role gets the
least-privileged set (TENANT_USER) rather than an error. Services gate every
privileged operation through ``authorize``.
"""

from collections.abc import Mapping
from dataclasses import asdict, dataclass, fields
from types import MappingProxyType

from src.inbox_admin.core.exceptions import PermissionDeniedError
from src.inbox_admin.models.enums import Role


@dataclass(frozen=True)
class Permission:
    """Capability flags granted to a role."""

    can_view_users: bool = False
    can_manage_users: bool = False
    can_view_chats: bool = False
    can_manage_chats: bool = False
    can_view_all_chats: bool = False
    can_assign_chats: bool = False
    can_manage_billing: bool = False
    can_manage_integrations: bool = False
    can_manage_organization: bool = False
    can_invite_users: bool = False
    can_view_analytics: bool = False

    def as_dict(self) -> dict[str, bool]:
        return asdict(self)


CAPABILITIES: frozenset[str] = frozenset(f.name for f in fields(Permission))

ROLE_PERMISSIONS: Mapping[Role, Permission] = MappingProxyType(
    {
        Role.SUPER_ADMIN: Permission(**dict.fromkeys(CAPABILITIES, True)),
        Role.TENANT_OWNER: Permission(
            can_view_users=True,
            can_manage_users=True,
            can_manage_billing=True,
            can_manage_integrations=True,
            can_manage_organization=True,
            can_invite_users=True,
            can_view_analytics=True,
        ),
        Role.TENANT_ADMIN: Permission(
            can_view_users=True,
            can_manage_integrations=True,
            can_view_analytics=True,
        ),
        Role.TENANT_MANAGER: Permission(
            can_view_users=True,
            can_view_chats=True,
            can_view_all_chats=True,
            can_assign_chats=True,
        ),
        Role.TENANT_USER: Permission(
            can_view_chats=True,
        ),
    }
)

# Roles an inviter may hand out. OWNER and SUPER_ADMIN are only created by
# signup and bootstrap respectively.
INVITABLE_ROLES: frozenset[Role] = frozenset(
    {Role.TENANT_ADMIN, Role.TENANT_MANAGER, Role.TENANT_USER}
)
ASSIGNABLE_ROLES: frozenset[Role] = INVITABLE_ROLES

# Roles that cannot sign in, or turn two-factor off, without an enrolled authenticator
TWO_FACTOR_REQUIRED_ROLES: frozenset[Role] = frozenset({Role.SUPER_ADMIN})


def _coerce_role(role: Role | str | None) -> Role:
    if isinstance(role, Role):
        return role
    try:
        return Role(role)
    except ValueError:
        return Role.TENANT_USER


def permissions_for(role: Role | str | None) -> Permission:
    """Capability set for a role; unknown roles fail closed to TENANT_USER."""
    return ROLE_PERMISSIONS[_coerce_role(role)]


def has_permission(role: Role | str | None, capability: str) -> bool:
    """Check a single capability. Unknown capability names are never granted."""
    if capability not in CAPABILITIES:
        return False
    return bool(getattr(permissions_for(role), capability))


def requires_two_factor(role: Role | str | None) -> bool:
    return _coerce_role(role) in TWO_FACTOR_REQUIRED_ROLES


def authorize(role: Role | str | None, capability: str) -> None:
    """Raise PermissionDeniedError unless the role grants the capability."""
    if not has_permission(role, capability):
        raise PermissionDeniedError()
