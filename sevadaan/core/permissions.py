# sevadaan/core/permissions.py
"""
Canonical role/permission model.

One static table maps every role to the actions it may perform per module,
and a separate hierarchy gives each role a numeric level and delegation
rights. Both are built once at import time and never mutated.

Every lookup here is a pure function of its arguments. Unknown roles,
modules or actions never raise: they simply grant nothing.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping, Optional


class Role(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    NGO_ADMIN = "NGO_ADMIN"
    NGO_MANAGER = "NGO_MANAGER"
    VOLUNTEER = "VOLUNTEER"
    DONOR = "DONOR"
    CITIZEN = "CITIZEN"
    PUBLIC = "PUBLIC"


WILDCARD = "*"

# Older clients and tokens still carry the lower-case role vocabulary
LEGACY_ROLE_ALIASES = {
    "super_admin": Role.SUPER_ADMIN,
    "admin": Role.SUPER_ADMIN,
    "ngo_admin": Role.NGO_ADMIN,
    "ngo": Role.NGO_ADMIN,
    "ngo_manager": Role.NGO_MANAGER,
    "volunteer": Role.VOLUNTEER,
    "donor": Role.DONOR,
    "citizen": Role.CITIZEN,
    "public": Role.PUBLIC,
}

# Never handed out through delegation
CRITICAL_PERMISSIONS = frozenset({"users:delete", "ngos:delete", "managers:delete"})


# ===================================================================
# MODULE CATALOGUE
# ===================================================================
_CRUD = ("create", "read", "update", "delete")

MODULE_ACTIONS: Mapping[str, tuple] = MappingProxyType({
    "users": _CRUD + ("assign_roles",),
    "ngos": _CRUD + ("approve", "suspend"),
    "kyc": ("create", "read", "verify"),
    "programs": _CRUD + ("approve", "feature", "register", "apply"),
    "events": ("read", "register"),
    "volunteers": _CRUD + ("assign",),
    "donations": _CRUD + ("refund",),
    "grants": _CRUD + ("apply", "approve", "disburse"),
    "certificates": _CRUD + ("issue",),
    "reports": _CRUD + ("export",),
    "emergency": _CRUD + ("respond", "assign", "verify"),
    "services": _CRUD + ("approve", "apply"),
    "announcements": _CRUD + ("approve",),
    "notifications": _CRUD + ("send", "broadcast"),
    "applications": ("create", "read", "update", "review"),
    "ngo_settings": ("read", "update"),
    "managers": _CRUD + ("assign_permissions",),
    "profile": ("read", "update"),
    "hours": ("create", "read", "update"),
    "referrals": ("create", "read"),
    "tax_receipts": ("read", "download"),
    "impact_tracking": ("read",),
    "dashboard": ("read",),
    "system": ("settings", "analytics", "audit", "maintenance"),
    "home": ("read",),
    "about": ("read",),
    "contact": ("read",),
})


# ===================================================================
# PERMISSION TABLE
# ===================================================================
def _freeze(table: dict) -> Mapping[str, frozenset]:
    return MappingProxyType({module: frozenset(actions) for module, actions in table.items()})


PERMISSIONS: Mapping[Role, Mapping[str, frozenset]] = MappingProxyType({
    Role.SUPER_ADMIN: _freeze({
        WILDCARD: [WILDCARD],
    }),
    Role.NGO_ADMIN: _freeze({
        "users": ["create", "read", "update", "delete"],
        "ngos": ["create", "read", "update"],
        "kyc": ["create", "read"],
        "programs": ["create", "read", "update", "delete", "feature"],
        "volunteers": ["create", "read", "update", "delete", "assign"],
        "donations": ["read", "update"],
        "grants": ["create", "read", "update", "apply"],
        "certificates": ["create", "read", "update", "issue"],
        "reports": ["create", "read", "update", "export"],
        "emergency": ["create", "read", "update", "respond"],
        "services": ["create", "read", "update", "delete"],
        "announcements": ["create", "read", "update", "delete", "approve"],
        "notifications": ["create", "read", "update", "send"],
        "ngo_settings": ["read", "update"],
        "managers": ["create", "read", "update", "delete", "assign_permissions"],
        "profile": ["read", "update"],
        "dashboard": ["read"],
    }),
    Role.NGO_MANAGER: _freeze({
        "programs": ["create", "read", "update"],
        "volunteers": ["read", "update", "assign"],
        "donations": ["read"],
        "grants": ["read", "apply"],
        "certificates": ["read", "issue"],
        "reports": ["read", "create"],
        "emergency": ["read", "respond"],
        "services": ["read", "update"],
        "announcements": ["create", "read", "update"],
        "notifications": ["read", "send"],
        "profile": ["read", "update"],
        "dashboard": ["read"],
    }),
    Role.VOLUNTEER: _freeze({
        "profile": ["read", "update"],
        "programs": ["read", "register"],
        "events": ["read", "register"],
        "volunteers": ["create"],
        "certificates": ["read"],
        "reports": ["read"],
        "emergency": ["respond"],
        "services": ["read"],
        "hours": ["create", "read", "update"],
        "referrals": ["create", "read"],
        "notifications": ["read"],
        "dashboard": ["read"],
    }),
    Role.DONOR: _freeze({
        "profile": ["read", "update"],
        "donations": ["create", "read", "update"],
        "programs": ["read"],
        "reports": ["read"],
        "certificates": ["read"],
        "tax_receipts": ["read", "download"],
        "impact_tracking": ["read"],
        "notifications": ["read"],
        "dashboard": ["read"],
    }),
    Role.CITIZEN: _freeze({
        "profile": ["read", "update"],
        "services": ["read", "apply"],
        "programs": ["read", "apply"],
        "applications": ["create", "read", "update"],
        "emergency": ["create", "read"],
        "referrals": ["create", "read"],
        "certificates": ["read"],
        "notifications": ["read"],
        "dashboard": ["read"],
    }),
    Role.PUBLIC: _freeze({
        "ngos": ["read"],
        "programs": ["read"],
        "events": ["read"],
        "home": ["read"],
        "about": ["read"],
        "contact": ["read"],
    }),
})


# ===================================================================
# ROLE HIERARCHY
# ===================================================================
@dataclass(frozen=True)
class RoleInfo:
    level: int
    can_delegate: bool = False
    delegatable_roles: frozenset = frozenset()


ROLE_HIERARCHY: Mapping[Role, RoleInfo] = MappingProxyType({
    Role.SUPER_ADMIN: RoleInfo(100, True, frozenset({Role.NGO_ADMIN, Role.NGO_MANAGER})),
    Role.NGO_ADMIN: RoleInfo(80, True, frozenset({Role.NGO_MANAGER})),
    Role.NGO_MANAGER: RoleInfo(60),
    Role.VOLUNTEER: RoleInfo(40),
    Role.DONOR: RoleInfo(30),
    Role.CITIZEN: RoleInfo(20),
    Role.PUBLIC: RoleInfo(10),
})


# ===================================================================
# LOOKUPS
# ===================================================================
def normalize_role(role) -> Optional[Role]:
    """Maps a Role, canonical name or legacy alias onto a Role; None when unknown."""
    if isinstance(role, Role):
        return role
    if not isinstance(role, str):
        return None

    raw = role.strip()
    try:
        return Role(raw.upper())
    except ValueError:
        return LEGACY_ROLE_ALIASES.get(raw.lower())


def split_permission(permission: str) -> tuple[str, str] | None:
    if not isinstance(permission, str) or permission.count(":") != 1:
        return None
    module, action = permission.split(":")
    if not module or not action:
        return None
    return module, action


def _role_grants(role: Role, module: str, action: str) -> bool:
    table = PERMISSIONS.get(role, {})

    wildcard_actions = table.get(WILDCARD, frozenset())
    if WILDCARD in wildcard_actions:
        return True

    actions = table.get(module, frozenset())
    return action in actions or WILDCARD in actions


def _delegated_grants(module: str, action: str, user_permissions: Iterable[str]) -> bool:
    for granted in user_permissions or ():
        if not isinstance(granted, str):
            continue
        if granted == action or granted == f"{module}:{action}":
            return True
    return False


def check_permission(role, module, action, user_permissions: Iterable[str] = ()) -> bool:
    """
    True when the role's table grants `action` on `module` (directly or via
    a wildcard), or when the action appears in the user's delegated list.
    """
    if not isinstance(module, str) or not isinstance(action, str):
        return False

    if _delegated_grants(module, action, user_permissions):
        return True

    canonical = normalize_role(role)
    if canonical is None:
        return False
    return _role_grants(canonical, module, action)


def get_role_permissions(role) -> dict[str, list[str]]:
    """The role's table with wildcards expanded against the module catalogue."""
    canonical = normalize_role(role)
    if canonical is None:
        return {}

    table = PERMISSIONS[canonical]
    if WILDCARD in table.get(WILDCARD, frozenset()):
        return {module: list(actions) for module, actions in MODULE_ACTIONS.items()}
    return {module: sorted(actions) for module, actions in table.items()}


def get_role_level(role) -> int:
    canonical = normalize_role(role)
    if canonical is None:
        return 0
    return ROLE_HIERARCHY[canonical].level


def meets_min_level(role, threshold: int) -> bool:
    return get_role_level(role) >= threshold


def can_delegate_to_role(from_role, to_role) -> bool:
    source = normalize_role(from_role)
    target = normalize_role(to_role)
    if source is None or target is None:
        return False
    info = ROLE_HIERARCHY[source]
    return info.can_delegate and target in info.delegatable_roles


def get_delegatable_permissions(role) -> list[str]:
    """Every "module:action" the role holds, minus the critical set."""
    return sorted(
        f"{module}:{action}"
        for module, actions in get_role_permissions(role).items()
        for action in actions
        if f"{module}:{action}" not in CRITICAL_PERMISSIONS
    )
