from types import SimpleNamespace

import pytest
from fastapi import HTTPException

from sevadaan.core.permissions import (
    CRITICAL_PERMISSIONS,
    Role,
    can_delegate_to_role,
    check_permission,
    get_delegatable_permissions,
    get_role_level,
    get_role_permissions,
    meets_min_level,
    normalize_role,
)
from sevadaan.core.rbac import require_min_level


def test_super_admin_wildcard_grants_everything():
    assert check_permission(Role.SUPER_ADMIN, "kyc", "verify")
    assert check_permission(Role.SUPER_ADMIN, "some_future_module", "anything")


def test_role_table_lookup():
    assert check_permission(Role.NGO_ADMIN, "programs", "create")
    assert not check_permission(Role.NGO_ADMIN, "kyc", "verify")
    assert check_permission(Role.DONOR, "donations", "create")
    assert not check_permission(Role.CITIZEN, "donations", "create")


@pytest.mark.parametrize("role, module, action", [
    ("ROBOT", "programs", "read"),
    (None, "programs", "read"),
    (Role.CITIZEN, "no_such_module", "read"),
    (Role.CITIZEN, "programs", "no_such_action"),
    (Role.CITIZEN, None, "read"),
])
def test_unknown_inputs_fail_closed(role, module, action):
    assert check_permission(role, module, action) is False


def test_delegated_permissions_extend_the_role():
    assert not check_permission(Role.NGO_MANAGER, "managers", "read")
    assert check_permission(Role.NGO_MANAGER, "managers", "read", ["managers:read"])
    # a bare action string matches any module
    assert check_permission(Role.NGO_MANAGER, "reports", "export", ["export"])
    # delegated grants do not leak to other actions
    assert not check_permission(Role.NGO_MANAGER, "managers", "delete", ["managers:read"])


def test_legacy_role_aliases():
    assert normalize_role("admin") == Role.SUPER_ADMIN
    assert normalize_role("ngo") == Role.NGO_ADMIN
    assert normalize_role("volunteer") == Role.VOLUNTEER
    assert normalize_role("NGO_MANAGER") == Role.NGO_MANAGER
    assert normalize_role("guest") is None
    assert check_permission("donor", "donations", "create")


def test_role_levels_and_gates():
    assert get_role_level(Role.SUPER_ADMIN) == 100
    assert get_role_level(Role.NGO_ADMIN) == 80
    assert get_role_level(Role.PUBLIC) == 10
    assert get_role_level("nobody") == 0

    assert meets_min_level(Role.NGO_ADMIN, 60)
    assert not meets_min_level(Role.VOLUNTEER, 60)


def test_delegation_targets():
    assert can_delegate_to_role(Role.NGO_ADMIN, Role.NGO_MANAGER)
    assert can_delegate_to_role(Role.SUPER_ADMIN, Role.NGO_ADMIN)
    assert not can_delegate_to_role(Role.NGO_ADMIN, Role.NGO_ADMIN)
    assert not can_delegate_to_role(Role.NGO_MANAGER, Role.NGO_MANAGER)
    assert not can_delegate_to_role("ghost", Role.NGO_MANAGER)


def test_delegatable_permissions_exclude_the_critical_set():
    delegatable = get_delegatable_permissions(Role.NGO_ADMIN)
    assert "programs:create" in delegatable
    assert "managers:read" in delegatable
    assert not CRITICAL_PERMISSIONS & set(delegatable)


def test_wildcard_role_expands_against_catalogue():
    expanded = get_role_permissions(Role.SUPER_ADMIN)
    assert "verify" in expanded["kyc"]
    assert "broadcast" in expanded["notifications"]
    assert get_role_permissions("unknown") == {}


@pytest.mark.asyncio
@pytest.mark.parametrize("role", list(Role))
async def test_min_level_gate_boundary(role):
    level = get_role_level(role)
    user = SimpleNamespace(role=role)

    assert await require_min_level(level)(current_user=user) is user
    assert await require_min_level(level - 1)(current_user=user) is user

    with pytest.raises(HTTPException) as exc:
        await require_min_level(level + 1)(current_user=user)
    assert exc.value.status_code == 403


@pytest.mark.asyncio
async def test_min_level_gate_rejects_unknown_role():
    with pytest.raises(HTTPException):
        await require_min_level(1)(current_user=SimpleNamespace(role="ROBOT"))
