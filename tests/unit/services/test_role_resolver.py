"""
Unit tests for the Role Resolver
"""

import pytest

from harbor_auth.app.services.role_resolver import (
    PRIVILEGE_LEVELS,
    ROLE_PERMISSIONS,
    has_permission,
    is_staff,
    permissions_for,
    privilege_level,
    resolve_role,
)
from harbor_auth.domain.entities import Permission, Role


@pytest.mark.parametrize(
    "groups, expected",
    [
        (["super-admin"], Role.super_admin),
        (["SuperAdmins"], Role.super_admin),
        (["admins"], Role.admin),
        (["Managers"], Role.manager),
        (["moderators"], Role.moderator),
        (["team_member"], Role.support),
        (["team-members"], Role.support),
        (["customers"], Role.user),
        (["users"], Role.user),
    ],
)
def test_resolve_role_aliases(groups, expected):
    assert resolve_role(groups) == expected


def test_resolve_role_picks_highest_privilege():
    assert resolve_role(["customers", "moderators", "admins"]) == Role.admin
    assert resolve_role(["support", "super_admin"]) == Role.super_admin


def test_resolve_role_ties_broken_by_role_value():
    assert resolve_role(["managers", "admins"]) == Role.admin
    assert resolve_role(["admins", "managers"]) == Role.admin
    assert resolve_role(["support", "moderators"]) == Role.moderator


def test_resolve_role_ignores_unknown_groups():
    assert resolve_role(["fleet-owners", "admins", "beta"]) == Role.admin
    assert resolve_role(["fleet-owners"]) == Role.user


@pytest.mark.parametrize("groups", [None, [], "", [None, 42]])
def test_resolve_role_defaults_to_user(groups):
    assert resolve_role(groups) == Role.user


def test_resolve_role_accepts_single_string():
    assert resolve_role("moderators") == Role.moderator


def test_resolution_is_monotonic_in_groups():
    """Adding a group never lowers the resolved privilege level"""
    all_groups = ["customers", "support", "moderators", "managers", "admins", "superadmins", "other"]
    for i in range(len(all_groups)):
        base = all_groups[:i]
        for extra in all_groups:
            before = privilege_level(resolve_role(base))
            after = privilege_level(resolve_role(base + [extra]))
            assert after >= before


def test_every_role_has_permission_entry():
    assert set(ROLE_PERMISSIONS) == set(Role)
    assert set(PRIVILEGE_LEVELS) == set(Role)


def test_permissions_monotonic_across_tiers():
    for role in Role:
        assert permissions_for(Role.user) <= permissions_for(role)
        assert permissions_for(role) <= permissions_for(Role.super_admin)
    # Each tier-2 role holds every permission of tier 1
    tier_one = permissions_for(Role.support) | permissions_for(Role.moderator)
    assert tier_one <= permissions_for(Role.manager)
    assert tier_one <= permissions_for(Role.admin)


def test_user_has_no_permissions():
    assert permissions_for(Role.user) == frozenset()


def test_super_admin_has_every_permission():
    assert permissions_for(Role.super_admin) == frozenset(Permission)


def test_permissions_for_unknown_input_is_empty():
    assert permissions_for("owner") == frozenset()
    assert permissions_for(None) == frozenset()
    assert permissions_for(["admin"]) == frozenset()


def test_has_permission():
    assert has_permission(Role.admin, Permission.audit_log_view)
    assert has_permission(Role.manager, Permission.user_management)
    assert not has_permission(Role.moderator, Permission.user_management)
    assert not has_permission(Role.admin, Permission.financial_access)


def test_is_staff():
    assert not is_staff(Role.user)
    assert all(is_staff(role) for role in Role if role != Role.user)
