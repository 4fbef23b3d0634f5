"""
Role Resolver

Maps identity-provider group names to one internal Role, and a Role to its
fixed Permission set. Both functions are total: callers always receive a role
and a (possibly empty) permission set.
"""

from typing import Dict, FrozenSet, Iterable, Optional, Union

from harbor_auth.domain.entities import Permission, Role

PRIVILEGE_LEVELS: Dict[Role, int] = {
    Role.user: 0,
    Role.support: 1,
    Role.moderator: 1,
    Role.manager: 2,
    Role.admin: 2,
    Role.super_admin: 3,
}

GROUP_ALIASES: Dict[str, Role] = {
    "super-admin": Role.super_admin,
    "super_admin": Role.super_admin,
    "superadmins": Role.super_admin,
    "admin": Role.admin,
    "admins": Role.admin,
    "manager": Role.manager,
    "managers": Role.manager,
    "moderator": Role.moderator,
    "moderators": Role.moderator,
    "support": Role.support,
    "team_member": Role.support,
    "team-members": Role.support,
    "user": Role.user,
    "users": Role.user,
    "customers": Role.user,
}

_TIER_ONE = frozenset(
    {
        Permission.support_access,
        Permission.content_moderation,
        Permission.analytics_view,
    }
)

ROLE_PERMISSIONS: Dict[Role, FrozenSet[Permission]] = {
    Role.user: frozenset(),
    Role.support: frozenset({Permission.support_access, Permission.content_moderation}),
    Role.moderator: frozenset({Permission.content_moderation, Permission.analytics_view}),
    Role.manager: _TIER_ONE
    | {
        Permission.user_management,
        Permission.audit_log_view,
        Permission.sales_management,
    },
    Role.admin: _TIER_ONE
    | {
        Permission.user_management,
        Permission.system_config,
        Permission.audit_log_view,
        Permission.tier_management,
        Permission.billing_management,
        Permission.platform_settings,
    },
    Role.super_admin: frozenset(Permission),
}


def privilege_level(role: Role) -> int:
    return PRIVILEGE_LEVELS.get(role, 0)


def resolve_role(group_names: Optional[Union[str, Iterable[str]]]) -> Role:
    """
    Pick the highest-privilege role among the given groups.

    Unknown groups are ignored and no match yields Role.user. Roles sharing a
    privilege tier are ordered by their value, lowest first, so
    {"managers", "admins"} resolves to admin and {"support", "moderators"}
    to moderator.
    """
    if group_names is None:
        return Role.user
    if isinstance(group_names, str):
        group_names = [group_names]

    matched = set()
    for name in group_names:
        if not isinstance(name, str):
            continue
        role = GROUP_ALIASES.get(name.strip().lower())
        if role is not None:
            matched.add(role)

    if not matched:
        return Role.user
    return min(matched, key=lambda r: (-privilege_level(r), r.value))


def permissions_for(role) -> FrozenSet[Permission]:
    # Fail closed: anything without a table entry grants nothing
    if not isinstance(role, Role):
        return frozenset()
    return ROLE_PERMISSIONS.get(role, frozenset())


def has_permission(role: Role, permission: Permission) -> bool:
    return permission in permissions_for(role)


def is_staff(role: Role) -> bool:
    return privilege_level(role) > 0
