"""Role based access control.

The permission table answers "may this role do X at all"; the ownership rule
answers "may this actor touch this particular row". Handlers need both: a role
holding ``posts:update`` can only update posts it owns unless it is an admin.
"""
from typing import Dict, FrozenSet, Optional

ALL_PERMISSIONS: FrozenSet[str] = frozenset({
    "posts:create",
    "posts:read",
    "posts:update",
    "posts:delete",
    "posts:bulk-update",
    "posts:bulk-delete",
    "comments:create",
    "comments:read",
    "comments:update",
    "comments:delete",
    "users:read",
    "users:update",
    "users:delete",
    "wellness:read",
    "wellness:create",
    "admin:access",
})

_POST_AND_COMMENT = frozenset(p for p in ALL_PERMISSIONS if p.startswith(("posts:", "comments:")))
_WELLNESS = frozenset({"wellness:read", "wellness:create"})

ROLE_PERMISSIONS: Dict[str, FrozenSet[str]] = {
    "admin": ALL_PERMISSIONS,
    "editor": _POST_AND_COMMENT | _WELLNESS,
    "reader": frozenset({
        "posts:create",
        "posts:read",
        "posts:update",
        "posts:delete",
        "comments:create",
        "comments:read",
        "comments:update",
        "comments:delete",
    }) | _WELLNESS,
}


def get_role_permissions(role: Optional[str]) -> FrozenSet[str]:
    if not isinstance(role, str):
        return frozenset()
    return ROLE_PERMISSIONS.get(role, frozenset())


def has_permission(role: Optional[str], permission: str) -> bool:
    return permission in get_role_permissions(role)


def is_admin(role: Optional[str]) -> bool:
    return role == "admin"


def can_modify_own_resource(role: Optional[str], resource_owner_id, actor_id) -> bool:
    """Admins may modify anything; everyone else only what they own."""
    if is_admin(role):
        return True
    return resource_owner_id == actor_id
