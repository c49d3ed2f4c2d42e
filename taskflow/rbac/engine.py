"""Role-based authorization decisions.

Every function here is a pure lookup over ``ROLE_PERMISSIONS``. Anything that
is not a known role or permission is simply not granted: the only negative
outcome is ``False`` (or an empty list), never an exception.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, TypeVar

from taskflow.models.enums import Role
from taskflow.rbac.perms import ELEVATED_ROLES, ROLE_PERMISSIONS, Permission

T = TypeVar("T")

_NO_PERMS: frozenset[Permission] = frozenset()

def _as_role(role: Any) -> Role | None:
    if isinstance(role, Role):
        return role
    try:
        return Role(role)
    except ValueError:
        return None

def _as_permission(permission: Any) -> Permission | None:
    if isinstance(permission, Permission):
        return permission
    try:
        return Permission(permission)
    except ValueError:
        return None

def get_permissions(role: Role | str | None) -> frozenset[Permission]:
    r = _as_role(role)
    if r is None:
        return _NO_PERMS
    return ROLE_PERMISSIONS.get(r, _NO_PERMS)

def has_permission(role: Role | str | None, permission: Permission | str) -> bool:
    p = _as_permission(permission)
    if p is None:
        return False
    return p in get_permissions(role)

def has_any_permission(role: Role | str | None, permissions: Iterable[Permission | str]) -> bool:
    return any(has_permission(role, p) for p in permissions)

def has_all_permissions(role: Role | str | None, permissions: Iterable[Permission | str]) -> bool:
    return all(has_permission(role, p) for p in permissions)

def is_elevated(role: Role | str | None) -> bool:
    return _as_role(role) in ELEVATED_ROLES

def _same_identity(a: Any, b: Any) -> bool:
    # ids arrive as uuid.UUID from the db and as str from tokens
    return str(a) == str(b)

def can_perform_action(
    role: Role | str | None,
    action: Permission | str,
    resource_owner_id: Any = None,
    acting_user_id: Any = None,
) -> bool:
    """Decide whether ``role`` may perform ``action``, optionally on one resource.

    The role permission check always runs first. Ownership only narrows the
    result: without both identities there is no instance to check, so the
    decision is the plain permission check. With both, the creator may always
    act on their own resource, owners and admins may act on anyone's, and
    members are confined to their own.
    """
    if not has_permission(role, action):
        return False

    if resource_owner_id and acting_user_id:
        if _same_identity(resource_owner_id, acting_user_id):
            return True
        return is_elevated(role)

    return True

def _owner_of(item: Any, owner_field: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(owner_field)
    return getattr(item, owner_field, None)

def filter_by_permission(
    items: Sequence[T],
    role: Role | str | None,
    acting_user_id: Any,
    permission: Permission | str,
    owner_field: str = "created_by",
) -> list[T]:
    """Keep the items ``role`` may see under ``permission``.

    No permission means nothing is returned. Owners and admins get the input
    back in order; members only get the items they created.
    """
    if not has_permission(role, permission):
        return []

    if is_elevated(role):
        return list(items)

    out: list[T] = []
    for item in items:
        owner = _owner_of(item, owner_field)
        if owner is not None and acting_user_id is not None and _same_identity(owner, acting_user_id):
            out.append(item)
    return out

class RoleAccess:
    """Authorization queries bound to a single role."""

    def __init__(self, role: Role | str | None):
        self.role = role

    @property
    def permissions(self) -> frozenset[Permission]:
        return get_permissions(self.role)

    def has_permission(self, permission: Permission | str) -> bool:
        return has_permission(self.role, permission)

    def has_any_permission(self, permissions: Iterable[Permission | str]) -> bool:
        return has_any_permission(self.role, permissions)

    def has_all_permissions(self, permissions: Iterable[Permission | str]) -> bool:
        return has_all_permissions(self.role, permissions)

    def can_perform_action(
        self,
        action: Permission | str,
        resource_owner_id: Any = None,
        acting_user_id: Any = None,
    ) -> bool:
        return can_perform_action(self.role, action, resource_owner_id, acting_user_id)
