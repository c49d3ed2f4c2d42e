"""Permission-gated wrappers.

``with_rbac`` wraps any callable so that it only runs when the caller's role
holds every required permission. The wrapper takes an extra ``role`` keyword,
consumes it, and returns either ``Allowed(result)`` or ``Denied(...)``.
"""

from __future__ import annotations

import functools
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

from taskflow.models.enums import Role
from taskflow.rbac.engine import has_all_permissions
from taskflow.rbac.perms import Permission

T = TypeVar("T")

ACCESS_DENIED = "Access Denied"
ACCESS_DENIED_DETAIL = "You don't have permission to access this resource."

@dataclass(frozen=True)
class Denied:
    title: str = ACCESS_DENIED
    message: str = ACCESS_DENIED_DETAIL

@dataclass(frozen=True)
class Allowed(Generic[T]):
    value: T

Decision = Union[Allowed[T], Denied]

def with_rbac(
    fn: Callable[..., T],
    required_permissions: Iterable[Permission | str],
) -> Callable[..., Decision[T]]:
    required = tuple(required_permissions)

    @functools.wraps(fn)
    def _guarded(*args: Any, role: Role | str | None = None, **kwargs: Any) -> Decision[T]:
        if not has_all_permissions(role, required):
            return Denied()
        return Allowed(fn(*args, **kwargs))

    _guarded.required_permissions = required  # type: ignore[attr-defined]
    return _guarded
