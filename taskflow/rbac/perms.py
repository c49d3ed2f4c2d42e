from enum import Enum
from types import MappingProxyType

from taskflow.models.enums import Role

class Permission(str, Enum):
    # task
    task_create = "task:create"
    task_read = "task:read"
    task_update = "task:update"
    task_delete = "task:delete"
    task_assign = "task:assign"

    # team
    team_create = "team:create"
    team_read = "team:read"
    team_update = "team:update"
    team_delete = "team:delete"
    team_invite = "team:invite"
    team_remove_member = "team:remove_member"

    # admin
    user_manage = "user:manage"
    analytics_view = "analytics:view"
    system_config = "system:config"

TASK_PERMS = frozenset(
    {
        Permission.task_create,
        Permission.task_read,
        Permission.task_update,
        Permission.task_delete,
        Permission.task_assign,
    }
)

TEAM_PERMS = frozenset(
    {
        Permission.team_create,
        Permission.team_read,
        Permission.team_update,
        Permission.team_delete,
        Permission.team_invite,
        Permission.team_remove_member,
    }
)

ADMIN_PERMS = frozenset(
    {
        Permission.user_manage,
        Permission.analytics_view,
        Permission.system_config,
    }
)

# team creation/deletion and system config never go below owner
OWNER_ONLY = frozenset({Permission.team_create, Permission.team_delete, Permission.system_config})

ROLE_PERMISSIONS: MappingProxyType[Role, frozenset[Permission]] = MappingProxyType(
    {
        Role.owner: TASK_PERMS | TEAM_PERMS | ADMIN_PERMS,
        Role.admin: frozenset(
            {
                Permission.task_create,
                Permission.task_read,
                Permission.task_update,
                Permission.task_delete,
                Permission.task_assign,

                Permission.team_read,
                Permission.team_update,
                Permission.team_invite,
                Permission.team_remove_member,

                Permission.analytics_view,
            }
        ),
        Role.member: frozenset(
            {
                Permission.task_create,
                Permission.task_read,
                Permission.task_update,

                Permission.team_read,
            }
        ),
    }
)

# roles that may act on resources created by someone else
ELEVATED_ROLES = frozenset({Role.owner, Role.admin})
