import uuid
from collections.abc import Sequence

from fastapi import HTTPException
from sqlalchemy import ColumnElement, and_, or_, select
from sqlalchemy.orm import Session

from taskflow.models.enums import Role
from taskflow.models.profile import Profile
from taskflow.models.task import Task
from taskflow.models.team_member import TeamMember
from taskflow.rbac.deps import scope_role
from taskflow.rbac.engine import can_perform_action, filter_by_permission, has_permission, is_elevated
from taskflow.rbac.perms import Permission

def _task_access(role: Role, action: Permission, task: Task, user_id: uuid.UUID) -> bool:
    if can_perform_action(role, action, task.created_by, user_id):
        return True
    # assignees work on the task like its creator
    return has_permission(role, action) and task.assigned_to is not None and task.assigned_to == user_id

def can_read_task(role: Role, task: Task, user_id: uuid.UUID) -> bool:
    return _task_access(role, Permission.task_read, task, user_id)

def can_edit_task(role: Role, task: Task, user_id: uuid.UUID) -> bool:
    return _task_access(role, Permission.task_update, task, user_id)

def visible_tasks(rows: Sequence[Task], role: Role, user_id: uuid.UUID) -> list[Task]:
    visible = filter_by_permission(rows, role, user_id, Permission.task_read)
    if is_elevated(role) or not has_permission(role, Permission.task_read):
        return visible

    own = {t.id for t in visible}
    return [t for t in rows if t.id in own or t.assigned_to == user_id]

def own_tasks_clause(user_id: uuid.UUID) -> ColumnElement[bool]:
    """Tasks the user created or is assigned to, limited to scopes they still belong to."""
    member_of = select(TeamMember.team_id).where(TeamMember.user_id == user_id)
    return and_(
        or_(Task.created_by == user_id, Task.assigned_to == user_id),
        or_(Task.team_id.is_(None), Task.team_id.in_(member_of)),
    )

def load_task(db: Session, task_id: uuid.UUID, user: Profile) -> tuple[Task, Role]:
    """Fetch a task the caller may read, with the caller's role in its scope.

    Tasks the caller cannot read are reported as missing.
    """
    t = db.get(Task, task_id)
    if t is None:
        raise HTTPException(status_code=404, detail="task not found")

    role = scope_role(db, t.team_id, t.created_by, user)
    if not can_read_task(role, t, user.id):
        raise HTTPException(status_code=404, detail="task not found")
    return t, role
