import logging
import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from taskflow.auth.deps import get_current_user
from taskflow.auth.tokens import now_utc
from taskflow.config import settings
from taskflow.db import get_db
from taskflow.models.category import Category
from taskflow.models.enums import Role, TaskPriority, TaskStatus
from taskflow.models.profile import Profile
from taskflow.models.task import Task
from taskflow.models.task_history import TaskHistory
from taskflow.models.team_member import TeamMember
from taskflow.ratelimit import write_limit
from taskflow.rbac.deps import load_team_context, scope_role
from taskflow.rbac.engine import can_perform_action, has_permission
from taskflow.rbac.guard import ACCESS_DENIED
from taskflow.rbac.perms import Permission
from taskflow.rbac.resources import can_edit_task, load_task, own_tasks_clause, visible_tasks
from taskflow.schemas.tasks import TaskCreateIn, TaskHistoryOut, TaskOut, TaskStatsOut, TaskUpdateIn
from taskflow.services.tasks import (
    DUPLICATE_FIELDS,
    apply_status,
    compute_stats,
    diff,
    duplicate_title,
    purge_tasks,
    snapshot,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])

HISTORY_FIELDS = (
    "title",
    "description",
    "priority",
    "status",
    "due_date",
    "estimated_duration",
    "actual_duration",
    "tags",
    "assigned_to",
    "category_id",
    "completed_at",
)

# nullable fields a client may clear by sending null
CLEARABLE_FIELDS = ("description", "due_date", "estimated_duration", "actual_duration", "category_id")

def _task_out(t: Task) -> TaskOut:
    return TaskOut(
        id=t.id,
        title=t.title,
        description=t.description,
        priority=t.priority,
        status=t.status,
        due_date=t.due_date,
        estimated_duration=t.estimated_duration,
        actual_duration=t.actual_duration,
        tags=list(t.tags or []),
        natural_language_input=t.natural_language_input,
        created_by=t.created_by,
        assigned_to=t.assigned_to,
        team_id=t.team_id,
        category_id=t.category_id,
        parent_task_id=t.parent_task_id,
        created_at=t.created_at,
        updated_at=t.updated_at,
        completed_at=t.completed_at,
    )

def _record(db: Session, task_id: uuid.UUID, user_id: uuid.UUID, change_type: str, old: dict, new: dict) -> None:
    db.add(TaskHistory(task_id=task_id, changed_by=user_id, change_type=change_type, old_values=old, new_values=new))

def _check_assignee(db: Session, team_id: uuid.UUID | None, assignee_id: uuid.UUID, role: Role, user_id: uuid.UUID) -> None:
    if assignee_id != user_id and not has_permission(role, Permission.task_assign):
        raise HTTPException(status_code=403, detail=ACCESS_DENIED)

    if team_id is None:
        if db.get(Profile, assignee_id) is None:
            raise HTTPException(status_code=400, detail="assignee not found")
        return

    if db.get(TeamMember, {"user_id": assignee_id, "team_id": team_id}) is None:
        raise HTTPException(status_code=400, detail="assignee is not a team member")

def _check_category(db: Session, category_id: uuid.UUID, team_id: uuid.UUID | None, user_id: uuid.UUID) -> None:
    c = db.get(Category, category_id)
    if c is None:
        raise HTTPException(status_code=404, detail="category not found")

    if team_id is None:
        ok = c.team_id is None and c.user_id == user_id
    else:
        ok = c.team_id == team_id
    if not ok:
        raise HTTPException(status_code=404, detail="category not found")

@router.post("", response_model=TaskOut)
def create_task(
    payload: TaskCreateIn,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
    _: None = Depends(write_limit("tasks:create")),
) -> TaskOut:
    role = scope_role(db, payload.team_id, user.id, user)
    if not has_permission(role, Permission.task_create):
        raise HTTPException(status_code=403, detail=ACCESS_DENIED)

    if payload.assigned_to is not None:
        _check_assignee(db, payload.team_id, payload.assigned_to, role, user.id)
    if payload.category_id is not None:
        _check_category(db, payload.category_id, payload.team_id, user.id)
    if payload.parent_task_id is not None:
        parent, _role = load_task(db, payload.parent_task_id, user)
        if parent.team_id != payload.team_id:
            raise HTTPException(status_code=400, detail="parent task belongs to another team")

    t = Task(
        title=payload.title.strip(),
        description=payload.description,
        priority=payload.priority,
        status=TaskStatus.todo,
        due_date=payload.due_date,
        estimated_duration=payload.estimated_duration,
        tags=list(payload.tags),
        natural_language_input=payload.natural_language_input,
        created_by=user.id,
        assigned_to=payload.assigned_to,
        team_id=payload.team_id,
        category_id=payload.category_id,
        parent_task_id=payload.parent_task_id,
    )
    apply_status(t, payload.status, now_utc())
    db.add(t)
    db.flush()

    _record(db, t.id, user.id, "created", {}, snapshot(t, HISTORY_FIELDS))
    db.commit()
    db.refresh(t)
    return _task_out(t)

@router.get("", response_model=list[TaskOut])
def list_tasks(
    status: list[TaskStatus] | None = Query(default=None),
    priority: list[TaskPriority] | None = Query(default=None),
    team_id: uuid.UUID | None = None,
    category_id: uuid.UUID | None = None,
    assigned_to: uuid.UUID | None = None,
    created_by: uuid.UUID | None = None,
    search: str | None = Query(default=None, max_length=200),
    due_before: datetime | None = None,
    due_after: datetime | None = None,
    limit: int | None = Query(default=None, ge=1),
    offset: int = Query(default=0, ge=0),
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[TaskOut]:
    q = select(Task)

    ctx = None
    if team_id is not None:
        ctx = load_team_context(db, team_id, user)
        q = q.where(Task.team_id == team_id)
    else:
        q = q.where(own_tasks_clause(user.id))

    if status:
        q = q.where(Task.status.in_(status))
    if priority:
        q = q.where(Task.priority.in_(priority))
    if category_id is not None:
        q = q.where(Task.category_id == category_id)
    if assigned_to is not None:
        q = q.where(Task.assigned_to == assigned_to)
    if created_by is not None:
        q = q.where(Task.created_by == created_by)
    if due_before is not None:
        q = q.where(Task.due_date <= due_before)
    if due_after is not None:
        q = q.where(Task.due_date >= due_after)
    if search:
        like = f"%{search.strip()}%"
        q = q.where(or_(Task.title.ilike(like), Task.description.ilike(like)))

    q = q.order_by(Task.created_at.desc())
    page_size = min(limit or settings.default_page_size, settings.max_page_size)

    if ctx is None:
        rows = db.scalars(q.offset(offset).limit(page_size)).all()
    else:
        # visibility depends on role, so page after filtering
        rows = visible_tasks(db.scalars(q).all(), ctx.role, user.id)[offset : offset + page_size]

    return [_task_out(r) for r in rows]

@router.get("/stats", response_model=TaskStatsOut)
def task_stats(
    team_id: uuid.UUID | None = None,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TaskStatsOut:
    q = select(Task).where(own_tasks_clause(user.id))
    if team_id is not None:
        load_team_context(db, team_id, user)
        q = q.where(Task.team_id == team_id)

    return TaskStatsOut(**compute_stats(db.scalars(q).all(), now_utc()))

@router.get("/{task_id}", response_model=TaskOut)
def get_task(
    task_id: uuid.UUID,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TaskOut:
    t, _role = load_task(db, task_id, user)
    return _task_out(t)

@router.patch("/{task_id}", response_model=TaskOut)
def update_task(
    task_id: uuid.UUID,
    payload: TaskUpdateIn,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TaskOut:
    t, role = load_task(db, task_id, user)

    if not has_permission(role, Permission.task_update):
        raise HTTPException(status_code=403, detail=ACCESS_DENIED)
    # members may only edit tasks they created or are assigned to
    if not can_edit_task(role, t, user.id):
        raise HTTPException(status_code=403, detail="forbidden")

    fields = payload.model_fields_set

    if "assigned_to" in fields and payload.assigned_to != t.assigned_to:
        if payload.assigned_to is None:
            if t.assigned_to != user.id and not has_permission(role, Permission.task_assign):
                raise HTTPException(status_code=403, detail=ACCESS_DENIED)
        else:
            _check_assignee(db, t.team_id, payload.assigned_to, role, user.id)

    if "category_id" in fields and payload.category_id is not None:
        _check_category(db, payload.category_id, t.team_id, t.created_by)

    before = snapshot(t, HISTORY_FIELDS)

    if payload.title is not None:
        t.title = payload.title.strip()
    if payload.priority is not None:
        t.priority = payload.priority
    if payload.tags is not None:
        t.tags = list(payload.tags)
    for field in CLEARABLE_FIELDS:
        if field in fields:
            setattr(t, field, getattr(payload, field))
    if "assigned_to" in fields:
        t.assigned_to = payload.assigned_to
    if payload.status is not None:
        apply_status(t, payload.status, now_utc())

    old, new = diff(before, snapshot(t, HISTORY_FIELDS))
    if new:
        _record(db, t.id, user.id, "updated", old, new)

    db.add(t)
    db.commit()
    db.refresh(t)
    return _task_out(t)

@router.delete("/{task_id}")
def delete_task(
    task_id: uuid.UUID,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    t, role = load_task(db, task_id, user)

    if not has_permission(role, Permission.task_delete):
        raise HTTPException(status_code=403, detail=ACCESS_DENIED)
    if not can_perform_action(role, Permission.task_delete, t.created_by, user.id):
        raise HTTPException(status_code=403, detail="forbidden")

    purge_tasks(db, select(Task.id).where(Task.id == task_id))
    db.commit()
    logger.info("task %s deleted by %s", task_id, user.id)
    return {"deleted": True}

@router.post("/{task_id}/duplicate", response_model=TaskOut)
def duplicate_task(
    task_id: uuid.UUID,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
    _: None = Depends(write_limit("tasks:create")),
) -> TaskOut:
    original, _role = load_task(db, task_id, user)

    # the copy lands in the same scope, created by the caller
    role = scope_role(db, original.team_id, user.id, user)
    if not has_permission(role, Permission.task_create):
        raise HTTPException(status_code=403, detail=ACCESS_DENIED)

    copy = Task(
        title=duplicate_title(original.title),
        status=TaskStatus.todo,
        created_by=user.id,
        **{f: getattr(original, f) for f in DUPLICATE_FIELDS},
    )
    copy.tags = list(original.tags or [])
    if original.team_id is None and original.created_by != user.id:
        # personal categories are not shared
        copy.category_id = None

    db.add(copy)
    db.flush()

    new_values = snapshot(copy, HISTORY_FIELDS)
    new_values["duplicated_from"] = str(original.id)
    _record(db, copy.id, user.id, "created", {}, new_values)
    db.commit()
    db.refresh(copy)
    return _task_out(copy)

@router.get("/{task_id}/history", response_model=list[TaskHistoryOut])
def task_history(
    task_id: uuid.UUID,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[TaskHistoryOut]:
    load_task(db, task_id, user)

    q = select(TaskHistory).where(TaskHistory.task_id == task_id).order_by(TaskHistory.created_at.asc())
    return [
        TaskHistoryOut(
            id=h.id,
            task_id=h.task_id,
            changed_by=h.changed_by,
            change_type=h.change_type,
            old_values=h.old_values or {},
            new_values=h.new_values or {},
            created_at=h.created_at,
        )
        for h in db.scalars(q).all()
    ]
