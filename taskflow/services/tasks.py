import uuid
from collections.abc import Iterable
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from sqlalchemy import Select, delete, update
from sqlalchemy.orm import Session

from taskflow.models.enums import TaskStatus
from taskflow.models.task import Task
from taskflow.models.task_comment import TaskComment
from taskflow.models.task_history import TaskHistory

# fields copied onto a duplicate as-is; tags are copied separately
DUPLICATE_FIELDS = (
    "description",
    "priority",
    "estimated_duration",
    "team_id",
    "category_id",
)

def as_utc(dt: datetime | None) -> datetime | None:
    # sqlite hands back naive datetimes
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt

def apply_status(task: Task, status: TaskStatus, now: datetime) -> None:
    if status == TaskStatus.completed:
        if task.status != TaskStatus.completed or task.completed_at is None:
            task.completed_at = now
    else:
        task.completed_at = None
    task.status = status

def is_overdue(task: Task, now: datetime) -> bool:
    due = as_utc(task.due_date)
    return due is not None and due < now and task.status != TaskStatus.completed

def compute_stats(tasks: Iterable[Task], now: datetime) -> dict[str, int]:
    stats = {"total": 0, "completed": 0, "in_progress": 0, "todo": 0, "overdue": 0}
    for t in tasks:
        stats["total"] += 1
        if t.status == TaskStatus.completed:
            stats["completed"] += 1
        elif t.status == TaskStatus.in_progress:
            stats["in_progress"] += 1
        elif t.status == TaskStatus.todo:
            stats["todo"] += 1
        if is_overdue(t, now):
            stats["overdue"] += 1
    return stats

def to_json_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, datetime):
        return as_utc(value).isoformat()
    if isinstance(value, list):
        return [to_json_value(v) for v in value]
    return value

def snapshot(task: Task, fields: Iterable[str]) -> dict[str, Any]:
    return {f: to_json_value(getattr(task, f)) for f in fields}

def diff(before: dict[str, Any], after: dict[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
    old: dict[str, Any] = {}
    new: dict[str, Any] = {}
    for k, v in after.items():
        if before.get(k) != v:
            old[k] = before.get(k)
            new[k] = v
    return old, new

def duplicate_title(title: str) -> str:
    return f"{title} (Copy)"[:300]

def purge_tasks(db: Session, task_ids: Select) -> None:
    ids = list(db.scalars(task_ids))
    if not ids:
        return

    # children and references first, then the tasks themselves
    opts = {"synchronize_session": False}
    db.execute(delete(TaskHistory).where(TaskHistory.task_id.in_(ids)).execution_options(**opts))
    db.execute(delete(TaskComment).where(TaskComment.task_id.in_(ids)).execution_options(**opts))
    db.execute(
        update(Task)
        .where(Task.parent_task_id.in_(ids))
        .values(parent_task_id=None)
        .execution_options(**opts)
    )
    db.execute(delete(Task).where(Task.id.in_(ids)).execution_options(**opts))
