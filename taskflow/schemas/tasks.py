import uuid
from datetime import datetime
from pydantic import BaseModel, Field

from taskflow.models.enums import TaskPriority, TaskStatus

class TaskCreateIn(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    description: str | None = None
    priority: TaskPriority = TaskPriority.medium
    status: TaskStatus = TaskStatus.todo
    due_date: datetime | None = None
    estimated_duration: int | None = Field(default=None, ge=0)
    tags: list[str] = Field(default_factory=list)
    natural_language_input: str | None = None
    assigned_to: uuid.UUID | None = None
    team_id: uuid.UUID | None = None
    category_id: uuid.UUID | None = None
    parent_task_id: uuid.UUID | None = None

class TaskUpdateIn(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=300)
    description: str | None = None
    priority: TaskPriority | None = None
    status: TaskStatus | None = None
    due_date: datetime | None = None
    estimated_duration: int | None = Field(default=None, ge=0)
    actual_duration: int | None = Field(default=None, ge=0)
    tags: list[str] | None = None
    assigned_to: uuid.UUID | None = None
    category_id: uuid.UUID | None = None

class TaskOut(BaseModel):
    id: uuid.UUID
    title: str
    description: str | None
    priority: TaskPriority
    status: TaskStatus
    due_date: datetime | None
    estimated_duration: int | None
    actual_duration: int | None
    tags: list[str]
    natural_language_input: str | None
    created_by: uuid.UUID
    assigned_to: uuid.UUID | None
    team_id: uuid.UUID | None
    category_id: uuid.UUID | None
    parent_task_id: uuid.UUID | None
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None

class TaskStatsOut(BaseModel):
    total: int
    completed: int
    in_progress: int
    todo: int
    overdue: int

class TaskHistoryOut(BaseModel):
    id: uuid.UUID
    task_id: uuid.UUID
    changed_by: uuid.UUID
    change_type: str
    old_values: dict
    new_values: dict
    created_at: datetime
