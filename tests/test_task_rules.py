import uuid
from datetime import datetime, timedelta, timezone

from taskflow.models.enums import TaskPriority, TaskStatus
from taskflow.models.task import Task
from taskflow.services.tasks import apply_status, as_utc, compute_stats, diff, duplicate_title, snapshot

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

def make_task(**kw) -> Task:
    kw.setdefault("title", "t")
    kw.setdefault("status", TaskStatus.todo)
    kw.setdefault("created_by", uuid.uuid4())
    return Task(**kw)

def test_completing_sets_completed_at():
    t = make_task()
    apply_status(t, TaskStatus.completed, NOW)
    assert t.status == TaskStatus.completed
    assert t.completed_at == NOW

def test_completing_again_keeps_first_timestamp():
    t = make_task()
    apply_status(t, TaskStatus.completed, NOW)
    apply_status(t, TaskStatus.completed, NOW + timedelta(hours=1))
    assert t.completed_at == NOW

def test_reverting_clears_completed_at():
    for status in (TaskStatus.todo, TaskStatus.in_progress, TaskStatus.cancelled):
        t = make_task()
        apply_status(t, TaskStatus.completed, NOW)
        apply_status(t, status, NOW)
        assert t.status == status
        assert t.completed_at is None

def test_stats_counts_and_overdue():
    past = NOW - timedelta(days=1)
    future = NOW + timedelta(days=1)
    tasks = [
        make_task(status=TaskStatus.todo, due_date=past),
        make_task(status=TaskStatus.todo, due_date=future),
        make_task(status=TaskStatus.in_progress, due_date=past.replace(tzinfo=None)),
        make_task(status=TaskStatus.completed, due_date=past),
        make_task(status=TaskStatus.cancelled),
    ]
    assert compute_stats(tasks, NOW) == {
        "total": 5,
        "completed": 1,
        "in_progress": 1,
        "todo": 2,
        "overdue": 2,
    }

def test_stats_empty():
    assert compute_stats([], NOW) == {"total": 0, "completed": 0, "in_progress": 0, "todo": 0, "overdue": 0}

def test_as_utc_marks_naive_values():
    naive = datetime(2026, 1, 1, 9, 30)
    assert as_utc(naive).tzinfo is timezone.utc
    assert as_utc(None) is None
    assert as_utc(NOW) is NOW

def test_snapshot_and_diff():
    assignee = uuid.uuid4()
    t = make_task(priority=TaskPriority.low, tags=["a"], due_date=NOW)
    before = snapshot(t, ("title", "priority", "tags", "due_date", "assigned_to"))
    assert before == {
        "title": "t",
        "priority": "low",
        "tags": ["a"],
        "due_date": NOW.isoformat(),
        "assigned_to": None,
    }

    t.priority = TaskPriority.urgent
    t.assigned_to = assignee
    old, new = diff(before, snapshot(t, ("title", "priority", "tags", "due_date", "assigned_to")))
    assert old == {"priority": "low", "assigned_to": None}
    assert new == {"priority": "urgent", "assigned_to": str(assignee)}

def test_duplicate_title():
    assert duplicate_title("write docs") == "write docs (Copy)"
    assert len(duplicate_title("x" * 300)) == 300
