import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from taskflow.auth.deps import get_current_user
from taskflow.db import get_db
from taskflow.models.profile import Profile
from taskflow.models.task_comment import TaskComment
from taskflow.ratelimit import write_limit
from taskflow.rbac.engine import can_perform_action
from taskflow.rbac.perms import Permission
from taskflow.rbac.resources import load_task
from taskflow.schemas.comments import CommentCreateIn, CommentOut

router = APIRouter(tags=["comments"])

def _comment_out(c: TaskComment) -> CommentOut:
    return CommentOut(
        id=c.id,
        task_id=c.task_id,
        user_id=c.user_id,
        content=c.content,
        created_at=c.created_at,
    )

@router.get("/tasks/{task_id}/comments", response_model=list[CommentOut])
def list_comments(
    task_id: uuid.UUID,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[CommentOut]:
    load_task(db, task_id, user)

    q = select(TaskComment).where(TaskComment.task_id == task_id).order_by(TaskComment.created_at.asc())
    return [_comment_out(c) for c in db.scalars(q).all()]

@router.post("/tasks/{task_id}/comments", response_model=CommentOut)
def add_comment(
    task_id: uuid.UUID,
    payload: CommentCreateIn,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
    _: None = Depends(write_limit("comments:create")),
) -> CommentOut:
    load_task(db, task_id, user)

    c = TaskComment(task_id=task_id, user_id=user.id, content=payload.content.strip())
    db.add(c)
    db.commit()
    db.refresh(c)
    return _comment_out(c)

@router.delete("/comments/{comment_id}")
def delete_comment(
    comment_id: uuid.UUID,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    c = db.get(TaskComment, comment_id)
    if c is None:
        raise HTTPException(status_code=404, detail="comment not found")

    _task, role = load_task(db, c.task_id, user)
    # author, or an owner/admin of the task's scope
    if not can_perform_action(role, Permission.task_update, c.user_id, user.id):
        raise HTTPException(status_code=403, detail="forbidden")

    db.delete(c)
    db.commit()
    return {"deleted": True}
