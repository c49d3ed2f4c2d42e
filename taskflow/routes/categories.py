import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from taskflow.auth.deps import get_current_user
from taskflow.db import get_db
from taskflow.models.category import Category
from taskflow.models.profile import Profile
from taskflow.models.task import Task
from taskflow.rbac.deps import load_team_context
from taskflow.rbac.engine import can_perform_action
from taskflow.rbac.guard import ACCESS_DENIED
from taskflow.rbac.perms import Permission
from taskflow.schemas.categories import CategoryCreateIn, CategoryOut

router = APIRouter(prefix="/categories", tags=["categories"])

def _category_out(c: Category) -> CategoryOut:
    return CategoryOut(id=c.id, name=c.name, color=c.color, user_id=c.user_id, team_id=c.team_id)

@router.get("", response_model=list[CategoryOut])
def list_categories(
    team_id: uuid.UUID | None = None,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[CategoryOut]:
    if team_id is None:
        q = select(Category).where(Category.user_id == user.id, Category.team_id.is_(None))
    else:
        ctx = load_team_context(db, team_id, user)
        if not ctx.access.has_permission(Permission.team_read):
            raise HTTPException(status_code=403, detail=ACCESS_DENIED)
        q = select(Category).where(Category.team_id == team_id)

    return [_category_out(c) for c in db.scalars(q.order_by(Category.name)).all()]

@router.post("", response_model=CategoryOut)
def create_category(
    payload: CategoryCreateIn,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> CategoryOut:
    if payload.team_id is not None:
        ctx = load_team_context(db, payload.team_id, user)
        if not ctx.access.has_permission(Permission.team_update):
            raise HTTPException(status_code=403, detail=ACCESS_DENIED)

    c = Category(name=payload.name.strip(), color=payload.color, user_id=user.id, team_id=payload.team_id)
    db.add(c)
    db.commit()
    db.refresh(c)
    return _category_out(c)

@router.delete("/{category_id}")
def delete_category(
    category_id: uuid.UUID,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    c = db.get(Category, category_id)
    if c is None:
        raise HTTPException(status_code=404, detail="category not found")

    if c.team_id is None:
        if c.user_id != user.id:
            raise HTTPException(status_code=404, detail="category not found")
    else:
        ctx = load_team_context(db, c.team_id, user)
        if not can_perform_action(ctx.role, Permission.team_update, c.user_id, user.id):
            raise HTTPException(status_code=403, detail=ACCESS_DENIED)

    db.execute(
        update(Task)
        .where(Task.category_id == category_id)
        .values(category_id=None)
        .execution_options(synchronize_session=False)
    )
    db.delete(c)
    db.commit()
    return {"deleted": True}
