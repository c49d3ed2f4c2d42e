import logging
import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from taskflow.auth.deps import get_current_user
from taskflow.auth.tokens import now_utc
from taskflow.db import get_db
from taskflow.models.category import Category
from taskflow.models.enums import Role
from taskflow.models.profile import Profile
from taskflow.models.task import Task
from taskflow.models.team import Team
from taskflow.models.team_member import TeamMember
from taskflow.rbac.deps import TeamContext, get_team_context, require_perm
from taskflow.rbac.guard import ACCESS_DENIED, Denied, with_rbac
from taskflow.rbac.perms import Permission
from taskflow.schemas.tasks import TaskStatsOut
from taskflow.schemas.teams import InviteIn, MemberOut, MemberRoleIn, TeamCreateIn, TeamOut, TeamUpdateIn
from taskflow.services.tasks import compute_stats, purge_tasks

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/teams", tags=["teams"])

# who may add / remove whom
MANAGEABLE_ROLES = {
    Role.owner: {Role.admin, Role.member},
    Role.admin: {Role.member},
}

def _team_out(team: Team, role: Role | None = None) -> TeamOut:
    return TeamOut(
        id=team.id,
        name=team.name,
        description=team.description,
        created_by=team.created_by,
        role=role,
    )

def _member_out(m: TeamMember, profile: Profile | None = None) -> MemberOut:
    return MemberOut(
        user_id=m.user_id,
        team_id=m.team_id,
        role=m.role,
        email=profile.email if profile else None,
        full_name=profile.full_name if profile else None,
    )

def _team_stats(db: Session, team_id: uuid.UUID, now: datetime) -> dict[str, int]:
    rows = db.scalars(select(Task).where(Task.team_id == team_id)).all()
    return compute_stats(rows, now)

team_stats_view = with_rbac(_team_stats, [Permission.analytics_view])

@router.post("", response_model=TeamOut)
def create_team(
    payload: TeamCreateIn,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TeamOut:
    team = Team(name=payload.name.strip(), description=payload.description, created_by=user.id)
    db.add(team)
    db.flush()

    # creator owns the team
    db.add(TeamMember(user_id=user.id, team_id=team.id, role=Role.owner))
    db.commit()
    db.refresh(team)

    logger.info("team %s created by %s", team.id, user.id)
    return _team_out(team, Role.owner)

@router.get("", response_model=list[TeamOut])
def list_teams(
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[TeamOut]:
    q = (
        select(Team, TeamMember.role)
        .join(TeamMember, TeamMember.team_id == Team.id)
        .where(TeamMember.user_id == user.id)
        .order_by(Team.created_at.desc())
    )
    return [_team_out(team, role) for team, role in db.execute(q).all()]

@router.get("/{team_id}", response_model=TeamOut)
def get_team(ctx: TeamContext = Depends(require_perm(Permission.team_read))) -> TeamOut:
    return _team_out(ctx.team, ctx.role)

@router.patch("/{team_id}", response_model=TeamOut)
def update_team(
    payload: TeamUpdateIn,
    ctx: TeamContext = Depends(require_perm(Permission.team_update)),
    db: Session = Depends(get_db),
) -> TeamOut:
    team = ctx.team
    if payload.name is not None:
        team.name = payload.name.strip()
    if "description" in payload.model_fields_set:
        team.description = payload.description

    db.add(team)
    db.commit()
    db.refresh(team)
    return _team_out(team, ctx.role)

@router.delete("/{team_id}")
def delete_team(
    team_id: uuid.UUID,
    ctx: TeamContext = Depends(require_perm(Permission.team_delete)),
    db: Session = Depends(get_db),
) -> dict:
    actor_id = ctx.membership.user_id
    opts = {"synchronize_session": False}

    purge_tasks(db, select(Task.id).where(Task.team_id == team_id))

    category_ids = list(db.scalars(select(Category.id).where(Category.team_id == team_id)))
    if category_ids:
        db.execute(
            update(Task)
            .where(Task.category_id.in_(category_ids))
            .values(category_id=None)
            .execution_options(**opts)
        )
        db.execute(delete(Category).where(Category.id.in_(category_ids)).execution_options(**opts))

    db.execute(delete(TeamMember).where(TeamMember.team_id == team_id).execution_options(**opts))
    db.execute(delete(Team).where(Team.id == team_id).execution_options(**opts))
    db.commit()

    logger.info("team %s deleted by %s", team_id, actor_id)
    return {"deleted": True}

@router.get("/{team_id}/members", response_model=list[MemberOut])
def list_members(
    team_id: uuid.UUID,
    ctx: TeamContext = Depends(require_perm(Permission.team_read)),
    db: Session = Depends(get_db),
) -> list[MemberOut]:
    q = (
        select(TeamMember, Profile)
        .join(Profile, Profile.id == TeamMember.user_id)
        .where(TeamMember.team_id == team_id)
        .order_by(TeamMember.joined_at.asc())
    )
    return [_member_out(m, p) for m, p in db.execute(q).all()]

@router.post("/{team_id}/invites", response_model=MemberOut)
def invite_member(
    team_id: uuid.UUID,
    payload: InviteIn,
    ctx: TeamContext = Depends(require_perm(Permission.team_invite)),
    db: Session = Depends(get_db),
) -> MemberOut:
    allowed = MANAGEABLE_ROLES.get(ctx.role, set())
    if payload.role not in allowed:
        raise HTTPException(status_code=403, detail="forbidden")

    email = payload.email.lower().strip()
    invited = db.scalar(select(Profile).where(Profile.email == email))
    if invited is None:
        raise HTTPException(status_code=404, detail="user not found")

    existing = db.get(TeamMember, {"user_id": invited.id, "team_id": team_id})
    if existing is not None:
        return _member_out(existing, invited)

    m = TeamMember(user_id=invited.id, team_id=team_id, role=payload.role)
    db.add(m)
    db.commit()
    return _member_out(m, invited)

@router.patch("/{team_id}/members/{user_id}", response_model=MemberOut)
def change_member_role(
    team_id: uuid.UUID,
    user_id: uuid.UUID,
    payload: MemberRoleIn,
    ctx: TeamContext = Depends(require_perm(Permission.user_manage)),
    db: Session = Depends(get_db),
) -> MemberOut:
    if user_id == ctx.membership.user_id:
        raise HTTPException(status_code=400, detail="cannot change your own role")

    m = db.get(TeamMember, {"user_id": user_id, "team_id": team_id})
    if m is None:
        raise HTTPException(status_code=404, detail="member not found")
    # owners are neither demoted nor removed
    if m.role == Role.owner:
        raise HTTPException(status_code=400, detail="cannot change a team owner's role")

    m.role = payload.role
    db.add(m)
    db.commit()
    return _member_out(m, db.get(Profile, user_id))

@router.delete("/{team_id}/members/{user_id}")
def remove_member(
    team_id: uuid.UUID,
    user_id: uuid.UUID,
    ctx: TeamContext = Depends(get_team_context),
    db: Session = Depends(get_db),
) -> dict:
    target = db.get(TeamMember, {"user_id": user_id, "team_id": team_id})
    if target is None:
        raise HTTPException(status_code=404, detail="member not found")

    if target.role == Role.owner:
        raise HTTPException(status_code=400, detail="cannot remove a team owner")

    # anyone but an owner may leave on their own
    if user_id != ctx.membership.user_id:
        if not ctx.access.has_permission(Permission.team_remove_member):
            raise HTTPException(status_code=403, detail=ACCESS_DENIED)
        if target.role not in MANAGEABLE_ROLES.get(ctx.role, set()):
            raise HTTPException(status_code=403, detail="forbidden")

    db.execute(
        update(Task)
        .where(Task.team_id == team_id, Task.assigned_to == user_id)
        .values(assigned_to=None)
        .execution_options(synchronize_session=False)
    )
    db.delete(target)
    db.commit()
    return {"removed": True}

@router.get("/{team_id}/stats", response_model=TaskStatsOut)
def team_stats(
    team_id: uuid.UUID,
    ctx: TeamContext = Depends(get_team_context),
    db: Session = Depends(get_db),
) -> TaskStatsOut:
    decision = team_stats_view(db, team_id, now_utc(), role=ctx.role)
    if isinstance(decision, Denied):
        raise HTTPException(status_code=403, detail=decision.title)
    return TaskStatsOut(**decision.value)
