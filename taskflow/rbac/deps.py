import logging
import uuid

from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from taskflow.auth.deps import get_current_user
from taskflow.db import get_db
from taskflow.models.enums import Role
from taskflow.models.profile import Profile
from taskflow.models.team import Team
from taskflow.models.team_member import TeamMember
from taskflow.rbac.engine import RoleAccess, has_all_permissions
from taskflow.rbac.guard import ACCESS_DENIED
from taskflow.rbac.perms import Permission

logger = logging.getLogger(__name__)

# role held on personal (team-less) resources by anyone but their creator
DEFAULT_ROLE = Role.member

class TeamContext:
    def __init__(self, team: Team, membership: TeamMember):
        self.team = team
        self.membership = membership
        self.access = RoleAccess(membership.role)

    @property
    def role(self) -> Role:
        return self.membership.role

def load_team_context(db: Session, team_id: uuid.UUID, user: Profile) -> TeamContext:
    team = db.get(Team, team_id)
    if team is None:
        raise HTTPException(status_code=404, detail="team not found")

    membership = db.get(TeamMember, {"user_id": user.id, "team_id": team_id})
    if membership is None:
        raise HTTPException(status_code=403, detail="not a member of this team")

    return TeamContext(team=team, membership=membership)

def get_team_context(
    team_id: uuid.UUID,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TeamContext:
    return load_team_context(db, team_id, user)

def personal_role(owner_id: uuid.UUID | None, user_id: uuid.UUID) -> Role:
    # a user owns their personal scope
    if owner_id is None or owner_id == user_id:
        return Role.owner
    return DEFAULT_ROLE

def scope_role(db: Session, team_id: uuid.UUID | None, owner_id: uuid.UUID | None, user: Profile) -> Role:
    if team_id is None:
        return personal_role(owner_id, user.id)
    return load_team_context(db, team_id, user).role

def require_perm(*perms: Permission):
    if not perms:
        raise RuntimeError("require_perm needs at least one permission")
    unknown = [p for p in perms if not isinstance(p, Permission)]
    if unknown:
        raise RuntimeError(f"unknown permission action: {unknown}")

    def _checker(team_id: uuid.UUID, ctx: TeamContext = Depends(get_team_context)) -> TeamContext:
        if ctx.team.id != team_id:
            raise HTTPException(status_code=400, detail="team context mismatch")

        if not has_all_permissions(ctx.role, perms):
            logger.info(
                "denied %s for user %s in team %s (role=%s)",
                ",".join(p.value for p in perms),
                ctx.membership.user_id,
                team_id,
                ctx.role.value,
            )
            raise HTTPException(status_code=403, detail=ACCESS_DENIED)
        return ctx

    return _checker
