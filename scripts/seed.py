import uuid
from dataclasses import dataclass

from rich import print
from sqlalchemy import select
from sqlalchemy.orm import Session

from taskflow.auth.tokens import issue_access_token
from taskflow.db import SessionLocal
from taskflow.models.category import Category
from taskflow.models.enums import Role, TaskPriority
from taskflow.models.profile import Profile
from taskflow.models.task import Task
from taskflow.models.team import Team
from taskflow.models.team_member import TeamMember

# fixed ids so re-runs line up with tokens the identity provider would issue
SEED_USERS = {
    Role.owner: (uuid.UUID("00000000-0000-4000-8000-000000000001"), "owner@example.com"),
    Role.admin: (uuid.UUID("00000000-0000-4000-8000-000000000002"), "admin@example.com"),
    Role.member: (uuid.UUID("00000000-0000-4000-8000-000000000003"), "member@example.com"),
}

@dataclass
class SeedResult:
    team_id: uuid.UUID
    category_id: uuid.UUID
    task_ids: list[uuid.UUID]

def get_or_create_profile(db: Session, user_id: uuid.UUID, email: str, name: str | None = None) -> Profile:
    p = db.get(Profile, user_id)
    if p is None:
        p = Profile(id=user_id, email=email, full_name=name)
        db.add(p)
        db.flush()
    return p

def get_or_create_membership(db: Session, user_id: uuid.UUID, team_id: uuid.UUID, role: Role) -> TeamMember:
    m = db.get(TeamMember, {"user_id": user_id, "team_id": team_id})
    if m is None:
        m = TeamMember(user_id=user_id, team_id=team_id, role=role)
        db.add(m)
        db.flush()
    elif m.role != role:
        m.role = role
        db.add(m)
        db.flush()
    return m

def get_or_create_team(db: Session, name: str, created_by: uuid.UUID) -> Team:
    t = db.scalar(select(Team).where(Team.name == name, Team.created_by == created_by))
    if t is None:
        t = Team(name=name, created_by=created_by)
        db.add(t)
        db.flush()
    return t

def get_or_create_category(db: Session, team_id: uuid.UUID, user_id: uuid.UUID, name: str) -> Category:
    c = db.scalar(select(Category).where(Category.team_id == team_id, Category.name == name))
    if c is None:
        c = Category(name=name, team_id=team_id, user_id=user_id)
        db.add(c)
        db.flush()
    return c

def get_or_create_task(
    db: Session,
    team_id: uuid.UUID,
    title: str,
    created_by: uuid.UUID,
    assigned_to: uuid.UUID | None,
    category_id: uuid.UUID | None = None,
    priority: TaskPriority = TaskPriority.medium,
) -> Task:
    t = db.scalar(select(Task).where(Task.team_id == team_id, Task.title == title))
    if t is None:
        t = Task(
            team_id=team_id,
            title=title,
            created_by=created_by,
            assigned_to=assigned_to,
            category_id=category_id,
            priority=priority,
            tags=["seed"],
        )
        db.add(t)
        db.flush()
    elif t.assigned_to != assigned_to:
        # keep it stable if you re-run seed
        t.assigned_to = assigned_to
        db.add(t)
        db.flush()
    return t

def seed() -> SeedResult:
    db = SessionLocal()
    try:
        users = {
            role: get_or_create_profile(db, user_id, email, role.value)
            for role, (user_id, email) in SEED_USERS.items()
        }
        owner, admin, member = users[Role.owner], users[Role.admin], users[Role.member]

        team = get_or_create_team(db, "seeded team", owner.id)
        for role, profile in users.items():
            get_or_create_membership(db, profile.id, team.id, role)

        category = get_or_create_category(db, team.id, owner.id, "general")

        tasks = [
            get_or_create_task(db, team.id, "plan sprint", owner.id, admin.id, category.id, TaskPriority.high),
            get_or_create_task(db, team.id, "write docs", member.id, member.id, category.id),
            get_or_create_task(db, team.id, "fix login bug", admin.id, member.id, None, TaskPriority.urgent),
        ]

        db.commit()

        return SeedResult(
            team_id=team.id,
            category_id=category.id,
            task_ids=[t.id for t in tasks],
        )
    finally:
        db.close()

if __name__ == "__main__":
    r = seed()
    print("[bold green]seed complete[/bold green]")
    print(f"team_id={r.team_id}")
    print(f"category_id={r.category_id}")
    for task_id in r.task_ids:
        print(f"task_id={task_id}")
    print("dev tokens:")
    for role, (user_id, email) in SEED_USERS.items():
        print(f"  {role.value:<6} {email}: {issue_access_token(user_id, email)}")
