import os
import uuid
from dataclasses import dataclass

# must be set before taskflow.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

import taskflow.models  # noqa: F401
from taskflow.auth.tokens import issue_access_token
from taskflow.db import get_db, make_engine
from taskflow.main import create_app
from taskflow.models.base import Base

@dataclass
class Identity:
    id: uuid.UUID
    email: str
    headers: dict[str, str]

@pytest.fixture()
def db_session() -> Session:
    engine = make_engine(os.environ["DATABASE_URL"])
    Base.metadata.create_all(engine)

    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    session: Session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()

@pytest.fixture()
def client(db_session: Session) -> TestClient:
    app = create_app()

    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    return TestClient(app)

def auth(user_id: uuid.UUID, email: str) -> dict[str, str]:
    return {"authorization": f"bearer {issue_access_token(user_id, email)}"}

def login(client, prefix: str) -> Identity:
    # first authenticated request provisions the profile
    user_id = uuid.uuid4()
    email = f"{prefix}+{user_id.hex[:8]}@example.com"
    headers = auth(user_id, email)
    r = client.get("/me", headers=headers)
    assert r.status_code == 200, r.text
    return Identity(id=user_id, email=email, headers=headers)

def create_team(client, who: Identity, name: str = "team") -> str:
    r = client.post("/teams", json={"name": name}, headers=who.headers)
    assert r.status_code == 200, r.text
    return r.json()["id"]

def invite(client, who: Identity, team_id: str, invitee: Identity, role: str):
    return client.post(
        f"/teams/{team_id}/invites",
        json={"email": invitee.email, "role": role},
        headers=who.headers,
    )

def create_task(client, who: Identity, **payload) -> dict:
    payload.setdefault("title", "task")
    r = client.post("/tasks", json=payload, headers=who.headers)
    assert r.status_code == 200, r.text
    return r.json()

@dataclass
class SeededTeam:
    team_id: str
    owner: Identity
    admin: Identity
    member: Identity
    member2: Identity
    outsider: Identity

@pytest.fixture()
def seeded_team(client) -> SeededTeam:
    owner = login(client, "owner")
    admin = login(client, "admin")
    member = login(client, "member")
    member2 = login(client, "member2")
    outsider = login(client, "outsider")

    team_id = create_team(client, owner, "seeded-team")
    for who, role in ((admin, "admin"), (member, "member"), (member2, "member")):
        r = invite(client, owner, team_id, who, role)
        assert r.status_code == 200, r.text

    return SeededTeam(
        team_id=team_id,
        owner=owner,
        admin=admin,
        member=member,
        member2=member2,
        outsider=outsider,
    )
