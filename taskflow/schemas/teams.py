import uuid
from pydantic import BaseModel, EmailStr, Field

from taskflow.models.enums import Role

class TeamCreateIn(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    description: str | None = None

class TeamUpdateIn(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    description: str | None = None

class TeamOut(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None
    created_by: uuid.UUID
    role: Role | None = None

class InviteIn(BaseModel):
    email: EmailStr
    role: Role = Role.member

class MemberRoleIn(BaseModel):
    role: Role

class MemberOut(BaseModel):
    user_id: uuid.UUID
    team_id: uuid.UUID
    role: Role
    email: str | None = None
    full_name: str | None = None
