import uuid
from pydantic import BaseModel, Field

from taskflow.models.category import DEFAULT_CATEGORY_COLOR

class CategoryCreateIn(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    color: str = Field(default=DEFAULT_CATEGORY_COLOR, max_length=20)
    team_id: uuid.UUID | None = None

class CategoryOut(BaseModel):
    id: uuid.UUID
    name: str
    color: str
    user_id: uuid.UUID
    team_id: uuid.UUID | None
