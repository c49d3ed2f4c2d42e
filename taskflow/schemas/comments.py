import uuid
from datetime import datetime
from pydantic import BaseModel, Field

class CommentCreateIn(BaseModel):
    content: str = Field(min_length=1, max_length=10000)

class CommentOut(BaseModel):
    id: uuid.UUID
    task_id: uuid.UUID
    user_id: uuid.UUID
    content: str
    created_at: datetime
