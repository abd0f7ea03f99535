from datetime import datetime

from pydantic import BaseModel, Field


class NoteCreate(BaseModel):
    content: str = Field(..., min_length=1)


class NoteResponse(BaseModel):
    id: int
    client_id: int
    content: str
    author: str | None
    date: datetime

    model_config = {"from_attributes": True}
