from datetime import date
from typing import Optional

from pydantic import BaseModel, Field


class ClientEmailRequest(BaseModel):
    message: str = Field(..., min_length=1)
    subject: Optional[str] = None


class ProjectNoticeRequest(BaseModel):
    project: str = Field(..., min_length=1)
    message: Optional[str] = None


class ReminderRunRequest(BaseModel):
    today: Optional[date] = None
