from datetime import datetime

from pydantic import BaseModel


class ClientImageResponse(BaseModel):
    id: int
    user_id: int
    url: str
    filename: str | None
    project: str | None
    treated: bool
    uploaded_at: datetime
    size: int | None
    mime_type: str | None
    type: str

    model_config = {"from_attributes": True}


class ProjectOverview(BaseModel):
    name: str
    total_images: int
    treated_images: int
