from datetime import datetime

from pydantic import BaseModel


class ActivityResponse(BaseModel):
    id: int
    client_id: int
    action: str
    details: str | None
    timestamp: datetime
    actor: str | None

    model_config = {"from_attributes": True}
