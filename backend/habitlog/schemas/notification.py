from datetime import datetime
from pydantic import BaseModel

class NotificationRead(BaseModel):
    message: str
    entity_id: str | None = None
    level: str
    created_at: datetime

    model_config = {"from_attributes": True}
