from pydantic import BaseModel
from typing import Optional, Dict, Any
from datetime import datetime

class ActivityLogRead(BaseModel):
    id: int
    action: str
    actor_id: Optional[int] = None
    actor_role: Optional[str] = None
    actor_name: Optional[str] = None
    application_id: Optional[int] = None
    details: Dict[str, Any] = {}
    timestamp: datetime

    class Config:
        from_attributes = True
