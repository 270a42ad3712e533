"""
Pydantic schemas for notifications
"""

from pydantic import BaseModel
from datetime import datetime


class NotificationResponse(BaseModel):
    id: int
    order_id: int
    message: str
    read: bool
    created_at: datetime

    class Config:
        from_attributes = True
