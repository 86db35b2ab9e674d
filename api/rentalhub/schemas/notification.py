"""Notification schemas."""
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class NotificationResponse(BaseModel):
    notification_id: int
    title: str
    message: str
    notification_type: str
    data: Optional[dict] = None
    read_status: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]
    total: int
    unread_count: int
    page: int
    limit: int


class MarkReadRequest(BaseModel):
    notification_ids: List[int] = Field(..., min_length=1)
