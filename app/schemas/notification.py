from datetime import datetime

from pydantic import BaseModel

from app.models.notification import NotificationType


class NotificationResponse(BaseModel):
    id: int
    user_id: int
    type: NotificationType
    title: str
    message: str | None = None
    link: str | None = None
    is_read: bool
    created_at: datetime | None = None

    class Config:
        from_attributes = True
