from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from ...shared.enums import NotificationType


class NotificationCreate(BaseModel):
    userId: str = Field(min_length=1)
    title: str = Field(min_length=1, max_length=255)
    message: str = Field(min_length=1)
    type: NotificationType = NotificationType.INFO
    actionUrl: Optional[str] = Field(None, max_length=500)
    metadata: Optional[dict[str, Any]] = None


class NotificationResponse(BaseModel):
    id: str
    userId: str
    title: str
    message: str
    type: NotificationType
    isRead: bool
    actionUrl: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None
    createdAt: Optional[datetime] = None


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse]
    unreadCount: int


def notification_response(notification) -> NotificationResponse:
    return NotificationResponse(
        id=notification.id,
        userId=notification.user_id,
        title=notification.title,
        message=notification.message,
        type=notification.type,
        isRead=notification.is_read,
        actionUrl=notification.action_url,
        metadata=notification.extra,
        createdAt=notification.created_at,
    )
