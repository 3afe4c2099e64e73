"""
Notification Sink
Persists user-facing notifications written as side effects of workflow events
and pushes them to the user's live connection when there is one.

Delivery is best effort: callers commit their own state change first, and a
failure here is logged and swallowed so it never undoes that change.
"""

import logging
from typing import Any, Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import Notification
from ..shared.enums import NotificationType
from .connection_registry import ConnectionRegistry, get_connection_registry

logger = logging.getLogger(__name__)


def serialize_notification(notification: Notification) -> dict:
    return {
        "id": notification.id,
        "userId": notification.user_id,
        "title": notification.title,
        "message": notification.message,
        "type": notification.type,
        "isRead": notification.is_read,
        "actionUrl": notification.action_url,
        "metadata": notification.extra,
        "createdAt": notification.created_at.isoformat() if notification.created_at else None,
    }


class NotificationSink:
    def __init__(self, db: Session, registry: Optional[ConnectionRegistry] = None):
        self.db = db
        self.registry = registry

    def notify(
        self,
        user_id: str,
        title: str,
        message: str,
        type: NotificationType = NotificationType.INFO,
        action_url: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Optional[Notification]:
        try:
            notification = Notification(
                user_id=user_id,
                title=title,
                message=message,
                type=NotificationType(type).value,
                action_url=action_url,
                extra=metadata or {},
            )
            self.db.add(notification)
            self.db.commit()
            self.db.refresh(notification)
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to create {type} notification for user {user_id}: {e}")
            return None

        logger.info(f"🔔 {notification.type} notification created for user {user_id}")
        if self.registry is not None:
            self.registry.publish(
                user_id, {"type": "notification", "data": serialize_notification(notification)}
            )
        return notification


def get_notification_sink(
    db: Session = Depends(get_db),
    registry: ConnectionRegistry = Depends(get_connection_registry),
) -> NotificationSink:
    """Dependency injection for NotificationSink sharing the request's session"""
    return NotificationSink(db, registry)
