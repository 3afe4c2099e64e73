import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_roles
from ...database import get_db
from ...models import Notification, User
from ...services.connection_registry import ConnectionRegistry, get_connection_registry
from ...services.notification_service import serialize_notification
from ...shared.enums import Role
from ...shared.errors import Forbidden, NotFound
from ..users.repository import UserRepository
from .schemas import (
    NotificationCreate,
    NotificationListResponse,
    NotificationResponse,
    notification_response,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


def get_owned_notification(db: Session, notification_id: str, user: User) -> Notification:
    notification = db.query(Notification).filter(Notification.id == notification_id).first()
    if not notification:
        raise NotFound("Notification not found")
    if notification.user_id != user.id and user.role_enum != Role.ADMIN:
        raise Forbidden("Not your notification")
    return notification


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    unread_only: bool = Query(False, alias="unreadOnly"),
    limit: int = Query(50, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Caller's notifications, newest first, with the total unread count"""
    query = db.query(Notification).filter(Notification.user_id == current_user.id)
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))
    notifications = query.order_by(Notification.created_at.desc()).limit(limit).all()

    unread_count = (
        db.query(Notification)
        .filter(Notification.user_id == current_user.id, Notification.is_read.is_(False))
        .count()
    )
    return NotificationListResponse(
        notifications=[notification_response(n) for n in notifications],
        unreadCount=unread_count,
    )


@router.post("", response_model=NotificationResponse, status_code=status.HTTP_201_CREATED)
async def create_notification(
    data: NotificationCreate,
    _: User = Depends(require_roles(Role.ADMIN)),
    db: Session = Depends(get_db),
    registry: ConnectionRegistry = Depends(get_connection_registry),
):
    if not UserRepository.get_by_id(db, data.userId):
        raise NotFound("User not found")

    notification = Notification(
        user_id=data.userId,
        title=data.title,
        message=data.message,
        type=data.type.value,
        action_url=data.actionUrl,
        extra=data.metadata or {},
    )
    db.add(notification)
    db.commit()
    db.refresh(notification)
    logger.info(f"🔔 Admin sent {notification.type} notification to {data.userId}")

    registry.publish(
        data.userId, {"type": "notification", "data": serialize_notification(notification)}
    )
    return notification_response(notification)


@router.post("/read-all")
async def mark_all_read(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    updated = (
        db.query(Notification)
        .filter(Notification.user_id == current_user.id, Notification.is_read.is_(False))
        .update({"is_read": True}, synchronize_session=False)
    )
    db.commit()
    return {"message": "All notifications marked as read", "updated": updated}


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    notification = get_owned_notification(db, notification_id, current_user)
    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return notification_response(notification)


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    notification = get_owned_notification(db, notification_id, current_user)
    db.delete(notification)
    db.commit()
    return {"message": "Notification deleted"}
