"""Chat repository"""

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from ...models import Message


class MessageRepository:
    @staticmethod
    def create_message(db: Session, sender_id: str, receiver_id: str, content: str) -> Message:
        message = Message(sender_id=sender_id, receiver_id=receiver_id, content=content)
        db.add(message)
        db.commit()
        db.refresh(message)
        return message

    @staticmethod
    def messages_of(db: Session, user_id: str) -> list[Message]:
        """Every message the user sent or received, newest first"""
        return (
            db.query(Message)
            .filter(or_(Message.sender_id == user_id, Message.receiver_id == user_id))
            .order_by(Message.created_at.desc())
            .all()
        )

    @staticmethod
    def conversation(db: Session, user_id: str, other_id: str, limit: int) -> list[Message]:
        """The latest ``limit`` messages between two users, oldest first"""
        latest = (
            db.query(Message)
            .filter(
                or_(
                    and_(Message.sender_id == user_id, Message.receiver_id == other_id),
                    and_(Message.sender_id == other_id, Message.receiver_id == user_id),
                )
            )
            .order_by(Message.created_at.desc())
            .limit(limit)
            .all()
        )
        return list(reversed(latest))

    @staticmethod
    def mark_read(db: Session, sender_id: str, receiver_id: str) -> int:
        updated = (
            db.query(Message)
            .filter(
                Message.sender_id == sender_id,
                Message.receiver_id == receiver_id,
                Message.is_read.is_(False),
            )
            .update({"is_read": True}, synchronize_session=False)
        )
        db.commit()
        return updated

    @staticmethod
    def unread_count(db: Session, receiver_id: str) -> int:
        return (
            db.query(Message)
            .filter(Message.receiver_id == receiver_id, Message.is_read.is_(False))
            .count()
        )
