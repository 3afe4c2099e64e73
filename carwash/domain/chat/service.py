"""Chat service - direct messages between users"""

import logging

from sqlalchemy.orm import Session

from ...models import Message, User
from ...shared.errors import NotFound, ValidationFailed
from ..users.repository import UserRepository
from .repository import MessageRepository

logger = logging.getLogger(__name__)


class ChatService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = MessageRepository()

    def _counterpart(self, user_id: str) -> User:
        other = UserRepository.get_by_id(self.db, user_id)
        if not other or not other.is_active:
            raise NotFound("User not found")
        return other

    def send_message(self, sender: User, receiver_id: str, content: str) -> Message:
        content = (content or "").strip()
        if not content:
            raise ValidationFailed("Message content cannot be empty")
        if receiver_id == sender.id:
            raise ValidationFailed("Cannot send a message to yourself")
        self._counterpart(receiver_id)

        message = self.repo.create_message(self.db, sender.id, receiver_id, content)
        logger.info(f"💬 Message {message.id} {sender.id} → {receiver_id}")
        return message

    def conversations(self, user: User) -> list[dict]:
        """Last message and unread count per counterpart, most recent first"""
        summaries: dict[str, dict] = {}
        for message in self.repo.messages_of(self.db, user.id):
            other_id = message.receiver_id if message.sender_id == user.id else message.sender_id
            summary = summaries.get(other_id)
            if summary is None:
                summary = summaries[other_id] = {"lastMessage": message, "unreadCount": 0}
            if message.receiver_id == user.id and not message.is_read:
                summary["unreadCount"] += 1

        results = []
        for other_id, summary in summaries.items():
            other = UserRepository.get_by_id(self.db, other_id)
            if not other:
                continue
            results.append(
                {
                    "user": {"id": other.id, "name": other.name, "role": other.role},
                    **summary,
                }
            )
        return results

    def history(self, user: User, other_id: str, limit: int) -> list[Message]:
        """Messages with ``other_id``, oldest first; incoming ones are marked read"""
        self._counterpart(other_id)
        messages = self.repo.conversation(self.db, user.id, other_id, limit)
        self.repo.mark_read(self.db, other_id, user.id)
        return messages

    def unread_count(self, user: User) -> int:
        return self.repo.unread_count(self.db, user.id)
