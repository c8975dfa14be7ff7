"""
Repository for direct messages.
"""

from typing import List

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session, joinedload

from repositories.base import BaseRepository
from repositories.db_models import Message


class MessageRepository(BaseRepository[Message]):
    """Repository for Message entity operations."""

    def __init__(self, db: Session):
        super().__init__(Message, db)

    def _pair_filter(self, user_a: int, user_b: int):  # type: ignore[no-untyped-def]
        return or_(
            and_(Message.sender_id == user_a, Message.recipient_id == user_b),
            and_(Message.sender_id == user_b, Message.recipient_id == user_a),
        )

    def get_thread(self, user_id: int, other_id: int, limit: int = 200) -> List[Message]:
        """
        Messages exchanged between two users, oldest first.

        Args:
            user_id: One participant
            other_id: The other participant
            limit: Maximum number of messages

        Returns:
            List of messages
        """
        return (
            self.db.query(Message)
            .filter(self._pair_filter(user_id, other_id))
            .order_by(Message.created_at.asc(), Message.id.asc())
            .limit(limit)
            .all()
        )

    def get_recent_involving(self, user_id: int, limit: int = 500) -> List[Message]:
        """Latest messages sent or received by a user, newest first."""
        return (
            self.db.query(Message)
            .options(joinedload(Message.sender), joinedload(Message.recipient))
            .filter(or_(Message.sender_id == user_id, Message.recipient_id == user_id))
            .order_by(Message.created_at.desc(), Message.id.desc())
            .limit(limit)
            .all()
        )

    def mark_thread_read(self, user_id: int, other_id: int) -> int:
        """Stage read flag on every message `other_id` sent to `user_id`."""
        return (
            self.db.query(Message)
            .filter(
                Message.sender_id == other_id,
                Message.recipient_id == user_id,
                Message.is_read == False,  # noqa: E712
            )
            .update({Message.is_read: True}, synchronize_session=False)
        )

    def unread_count(self, user_id: int) -> int:
        return (
            self.db.query(Message)
            .filter(
                Message.recipient_id == user_id,
                Message.is_read == False,  # noqa: E712
            )
            .count()
        )
