"""
Repository for in-app notifications.
"""

from typing import Any, List, Optional

from sqlalchemy.orm import Session

from repositories.base import BaseRepository
from repositories.db_models import Notification


class NotificationRepository(BaseRepository[Notification]):
    """Repository for the notification inbox."""

    def __init__(self, db: Session):
        super().__init__(Notification, db)

    def create_many(
        self, user_ids: List[int], notification_type: str, payload: dict[str, Any]
    ) -> List[Notification]:
        """
        Stage one notification per recipient, all sharing the same payload.

        Args:
            user_ids: Recipients
            notification_type: Persisted type key
            payload: Opaque structured data copied into every row

        Returns:
            The staged notifications
        """
        rows = [
            Notification(user_id=user_id, type=notification_type, payload=dict(payload))
            for user_id in user_ids
        ]
        self.db.add_all(rows)
        return rows

    def list_for_user(
        self, user_id: int, unread_only: bool = False, limit: int = 50
    ) -> List[Notification]:
        """Newest-first notifications of one user."""
        query = self.db.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.is_read == False)  # noqa: E712
        return (
            query.order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
            .all()
        )

    def mark_read(self, user_id: int, ids: Optional[List[int]] = None) -> int:
        """
        Mark notifications as read without committing.

        Args:
            user_id: Owner of the notifications
            ids: Specific notification ids, or None for every unread one

        Returns:
            Number of rows updated
        """
        query = self.db.query(Notification).filter(
            Notification.user_id == user_id,
            Notification.is_read == False,  # noqa: E712
        )
        if ids is not None:
            query = query.filter(Notification.id.in_(ids))
        return query.update({Notification.is_read: True}, synchronize_session=False)

    def unread_count(self, user_id: int) -> int:
        return (
            self.db.query(Notification)
            .filter(
                Notification.user_id == user_id,
                Notification.is_read == False,  # noqa: E712
            )
            .count()
        )

    def list_by_type(self, user_id: int, notification_type: str) -> List[Notification]:
        """All notifications of one type for a user, oldest first."""
        return (
            self.db.query(Notification)
            .filter(
                Notification.user_id == user_id,
                Notification.type == notification_type,
            )
            .order_by(Notification.id)
            .all()
        )
