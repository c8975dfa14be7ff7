"""
Repository for the append-only moderation log.
"""

from typing import List

from sqlalchemy.orm import Session, aliased

from repositories.base import BaseRepository
from repositories.db_models import BanRecord, User


class BanRepository(BaseRepository[BanRecord]):
    """Read/append access to ban records. Records are never updated."""

    def __init__(self, db: Session):
        super().__init__(BanRecord, db)

    def get_recent_with_usernames(self, limit: int = 100) -> List[tuple]:
        """
        Get the latest moderation actions with target and actor usernames.

        Args:
            limit: Maximum entries to return

        Returns:
            List of (BanRecord, target_username, actor_username) tuples, newest first
        """
        target = aliased(User)
        actor = aliased(User)
        return (
            self.db.query(BanRecord, target.username, actor.username)
            .join(target, BanRecord.user_id == target.id)
            .join(actor, BanRecord.created_by == actor.id)
            .order_by(BanRecord.created_at.desc(), BanRecord.id.desc())
            .limit(limit)
            .all()
        )

    def get_for_user(self, user_id: int) -> List[BanRecord]:
        """All records for one user, oldest first."""
        return (
            self.db.query(BanRecord)
            .filter(BanRecord.user_id == user_id)
            .order_by(BanRecord.id)
            .all()
        )
