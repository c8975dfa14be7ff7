"""
Repository for badges and user badge assignments.
"""

from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from repositories.base import BaseRepository
from repositories.db_models import Badge, CatalogAudit, UserBadge


class BadgeRepository(BaseRepository[Badge]):
    """Repository for Badge entity operations."""

    def __init__(self, db: Session):
        super().__init__(Badge, db)

    def get_by_name(self, name: str) -> Optional[Badge]:
        return (
            self.db.query(Badge)
            .filter(func.lower(Badge.name) == name.strip().lower())
            .first()
        )

    def list_all(self) -> List[Badge]:
        return self.db.query(Badge).order_by(Badge.name).all()

    def get_assignment(self, user_id: int, badge_id: int) -> Optional[UserBadge]:
        return (
            self.db.query(UserBadge)
            .filter(UserBadge.user_id == user_id, UserBadge.badge_id == badge_id)
            .first()
        )

    def list_for_user(self, user_id: int) -> List[Badge]:
        """Badges assigned to a user, in assignment order."""
        return (
            self.db.query(Badge)
            .join(UserBadge, UserBadge.badge_id == Badge.id)
            .filter(UserBadge.user_id == user_id)
            .order_by(UserBadge.id)
            .all()
        )

    def add_audit(self, entry: CatalogAudit) -> None:
        """Stage a catalog audit row."""
        self.db.add(entry)

    def delete_assignments(self, badge_id: int) -> None:
        self.db.query(UserBadge).filter(UserBadge.badge_id == badge_id).delete(
            synchronize_session=False
        )
