"""
Repository for moderator capability grant rows.
"""

from typing import Optional

from sqlalchemy.orm import Session

from repositories.base import BaseRepository
from repositories.db_models import ModeratorPermission


class PermissionRepository(BaseRepository[ModeratorPermission]):
    """Data access for the one-row-per-moderator grant table."""

    def __init__(self, db: Session):
        super().__init__(ModeratorPermission, db)

    def get_for_user(self, user_id: int) -> Optional[ModeratorPermission]:
        """
        Read the grant row for a user.

        Args:
            user_id: ID of the user

        Returns:
            Grant row if present, None otherwise
        """
        return (
            self.db.query(ModeratorPermission)
            .filter(ModeratorPermission.user_id == user_id)
            .first()
        )

    def ensure_default(self, user_id: int) -> ModeratorPermission:
        """
        Stage an all-false grant row if none exists (idempotent).

        Args:
            user_id: ID of the user

        Returns:
            Existing or newly staged grant row
        """
        grant = self.get_for_user(user_id)
        if grant is None:
            grant = ModeratorPermission(user_id=user_id)
            self.db.add(grant)
        return grant

    def remove_for_user(self, user_id: int) -> bool:
        """Stage deletion of a user's grant row. Returns True if one existed."""
        grant = self.get_for_user(user_id)
        if grant is None:
            return False
        self.db.delete(grant)
        return True
