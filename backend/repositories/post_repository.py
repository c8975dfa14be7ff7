"""
Post repository for database operations.
"""

from typing import List

from sqlalchemy.orm import Session, joinedload

import repositories.db_models as db_models
from .base import BaseRepository


class PostRepository(BaseRepository[db_models.Post]):
    """Repository for Post entity database operations."""

    def __init__(self, db: Session):
        super().__init__(db_models.Post, db)

    def get_by_topic(
        self, topic_id: int, skip: int = 0, limit: int = 100
    ) -> List[db_models.Post]:
        """
        Get posts of a topic in chronological order.

        Soft-deleted posts are included so threads keep their shape; the
        response layer hides their content.

        Args:
            topic_id: Topic ID
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            List of posts with authors loaded
        """
        return (
            self.db.query(db_models.Post)
            .options(joinedload(db_models.Post.author))
            .filter(db_models.Post.topic_id == topic_id)
            .order_by(db_models.Post.created_at.asc(), db_models.Post.id.asc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_by_author(self, author_id: int, limit: int = 50) -> List[db_models.Post]:
        """Latest visible posts written by a user."""
        return (
            self.db.query(db_models.Post)
            .filter(
                db_models.Post.author_id == author_id,
                db_models.Post.is_deleted == False,  # noqa: E712
            )
            .order_by(db_models.Post.created_at.desc(), db_models.Post.id.desc())
            .limit(limit)
            .all()
        )
