"""
Category repository for database operations.
"""

from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from .base import BaseRepository


class CategoryRepository(BaseRepository[db_models.Category]):
    """Repository for Category entity database operations."""

    def __init__(self, db: Session):
        """
        Initialize category repository.

        Args:
            db: Database session
        """
        super().__init__(db_models.Category, db)

    def get_by_slug(self, slug: str) -> Optional[db_models.Category]:
        return (
            self.db.query(db_models.Category)
            .filter(db_models.Category.slug == slug)
            .first()
        )

    def get_by_name(self, name: str) -> Optional[db_models.Category]:
        return (
            self.db.query(db_models.Category)
            .filter(func.lower(db_models.Category.name) == name.strip().lower())
            .first()
        )

    def list_ordered(self) -> List[db_models.Category]:
        """All categories by sort order, then name."""
        return (
            self.db.query(db_models.Category)
            .order_by(db_models.Category.sort_order, db_models.Category.name)
            .all()
        )

    def get_stats(self) -> List[tuple]:
        """
        Get topic and post counts per category.

        Returns:
            List of (Category, topic_count, post_count) tuples in display order
        """
        topic_counts = (
            self.db.query(
                db_models.Topic.category_id.label("category_id"),
                func.count(db_models.Topic.id).label("topic_count"),
            )
            .group_by(db_models.Topic.category_id)
            .subquery()
        )
        post_counts = (
            self.db.query(
                db_models.Topic.category_id.label("category_id"),
                func.count(db_models.Post.id).label("post_count"),
            )
            .join(db_models.Post, db_models.Post.topic_id == db_models.Topic.id)
            .filter(db_models.Post.is_deleted == False)  # noqa: E712
            .group_by(db_models.Topic.category_id)
            .subquery()
        )
        return (
            self.db.query(
                db_models.Category,
                func.coalesce(topic_counts.c.topic_count, 0),
                func.coalesce(post_counts.c.post_count, 0),
            )
            .outerjoin(topic_counts, topic_counts.c.category_id == db_models.Category.id)
            .outerjoin(post_counts, post_counts.c.category_id == db_models.Category.id)
            .order_by(db_models.Category.sort_order, db_models.Category.name)
            .all()
        )
