"""
Topic repository for database operations.
"""

from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload, selectinload

from repositories.base import BaseRepository
from repositories.db_models import Category, Post, Topic, TopicTag


class TopicRepository(BaseRepository[Topic]):
    """
    Repository for Topic entity operations.
    """

    def __init__(self, db: Session):
        """
        Initialize TopicRepository.

        Args:
            db: Database session
        """
        super().__init__(Topic, db)

    def get_with_details(self, topic_id: int) -> Optional[Topic]:
        """Get a topic with author, category and tags loaded."""
        return (
            self.db.query(Topic)
            .options(
                joinedload(Topic.author),
                joinedload(Topic.category),
                selectinload(Topic.tags),
            )
            .filter(Topic.id == topic_id)
            .first()
        )

    def list_topics(
        self,
        category_slug: Optional[str] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> List[Topic]:
        """
        List topics, sticky ones first, then newest.

        Args:
            category_slug: Restrict to one category
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            List of topics with author, category and tags loaded
        """
        query = self.db.query(Topic).options(
            joinedload(Topic.author),
            joinedload(Topic.category),
            selectinload(Topic.tags),
        )
        if category_slug:
            query = query.join(Category, Topic.category_id == Category.id).filter(
                Category.slug == category_slug
            )
        return (
            query.order_by(Topic.is_sticky.desc(), Topic.created_at.desc(), Topic.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def list_for_author(self, author_id: int, limit: int = 50) -> List[Topic]:
        return (
            self.db.query(Topic)
            .filter(Topic.author_id == author_id)
            .order_by(Topic.created_at.desc(), Topic.id.desc())
            .limit(limit)
            .all()
        )

    def count_posts(self, topic_id: int) -> int:
        """Count visible posts of a topic."""
        return (
            self.db.query(func.count(Post.id))
            .filter(Post.topic_id == topic_id, Post.is_deleted == False)  # noqa: E712
            .scalar()
            or 0
        )

    def get_tag_ids(self, topic_id: int) -> List[int]:
        """Current tag ids of a topic, ascending."""
        rows = (
            self.db.query(TopicTag.tag_id)
            .filter(TopicTag.topic_id == topic_id)
            .order_by(TopicTag.tag_id)
            .all()
        )
        return [row[0] for row in rows]

    def replace_tags(self, topic_id: int, tag_ids: List[int]) -> None:
        """
        Stage replacement of a topic's tag set.

        Args:
            topic_id: Topic to retag
            tag_ids: New complete set of tag ids
        """
        self.db.query(TopicTag).filter(TopicTag.topic_id == topic_id).delete(
            synchronize_session=False
        )
        self.db.add_all(
            [TopicTag(topic_id=topic_id, tag_id=tag_id) for tag_id in tag_ids]
        )
