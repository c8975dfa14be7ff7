"""
Tag repository for database operations.
"""

from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from repositories.base import BaseRepository
from repositories.db_models import Tag, TagAudit, TopicTag, TopicTagAudit


class TagRepository(BaseRepository[Tag]):
    """
    Repository for Tag entity operations and the two tag audit tables.
    """

    def __init__(self, db: Session):
        """
        Initialize TagRepository.

        Args:
            db: Database session
        """
        super().__init__(Tag, db)

    def get_by_name(self, name: str) -> Optional[Tag]:
        """
        Get tag by name, case-insensitively.

        Args:
            name: Tag name

        Returns:
            Tag if found, None otherwise
        """
        return (
            self.db.query(Tag)
            .filter(func.lower(Tag.name) == name.strip().lower())
            .first()
        )

    def list_all(self) -> List[Tag]:
        return self.db.query(Tag).order_by(Tag.name).all()

    def get_many(self, tag_ids: List[int]) -> List[Tag]:
        """Get the tags whose ids are in `tag_ids`."""
        if not tag_ids:
            return []
        return self.db.query(Tag).filter(Tag.id.in_(tag_ids)).all()

    def count_topics(self, tag_id: int) -> int:
        return self.db.query(TopicTag).filter(TopicTag.tag_id == tag_id).count()

    def add_audit(self, entry: TagAudit) -> None:
        """Stage a tag audit row."""
        self.db.add(entry)

    def add_topic_audit(self, entry: TopicTagAudit) -> None:
        """Stage a topic tag audit row."""
        self.db.add(entry)

    def list_audit(self, limit: int = 50) -> List[TagAudit]:
        return (
            self.db.query(TagAudit)
            .order_by(TagAudit.created_at.desc(), TagAudit.id.desc())
            .limit(limit)
            .all()
        )

    def list_topic_audit(
        self, topic_id: Optional[int] = None, limit: int = 50
    ) -> List[TopicTagAudit]:
        """
        Latest topic retag audit entries.

        Args:
            topic_id: Restrict to one topic
            limit: Maximum entries

        Returns:
            Entries newest first
        """
        query = self.db.query(TopicTagAudit)
        if topic_id is not None:
            query = query.filter(TopicTagAudit.topic_id == topic_id)
        return (
            query.order_by(TopicTagAudit.created_at.desc(), TopicTagAudit.id.desc())
            .limit(limit)
            .all()
        )
