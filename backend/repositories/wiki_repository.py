"""
Repository for wiki articles and their revision history.
"""

from typing import List, Optional

from sqlalchemy.orm import Session

from repositories.base import BaseRepository
from repositories.db_models import WikiArticle, WikiArticleHistory, WikiStatus


class WikiRepository(BaseRepository[WikiArticle]):
    """Repository for WikiArticle entity operations."""

    def __init__(self, db: Session):
        super().__init__(WikiArticle, db)

    def get_by_slug(self, slug: str) -> Optional[WikiArticle]:
        return self.db.query(WikiArticle).filter(WikiArticle.slug == slug).first()

    def slug_exists(self, slug: str, exclude_id: Optional[int] = None) -> bool:
        query = self.db.query(WikiArticle.id).filter(WikiArticle.slug == slug)
        if exclude_id is not None:
            query = query.filter(WikiArticle.id != exclude_id)
        return query.first() is not None

    def list_by_status(
        self,
        status: WikiStatus,
        category: Optional[str] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> List[WikiArticle]:
        """
        List articles in one status, most recently updated first.

        Args:
            status: Article status
            category: Restrict to one category label
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            List of articles
        """
        query = self.db.query(WikiArticle).filter(WikiArticle.status == status)
        if category:
            query = query.filter(WikiArticle.category == category)
        return (
            query.order_by(WikiArticle.updated_at.desc(), WikiArticle.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def list_categories(self) -> List[str]:
        """Distinct category labels of published articles."""
        rows = (
            self.db.query(WikiArticle.category)
            .filter(
                WikiArticle.status == WikiStatus.PUBLISHED,
                WikiArticle.category.isnot(None),
            )
            .distinct()
            .order_by(WikiArticle.category)
            .all()
        )
        return [row[0] for row in rows]

    def list_recent_changes(self, limit: int = 15) -> List[WikiArticle]:
        """Published articles ordered by last update."""
        return self.list_by_status(WikiStatus.PUBLISHED, limit=limit)

    def add_history(self, entry: WikiArticleHistory) -> None:
        """Stage a history snapshot."""
        self.db.add(entry)

    def get_history(self, article_id: int) -> List[WikiArticleHistory]:
        """History entries of an article, newest first."""
        return (
            self.db.query(WikiArticleHistory)
            .filter(WikiArticleHistory.article_id == article_id)
            .order_by(WikiArticleHistory.id.desc())
            .all()
        )

    def get_history_entry(
        self, article_id: int, history_id: int
    ) -> Optional[WikiArticleHistory]:
        return (
            self.db.query(WikiArticleHistory)
            .filter(
                WikiArticleHistory.article_id == article_id,
                WikiArticleHistory.id == history_id,
            )
            .first()
        )
