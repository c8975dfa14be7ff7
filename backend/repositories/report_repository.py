"""
Repository for user/post reports.
"""

from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from repositories.base import BaseRepository
from repositories.db_models import Report, ReportStatus


class ReportRepository(BaseRepository[Report]):
    """Repository for Report entity operations."""

    def __init__(self, db: Session):
        super().__init__(Report, db)

    def list_reports(
        self, status: Optional[ReportStatus] = None, limit: int = 200
    ) -> List[Report]:
        """
        List reports for the moderation queue.

        Args:
            status: Only reports in this status, or all when None
            limit: Maximum reports to return

        Returns:
            Reports newest first, with reporter/target/resolver/post loaded
        """
        query = self.db.query(Report).options(
            joinedload(Report.reporter),
            joinedload(Report.target_user),
            joinedload(Report.resolver),
            joinedload(Report.post),
        )
        if status is not None:
            query = query.filter(Report.status == status)
        return query.order_by(Report.created_at.desc(), Report.id.desc()).limit(limit).all()
