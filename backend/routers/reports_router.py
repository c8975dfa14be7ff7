"""Report intake and the moderation report queue."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from repositories.database import get_db
from services import ReportService

router = APIRouter(prefix="/reports", tags=["reports"])


@router.post("", response_model=schemas.ReportResponse, status_code=201)
def create_report(
    report: schemas.ReportCreate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_unbanned_user),
) -> db_models.Report:
    """
    Report a post or a user.

    When a post is given, its author is the reported user.
    """
    return ReportService.file_report(
        db,
        current_user,
        post_id=report.post_id,
        user_id=report.user_id,
        context_post_id=report.context_post_id,
        reason=report.reason,
    )


@router.get("", response_model=List[schemas.ReportListItem])
def list_reports(
    status: Optional[str] = Query(None, max_length=20),
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_moderator_user),
) -> List[dict]:
    return ReportService.list_reports(db, status)


@router.patch("/{report_id}", response_model=schemas.ReportResponse)
def update_report_status(
    report_id: int,
    update: schemas.ReportStatusUpdate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_unbanned_user),
) -> db_models.Report:
    """Move a report between open, reviewed and closed."""
    return ReportService.set_status(db, current_user, report_id, update.status)
