"""
In-app notification inbox.
"""

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from repositories.database import get_db
from services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=List[schemas.NotificationResponse])
def get_notifications(
    unread: bool = Query(False, description="Only unread notifications"),
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> List[db_models.Notification]:
    """
    Latest notifications of the caller, newest first.

    Returns:
        At most NOTIFICATION_LIST_LIMIT notifications
    """
    return NotificationService.list_notifications(db, current_user, unread_only=unread)


@router.get("/unread-count", response_model=schemas.CountResponse)
def get_unread_count(
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> schemas.CountResponse:
    return schemas.CountResponse(
        count=NotificationService.unread_count(db, current_user)
    )


@router.post("/read", response_model=schemas.CountResponse)
def mark_notifications_read(
    request: schemas.MarkReadRequest,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> schemas.CountResponse:
    """
    Mark notifications read.

    Without ids, or with an empty list, every notification is marked.
    """
    return schemas.CountResponse(
        count=NotificationService.mark_read(db, current_user, request.ids)
    )
