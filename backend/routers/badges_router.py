"""Badge catalogue. Assigning badges to oneself lives on the users router."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from repositories.database import get_db
from services.badge_service import BadgeService

router = APIRouter(prefix="/badges", tags=["badges"])


@router.get("", response_model=List[schemas.BadgeResponse])
def get_badges(db: Session = Depends(get_db)):
    return BadgeService.get_all_badges(db)


@router.post("", response_model=schemas.BadgeResponse, status_code=201)
def create_badge(
    badge: schemas.BadgeCreate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_unbanned_user),
):
    """Create a badge. Requires can_manage_tags."""
    return BadgeService.create_badge(
        db, current_user, badge.name, badge.description, badge.image_url
    )


@router.delete("/{badge_id}", response_model=schemas.MessageAck)
def delete_badge(
    badge_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_unbanned_user),
) -> schemas.MessageAck:
    """Delete a badge. Requires can_manage_tags; the deletion is audited."""
    BadgeService.delete_badge(db, current_user, badge_id)
    return schemas.MessageAck(message="Badge deleted")
