"""User follow endpoints. Topic follows live on the topics router."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from repositories.database import get_db
from services.follow_service import FollowService

router = APIRouter(prefix="/follows", tags=["follows"])


@router.get("/users/{user_id}", response_model=schemas.FollowStatus)
def get_user_follow_status(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> schemas.FollowStatus:
    return schemas.FollowStatus(
        following=FollowService.is_following_user(db, current_user, user_id)
    )


@router.post("/users/{user_id}", response_model=schemas.FollowStatus)
def follow_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_unbanned_user),
) -> schemas.FollowStatus:
    """Follow a user. Following twice is a no-op."""
    FollowService.follow_user(db, current_user, user_id)
    return schemas.FollowStatus(following=True)


@router.delete("/users/{user_id}", response_model=schemas.FollowStatus)
def unfollow_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_unbanned_user),
) -> schemas.FollowStatus:
    FollowService.unfollow_user(db, current_user, user_id)
    return schemas.FollowStatus(following=False)
