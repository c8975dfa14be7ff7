"""User profile router endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from repositories.database import get_db
from services import PostService, TopicService, UserService
from services.badge_service import BadgeService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/search", response_model=List[schemas.UserPublic])
def search_users(
    q: str = Query("", max_length=100),
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> List[db_models.User]:
    """Find members by username, nickname or email fragment."""
    return UserService.search_users(db, q)


@router.get("/me", response_model=schemas.UserProfile)
def get_my_profile(
    current_user: db_models.User = Depends(auth.get_current_active_user),
    db: Session = Depends(get_db),
) -> schemas.UserProfile:
    return UserService.get_profile(db, current_user.id, viewer=current_user)


@router.patch("/me", response_model=schemas.UserMe)
def update_my_profile(
    profile_update: schemas.UserProfileUpdate,
    current_user: db_models.User = Depends(auth.get_unbanned_user),
    db: Session = Depends(get_db),
) -> db_models.User:
    """Update nickname, avatar, about text or badge visibility."""
    return UserService.update_profile(db, current_user, profile_update)


@router.post("/me/badges/{badge_id}", response_model=schemas.MessageAck)
def assign_badge(
    badge_id: int,
    current_user: db_models.User = Depends(auth.get_unbanned_user),
    db: Session = Depends(get_db),
) -> schemas.MessageAck:
    BadgeService.assign_to_self(db, current_user, badge_id)
    return schemas.MessageAck(message="Badge assigned")


@router.delete("/me/badges/{badge_id}", response_model=schemas.MessageAck)
def remove_badge(
    badge_id: int,
    current_user: db_models.User = Depends(auth.get_unbanned_user),
    db: Session = Depends(get_db),
) -> schemas.MessageAck:
    BadgeService.remove_from_self(db, current_user, badge_id)
    return schemas.MessageAck(message="Badge removed")


@router.get("/{user_id}", response_model=schemas.UserProfile)
def get_user_profile(
    user_id: int,
    current_user: Optional[db_models.User] = Depends(auth.get_current_user_optional),
    db: Session = Depends(get_db),
) -> schemas.UserProfile:
    """
    Get a user's public profile.

    Badges are left out when the owner hides them, unless the owner asks.
    """
    return UserService.get_profile(db, user_id, viewer=current_user)


@router.get("/{user_id}/badges", response_model=List[schemas.BadgeResponse])
def get_user_badges(
    user_id: int,
    current_user: Optional[db_models.User] = Depends(auth.get_current_user_optional),
    db: Session = Depends(get_db),
) -> List[db_models.Badge]:
    return BadgeService.get_user_badges(db, user_id, viewer=current_user)


@router.get("/{user_id}/posts", response_model=List[schemas.PostWithAuthor])
def get_user_posts(
    user_id: int, db: Session = Depends(get_db)
) -> List[schemas.PostWithAuthor]:
    UserService.get_user_or_raise(db, user_id)
    return PostService.get_posts_by_author(db, user_id)


@router.get("/{user_id}/activity", response_model=List[schemas.ActivityItem])
def get_user_activity(
    user_id: int, db: Session = Depends(get_db)
) -> List[schemas.ActivityItem]:
    """Latest posts and reactions of a user, newest first."""
    return UserService.get_activity(db, user_id)

@router.get("/{user_id}/topics", response_model=List[schemas.TopicDetail])
def get_user_topics(
    user_id: int, db: Session = Depends(get_db)
) -> List[schemas.TopicDetail]:
    UserService.get_user_or_raise(db, user_id)
    return TopicService.list_by_author(db, user_id)
