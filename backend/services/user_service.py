"""
User service for profiles, password changes and admin user listings.
"""

from typing import List, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from authentication.auth import get_password_hash, verify_password
from helpers.password_validation import validate_password_complexity
from helpers.sanitization import clean_text, sanitize_url
from helpers.time_utils import as_utc
from models.exceptions import (
    StorageException,
    UserNotFoundException,
    ValidationException,
)
from repositories.follow_repository import FollowRepository
from repositories.post_repository import PostRepository
from repositories.reaction_repository import ReactionRepository
from repositories.user_repository import UserRepository
from services.badge_service import BadgeService
from services.permission_service import PermissionService

SEARCH_MIN_LENGTH = 2
ACTIVITY_LIMIT = 50


class UserService:
    """Service for user-related business logic."""

    @staticmethod
    def get_user_or_raise(db: Session, user_id: int) -> db_models.User:
        """
        Get user by ID or raise.

        Raises:
            UserNotFoundException: If user not found
        """
        user = UserRepository(db).get_by_id(user_id)
        if user is None:
            raise UserNotFoundException()
        return user

    @staticmethod
    def get_profile(
        db: Session, user_id: int, viewer: Optional[db_models.User] = None
    ) -> schemas.UserProfile:
        """
        Build a public profile.

        Args:
            db: Database session
            user_id: Profile owner
            viewer: Requesting user, if authenticated

        Returns:
            Profile with topic, post and follower counts. Badges are omitted
            when the owner hides them, except for the owner.

        Raises:
            UserNotFoundException: If user not found
        """
        user = UserService.get_user_or_raise(db, user_id)
        repo = UserRepository(db)
        badges = BadgeService.get_user_badges(db, user.id, viewer)
        return schemas.UserProfile(
            user=schemas.UserPublic.model_validate(user),
            topic_count=repo.count_topics(user.id),
            post_count=repo.count_posts(user.id),
            follower_count=FollowRepository(db).count_followers(user.id),
            badges=[schemas.BadgeResponse.model_validate(b) for b in badges],
        )

    @staticmethod
    def update_profile(
        db: Session, user: db_models.User, profile_data: schemas.UserProfileUpdate
    ) -> db_models.User:
        """
        Update the caller's own profile. Omitted fields are left untouched.

        Args:
            db: Database session
            user: Authenticated, unbanned user
            profile_data: Fields to change

        Returns:
            Updated user

        Raises:
            ValidationException: If the avatar URL uses a forbidden protocol
        """
        fields = profile_data.model_dump(exclude_unset=True)

        if "nickname" in fields:
            user.nickname = clean_text(fields["nickname"]) or None
        if "about" in fields:
            user.about = clean_text(fields["about"]) or None
        if "avatar_url" in fields:
            raw_url = fields["avatar_url"]
            url = sanitize_url(raw_url)
            if raw_url and raw_url.strip() and not url:
                raise ValidationException("Invalid avatar URL")
            user.avatar_url = url or None
        if fields.get("hide_badges") is not None:
            user.hide_badges = bool(fields["hide_badges"])

        repo = UserRepository(db)
        try:
            repo.commit()
        except SQLAlchemyError as e:
            repo.rollback()
            logger.error(f"Failed to update profile of user {user.id}: {e}")
            raise StorageException()
        repo.refresh(user)
        return user

    @staticmethod
    def change_password(
        db: Session, user: db_models.User, current_password: str, new_password: str
    ) -> None:
        """
        Change the caller's password.

        Raises:
            ValidationException: Wrong current password or weak new password
        """
        if not verify_password(current_password, user.hashed_password):
            raise ValidationException("Wrong current password")

        is_valid, errors = validate_password_complexity(new_password)
        if not is_valid:
            raise ValidationException("Invalid password")

        user.hashed_password = get_password_hash(new_password)
        repo = UserRepository(db)
        try:
            repo.commit()
        except SQLAlchemyError as e:
            repo.rollback()
            logger.error(f"Failed to change password of user {user.id}: {e}")
            raise StorageException()
        logger.info(f"User {user.id} changed password")

    @staticmethod
    def get_activity(
        db: Session, user_id: int, limit: int = ACTIVITY_LIMIT
    ) -> List[schemas.ActivityItem]:
        """
        Merged feed of a user's visible posts and placed reactions.

        Args:
            db: Database session
            user_id: Feed owner
            limit: Maximum entries

        Returns:
            Activity items, newest first

        Raises:
            UserNotFoundException: If user not found
        """
        UserService.get_user_or_raise(db, user_id)
        items = [
            schemas.ActivityItem(
                type="post",
                post_id=post.id,
                topic_id=post.topic_id,
                topic_title=post.topic.title,
                content=post.content,
                created_at=post.created_at,
            )
            for post in PostRepository(db).get_by_author(user_id, limit=limit)
        ]
        items.extend(
            schemas.ActivityItem(
                type="reaction",
                post_id=post.id,
                topic_id=topic.id,
                topic_title=topic.title,
                reaction_name=reaction.name,
                created_at=use.created_at,
            )
            for use, reaction, post, topic in ReactionRepository(db).get_by_user(
                user_id, limit=limit
            )
        )
        items.sort(key=lambda item: as_utc(item.created_at), reverse=True)
        return items[:limit]

    @staticmethod
    def search_users(db: Session, query: str) -> List[db_models.User]:
        """Member search for mentions and messaging; short queries return nothing."""
        query = (query or "").strip()
        if len(query) < SEARCH_MIN_LENGTH:
            return []
        return UserRepository(db).search(query=query, limit=20)

    @staticmethod
    def to_admin_item(db: Session, user: db_models.User) -> schemas.AdminUserItem:
        permissions = None
        if user.role == db_models.Role.MODERATOR and user.permission is not None:
            permissions = schemas.PermissionSet(
                **PermissionService.get_permissions(db, user)
            )
        return schemas.AdminUserItem(
            id=user.id,
            username=user.username,
            email=user.email,
            nickname=user.nickname,
            role=user.role,
            is_banned=user.is_banned,
            banned_until=user.banned_until,
            created_at=user.created_at,
            permissions=permissions,
        )

    @staticmethod
    def list_users_for_admin(
        db: Session, skip: int = 0, limit: int = 100
    ) -> List[schemas.AdminUserItem]:
        users = UserRepository(db).list_with_permissions(skip=skip, limit=limit)
        return [UserService.to_admin_item(db, u) for u in users]

    @staticmethod
    def search_users_for_admin(
        db: Session, query: Optional[str] = None
    ) -> List[schemas.AdminUserItem]:
        """
        Admin user lookup. A purely numeric query also matches the user id.

        Args:
            db: Database session
            query: Username, nickname or email fragment, or a user id

        Returns:
            Matching users with their grants
        """
        query = (query or "").strip()
        repo = UserRepository(db)
        if query.isdigit():
            users = repo.search(user_id=int(query))
            if not users:
                users = repo.search(query=query, limit=50)
        else:
            users = repo.search(query=query, limit=50)
        return [UserService.to_admin_item(db, u) for u in users]
