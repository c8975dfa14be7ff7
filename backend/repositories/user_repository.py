"""
User repository for database operations.
"""

from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

import repositories.db_models as db_models
from .base import BaseRepository


class UserRepository(BaseRepository[db_models.User]):
    """Repository for User entity database operations."""

    def __init__(self, db: Session):
        """
        Initialize user repository.

        Args:
            db: Database session
        """
        super().__init__(db_models.User, db)

    def get_by_email(self, email: str) -> Optional[db_models.User]:
        """
        Get user by email (case-insensitive).

        Args:
            email: User email

        Returns:
            User if found, None otherwise
        """
        return (
            self.db.query(db_models.User)
            .filter(db_models.User.email == email.strip().lower())
            .first()
        )

    def get_by_username(self, username: str) -> Optional[db_models.User]:
        """
        Get user by username.

        Args:
            username: Username

        Returns:
            User if found, None otherwise
        """
        return (
            self.db.query(db_models.User)
            .filter(db_models.User.username == username)
            .first()
        )

    def get_by_username_or_email(self, identifier: str) -> Optional[db_models.User]:
        """Look a user up by login identifier (username or email)."""
        identifier = identifier.strip()
        return (
            self.db.query(db_models.User)
            .filter(
                or_(
                    db_models.User.username == identifier,
                    db_models.User.email == identifier.lower(),
                )
            )
            .first()
        )

    def username_exists(self, username: str) -> bool:
        return self.get_by_username(username) is not None

    def email_exists(self, email: str) -> bool:
        return self.get_by_email(email) is not None

    def get_staff_ids(self, exclude_user_id: Optional[int] = None) -> List[int]:
        """
        Get ids of every admin and moderator.

        Args:
            exclude_user_id: User to leave out (typically the acting user)

        Returns:
            List of user ids
        """
        query = self.db.query(db_models.User.id).filter(
            db_models.User.role.in_([db_models.Role.ADMIN, db_models.Role.MODERATOR])
        )
        if exclude_user_id is not None:
            query = query.filter(db_models.User.id != exclude_user_id)
        return [row[0] for row in query.order_by(db_models.User.id).all()]

    def list_with_permissions(
        self, skip: int = 0, limit: int = 100
    ) -> List[db_models.User]:
        """List users with their moderator grant row eagerly loaded."""
        return (
            self.db.query(db_models.User)
            .options(joinedload(db_models.User.permission))
            .order_by(db_models.User.id)
            .offset(skip)
            .limit(limit)
            .all()
        )

    def search(
        self, query: Optional[str] = None, user_id: Optional[int] = None, limit: int = 20
    ) -> List[db_models.User]:
        """
        Search users by id, or by username/nickname/email substring.

        Args:
            query: Free-text search term
            user_id: Exact user id to match
            limit: Maximum results

        Returns:
            Matching users ordered by username
        """
        users_query = self.db.query(db_models.User).options(
            joinedload(db_models.User.permission)
        )
        if user_id is not None:
            users_query = users_query.filter(db_models.User.id == user_id)
        elif query:
            term = f"%{query.strip().lower()}%"
            users_query = users_query.filter(
                or_(
                    db_models.User.username.ilike(term),
                    db_models.User.nickname.ilike(term),
                    db_models.User.email.ilike(term),
                )
            )
        return users_query.order_by(db_models.User.username).limit(limit).all()

    def count_topics(self, user_id: int) -> int:
        return (
            self.db.query(func.count(db_models.Topic.id))
            .filter(db_models.Topic.author_id == user_id)
            .scalar()
            or 0
        )

    def count_posts(self, user_id: int) -> int:
        """Count a user's posts, excluding soft-deleted ones."""
        return (
            self.db.query(func.count(db_models.Post.id))
            .filter(
                db_models.Post.author_id == user_id,
                db_models.Post.is_deleted.is_(False),
            )
            .scalar()
            or 0
        )
