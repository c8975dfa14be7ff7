"""
Post service for business logic.
"""

from typing import List, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from helpers.sanitization import clean_text, within_length
from helpers.time_utils import utc_now
from models.config import settings
from models.exceptions import (
    ContentValidationException,
    PostAlreadyDeletedException,
    PostNotFoundException,
    StorageException,
    TopicLockedException,
    TopicNotFoundException,
)
from repositories.post_repository import PostRepository
from repositories.topic_repository import TopicRepository
from services.authorization_service import AuthorizationService
from services.notification_service import NotificationService


DELETED_PLACEHOLDER = "[deleted]"


class PostService:
    """Service for post-related business logic."""

    @staticmethod
    def clean_content(content: Optional[str]) -> str:
        """
        Trim and sanitize post content.

        Raises:
            ContentValidationException: If empty or longer than POST_MAX_LENGTH
        """
        if not (content or "").strip():
            raise ContentValidationException("Missing content")
        if not within_length(content, 1, settings.POST_MAX_LENGTH):
            raise ContentValidationException("Content length is invalid")
        cleaned = clean_text(content)
        if not cleaned:
            raise ContentValidationException("Missing content")
        return cleaned

    @staticmethod
    def to_schema(post: db_models.Post) -> schemas.PostWithAuthor:
        return schemas.PostWithAuthor(
            id=post.id,
            topic_id=post.topic_id,
            author_id=post.author_id,
            parent_post_id=post.parent_post_id,
            content=DELETED_PLACEHOLDER if post.is_deleted else post.content,
            is_deleted=post.is_deleted,
            created_at=post.created_at,
            updated_at=post.updated_at,
            author_username=post.author.username,
            author_nickname=post.author.nickname,
        )

    @staticmethod
    def get_posts_for_topic(
        db: Session, topic_id: int, skip: int = 0, limit: int = 100
    ) -> List[schemas.PostWithAuthor]:
        """
        Get a topic's posts in chronological order.

        Raises:
            TopicNotFoundException: If topic not found
        """
        if TopicRepository(db).get_by_id(topic_id) is None:
            raise TopicNotFoundException()
        posts = PostRepository(db).get_by_topic(topic_id, skip=skip, limit=limit)
        return [PostService.to_schema(post) for post in posts]

    @staticmethod
    def get_posts_by_author(db: Session, author_id: int) -> List[schemas.PostWithAuthor]:
        posts = PostRepository(db).get_by_author(author_id)
        return [PostService.to_schema(post) for post in posts]

    @staticmethod
    def create_post(
        db: Session,
        author: db_models.User,
        topic_id: int,
        content: str,
        parent_post_id: Optional[int] = None,
    ) -> db_models.Post:
        """
        Create a post in a topic, then fan out notifications.

        Args:
            db: Database session
            author: Posting user (already checked for bans)
            topic_id: Target topic
            content: Raw post content
            parent_post_id: Post being replied to, in the same topic

        Returns:
            Created post

        Raises:
            ContentValidationException: If content is empty or too long, or the
                parent post is not in this topic
            TopicNotFoundException: If topic not found
            TopicLockedException: If topic is locked
        """
        cleaned = PostService.clean_content(content)

        topic = TopicRepository(db).get_by_id(topic_id)
        if topic is None:
            raise TopicNotFoundException()
        if topic.is_locked:
            raise TopicLockedException()

        post_repo = PostRepository(db)
        if parent_post_id is not None:
            parent = post_repo.get_by_id(parent_post_id)
            if parent is None or parent.topic_id != topic.id:
                raise ContentValidationException("Invalid parent_post_id")

        post = db_models.Post(
            topic_id=topic.id,
            author_id=author.id,
            parent_post_id=parent_post_id,
            content=cleaned,
        )
        try:
            post_repo.add(post)
            post_repo.commit()
        except SQLAlchemyError as e:
            post_repo.rollback()
            logger.error(f"Failed to create post in topic {topic_id}: {e}")
            raise StorageException()
        post_repo.refresh(post)

        logger.info(f"Post {post.id} created in topic {topic.id} by user {author.id}")
        NotificationService.notify_post_created(db, post, topic, author)
        return post

    @staticmethod
    def _get_post(db: Session, post_id: int) -> db_models.Post:
        post = PostRepository(db).get_by_id(post_id)
        if post is None:
            raise PostNotFoundException()
        return post

    @staticmethod
    def edit_post(
        db: Session, caller: db_models.User, post_id: int, content: str
    ) -> db_models.Post:
        """
        Replace a post's content. Only its author may do this.

        Raises:
            PostNotFoundException: If post not found or deleted
            InsufficientPermissionsException: If caller is not the author
            ContentValidationException: If content is invalid
        """
        post = PostService._get_post(db, post_id)
        if post.is_deleted:
            raise PostNotFoundException()
        AuthorizationService.ensure_can_edit_post(caller, post)
        cleaned = PostService.clean_content(content)

        post_repo = PostRepository(db)
        post.content = cleaned
        post.updated_at = utc_now()
        try:
            post_repo.commit()
        except SQLAlchemyError as e:
            post_repo.rollback()
            logger.error(f"Failed to edit post {post_id}: {e}")
            raise StorageException()
        post_repo.refresh(post)
        return post

    @staticmethod
    def delete_post(db: Session, caller: db_models.User, post_id: int) -> db_models.Post:
        """
        Soft delete a post.

        Raises:
            PostNotFoundException: If post not found
            InsufficientPermissionsException: If caller may not delete it
            PostAlreadyDeletedException: If already deleted
        """
        post = PostService._get_post(db, post_id)
        AuthorizationService.ensure_can_delete_post(db, caller, post)
        if post.is_deleted:
            raise PostAlreadyDeletedException()

        post_repo = PostRepository(db)
        post.is_deleted = True
        post.deleted_at = utc_now()
        post.deleted_by = caller.id
        try:
            post_repo.commit()
        except SQLAlchemyError as e:
            post_repo.rollback()
            logger.error(f"Failed to delete post {post_id}: {e}")
            raise StorageException()
        post_repo.refresh(post)

        logger.info(f"Post {post.id} deleted by user {caller.id}")
        return post
