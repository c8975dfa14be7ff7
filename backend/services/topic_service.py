"""
Topic service for business logic.
"""

from typing import List, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from helpers.sanitization import clean_text, within_length
from models.exceptions import (
    ContentValidationException,
    StorageException,
    TopicNotFoundException,
    ValidationException,
)
from repositories.category_repository import CategoryRepository
from repositories.post_repository import PostRepository
from repositories.tag_repository import TagRepository
from repositories.topic_repository import TopicRepository
from services.authorization_service import AuthorizationService
from services.notification_service import NotificationService
from services.post_service import PostService

TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 200


class TopicService:
    """Service for topic-related business logic."""

    @staticmethod
    def to_detail(db: Session, topic: db_models.Topic) -> schemas.TopicDetail:
        return schemas.TopicDetail(
            id=topic.id,
            title=topic.title,
            category_id=topic.category_id,
            author_id=topic.author_id,
            is_sticky=topic.is_sticky,
            is_locked=topic.is_locked,
            created_at=topic.created_at,
            tags=[schemas.TagResponse.model_validate(tag) for tag in topic.tags],
            author_username=topic.author.username,
            category_name=topic.category.name if topic.category else None,
            post_count=TopicRepository(db).count_posts(topic.id),
        )

    @staticmethod
    def list_topics(
        db: Session,
        category_slug: Optional[str] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> List[schemas.TopicDetail]:
        """List topics, sticky first then newest."""
        topics = TopicRepository(db).list_topics(category_slug, skip=skip, limit=limit)
        return [TopicService.to_detail(db, topic) for topic in topics]

    @staticmethod
    def list_by_author(db: Session, author_id: int) -> List[schemas.TopicDetail]:
        topics = TopicRepository(db).list_for_author(author_id)
        return [TopicService.to_detail(db, topic) for topic in topics]

    @staticmethod
    def get_topic(db: Session, topic_id: int) -> db_models.Topic:
        """
        Raises:
            TopicNotFoundException: If topic not found
        """
        topic = TopicRepository(db).get_with_details(topic_id)
        if topic is None:
            raise TopicNotFoundException()
        return topic

    @staticmethod
    def _existing_tag_ids(db: Session, tag_ids: List[int]) -> List[int]:
        tags = TagRepository(db).get_many(sorted(set(tag_ids)))
        return sorted(tag.id for tag in tags)

    @staticmethod
    def create_topic(
        db: Session,
        author: db_models.User,
        title: str,
        content: str,
        category_id: int,
        tag_ids: Optional[List[int]] = None,
    ) -> db_models.Topic:
        """
        Create a topic together with its first post.

        Unknown tag ids are dropped. Followers of the author are notified
        after the commit.

        Args:
            db: Database session
            author: Creating user (already checked for bans)
            title: Topic title
            content: Content of the first post
            category_id: Category the topic belongs to
            tag_ids: Initial tags

        Returns:
            Created topic

        Raises:
            ContentValidationException: If title or content is invalid
            ValidationException: If the category does not exist
        """
        if not within_length(title, TITLE_MIN_LENGTH, TITLE_MAX_LENGTH):
            raise ContentValidationException("Title length is invalid")
        cleaned_title = clean_text(title)
        if not cleaned_title:
            raise ContentValidationException("Title has no text")
        cleaned_content = PostService.clean_content(content)

        if CategoryRepository(db).get_by_id(category_id) is None:
            raise ValidationException("Invalid category")

        topic_repo = TopicRepository(db)
        valid_tag_ids = TopicService._existing_tag_ids(db, tag_ids or [])

        topic = db_models.Topic(
            title=cleaned_title,
            category_id=category_id,
            author_id=author.id,
        )
        try:
            topic_repo.add(topic)
            topic_repo.flush()
            PostRepository(db).add(
                db_models.Post(
                    topic_id=topic.id, author_id=author.id, content=cleaned_content
                )
            )
            topic_repo.replace_tags(topic.id, valid_tag_ids)
            topic_repo.commit()
        except SQLAlchemyError as e:
            topic_repo.rollback()
            logger.error(f"Failed to create topic for user {author.id}: {e}")
            raise StorageException()
        topic_repo.refresh(topic)

        logger.info(f"Topic {topic.id} created by user {author.id}")
        NotificationService.notify_topic_created(db, topic, author)
        return topic

    @staticmethod
    def set_tags(
        db: Session, caller: db_models.User, topic_id: int, tag_ids: List[int]
    ) -> List[int]:
        """
        Replace a topic's tag set and record the change.

        The new set and its audit row are committed together.

        Returns:
            The new tag ids, ascending

        Raises:
            InsufficientPermissionsException: Without can_manage_tags
            TopicNotFoundException: If topic not found
        """
        AuthorizationService.ensure_can_manage_tags(db, caller)

        topic_repo = TopicRepository(db)
        topic = topic_repo.get_by_id(topic_id)
        if topic is None:
            raise TopicNotFoundException()

        old_ids = topic_repo.get_tag_ids(topic.id)
        new_ids = TopicService._existing_tag_ids(db, tag_ids)

        try:
            topic_repo.replace_tags(topic.id, new_ids)
            TagRepository(db).add_topic_audit(
                db_models.TopicTagAudit(
                    topic_id=topic.id,
                    old_tag_ids=old_ids,
                    new_tag_ids=new_ids,
                    changed_by=caller.id,
                )
            )
            topic_repo.commit()
        except SQLAlchemyError as e:
            topic_repo.rollback()
            logger.error(f"Failed to retag topic {topic_id}: {e}")
            raise StorageException()

        logger.info(f"Topic {topic.id} tags {old_ids} -> {new_ids} by user {caller.id}")
        return new_ids

    @staticmethod
    def update_moderation(
        db: Session,
        caller: db_models.User,
        topic_id: int,
        is_sticky: Optional[bool] = None,
        is_locked: Optional[bool] = None,
        category_id: Optional[int] = None,
    ) -> db_models.Topic:
        """
        Pin, lock or move a topic.

        Raises:
            InsufficientPermissionsException: Without can_manage_tags
            ValidationException: If the new category does not exist
            TopicNotFoundException: If topic not found
        """
        AuthorizationService.ensure_can_manage_tags(db, caller)

        if category_id is not None and CategoryRepository(db).get_by_id(category_id) is None:
            raise ValidationException("Invalid category")

        topic_repo = TopicRepository(db)
        topic = topic_repo.get_by_id(topic_id)
        if topic is None:
            raise TopicNotFoundException()

        if is_sticky is not None:
            topic.is_sticky = is_sticky
        if is_locked is not None:
            topic.is_locked = is_locked
        if category_id is not None:
            topic.category_id = category_id

        try:
            topic_repo.commit()
        except SQLAlchemyError as e:
            topic_repo.rollback()
            logger.error(f"Failed to update topic {topic_id}: {e}")
            raise StorageException()
        topic_repo.refresh(topic)
        return topic

    @staticmethod
    def delete_topic(db: Session, caller: db_models.User, topic_id: int) -> None:
        """
        Delete a topic and its posts.

        Raises:
            TopicNotFoundException: If topic not found
            InsufficientPermissionsException: If caller may not delete it
        """
        topic_repo = TopicRepository(db)
        topic = topic_repo.get_by_id(topic_id)
        if topic is None:
            raise TopicNotFoundException()
        AuthorizationService.ensure_can_delete_topic(db, caller, topic)

        try:
            topic_repo.delete(topic)
        except SQLAlchemyError as e:
            topic_repo.rollback()
            logger.error(f"Failed to delete topic {topic_id}: {e}")
            raise StorageException()
        logger.info(f"Topic {topic_id} deleted by user {caller.id}")
