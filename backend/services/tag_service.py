"""
Tag service for business logic.

Every tag create, rename and delete appends a TagAudit row in the same commit.
"""

from typing import Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from helpers.sanitization import clean_text
from models.config import settings
from models.exceptions import (
    DuplicateNameException,
    StorageException,
    TagNotFoundException,
    ValidationException,
)
from repositories.db_models import TagAuditAction
from repositories.tag_repository import TagRepository
from services.authorization_service import AuthorizationService

TAG_NAME_MAX_LENGTH = 50


class TagService:
    """Service for tag-related business logic."""

    @staticmethod
    def get_all_tags(db: Session) -> list[db_models.Tag]:
        """All tags ordered by name."""
        return TagRepository(db).list_all()

    @staticmethod
    def get_tag_by_id(db: Session, tag_id: int) -> db_models.Tag:
        """
        Get a tag by ID.

        Raises:
            TagNotFoundException: If tag not found
        """
        tag = TagRepository(db).get_by_id(tag_id)
        if not tag:
            raise TagNotFoundException()
        return tag

    @staticmethod
    def _clean_name(name: Optional[str]) -> str:
        cleaned = clean_text(name)
        if not cleaned:
            raise ValidationException("Missing tag name")
        if len(cleaned) > TAG_NAME_MAX_LENGTH:
            raise ValidationException("Tag name is too long")
        return cleaned

    @staticmethod
    def _commit(repo: TagRepository, action: str) -> None:
        try:
            repo.commit()
        except IntegrityError:
            repo.rollback()
            raise DuplicateNameException("Tag already exists")
        except SQLAlchemyError as e:
            repo.rollback()
            logger.error(f"Failed to {action} tag: {e}")
            raise StorageException()

    @staticmethod
    def create_tag(
        db: Session, caller: db_models.User, name: str, color: Optional[str] = None
    ) -> db_models.Tag:
        """
        Create a tag.

        Args:
            db: Database session
            caller: Acting user, needs can_manage_tags
            name: Tag name, unique case-insensitively
            color: Optional display color

        Returns:
            Created tag

        Raises:
            InsufficientPermissionsException: Without can_manage_tags
            ValidationException: If name is empty or too long
            DuplicateNameException: If a tag with that name exists
        """
        AuthorizationService.ensure_can_manage_tags(db, caller)
        cleaned = TagService._clean_name(name)

        tag_repo = TagRepository(db)
        if tag_repo.get_by_name(cleaned):
            raise DuplicateNameException("Tag already exists")

        tag = db_models.Tag(name=cleaned, color=clean_text(color) or None)
        tag_repo.add(tag)
        try:
            tag_repo.flush()
        except IntegrityError:
            tag_repo.rollback()
            raise DuplicateNameException("Tag already exists")
        tag_repo.add_audit(
            db_models.TagAudit(
                tag_id=tag.id,
                action=TagAuditAction.CREATE,
                new_name=tag.name,
                changed_by=caller.id,
            )
        )
        TagService._commit(tag_repo, "create")
        tag_repo.refresh(tag)

        logger.info(f"Tag {tag.id} '{tag.name}' created by user {caller.id}")
        return tag

    @staticmethod
    def update_tag(
        db: Session,
        caller: db_models.User,
        tag_id: int,
        name: Optional[str] = None,
        color: Optional[str] = None,
    ) -> db_models.Tag:
        """
        Rename or recolor a tag.

        Raises:
            InsufficientPermissionsException: Without can_manage_tags
            TagNotFoundException: If tag not found
            DuplicateNameException: If another tag has the new name
        """
        AuthorizationService.ensure_can_manage_tags(db, caller)
        tag = TagService.get_tag_by_id(db, tag_id)
        tag_repo = TagRepository(db)

        old_name = tag.name
        if name is not None:
            cleaned = TagService._clean_name(name)
            existing = tag_repo.get_by_name(cleaned)
            if existing and existing.id != tag.id:
                raise DuplicateNameException("Tag already exists")
            tag.name = cleaned
        if color is not None:
            tag.color = clean_text(color) or None

        tag_repo.add_audit(
            db_models.TagAudit(
                tag_id=tag.id,
                action=TagAuditAction.UPDATE,
                old_name=old_name,
                new_name=tag.name,
                changed_by=caller.id,
            )
        )
        TagService._commit(tag_repo, "update")
        tag_repo.refresh(tag)
        return tag

    @staticmethod
    def delete_tag(db: Session, caller: db_models.User, tag_id: int) -> None:
        """
        Delete a tag; its topic links go with it.

        Raises:
            InsufficientPermissionsException: Without can_manage_tags
            TagNotFoundException: If tag not found
        """
        AuthorizationService.ensure_can_manage_tags(db, caller)
        tag = TagService.get_tag_by_id(db, tag_id)
        tag_repo = TagRepository(db)

        tag_repo.add_audit(
            db_models.TagAudit(
                tag_id=tag.id,
                action=TagAuditAction.DELETE,
                old_name=tag.name,
                changed_by=caller.id,
            )
        )
        tag_repo.remove(tag)
        TagService._commit(tag_repo, "delete")
        logger.info(f"Tag {tag_id} deleted by user {caller.id}")

    @staticmethod
    def get_audit(db: Session) -> list[db_models.TagAudit]:
        return TagRepository(db).list_audit(limit=settings.TAG_AUDIT_LIMIT)

    @staticmethod
    def get_topic_audit(
        db: Session, topic_id: Optional[int] = None
    ) -> list[db_models.TopicTagAudit]:
        """Latest topic retag entries, optionally for one topic."""
        return TagRepository(db).list_topic_audit(
            topic_id, limit=settings.TAG_AUDIT_LIMIT
        )
