"""
Badges and self-assigned user badges.
"""

from typing import List, Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from helpers.sanitization import clean_text, sanitize_url
from models.exceptions import (
    BadgeNotFoundException,
    DuplicateNameException,
    StorageException,
    UserNotFoundException,
    ValidationException,
)
from repositories.badge_repository import BadgeRepository
from repositories.db_models import CatalogEntity, TagAuditAction
from repositories.user_repository import UserRepository
from services.authorization_service import AuthorizationService


class BadgeService:
    """Service for badges."""

    @staticmethod
    def _audit_entry(
        badge: db_models.Badge, action: TagAuditAction, actor_id: int
    ) -> db_models.CatalogAudit:
        return db_models.CatalogAudit(
            entity=CatalogEntity.BADGE,
            entity_id=badge.id,
            action=action,
            old_name=badge.name if action == TagAuditAction.DELETE else None,
            new_name=badge.name if action == TagAuditAction.CREATE else None,
            changed_by=actor_id,
        )

    @staticmethod
    def get_all_badges(db: Session) -> List[db_models.Badge]:
        return BadgeRepository(db).list_all()

    @staticmethod
    def create_badge(
        db: Session,
        caller: db_models.User,
        name: str,
        description: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> db_models.Badge:
        """
        Create a badge. Shares the can_manage_tags capability.

        Raises:
            InsufficientPermissionsException: Without can_manage_tags
            ValidationException: Missing or too long name
            DuplicateNameException: If a badge with that name exists
        """
        AuthorizationService.ensure_can_manage_badges(db, caller)
        cleaned_name = clean_text(name)
        if not cleaned_name or len(cleaned_name) > 50:
            raise ValidationException("Badge name length is invalid")

        repo = BadgeRepository(db)
        if repo.get_by_name(cleaned_name):
            raise DuplicateNameException("Badge already exists")

        badge = db_models.Badge(
            name=cleaned_name,
            description=clean_text(description) or None,
            image_url=sanitize_url(image_url) or None,
        )
        try:
            repo.add(badge)
            repo.flush()
            repo.add_audit(
                BadgeService._audit_entry(badge, TagAuditAction.CREATE, caller.id)
            )
            repo.commit()
        except IntegrityError:
            repo.rollback()
            raise DuplicateNameException("Badge already exists")
        except SQLAlchemyError as e:
            repo.rollback()
            logger.error(f"Failed to create badge: {e}")
            raise StorageException()
        repo.refresh(badge)
        logger.info(f"Badge {badge.id} '{badge.name}' created by user {caller.id}")
        return badge

    @staticmethod
    def delete_badge(db: Session, caller: db_models.User, badge_id: int) -> None:
        """
        Delete a badge and take it off every profile.

        Raises:
            InsufficientPermissionsException: Without can_manage_tags
            BadgeNotFoundException: If badge not found
        """
        AuthorizationService.ensure_can_manage_badges(db, caller)
        repo = BadgeRepository(db)
        badge = repo.get_by_id(badge_id)
        if badge is None:
            raise BadgeNotFoundException()

        repo.add_audit(
            BadgeService._audit_entry(badge, TagAuditAction.DELETE, caller.id)
        )
        try:
            repo.delete_assignments(badge.id)
            repo.remove(badge)
            repo.commit()
        except SQLAlchemyError as e:
            repo.rollback()
            logger.error(f"Failed to delete badge {badge_id}: {e}")
            raise StorageException()
        logger.info(f"Badge {badge_id} deleted by user {caller.id}")

    @staticmethod
    def assign_to_self(db: Session, user: db_models.User, badge_id: int) -> None:
        """
        Put a badge on the caller's profile. Idempotent.

        Raises:
            BadgeNotFoundException: If badge not found
        """
        repo = BadgeRepository(db)
        if repo.get_by_id(badge_id) is None:
            raise BadgeNotFoundException()
        if repo.get_assignment(user.id, badge_id) is not None:
            return
        db.add(db_models.UserBadge(user_id=user.id, badge_id=badge_id))
        try:
            repo.commit()
        except IntegrityError:
            repo.rollback()
        except SQLAlchemyError as e:
            repo.rollback()
            logger.error(f"Failed to assign badge {badge_id} to user {user.id}: {e}")
            raise StorageException()

    @staticmethod
    def remove_from_self(db: Session, user: db_models.User, badge_id: int) -> None:
        repo = BadgeRepository(db)
        assignment = repo.get_assignment(user.id, badge_id)
        if assignment is None:
            return
        db.delete(assignment)
        try:
            repo.commit()
        except SQLAlchemyError as e:
            repo.rollback()
            logger.error(f"Failed to remove badge {badge_id} from user {user.id}: {e}")
            raise StorageException()

    @staticmethod
    def get_user_badges(
        db: Session, user_id: int, viewer: Optional[db_models.User] = None
    ) -> List[db_models.Badge]:
        """
        Badges shown on a profile. Hidden badges are only listed to their owner.

        Raises:
            UserNotFoundException: If user not found
        """
        user = UserRepository(db).get_by_id(user_id)
        if user is None:
            raise UserNotFoundException()
        if user.hide_badges and (viewer is None or viewer.id != user.id):
            return []
        return BadgeRepository(db).list_for_user(user.id)
