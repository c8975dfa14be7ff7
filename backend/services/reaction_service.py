"""
Reaction types and per-post reactions.
"""

from typing import List, Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from helpers.sanitization import clean_text, sanitize_url
from models.config import settings
from models.exceptions import (
    DuplicateNameException,
    PostNotFoundException,
    ReactionNotFoundException,
    StorageException,
    ValidationException,
)
from repositories.db_models import CatalogEntity, TagAuditAction
from repositories.post_repository import PostRepository
from repositories.reaction_repository import ReactionRepository
from services.authorization_service import AuthorizationService


class ReactionService:
    """Service for reactions."""

    @staticmethod
    def _audit_entry(
        reaction: db_models.Reaction, action: TagAuditAction, actor_id: int
    ) -> db_models.CatalogAudit:
        return db_models.CatalogAudit(
            entity=CatalogEntity.REACTION,
            entity_id=reaction.id,
            action=action,
            old_name=reaction.name if action == TagAuditAction.DELETE else None,
            new_name=reaction.name if action == TagAuditAction.CREATE else None,
            changed_by=actor_id,
        )

    @staticmethod
    def _commit(repo: ReactionRepository, action: str) -> None:
        try:
            repo.commit()
        except IntegrityError:
            repo.rollback()
            raise DuplicateNameException("Reaction already exists")
        except SQLAlchemyError as e:
            repo.rollback()
            logger.error(f"Failed to {action} reaction: {e}")
            raise StorageException()

    @staticmethod
    def get_audit(db: Session) -> List[db_models.CatalogAudit]:
        return ReactionRepository(db).list_audit(limit=settings.TAG_AUDIT_LIMIT)

    @staticmethod
    def get_all_reactions(db: Session) -> List[db_models.Reaction]:
        return ReactionRepository(db).list_all()

    @staticmethod
    def create_reaction(
        db: Session,
        caller: db_models.User,
        name: str,
        emoji: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> db_models.Reaction:
        """
        Create a reaction type.

        Raises:
            InsufficientPermissionsException: Without can_manage_reactions
            ValidationException: Missing name, or neither emoji nor image given
            DuplicateNameException: If a reaction with that name exists
        """
        AuthorizationService.ensure_can_manage_reactions(db, caller)
        cleaned_name = clean_text(name)
        if not cleaned_name or len(cleaned_name) > 50:
            raise ValidationException("Reaction name length is invalid")
        cleaned_emoji = clean_text(emoji) or None
        cleaned_url = sanitize_url(image_url) or None
        if cleaned_emoji is None and cleaned_url is None:
            raise ValidationException("Reaction needs an emoji or an image")

        repo = ReactionRepository(db)
        if repo.get_by_name(cleaned_name):
            raise DuplicateNameException("Reaction already exists")

        reaction = db_models.Reaction(
            name=cleaned_name, emoji=cleaned_emoji, image_url=cleaned_url
        )
        try:
            repo.add(reaction)
            repo.flush()
            repo.add_audit(
                ReactionService._audit_entry(
                    reaction, TagAuditAction.CREATE, caller.id
                )
            )
        except IntegrityError:
            repo.rollback()
            raise DuplicateNameException("Reaction already exists")
        except SQLAlchemyError as e:
            repo.rollback()
            logger.error(f"Failed to stage reaction: {e}")
            raise StorageException()
        ReactionService._commit(repo, "create")
        repo.refresh(reaction)
        logger.info(f"Reaction {reaction.id} '{reaction.name}' created by user {caller.id}")
        return reaction

    @staticmethod
    def delete_reaction(db: Session, caller: db_models.User, reaction_id: int) -> None:
        """
        Delete a reaction type along with every use of it.

        Raises:
            InsufficientPermissionsException: Without can_manage_reactions
            ReactionNotFoundException: If reaction not found
        """
        AuthorizationService.ensure_can_manage_reactions(db, caller)
        repo = ReactionRepository(db)
        reaction = repo.get_by_id(reaction_id)
        if reaction is None:
            raise ReactionNotFoundException()
        repo.add_audit(
            ReactionService._audit_entry(reaction, TagAuditAction.DELETE, caller.id)
        )
        try:
            repo.delete_uses(reaction.id)
        except SQLAlchemyError as e:
            repo.rollback()
            logger.error(f"Failed to delete uses of reaction {reaction_id}: {e}")
            raise StorageException()
        repo.remove(reaction)
        ReactionService._commit(repo, "delete")
        logger.info(f"Reaction {reaction_id} deleted by user {caller.id}")

    @staticmethod
    def toggle_reaction(
        db: Session, user: db_models.User, post_id: int, reaction_id: int
    ) -> bool:
        """
        Add the reaction if absent, remove it if present.

        Returns:
            True if the reaction is now set

        Raises:
            PostNotFoundException: If post not found or deleted
            ReactionNotFoundException: If reaction not found
        """
        post = PostRepository(db).get_by_id(post_id)
        if post is None or post.is_deleted:
            raise PostNotFoundException()
        repo = ReactionRepository(db)
        if repo.get_by_id(reaction_id) is None:
            raise ReactionNotFoundException()

        existing = repo.get_post_reaction(post_id, user.id, reaction_id)
        try:
            if existing is not None:
                db.delete(existing)
                db.commit()
                return False
            db.add(
                db_models.PostReaction(
                    post_id=post_id, user_id=user.id, reaction_id=reaction_id
                )
            )
            db.commit()
        except IntegrityError:
            # Concurrent toggle already inserted it
            db.rollback()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to toggle reaction on post {post_id}: {e}")
            raise StorageException()
        return True

    @staticmethod
    def get_post_summary(
        db: Session, post_id: int, viewer: Optional[db_models.User] = None
    ) -> List[schemas.PostReactionSummary]:
        """Reaction counts on a post, with the viewer's own reactions flagged."""
        repo = ReactionRepository(db)
        mine = set(repo.get_user_reaction_ids(post_id, viewer.id)) if viewer else set()
        return [
            schemas.PostReactionSummary(
                reaction_id=reaction.id,
                name=reaction.name,
                emoji=reaction.emoji,
                image_url=reaction.image_url,
                count=count,
                reacted_by_me=reaction.id in mine,
            )
            for reaction, count in repo.get_post_summary(post_id)
        ]
