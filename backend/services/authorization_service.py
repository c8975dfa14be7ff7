"""
Content authorization rules.

Combines ownership, role and granted capability for each content action.
Every capability lookup goes through PermissionService.is_privileged.
"""

from typing import Optional

from sqlalchemy.orm import Session

import repositories.db_models as db_models
from models.exceptions import InsufficientPermissionsException
from repositories.db_models import Capability, Role
from services.permission_service import PermissionService


class AuthorizationService:
    """Per-action allow/deny decisions for forum content."""

    @staticmethod
    def can_delete_post(
        db: Session, caller: Optional[db_models.User], post: db_models.Post
    ) -> bool:
        """Author, admin, or moderator holding can_delete_posts."""
        if caller is None:
            return False
        if caller.id == post.author_id:
            return True
        return PermissionService.is_privileged(db, caller, Capability.DELETE_POSTS)

    @staticmethod
    def can_edit_post(caller: Optional[db_models.User], post: db_models.Post) -> bool:
        """Only the author; no role overrides this."""
        return caller is not None and caller.id == post.author_id

    @staticmethod
    def can_delete_topic(
        db: Session, caller: Optional[db_models.User], topic: db_models.Topic
    ) -> bool:
        if caller is None:
            return False
        if caller.id == topic.author_id:
            return True
        return PermissionService.is_privileged(db, caller, Capability.DELETE_POSTS)

    @staticmethod
    def can_manage_tags(db: Session, caller: Optional[db_models.User]) -> bool:
        return PermissionService.is_privileged(db, caller, Capability.MANAGE_TAGS)

    # Categories and badges share the tag capability
    can_manage_categories = can_manage_tags
    can_manage_badges = can_manage_tags

    @staticmethod
    def can_manage_reactions(db: Session, caller: Optional[db_models.User]) -> bool:
        return PermissionService.is_privileged(db, caller, Capability.MANAGE_REACTIONS)

    @staticmethod
    def can_edit_wiki(caller: Optional[db_models.User]) -> bool:
        """Wiki writes are role-based: any admin or moderator."""
        return caller is not None and caller.role in (Role.ADMIN, Role.MODERATOR)

    @staticmethod
    def can_view_wiki_drafts(db: Session, caller: Optional[db_models.User]) -> bool:
        """Unpublished articles need the can_edit_wiki capability."""
        return PermissionService.is_privileged(db, caller, Capability.EDIT_WIKI)

    @staticmethod
    def _deny_unless(allowed: bool, message: str = "Permission denied") -> None:
        if not allowed:
            raise InsufficientPermissionsException(message)

    @staticmethod
    def ensure_can_delete_post(
        db: Session, caller: db_models.User, post: db_models.Post
    ) -> None:
        AuthorizationService._deny_unless(
            AuthorizationService.can_delete_post(db, caller, post),
            "Not allowed to delete this post",
        )

    @staticmethod
    def ensure_can_edit_post(caller: db_models.User, post: db_models.Post) -> None:
        AuthorizationService._deny_unless(
            AuthorizationService.can_edit_post(caller, post),
            "Only the author can edit this post",
        )

    @staticmethod
    def ensure_can_delete_topic(
        db: Session, caller: db_models.User, topic: db_models.Topic
    ) -> None:
        AuthorizationService._deny_unless(
            AuthorizationService.can_delete_topic(db, caller, topic),
            "Not allowed to delete this topic",
        )

    @staticmethod
    def ensure_can_manage_tags(db: Session, caller: db_models.User) -> None:
        AuthorizationService._deny_unless(
            AuthorizationService.can_manage_tags(db, caller)
        )

    @staticmethod
    def ensure_can_manage_categories(db: Session, caller: db_models.User) -> None:
        AuthorizationService._deny_unless(
            AuthorizationService.can_manage_categories(db, caller)
        )

    @staticmethod
    def ensure_can_manage_badges(db: Session, caller: db_models.User) -> None:
        AuthorizationService._deny_unless(
            AuthorizationService.can_manage_badges(db, caller)
        )

    @staticmethod
    def ensure_can_manage_reactions(db: Session, caller: db_models.User) -> None:
        AuthorizationService._deny_unless(
            AuthorizationService.can_manage_reactions(db, caller)
        )

    @staticmethod
    def ensure_can_edit_wiki(caller: db_models.User) -> None:
        AuthorizationService._deny_unless(
            AuthorizationService.can_edit_wiki(caller), "Moderator only"
        )

    @staticmethod
    def ensure_can_view_wiki_drafts(db: Session, caller: db_models.User) -> None:
        AuthorizationService._deny_unless(
            AuthorizationService.can_view_wiki_drafts(db, caller)
        )
