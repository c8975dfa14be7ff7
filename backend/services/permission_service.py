"""
Permission resolver: roles plus per-moderator capability grants.

Every capability check in the codebase goes through `PermissionService`.
Capability names coming from outside are validated against the closed
`Capability` enum before any storage access.
"""

from typing import Mapping, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from models.exceptions import (
    InsufficientPermissionsException,
    InvalidCapabilityException,
    InvalidRoleException,
    StorageException,
    UserNotFoundException,
)
from repositories.db_models import Capability, Role
from repositories.permission_repository import PermissionRepository
from repositories.user_repository import UserRepository


ALL_CAPABILITIES: tuple[Capability, ...] = tuple(Capability)


class PermissionService:
    """Service for capability resolution and grant management."""

    @staticmethod
    def parse_capability(name: str | Capability) -> Capability:
        """
        Resolve a capability name against the allow-list.

        Args:
            name: Capability name such as "can_ban_users"

        Returns:
            Matching Capability member

        Raises:
            InvalidCapabilityException: If the name is not a known capability
        """
        if isinstance(name, Capability):
            return name
        try:
            return Capability(name)
        except ValueError:
            raise InvalidCapabilityException(str(name))

    @staticmethod
    def parse_role(role: str | Role) -> Role:
        """
        Resolve a role name.

        Raises:
            InvalidRoleException: If role is not user, moderator or admin
        """
        if isinstance(role, Role):
            return role
        try:
            return Role(str(role).strip().lower())
        except ValueError:
            raise InvalidRoleException(str(role))

    @staticmethod
    def has_capability(
        db: Session, caller: db_models.User, capability: str | Capability
    ) -> bool:
        """
        Decide whether a caller holds a capability.

        Admins hold every capability. Moderators hold exactly what their grant
        row says; no grant row means nothing. Plain users hold nothing, even if
        a stray grant row exists. The grant is read on every call.

        Args:
            db: Database session
            caller: Acting user
            capability: Capability name or enum member

        Returns:
            True if allowed

        Raises:
            InvalidCapabilityException: If capability is not in the allow-list
        """
        cap = PermissionService.parse_capability(capability)

        if caller.role == Role.ADMIN:
            return True
        if caller.role != Role.MODERATOR:
            return False

        grant = PermissionRepository(db).get_for_user(caller.id)
        if grant is None:
            return False
        return grant.grants(cap)

    @staticmethod
    def is_privileged(
        db: Session, caller: Optional[db_models.User], capability: str | Capability
    ) -> bool:
        """Single predicate used by every gate; anonymous callers are never privileged."""
        if caller is None:
            return False
        return PermissionService.has_capability(db, caller, capability)

    @staticmethod
    def require_capability(
        db: Session, caller: db_models.User, capability: str | Capability
    ) -> None:
        """
        Raise unless the caller holds the capability.

        Raises:
            InsufficientPermissionsException: If the capability is missing
        """
        if not PermissionService.is_privileged(db, caller, capability):
            raise InsufficientPermissionsException("Permission denied")

    @staticmethod
    def is_staff(caller: Optional[db_models.User]) -> bool:
        """Admins and moderators."""
        return caller is not None and caller.role in (Role.ADMIN, Role.MODERATOR)

    @staticmethod
    def get_permissions(db: Session, user: db_models.User) -> dict[str, bool]:
        """
        Get the effective capability map of a user.

        Args:
            db: Database session
            user: User to inspect

        Returns:
            Mapping of capability name to bool for all capabilities
        """
        return {
            cap.value: PermissionService.has_capability(db, user, cap)
            for cap in ALL_CAPABILITIES
        }

    @staticmethod
    def _require_admin(caller: db_models.User) -> None:
        if caller.role != Role.ADMIN:
            raise InsufficientPermissionsException("Admin only")

    @staticmethod
    def set_permissions(
        db: Session,
        admin_caller: db_models.User,
        target_user_id: int,
        capabilities: Mapping[str, bool],
    ) -> db_models.ModeratorPermission:
        """
        Overwrite a user's full capability set.

        Capabilities missing from `capabilities` are written as False. A plain
        user is promoted to moderator; an admin keeps the admin role.

        Args:
            db: Database session
            admin_caller: Acting user, must be admin
            target_user_id: User receiving the grant
            capabilities: Capability name to bool

        Returns:
            The stored grant row

        Raises:
            InsufficientPermissionsException: If caller is not admin
            InvalidCapabilityException: If a capability name is unknown
            UserNotFoundException: If target user does not exist
        """
        PermissionService._require_admin(admin_caller)

        requested = {
            PermissionService.parse_capability(name): bool(value)
            for name, value in capabilities.items()
        }

        user_repo = UserRepository(db)
        perm_repo = PermissionRepository(db)

        target = user_repo.get_by_id(target_user_id)
        if target is None:
            raise UserNotFoundException()

        try:
            grant = perm_repo.ensure_default(target.id)
            for cap in ALL_CAPABILITIES:
                setattr(grant, cap.value, requested.get(cap, False))

            if target.role == Role.USER:
                target.role = Role.MODERATOR

            perm_repo.commit()
        except SQLAlchemyError as e:
            perm_repo.rollback()
            logger.error(f"Failed to set permissions for user {target_user_id}: {e}")
            raise StorageException()

        perm_repo.refresh(grant)
        logger.info(
            f"Admin {admin_caller.id} set permissions of user {target.id}: "
            f"{ {cap.value: getattr(grant, cap.value) for cap in ALL_CAPABILITIES} }"
        )
        return grant

    @staticmethod
    def set_role(
        db: Session,
        admin_caller: db_models.User,
        target_user_id: int,
        role: str | Role,
    ) -> db_models.User:
        """
        Change a user's role.

        Moving away from moderator deletes the grant row; moving to moderator
        ensures an all-false grant row exists.

        Args:
            db: Database session
            admin_caller: Acting user, must be admin
            target_user_id: User whose role changes
            role: New role name

        Returns:
            Updated user

        Raises:
            InsufficientPermissionsException: If caller is not admin
            InvalidRoleException: If role is not valid
            UserNotFoundException: If target user does not exist
        """
        PermissionService._require_admin(admin_caller)
        new_role = PermissionService.parse_role(role)

        user_repo = UserRepository(db)
        perm_repo = PermissionRepository(db)

        target = user_repo.get_by_id(target_user_id)
        if target is None:
            raise UserNotFoundException()

        try:
            target.role = new_role
            if new_role == Role.MODERATOR:
                perm_repo.ensure_default(target.id)
            else:
                perm_repo.remove_for_user(target.id)
            user_repo.commit()
        except SQLAlchemyError as e:
            user_repo.rollback()
            logger.error(f"Failed to set role for user {target_user_id}: {e}")
            raise StorageException()

        user_repo.refresh(target)
        logger.info(
            f"Admin {admin_caller.id} set role of user {target.id} to {new_role.value}"
        )
        return target
