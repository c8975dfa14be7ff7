"""
Moderation state machine: warn, mute, ban, unban and lazy ban expiry.

A user's live state is the `is_banned`/`banned_until` projection on the user
row. Mutes and temporary bans share one representation; only the log entry's
action tells them apart. Every action appends exactly one BanRecord in the
same commit as the state change.
"""

from datetime import datetime
from typing import Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from helpers.sanitization import clean_text
from helpers.time_utils import as_utc, is_past, minutes_from_now, utc_now
from models.exceptions import (
    CannotModerateAdminException,
    InvalidMuteDurationException,
    StorageException,
    UserNotFoundException,
    ValidationException,
)
from repositories.ban_repository import BanRepository
from repositories.db_models import BanAction, Capability, Role
from repositories.user_repository import UserRepository
from services.permission_service import PermissionService


class ModerationState:
    """Derived moderation state labels."""

    CLEAR = "clear"
    SUSPENDED = "suspended"  # muted or temporarily banned
    BANNED = "banned"  # permanent


class ModerationService:
    """Service for user moderation actions and ban state."""

    @staticmethod
    def is_currently_banned(user: db_models.User, now: Optional[datetime] = None) -> bool:
        """
        Check whether a ban is in force right now.

        A ban without an end date is permanent. A ban whose end date has
        passed no longer blocks, even before it has been cleared.
        """
        if not user.is_banned:
            return False
        if user.banned_until is None:
            return True
        return not is_past(user.banned_until, now)

    @staticmethod
    def get_user_state(user: db_models.User) -> str:
        """Label the user's live moderation state."""
        if not ModerationService.is_currently_banned(user):
            return ModerationState.CLEAR
        if user.banned_until is None:
            return ModerationState.BANNED
        return ModerationState.SUSPENDED

    @staticmethod
    def refresh_ban_state(db: Session, user: db_models.User) -> bool:
        """
        Clear an expired temporary ban.

        Runs on the request path before any ban check. Permanent bans are
        never touched.

        Args:
            db: Database session
            user: Authenticated user

        Returns:
            True if an expired ban was cleared
        """
        if not user.is_banned or user.banned_until is None:
            return False
        if not is_past(user.banned_until):
            return False

        user.is_banned = False
        user.banned_until = None
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to clear expired ban for user {user.id}: {e}")
            raise StorageException()

        db.refresh(user)
        logger.info(f"Ban expired for user {user.id}, state cleared")
        return True

    @staticmethod
    def _load_target(
        db: Session, target_user_id: int, action: Optional[BanAction]
    ) -> db_models.User:
        target = UserRepository(db).get_by_id(target_user_id)
        if target is None:
            raise UserNotFoundException()
        if action is not None and target.role == Role.ADMIN:
            raise CannotModerateAdminException(action.value)
        return target

    @staticmethod
    def _apply(
        db: Session,
        actor: db_models.User,
        target: db_models.User,
        action: BanAction,
        reason: Optional[str],
        banned_until: Optional[datetime],
    ) -> db_models.BanRecord:
        """Write the state projection and its log entry in one commit."""
        ban_repo = BanRepository(db)

        record = db_models.BanRecord(
            user_id=target.id,
            action=action,
            reason=clean_text(reason) or None,
            banned_until=banned_until,
            created_by=actor.id,
        )

        try:
            if action in (BanAction.MUTE, BanAction.BAN):
                target.is_banned = True
                target.banned_until = banned_until
            elif action == BanAction.UNBAN:
                target.is_banned = False
                target.banned_until = None
            ban_repo.add(record)
            ban_repo.commit()
        except SQLAlchemyError as e:
            ban_repo.rollback()
            logger.error(
                f"Failed to {action.value} user {target.id} by {actor.id}: {e}"
            )
            raise StorageException()

        ban_repo.refresh(record)
        db.refresh(target)
        logger.info(
            f"Moderation: user {actor.id} applied {action.value} to user {target.id}"
            + (f" until {record.banned_until}" if record.banned_until else "")
        )
        return record

    @staticmethod
    def warn(
        db: Session,
        actor: db_models.User,
        target_user_id: int,
        reason: Optional[str] = None,
    ) -> db_models.BanRecord:
        """
        Log an advisory warning. The target's state does not change.

        Raises:
            InsufficientPermissionsException: If actor lacks can_ban_users
            UserNotFoundException: If target does not exist
            CannotModerateAdminException: If target is an admin
        """
        PermissionService.require_capability(db, actor, Capability.BAN_USERS)
        target = ModerationService._load_target(db, target_user_id, BanAction.WARN)
        return ModerationService._apply(
            db, actor, target, BanAction.WARN, reason, None
        )

    @staticmethod
    def mute(
        db: Session,
        actor: db_models.User,
        target_user_id: int,
        minutes: int,
        reason: Optional[str] = None,
    ) -> db_models.BanRecord:
        """
        Suspend a user for a number of minutes.

        Args:
            db: Database session
            actor: Moderator or admin
            target_user_id: User to mute
            minutes: Positive whole number of minutes
            reason: Optional free-text reason

        Returns:
            The appended log entry

        Raises:
            InvalidMuteDurationException: If minutes is not a positive integer
            InsufficientPermissionsException: If actor lacks can_ban_users
            UserNotFoundException: If target does not exist
            CannotModerateAdminException: If target is an admin
        """
        PermissionService.require_capability(db, actor, Capability.BAN_USERS)
        if isinstance(minutes, bool) or not isinstance(minutes, int) or minutes <= 0:
            raise InvalidMuteDurationException()

        target = ModerationService._load_target(db, target_user_id, BanAction.MUTE)
        return ModerationService._apply(
            db, actor, target, BanAction.MUTE, reason, minutes_from_now(minutes)
        )

    @staticmethod
    def ban(
        db: Session,
        actor: db_models.User,
        target_user_id: int,
        banned_until: Optional[datetime] = None,
        reason: Optional[str] = None,
    ) -> db_models.BanRecord:
        """
        Ban a user until a moment, or permanently when `banned_until` is None.

        Raises:
            ValidationException: If banned_until is not in the future
            InsufficientPermissionsException: If actor lacks can_ban_users
            UserNotFoundException: If target does not exist
            CannotModerateAdminException: If target is an admin
        """
        PermissionService.require_capability(db, actor, Capability.BAN_USERS)
        until = as_utc(banned_until)
        if until is not None and until <= utc_now():
            raise ValidationException("Ban end must be in the future")

        target = ModerationService._load_target(db, target_user_id, BanAction.BAN)
        return ModerationService._apply(
            db, actor, target, BanAction.BAN, reason, until
        )

    @staticmethod
    def unban(
        db: Session,
        actor: db_models.User,
        target_user_id: int,
        reason: Optional[str] = None,
    ) -> db_models.BanRecord:
        """
        Lift any ban or mute. Idempotent: always clears and always logs.

        Raises:
            InsufficientPermissionsException: If actor lacks can_ban_users
            UserNotFoundException: If target does not exist
        """
        PermissionService.require_capability(db, actor, Capability.BAN_USERS)
        target = ModerationService._load_target(db, target_user_id, None)
        return ModerationService._apply(
            db, actor, target, BanAction.UNBAN, reason, None
        )

    @staticmethod
    def get_ban_log(db: Session, limit: int = 100) -> list[dict]:
        """
        Latest moderation log entries with usernames.

        Args:
            db: Database session
            limit: Maximum number of entries

        Returns:
            List of dicts shaped like BanLogEntry
        """
        rows = BanRepository(db).get_recent_with_usernames(limit)
        return [
            {
                "id": record.id,
                "user_id": record.user_id,
                "action": record.action,
                "reason": record.reason,
                "banned_until": record.banned_until,
                "created_by": record.created_by,
                "created_at": record.created_at,
                "username": username,
                "created_by_username": actor_username,
            }
            for record, username, actor_username in rows
        ]
