"""
Unit tests for ModerationService: warn, mute, ban, unban and ban expiry.
"""

from datetime import timedelta

import pytest
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from helpers.time_utils import as_utc, utc_now
from models.exceptions import (
    CannotModerateAdminException,
    InsufficientPermissionsException,
    InvalidMuteDurationException,
    UserNotFoundException,
    ValidationException,
)
from repositories.ban_repository import BanRepository
from repositories.db_models import BanAction, Role
from services.moderation_service import ModerationService, ModerationState


def _log_actions(db: Session, user_id: int) -> list[BanAction]:
    return [record.action for record in BanRepository(db).get_for_user(user_id)]


class TestWarn:
    def test_logs_without_state_change(
        self,
        db_session: Session,
        moderator_user: db_models.User,
        test_user: db_models.User,
    ):
        record = ModerationService.warn(
            db_session, moderator_user, test_user.id, "  Be nice  "
        )

        assert record.action == BanAction.WARN
        assert record.reason == "Be nice"
        assert record.created_by == moderator_user.id
        assert test_user.is_banned is False
        assert test_user.banned_until is None


class TestMute:
    def test_sets_temporary_ban(
        self,
        db_session: Session,
        moderator_user: db_models.User,
        test_user: db_models.User,
    ):
        before = utc_now()
        record = ModerationService.mute(db_session, moderator_user, test_user.id, 30)

        assert record.action == BanAction.MUTE
        assert test_user.is_banned is True
        until = as_utc(test_user.banned_until)
        assert before + timedelta(minutes=29) < until <= utc_now() + timedelta(minutes=30)
        assert ModerationService.get_user_state(test_user) == ModerationState.SUSPENDED

    @pytest.mark.parametrize("minutes", [0, -5, 2.5, "10", True])
    def test_rejects_bad_duration(
        self,
        db_session: Session,
        moderator_user: db_models.User,
        test_user: db_models.User,
        minutes,
    ):
        with pytest.raises(InvalidMuteDurationException):
            ModerationService.mute(db_session, moderator_user, test_user.id, minutes)
        assert _log_actions(db_session, test_user.id) == []


class TestBan:
    def test_permanent_ban(
        self,
        db_session: Session,
        moderator_user: db_models.User,
        test_user: db_models.User,
    ):
        ModerationService.ban(db_session, moderator_user, test_user.id)

        assert test_user.is_banned is True
        assert test_user.banned_until is None
        assert ModerationService.is_currently_banned(test_user)
        assert ModerationService.get_user_state(test_user) == ModerationState.BANNED

    def test_permanent_ban_never_expires(
        self,
        db_session: Session,
        moderator_user: db_models.User,
        test_user: db_models.User,
    ):
        ModerationService.ban(db_session, moderator_user, test_user.id)
        far_future = utc_now() + timedelta(days=365 * 50)

        assert ModerationService.is_currently_banned(test_user, now=far_future)
        assert ModerationService.refresh_ban_state(db_session, test_user) is False
        assert test_user.is_banned is True

    def test_temporary_ban(
        self,
        db_session: Session,
        moderator_user: db_models.User,
        test_user: db_models.User,
    ):
        until = utc_now() + timedelta(days=3)
        record = ModerationService.ban(db_session, moderator_user, test_user.id, until)

        assert as_utc(record.banned_until) == until
        assert as_utc(test_user.banned_until) == until

    def test_past_end_rejected(
        self,
        db_session: Session,
        moderator_user: db_models.User,
        test_user: db_models.User,
    ):
        with pytest.raises(ValidationException):
            ModerationService.ban(
                db_session,
                moderator_user,
                test_user.id,
                utc_now() - timedelta(minutes=1),
            )

    def test_naive_end_is_utc(
        self,
        db_session: Session,
        moderator_user: db_models.User,
        test_user: db_models.User,
    ):
        naive = (utc_now() + timedelta(hours=2)).replace(tzinfo=None)
        ModerationService.ban(db_session, moderator_user, test_user.id, naive)
        assert ModerationService.is_currently_banned(test_user)


class TestAdminGuard:
    @pytest.mark.parametrize("action", ["warn", "mute", "ban"])
    def test_cannot_target_admin(
        self,
        db_session: Session,
        moderator_user: db_models.User,
        admin_user: db_models.User,
        action: str,
    ):
        with pytest.raises(CannotModerateAdminException) as exc_info:
            if action == "mute":
                ModerationService.mute(db_session, moderator_user, admin_user.id, 10)
            else:
                getattr(ModerationService, action)(
                    db_session, moderator_user, admin_user.id
                )

        assert exc_info.value.message == f"Cannot {action} admin"
        assert admin_user.is_banned is False
        assert _log_actions(db_session, admin_user.id) == []

    def test_admin_actor_cannot_target_admin(
        self, db_session: Session, admin_user: db_models.User, user_factory
    ):
        other_admin = user_factory("admin2", role=Role.ADMIN)
        with pytest.raises(CannotModerateAdminException):
            ModerationService.ban(db_session, admin_user, other_admin.id)

    def test_unban_admin_allowed(
        self, db_session: Session, admin_user: db_models.User, user_factory
    ):
        other_admin = user_factory("admin2", role=Role.ADMIN)
        record = ModerationService.unban(db_session, admin_user, other_admin.id)
        assert record.action == BanAction.UNBAN


class TestUnban:
    def test_clears_ban(
        self,
        db_session: Session,
        moderator_user: db_models.User,
        test_user: db_models.User,
    ):
        ModerationService.ban(db_session, moderator_user, test_user.id)
        ModerationService.unban(db_session, moderator_user, test_user.id)

        assert test_user.is_banned is False
        assert test_user.banned_until is None
        assert ModerationService.get_user_state(test_user) == ModerationState.CLEAR

    def test_idempotent_and_always_logged(
        self,
        db_session: Session,
        moderator_user: db_models.User,
        test_user: db_models.User,
    ):
        ModerationService.unban(db_session, moderator_user, test_user.id)
        ModerationService.unban(db_session, moderator_user, test_user.id)

        assert test_user.is_banned is False
        assert _log_actions(db_session, test_user.id) == [
            BanAction.UNBAN,
            BanAction.UNBAN,
        ]

    def test_missing_user(self, db_session: Session, moderator_user: db_models.User):
        with pytest.raises(UserNotFoundException):
            ModerationService.unban(db_session, moderator_user, 4242)


class TestCapabilityGate:
    @pytest.mark.parametrize("action", ["warn", "ban", "unban"])
    def test_requires_can_ban_users(
        self, db_session: Session, user_factory, test_user: db_models.User, action
    ):
        weak_mod = user_factory("wikimod", role=Role.MODERATOR, can_edit_wiki=True)
        with pytest.raises(InsufficientPermissionsException):
            getattr(ModerationService, action)(db_session, weak_mod, test_user.id)

    def test_plain_user_cannot_mute(
        self,
        db_session: Session,
        other_user: db_models.User,
        test_user: db_models.User,
    ):
        with pytest.raises(InsufficientPermissionsException):
            ModerationService.mute(db_session, other_user, test_user.id, 5)

    def test_admin_needs_no_grant(
        self,
        db_session: Session,
        admin_user: db_models.User,
        test_user: db_models.User,
    ):
        ModerationService.mute(db_session, admin_user, test_user.id, 5)
        assert test_user.is_banned is True


class TestExpiry:
    def _expired(self, db: Session, user: db_models.User) -> None:
        user.is_banned = True
        user.banned_until = utc_now() - timedelta(minutes=1)
        db.commit()

    def test_expired_ban_does_not_block(
        self, db_session: Session, test_user: db_models.User
    ):
        self._expired(db_session, test_user)
        assert not ModerationService.is_currently_banned(test_user)

    def test_refresh_clears_expired_ban(
        self, db_session: Session, test_user: db_models.User
    ):
        self._expired(db_session, test_user)

        assert ModerationService.refresh_ban_state(db_session, test_user) is True
        assert test_user.is_banned is False
        assert test_user.banned_until is None
        # Expiry is not a moderation action
        assert _log_actions(db_session, test_user.id) == []

    def test_refresh_leaves_active_ban(
        self,
        db_session: Session,
        moderator_user: db_models.User,
        test_user: db_models.User,
    ):
        ModerationService.mute(db_session, moderator_user, test_user.id, 60)
        assert ModerationService.refresh_ban_state(db_session, test_user) is False
        assert test_user.is_banned is True


class TestBanLog:
    def test_newest_first_with_usernames(
        self,
        db_session: Session,
        moderator_user: db_models.User,
        test_user: db_models.User,
    ):
        ModerationService.warn(db_session, moderator_user, test_user.id)
        ModerationService.mute(db_session, moderator_user, test_user.id, 5)

        log = ModerationService.get_ban_log(db_session, limit=10)

        assert [entry["action"] for entry in log] == [BanAction.MUTE, BanAction.WARN]
        assert log[0]["username"] == "testuser"
        assert log[0]["created_by_username"] == "moduser"

    def test_limit(
        self,
        db_session: Session,
        moderator_user: db_models.User,
        test_user: db_models.User,
    ):
        for _ in range(3):
            ModerationService.warn(db_session, moderator_user, test_user.id)
        assert len(ModerationService.get_ban_log(db_session, limit=2)) == 2
