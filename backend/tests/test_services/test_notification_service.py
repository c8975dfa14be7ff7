"""
Unit tests for NotificationService fan-out and inbox operations.
"""

import pytest
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from models.exceptions import ValidationException
from repositories.db_models import Role
from repositories.follow_repository import FollowRepository
from repositories.notification_repository import NotificationRepository
from services.message_service import MessageService
from services.notification_service import NotificationService
from services.post_service import PostService
from services.report_service import ReportService
from services.topic_service import TopicService


def _types_for(db: Session, user_id: int) -> list[str]:
    rows = (
        db.query(db_models.Notification)
        .filter(db_models.Notification.user_id == user_id)
        .order_by(db_models.Notification.id)
        .all()
    )
    return [row.type for row in rows]


def _follow_topic(db: Session, user: db_models.User, topic: db_models.Topic) -> None:
    FollowRepository(db).add_topic_follow(user.id, topic.id)
    db.commit()


def _follow_user(db: Session, follower: db_models.User, followed: db_models.User) -> None:
    FollowRepository(db).add_user_follow(follower.id, followed.id)
    db.commit()


class TestPostFanOut:
    """Recipients of a new post."""

    def test_one_row_per_matching_rule(
        self,
        db_session: Session,
        test_user: db_models.User,
        other_user: db_models.User,
        test_topic: db_models.Topic,
        test_post: db_models.Post,
    ):
        """Parent author who follows the topic and the actor gets three rows."""
        _follow_topic(db_session, test_user, test_topic)
        _follow_user(db_session, test_user, other_user)

        PostService.create_post(
            db_session, other_user, test_topic.id, "A reply", test_post.id
        )

        assert _types_for(db_session, test_user.id) == [
            "comment_reply",
            "followed_topic_post",
            "followed_user_post",
        ]

    def test_actor_never_notified(
        self,
        db_session: Session,
        test_user: db_models.User,
        test_topic: db_models.Topic,
        test_post: db_models.Post,
    ):
        """Replying to one's own post in a followed topic notifies nobody."""
        _follow_topic(db_session, test_user, test_topic)

        PostService.create_post(
            db_session, test_user, test_topic.id, "Self reply", test_post.id
        )

        assert _types_for(db_session, test_user.id) == []

    def test_payload_contents(
        self,
        db_session: Session,
        test_user: db_models.User,
        other_user: db_models.User,
        test_topic: db_models.Topic,
        test_post: db_models.Post,
    ):
        other_user.nickname = "Other"
        db_session.commit()
        post = PostService.create_post(
            db_session, other_user, test_topic.id, "x" * 400, test_post.id
        )

        notification = NotificationRepository(db_session).list_by_type(
            test_user.id, "comment_reply"
        )[0]
        assert notification.payload == {
            "topicId": test_topic.id,
            "postId": post.id,
            "parentPostId": test_post.id,
            "authorId": other_user.id,
            "authorNickname": "Other",
            "snippet": "x" * 140,
        }
        assert notification.is_read is False

    def test_topic_followers_only_without_parent(
        self,
        db_session: Session,
        test_user: db_models.User,
        other_user: db_models.User,
        test_topic: db_models.Topic,
    ):
        _follow_topic(db_session, test_user, test_topic)
        PostService.create_post(db_session, other_user, test_topic.id, "Plain post")
        assert _types_for(db_session, test_user.id) == ["followed_topic_post"]


class TestFanOutFailure:
    """Fan-out errors never undo the triggering action."""

    def test_post_survives_notification_failure(
        self,
        db_session: Session,
        monkeypatch,
        test_user: db_models.User,
        other_user: db_models.User,
        test_topic: db_models.Topic,
        test_post: db_models.Post,
    ):
        _follow_topic(db_session, test_user, test_topic)

        def _boom(self, user_ids, notification_type, payload):
            raise RuntimeError("notification store down")

        monkeypatch.setattr(NotificationRepository, "create_many", _boom)

        post = PostService.create_post(
            db_session, other_user, test_topic.id, "Still stored", test_post.id
        )

        db_session.expire_all()
        assert db_session.get(db_models.Post, post.id).content == "Still stored"
        assert db_session.query(db_models.Notification).count() == 0

    def test_failing_category_does_not_block_others(
        self,
        db_session: Session,
        monkeypatch,
        test_user: db_models.User,
        other_user: db_models.User,
        test_topic: db_models.Topic,
        test_post: db_models.Post,
    ):
        _follow_topic(db_session, test_user, test_topic)
        _follow_user(db_session, test_user, other_user)
        original = NotificationRepository.create_many

        def _fail_topic_rule(self, user_ids, notification_type, payload):
            if notification_type == "followed_topic_post":
                raise RuntimeError("boom")
            return original(self, user_ids, notification_type, payload)

        monkeypatch.setattr(NotificationRepository, "create_many", _fail_topic_rule)

        PostService.create_post(
            db_session, other_user, test_topic.id, "Partial", test_post.id
        )

        assert _types_for(db_session, test_user.id) == [
            "comment_reply",
            "followed_user_post",
        ]


class TestOtherTriggers:
    def test_topic_created_notifies_author_followers(
        self,
        db_session: Session,
        test_user: db_models.User,
        other_user: db_models.User,
        test_category: db_models.Category,
    ):
        _follow_user(db_session, other_user, test_user)
        topic = TopicService.create_topic(
            db_session, test_user, "Fresh topic", "Body", test_category.id
        )

        rows = NotificationRepository(db_session).list_by_type(
            other_user.id, "followed_user_topic"
        )
        assert len(rows) == 1
        assert rows[0].payload["topicId"] == topic.id
        assert rows[0].payload["topicTitle"] == "Fresh topic"

    def test_message_notifies_recipient(
        self,
        db_session: Session,
        test_user: db_models.User,
        other_user: db_models.User,
    ):
        message = MessageService.send_message(
            db_session, test_user, other_user.id, "Hello there"
        )

        rows = NotificationRepository(db_session).list_by_type(other_user.id, "message")
        assert len(rows) == 1
        assert rows[0].payload["from"] == test_user.id
        assert rows[0].payload["messageId"] == message.id
        assert rows[0].payload["snippet"] == "Hello there"
        assert _types_for(db_session, test_user.id) == []

    def test_report_notifies_staff_except_reporter(
        self,
        db_session: Session,
        test_user: db_models.User,
        other_user: db_models.User,
        admin_user: db_models.User,
        user_factory,
    ):
        reporting_mod = user_factory("reportingmod", role=Role.MODERATOR)
        quiet_mod = user_factory("quietmod", role=Role.MODERATOR)

        report = ReportService.file_report(
            db_session, reporting_mod, user_id=other_user.id, reason="Spam"
        )

        assert _types_for(db_session, admin_user.id) == ["report"]
        assert _types_for(db_session, quiet_mod.id) == ["report"]
        assert _types_for(db_session, reporting_mod.id) == []
        assert _types_for(db_session, test_user.id) == []
        payload = NotificationRepository(db_session).list_by_type(
            admin_user.id, "report"
        )[0].payload
        assert payload["reportId"] == report.id
        assert payload["type"] == "user"
        assert payload["targetUsername"] == "otheruser"


class TestInbox:
    @pytest.fixture
    def inbox(self, db_session: Session, test_user: db_models.User) -> list[int]:
        repo = NotificationRepository(db_session)
        rows = repo.create_many([test_user.id] * 3, "message", {"n": 1})
        repo.commit()
        return [row.id for row in rows]

    def test_unread_count(self, db_session: Session, test_user, inbox):
        assert NotificationService.unread_count(db_session, test_user) == 3

    def test_mark_selected(self, db_session: Session, test_user, inbox):
        updated = NotificationService.mark_read(db_session, test_user, [inbox[0]])
        assert updated == 1
        assert NotificationService.unread_count(db_session, test_user) == 2

    @pytest.mark.parametrize("ids", [None, []])
    def test_none_or_empty_marks_all(self, db_session: Session, test_user, inbox, ids):
        assert NotificationService.mark_read(db_session, test_user, ids) == 3
        assert NotificationService.unread_count(db_session, test_user) == 0

    def test_mixed_ids_keep_the_valid_ones(
        self, db_session: Session, test_user, inbox
    ):
        updated = NotificationService.mark_read(
            db_session, test_user, ["abc", -1, str(inbox[1]), True]
        )
        assert updated == 1

    def test_no_valid_ids(self, db_session: Session, test_user, inbox):
        with pytest.raises(ValidationException):
            NotificationService.mark_read(db_session, test_user, ["x", 0, -3])

    def test_too_many_ids(self, db_session: Session, test_user, inbox):
        with pytest.raises(ValidationException, match="Too many ids"):
            NotificationService.mark_read(db_session, test_user, list(range(1, 202)))

    def test_other_users_rows_untouched(
        self, db_session: Session, test_user, other_user, inbox
    ):
        assert NotificationService.mark_read(db_session, other_user, inbox) == 0
        assert NotificationService.unread_count(db_session, test_user) == 3

    def test_list_unread_only(self, db_session: Session, test_user, inbox):
        NotificationService.mark_read(db_session, test_user, [inbox[2]])
        unread = NotificationService.list_notifications(
            db_session, test_user, unread_only=True
        )
        assert sorted(n.id for n in unread) == inbox[:2]
