"""
Unit tests for follows and direct messages.
"""

import pytest
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from models.exceptions import (
    ContentValidationException,
    SelfActionException,
    TopicNotFoundException,
    UserNotFoundException,
)
from services.follow_service import FollowService
from services.message_service import MessageService


class TestFollowService:
    def test_follow_topic_idempotent(
        self, db_session: Session, other_user: db_models.User, test_topic
    ):
        FollowService.follow_topic(db_session, other_user, test_topic.id)
        FollowService.follow_topic(db_session, other_user, test_topic.id)

        assert FollowService.is_following_topic(db_session, other_user, test_topic.id)
        assert db_session.query(db_models.TopicFollow).count() == 1

        FollowService.unfollow_topic(db_session, other_user, test_topic.id)
        FollowService.unfollow_topic(db_session, other_user, test_topic.id)
        assert not FollowService.is_following_topic(
            db_session, other_user, test_topic.id
        )

    def test_follow_missing_topic(self, db_session: Session, other_user):
        with pytest.raises(TopicNotFoundException):
            FollowService.follow_topic(db_session, other_user, 31337)

    def test_follow_user(self, db_session: Session, test_user, other_user):
        FollowService.follow_user(db_session, other_user, test_user.id)
        assert FollowService.is_following_user(db_session, other_user, test_user.id)
        assert not FollowService.is_following_user(db_session, test_user, other_user.id)

    def test_cannot_follow_self(self, db_session: Session, test_user):
        with pytest.raises(SelfActionException):
            FollowService.follow_user(db_session, test_user, test_user.id)

    def test_follow_missing_user(self, db_session: Session, test_user):
        with pytest.raises(UserNotFoundException):
            FollowService.follow_user(db_session, test_user, 999)


class TestMessageService:
    def test_send_and_thread(self, db_session: Session, test_user, other_user):
        MessageService.send_message(db_session, test_user, other_user.id, "Hi")
        MessageService.send_message(db_session, other_user, test_user.id, "Hey")

        thread = MessageService.get_thread(db_session, test_user, other_user.id)
        assert [m.content for m in thread] == ["Hi", "Hey"]

    @pytest.mark.parametrize("recipient", [0, -1, "abc", None, True, 1.5])
    def test_bad_recipient(self, db_session: Session, test_user, recipient):
        with pytest.raises(ContentValidationException):
            MessageService.send_message(db_session, test_user, recipient, "Hi")

    def test_string_recipient_id(self, db_session: Session, test_user, other_user):
        message = MessageService.send_message(
            db_session, test_user, str(other_user.id), "Hi"
        )
        assert message.recipient_id == other_user.id

    def test_empty_content(self, db_session: Session, test_user, other_user):
        with pytest.raises(ContentValidationException):
            MessageService.send_message(db_session, test_user, other_user.id, "  ")

    def test_length_limit_counts_input_characters(
        self, db_session: Session, test_user, other_user
    ):
        content = "a" * 4999 + "&"
        message = MessageService.send_message(
            db_session, test_user, other_user.id, content
        )
        assert message.content == content

        with pytest.raises(ContentValidationException):
            MessageService.send_message(
                db_session, test_user, other_user.id, content + "b"
            )

    def test_self_message(self, db_session: Session, test_user):
        with pytest.raises(SelfActionException):
            MessageService.send_message(db_session, test_user, test_user.id, "Hi me")

    def test_unknown_recipient(self, db_session: Session, test_user):
        with pytest.raises(UserNotFoundException):
            MessageService.send_message(db_session, test_user, 999, "Hello?")

    def test_unread_and_mark_read(self, db_session: Session, test_user, other_user):
        first = MessageService.send_message(db_session, test_user, other_user.id, "1")
        MessageService.send_message(db_session, test_user, other_user.id, "2")
        assert MessageService.unread_count(db_session, other_user) == 2

        # Sender cannot mark the recipient's copy
        MessageService.mark_read(db_session, test_user, first.id)
        assert MessageService.unread_count(db_session, other_user) == 2

        MessageService.mark_read(db_session, other_user, first.id)
        assert MessageService.unread_count(db_session, other_user) == 1
        assert MessageService.mark_thread_read(db_session, other_user, test_user.id) == 1
        assert MessageService.unread_count(db_session, other_user) == 0

    def test_conversations(self, db_session: Session, test_user, other_user, admin_user):
        MessageService.send_message(db_session, other_user, test_user.id, "First")
        MessageService.send_message(db_session, admin_user, test_user.id, "Second")
        MessageService.send_message(db_session, admin_user, test_user.id, "Third")

        conversations = MessageService.list_conversations(db_session, test_user)

        assert [c.user_id for c in conversations] == [admin_user.id, other_user.id]
        assert conversations[0].last_message == "Third"
        assert conversations[0].unread_count == 2
