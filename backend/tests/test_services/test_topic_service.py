"""
Unit tests for TopicService, including topic tag audit.
"""

import pytest
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from models.exceptions import (
    ContentValidationException,
    InsufficientPermissionsException,
    TopicNotFoundException,
    ValidationException,
)
from repositories.db_models import Role
from services.tag_service import TagService
from services.topic_service import TopicService


@pytest.fixture
def tag_mod(user_factory) -> db_models.User:
    return user_factory("tagmod", role=Role.MODERATOR, can_manage_tags=True)


class TestCreateTopic:
    def test_creates_first_post(
        self,
        db_session: Session,
        test_user: db_models.User,
        test_category: db_models.Category,
        test_tag: db_models.Tag,
    ):
        topic = TopicService.create_topic(
            db_session,
            test_user,
            "  Welcome  ",
            "First words",
            test_category.id,
            [test_tag.id, 999],
        )
        detail = TopicService.to_detail(db_session, topic)

        assert detail.title == "Welcome"
        assert detail.post_count == 1
        assert [tag.id for tag in detail.tags] == [test_tag.id]
        assert detail.category_name == "Test Category"

    def test_unknown_category(self, db_session: Session, test_user: db_models.User):
        with pytest.raises(ValidationException, match="Invalid category"):
            TopicService.create_topic(db_session, test_user, "Title", "Body", 42)

    @pytest.mark.parametrize("title", ["", "ab", "t" * 201])
    def test_title_length(
        self,
        db_session: Session,
        test_user: db_models.User,
        test_category: db_models.Category,
        title: str,
    ):
        with pytest.raises(ContentValidationException):
            TopicService.create_topic(
                db_session, test_user, title, "Body", test_category.id
            )


class TestListTopics:
    def test_sticky_first(
        self,
        db_session: Session,
        test_user: db_models.User,
        test_category: db_models.Category,
        test_topic: db_models.Topic,
    ):
        newer = TopicService.create_topic(
            db_session, test_user, "Newer topic", "Body", test_category.id
        )
        test_topic.is_sticky = True
        db_session.commit()

        ids = [t.id for t in TopicService.list_topics(db_session)]
        assert ids == [test_topic.id, newer.id]

    def test_category_filter(
        self, db_session: Session, test_topic: db_models.Topic
    ):
        assert TopicService.list_topics(db_session, "test-category")
        assert TopicService.list_topics(db_session, "nope") == []


class TestSetTags:
    def test_replaces_and_audits(
        self,
        db_session: Session,
        tag_mod: db_models.User,
        test_topic: db_models.Topic,
        test_tag: db_models.Tag,
    ):
        second = TagService.create_tag(db_session, tag_mod, "fastapi")

        first_ids = TopicService.set_tags(
            db_session, tag_mod, test_topic.id, [test_tag.id, second.id, 555]
        )
        second_ids = TopicService.set_tags(
            db_session, tag_mod, test_topic.id, [second.id]
        )

        assert first_ids == sorted([test_tag.id, second.id])
        assert second_ids == [second.id]
        audit = TagService.get_topic_audit(db_session, test_topic.id)
        assert [(a.old_tag_ids, a.new_tag_ids) for a in audit] == [
            (first_ids, [second.id]),
            ([], first_ids),
        ]
        assert audit[0].changed_by == tag_mod.id

    def test_requires_capability(
        self,
        db_session: Session,
        moderator_user: db_models.User,
        test_topic: db_models.Topic,
    ):
        with pytest.raises(InsufficientPermissionsException):
            TopicService.set_tags(db_session, moderator_user, test_topic.id, [])

    def test_unknown_topic(self, db_session: Session, tag_mod: db_models.User):
        with pytest.raises(TopicNotFoundException):
            TopicService.set_tags(db_session, tag_mod, 404, [])


class TestModerationAndDelete:
    def test_lock_and_pin(
        self, db_session: Session, tag_mod: db_models.User, test_topic: db_models.Topic
    ):
        topic = TopicService.update_moderation(
            db_session, tag_mod, test_topic.id, is_sticky=True, is_locked=True
        )
        assert topic.is_sticky and topic.is_locked

    def test_move_to_unknown_category(
        self, db_session: Session, tag_mod: db_models.User, test_topic: db_models.Topic
    ):
        with pytest.raises(ValidationException):
            TopicService.update_moderation(
                db_session, tag_mod, test_topic.id, category_id=999
            )

    def test_author_deletes(
        self, db_session: Session, test_user: db_models.User, test_topic: db_models.Topic
    ):
        topic_id = test_topic.id
        TopicService.delete_topic(db_session, test_user, topic_id)
        with pytest.raises(TopicNotFoundException):
            TopicService.get_topic(db_session, topic_id)
        assert (
            db_session.query(db_models.Post)
            .filter(db_models.Post.topic_id == topic_id)
            .count()
            == 0
        )

    def test_stranger_cannot_delete(
        self,
        db_session: Session,
        other_user: db_models.User,
        test_topic: db_models.Topic,
    ):
        with pytest.raises(InsufficientPermissionsException):
            TopicService.delete_topic(db_session, other_user, test_topic.id)
