"""
Unit tests for PostService.
"""

import pytest
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from models.exceptions import (
    ContentValidationException,
    InsufficientPermissionsException,
    PostAlreadyDeletedException,
    PostNotFoundException,
    TopicLockedException,
    TopicNotFoundException,
)
from services.post_service import DELETED_PLACEHOLDER, PostService


class TestCreatePost:
    def test_creates_reply(
        self,
        db_session: Session,
        other_user: db_models.User,
        test_topic: db_models.Topic,
        test_post: db_models.Post,
    ):
        post = PostService.create_post(
            db_session, other_user, test_topic.id, "  <b>Hi</b> there ", test_post.id
        )
        assert post.content == "Hi there"
        assert post.parent_post_id == test_post.id
        assert post.author_id == other_user.id

    @pytest.mark.parametrize("content", ["", "   ", "<p></p>", "x" * 5001])
    def test_invalid_content(
        self,
        db_session: Session,
        other_user: db_models.User,
        test_topic: db_models.Topic,
        content: str,
    ):
        with pytest.raises(ContentValidationException):
            PostService.create_post(db_session, other_user, test_topic.id, content)

    def test_length_limit_counts_input_characters(
        self,
        db_session: Session,
        other_user: db_models.User,
        test_topic: db_models.Topic,
    ):
        content = "Q&A " * 1250
        post = PostService.create_post(db_session, other_user, test_topic.id, content)
        assert post.content == content.strip()

    def test_unknown_topic(self, db_session: Session, other_user: db_models.User):
        with pytest.raises(TopicNotFoundException):
            PostService.create_post(db_session, other_user, 999, "Hello")

    def test_locked_topic(
        self,
        db_session: Session,
        other_user: db_models.User,
        test_topic: db_models.Topic,
    ):
        test_topic.is_locked = True
        db_session.commit()
        with pytest.raises(TopicLockedException):
            PostService.create_post(db_session, other_user, test_topic.id, "Hello")

    def test_parent_in_other_topic(
        self,
        db_session: Session,
        other_user: db_models.User,
        test_user: db_models.User,
        test_category: db_models.Category,
        test_post: db_models.Post,
    ):
        second = db_models.Topic(
            title="Second", category_id=test_category.id, author_id=test_user.id
        )
        db_session.add(second)
        db_session.commit()
        with pytest.raises(ContentValidationException):
            PostService.create_post(
                db_session, other_user, second.id, "Cross reply", test_post.id
            )


class TestEditPost:
    def test_author_edits(
        self, db_session: Session, test_user: db_models.User, test_post: db_models.Post
    ):
        edited = PostService.edit_post(db_session, test_user, test_post.id, "Edited")
        assert edited.content == "Edited"
        assert edited.updated_at is not None

    def test_admin_cannot_edit(
        self,
        db_session: Session,
        admin_user: db_models.User,
        test_post: db_models.Post,
    ):
        with pytest.raises(InsufficientPermissionsException):
            PostService.edit_post(db_session, admin_user, test_post.id, "Hijack")

    def test_deleted_post_not_editable(
        self, db_session: Session, test_user: db_models.User, test_post: db_models.Post
    ):
        PostService.delete_post(db_session, test_user, test_post.id)
        with pytest.raises(PostNotFoundException):
            PostService.edit_post(db_session, test_user, test_post.id, "Back")


class TestDeletePost:
    def test_soft_delete_by_moderator(
        self,
        db_session: Session,
        moderator_user: db_models.User,
        test_post: db_models.Post,
    ):
        deleted = PostService.delete_post(db_session, moderator_user, test_post.id)
        assert deleted.is_deleted is True
        assert deleted.deleted_by == moderator_user.id
        assert PostService.to_schema(deleted).content == DELETED_PLACEHOLDER

    def test_stranger_denied(
        self,
        db_session: Session,
        other_user: db_models.User,
        test_post: db_models.Post,
    ):
        with pytest.raises(InsufficientPermissionsException):
            PostService.delete_post(db_session, other_user, test_post.id)

    def test_twice(
        self, db_session: Session, test_user: db_models.User, test_post: db_models.Post
    ):
        PostService.delete_post(db_session, test_user, test_post.id)
        with pytest.raises(PostAlreadyDeletedException):
            PostService.delete_post(db_session, test_user, test_post.id)

    def test_author_listing_hides_deleted(
        self, db_session: Session, test_user: db_models.User, test_post: db_models.Post
    ):
        PostService.delete_post(db_session, test_user, test_post.id)
        assert PostService.get_posts_by_author(db_session, test_user.id) == []
