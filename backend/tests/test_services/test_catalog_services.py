"""
Unit tests for tags, categories, reactions and badges.
"""

import pytest
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from models.exceptions import (
    BadgeNotFoundException,
    DuplicateNameException,
    InsufficientPermissionsException,
    PostNotFoundException,
    ValidationException,
)
from repositories.db_models import CatalogEntity, Role, TagAuditAction
from services.badge_service import BadgeService
from services.category_service import CategoryService
from services.reaction_service import ReactionService
from services.tag_service import TagService


@pytest.fixture
def tag_mod(user_factory) -> db_models.User:
    return user_factory("tagmod", role=Role.MODERATOR, can_manage_tags=True)


@pytest.fixture
def reaction_mod(user_factory) -> db_models.User:
    return user_factory("reactmod", role=Role.MODERATOR, can_manage_reactions=True)


class TestTagService:
    def test_lifecycle_is_audited(self, db_session: Session, tag_mod: db_models.User):
        tag = TagService.create_tag(db_session, tag_mod, "python", "green")
        TagService.update_tag(db_session, tag_mod, tag.id, name="py")
        TagService.delete_tag(db_session, tag_mod, tag.id)

        audit = TagService.get_audit(db_session)
        assert [a.action for a in audit] == [
            TagAuditAction.DELETE,
            TagAuditAction.UPDATE,
            TagAuditAction.CREATE,
        ]
        assert (audit[1].old_name, audit[1].new_name) == ("python", "py")
        assert audit[0].old_name == "py"
        assert all(a.changed_by == tag_mod.id for a in audit)
        assert TagService.get_all_tags(db_session) == []

    def test_duplicate_name_case_insensitive(
        self, db_session: Session, tag_mod: db_models.User
    ):
        TagService.create_tag(db_session, tag_mod, "Python")
        with pytest.raises(DuplicateNameException):
            TagService.create_tag(db_session, tag_mod, "python")

    def test_empty_name(self, db_session: Session, tag_mod: db_models.User):
        with pytest.raises(ValidationException):
            TagService.create_tag(db_session, tag_mod, "   ")

    def test_requires_capability(
        self, db_session: Session, moderator_user: db_models.User
    ):
        with pytest.raises(InsufficientPermissionsException):
            TagService.create_tag(db_session, moderator_user, "nope")
        assert TagService.get_audit(db_session) == []


class TestCategoryService:
    def test_create_derives_slug(self, db_session: Session, admin_user: db_models.User):
        category = CategoryService.create_category(
            db_session,
            admin_user,
            schemas.CategoryCreate(name="Off Topic!", description="Chat"),
        )
        assert category.slug == "off-topic"

    def test_duplicate(
        self,
        db_session: Session,
        admin_user: db_models.User,
        test_category: db_models.Category,
    ):
        with pytest.raises(DuplicateNameException):
            CategoryService.create_category(
                db_session, admin_user, schemas.CategoryCreate(name="Test Category")
            )

    def test_rename_updates_slug(
        self,
        db_session: Session,
        tag_mod: db_models.User,
        test_category: db_models.Category,
    ):
        updated = CategoryService.update_category(
            db_session,
            tag_mod,
            test_category.id,
            schemas.CategoryUpdate(name="Renamed"),
        )
        assert updated.slug == "renamed"

    def test_bad_sort_order(self, db_session: Session, admin_user: db_models.User):
        with pytest.raises(ValidationException):
            CategoryService.create_category(
                db_session,
                admin_user,
                schemas.CategoryCreate(name="Valid", sort_order=-1),
            )

    def test_hub_counts(
        self,
        db_session: Session,
        test_category: db_models.Category,
        test_topic: db_models.Topic,
    ):
        hub = CategoryService.get_hub(db_session)
        assert len(hub) == 1
        assert (hub[0].topic_count, hub[0].post_count) == (1, 1)

    def test_plain_user_denied(self, db_session: Session, test_user: db_models.User):
        with pytest.raises(InsufficientPermissionsException):
            CategoryService.create_category(
                db_session, test_user, schemas.CategoryCreate(name="Mine")
            )


class TestReactionService:
    def test_create_needs_emoji_or_image(
        self, db_session: Session, reaction_mod: db_models.User
    ):
        with pytest.raises(ValidationException):
            ReactionService.create_reaction(db_session, reaction_mod, "blank")

    def test_tag_capability_is_not_enough(
        self, db_session: Session, tag_mod: db_models.User
    ):
        with pytest.raises(InsufficientPermissionsException):
            ReactionService.create_reaction(db_session, tag_mod, "like", emoji="+1")

    def test_toggle_and_summary(
        self,
        db_session: Session,
        reaction_mod: db_models.User,
        test_user: db_models.User,
        other_user: db_models.User,
        test_post: db_models.Post,
    ):
        like = ReactionService.create_reaction(
            db_session, reaction_mod, "like", emoji="+1"
        )

        assert ReactionService.toggle_reaction(db_session, test_user, test_post.id, like.id)
        assert ReactionService.toggle_reaction(db_session, other_user, test_post.id, like.id)
        summary = ReactionService.get_post_summary(db_session, test_post.id, test_user)
        assert summary[0].count == 2
        assert summary[0].reacted_by_me is True

        assert not ReactionService.toggle_reaction(
            db_session, test_user, test_post.id, like.id
        )
        summary = ReactionService.get_post_summary(db_session, test_post.id, test_user)
        assert summary[0].count == 1
        assert summary[0].reacted_by_me is False

    def test_toggle_on_deleted_post(
        self,
        db_session: Session,
        reaction_mod: db_models.User,
        test_user: db_models.User,
        test_post: db_models.Post,
    ):
        like = ReactionService.create_reaction(
            db_session, reaction_mod, "like", emoji="+1"
        )
        test_post.is_deleted = True
        db_session.commit()
        with pytest.raises(PostNotFoundException):
            ReactionService.toggle_reaction(db_session, test_user, test_post.id, like.id)

    def test_delete_removes_uses(
        self,
        db_session: Session,
        reaction_mod: db_models.User,
        test_user: db_models.User,
        test_post: db_models.Post,
    ):
        like = ReactionService.create_reaction(
            db_session, reaction_mod, "like", emoji="+1"
        )
        ReactionService.toggle_reaction(db_session, test_user, test_post.id, like.id)
        ReactionService.delete_reaction(db_session, reaction_mod, like.id)

        assert db_session.query(db_models.PostReaction).count() == 0
        assert ReactionService.get_all_reactions(db_session) == []

    def test_create_and_delete_are_audited(
        self, db_session: Session, reaction_mod: db_models.User
    ):
        like = ReactionService.create_reaction(
            db_session, reaction_mod, "like", emoji="+1"
        )
        reaction_id = like.id
        ReactionService.delete_reaction(db_session, reaction_mod, reaction_id)

        audit = ReactionService.get_audit(db_session)
        assert [(a.entity, a.action) for a in audit] == [
            (CatalogEntity.REACTION, TagAuditAction.DELETE),
            (CatalogEntity.REACTION, TagAuditAction.CREATE),
        ]
        assert audit[0].entity_id == reaction_id
        assert audit[0].old_name == "like"
        assert audit[0].changed_by == reaction_mod.id

    def test_refused_delete_writes_no_audit(
        self, db_session: Session, reaction_mod: db_models.User, tag_mod: db_models.User
    ):
        like = ReactionService.create_reaction(
            db_session, reaction_mod, "like", emoji="+1"
        )
        with pytest.raises(InsufficientPermissionsException):
            ReactionService.delete_reaction(db_session, tag_mod, like.id)
        assert len(ReactionService.get_audit(db_session)) == 1


class TestBadgeService:
    def test_assign_is_idempotent(
        self,
        db_session: Session,
        tag_mod: db_models.User,
        test_user: db_models.User,
    ):
        badge = BadgeService.create_badge(db_session, tag_mod, "Helper")
        BadgeService.assign_to_self(db_session, test_user, badge.id)
        BadgeService.assign_to_self(db_session, test_user, badge.id)

        assert [b.name for b in BadgeService.get_user_badges(db_session, test_user.id)] == [
            "Helper"
        ]

    def test_hidden_badges_visible_to_owner_only(
        self,
        db_session: Session,
        tag_mod: db_models.User,
        test_user: db_models.User,
        other_user: db_models.User,
    ):
        badge = BadgeService.create_badge(db_session, tag_mod, "Helper")
        BadgeService.assign_to_self(db_session, test_user, badge.id)
        test_user.hide_badges = True
        db_session.commit()

        assert BadgeService.get_user_badges(db_session, test_user.id, other_user) == []
        assert BadgeService.get_user_badges(db_session, test_user.id, None) == []
        assert len(BadgeService.get_user_badges(db_session, test_user.id, test_user)) == 1

    def test_remove(
        self,
        db_session: Session,
        tag_mod: db_models.User,
        test_user: db_models.User,
    ):
        badge = BadgeService.create_badge(db_session, tag_mod, "Helper")
        BadgeService.assign_to_self(db_session, test_user, badge.id)
        BadgeService.remove_from_self(db_session, test_user, badge.id)
        assert BadgeService.get_user_badges(db_session, test_user.id) == []

    def test_unknown_badge(self, db_session: Session, test_user: db_models.User):
        with pytest.raises(BadgeNotFoundException):
            BadgeService.assign_to_self(db_session, test_user, 12)

    def test_delete_is_audited_and_unassigns(
        self,
        db_session: Session,
        tag_mod: db_models.User,
        test_user: db_models.User,
    ):
        badge = BadgeService.create_badge(db_session, tag_mod, "Helper")
        badge_id = badge.id
        BadgeService.assign_to_self(db_session, test_user, badge_id)

        BadgeService.delete_badge(db_session, tag_mod, badge_id)

        assert BadgeService.get_all_badges(db_session) == []
        assert db_session.query(db_models.UserBadge).count() == 0
        audit = ReactionService.get_audit(db_session)
        assert [(a.entity, a.action, a.entity_id) for a in audit] == [
            (CatalogEntity.BADGE, TagAuditAction.DELETE, badge_id),
            (CatalogEntity.BADGE, TagAuditAction.CREATE, badge_id),
        ]

    def test_delete_requires_capability(
        self, db_session: Session, tag_mod: db_models.User, test_user: db_models.User
    ):
        badge = BadgeService.create_badge(db_session, tag_mod, "Helper")
        with pytest.raises(InsufficientPermissionsException):
            BadgeService.delete_badge(db_session, test_user, badge.id)

    def test_delete_unknown_badge(self, db_session: Session, tag_mod: db_models.User):
        with pytest.raises(BadgeNotFoundException):
            BadgeService.delete_badge(db_session, tag_mod, 404)
