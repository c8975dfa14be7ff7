"""
Unit tests for WikiService: visibility, slugs, history and rollback.
"""

import pytest
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from models.exceptions import (
    ContentValidationException,
    InsufficientPermissionsException,
    NotFoundException,
    SlugConflictException,
    WikiArticleNotFoundException,
)
from repositories.db_models import Role, WikiStatus
from services.wiki_service import WikiService

BLOCKS = [{"type": "paragraph", "text": "Read the rules"}]


@pytest.fixture
def wiki_mod(user_factory) -> db_models.User:
    return user_factory("wikimod", role=Role.MODERATOR, can_edit_wiki=True)


@pytest.fixture
def article(db_session: Session, wiki_mod: db_models.User) -> db_models.WikiArticle:
    return WikiService.create_article(
        db_session,
        wiki_mod,
        schemas.WikiArticleCreate(
            title="Forum Rules", content=BLOCKS, status="published", category="Help"
        ),
    )


class TestCreate:
    def test_slug_from_title(self, article: db_models.WikiArticle):
        assert article.slug == "forum-rules"
        assert article.content == BLOCKS
        assert article.status == WikiStatus.PUBLISHED

    def test_json_string_content(
        self, db_session: Session, wiki_mod: db_models.User
    ):
        created = WikiService.create_article(
            db_session,
            wiki_mod,
            schemas.WikiArticleCreate(title="From JSON", content='[{"type": "hr"}]'),
        )
        assert created.content == [{"type": "hr"}]
        assert created.status == WikiStatus.DRAFT

    @pytest.mark.parametrize("content", [None, "not json", {"type": "hr"}])
    def test_bad_content(
        self, db_session: Session, wiki_mod: db_models.User, content
    ):
        with pytest.raises(ContentValidationException):
            WikiService.create_article(
                db_session,
                wiki_mod,
                schemas.WikiArticleCreate(title="Broken", content=content),
            )

    def test_slug_conflict_suggests_next(
        self,
        db_session: Session,
        wiki_mod: db_models.User,
        article: db_models.WikiArticle,
    ):
        with pytest.raises(SlugConflictException) as exc_info:
            WikiService.create_article(
                db_session,
                wiki_mod,
                schemas.WikiArticleCreate(title="Forum rules", content=BLOCKS),
            )
        assert exc_info.value.suggested_slug == "forum-rules-2"

    def test_plain_user_denied(self, db_session: Session, test_user: db_models.User):
        with pytest.raises(InsufficientPermissionsException):
            WikiService.create_article(
                db_session,
                test_user,
                schemas.WikiArticleCreate(title="Mine", content=BLOCKS),
            )


class TestVisibility:
    @pytest.fixture
    def draft(self, db_session: Session, wiki_mod: db_models.User):
        return WikiService.create_article(
            db_session,
            wiki_mod,
            schemas.WikiArticleCreate(title="Secret Plans", content=BLOCKS),
        )

    def test_draft_hidden_from_public(self, db_session: Session, draft, other_user):
        with pytest.raises(WikiArticleNotFoundException):
            WikiService.get_by_slug(db_session, draft.slug)
        with pytest.raises(WikiArticleNotFoundException):
            WikiService.get_by_slug(db_session, draft.slug, other_user)

    def test_draft_hidden_from_moderator_without_capability(
        self, db_session: Session, draft, moderator_user
    ):
        with pytest.raises(WikiArticleNotFoundException):
            WikiService.get_by_slug(db_session, draft.slug, moderator_user)
        with pytest.raises(InsufficientPermissionsException):
            WikiService.list_drafts(db_session, moderator_user)

    def test_draft_visible_with_capability(
        self, db_session: Session, draft, wiki_mod, admin_user
    ):
        assert WikiService.get_by_slug(db_session, draft.slug, wiki_mod).id == draft.id
        assert [a.id for a in WikiService.list_drafts(db_session, admin_user)] == [
            draft.id
        ]

    def test_published_listing(self, db_session: Session, draft, article):
        assert [a.id for a in WikiService.list_published(db_session)] == [article.id]
        assert WikiService.list_categories(db_session) == ["Help"]


class TestHistory:
    def test_update_snapshots_previous_state(
        self,
        db_session: Session,
        wiki_mod: db_models.User,
        article: db_models.WikiArticle,
    ):
        WikiService.update_article(
            db_session,
            wiki_mod,
            article.id,
            schemas.WikiArticleUpdate(title="Community Rules"),
        )

        history = WikiService.get_history(db_session, wiki_mod, article.id)
        assert len(history) == 1
        assert history[0].title == "Forum Rules"
        assert history[0].status == WikiStatus.PUBLISHED
        assert article.title == "Community Rules"
        assert article.slug == "community-rules"

    def test_rollback_restores_without_new_history(
        self,
        db_session: Session,
        wiki_mod: db_models.User,
        moderator_user: db_models.User,
        article: db_models.WikiArticle,
    ):
        WikiService.update_article(
            db_session,
            wiki_mod,
            article.id,
            schemas.WikiArticleUpdate(content=[{"type": "hr"}], status="draft"),
        )
        snapshot = WikiService.get_history(db_session, wiki_mod, article.id)[0]

        restored = WikiService.rollback(
            db_session, moderator_user, article.id, snapshot.id
        )

        assert restored.content == BLOCKS
        assert restored.status == WikiStatus.PUBLISHED
        assert restored.updated_by == moderator_user.id
        assert len(WikiService.get_history(db_session, wiki_mod, article.id)) == 1

    def test_rollback_foreign_snapshot(
        self,
        db_session: Session,
        wiki_mod: db_models.User,
        article: db_models.WikiArticle,
    ):
        with pytest.raises(NotFoundException):
            WikiService.rollback(db_session, wiki_mod, article.id, 999)

    def test_archive(
        self,
        db_session: Session,
        wiki_mod: db_models.User,
        article: db_models.WikiArticle,
    ):
        WikiService.archive_article(db_session, wiki_mod, article.id)
        assert article.status == WikiStatus.ARCHIVED
        with pytest.raises(WikiArticleNotFoundException):
            WikiService.get_by_slug(db_session, article.slug)
