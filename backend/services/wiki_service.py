"""
Wiki articles with block-structured content and revision history.

Writes are open to admins and moderators. Unpublished articles are visible
only to holders of the can_edit_wiki capability. Each update snapshots the
previous state into history first; rollback re-applies a snapshot without
recording a new one.
"""

import json
from typing import Any, List, Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from helpers.sanitization import clean_text, sanitize_url, within_length
from helpers.text_utils import slugify
from helpers.time_utils import utc_now
from models.exceptions import (
    ConflictException,
    ContentValidationException,
    NotFoundException,
    SlugConflictException,
    StorageException,
    ValidationException,
    WikiArticleNotFoundException,
)
from repositories.db_models import WikiStatus
from repositories.wiki_repository import WikiRepository
from services.authorization_service import AuthorizationService

TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 120
SUMMARY_MAX_LENGTH = 300
COVER_MAX_LENGTH = 500
RECENT_CHANGES_DEFAULT = 15
RECENT_CHANGES_MAX = 100

_SNAPSHOT_FIELDS = ("title", "summary", "content", "category", "cover_image_url", "status")


class WikiService:
    """Service for wiki articles."""

    # Validation helpers

    @staticmethod
    def normalize_content(content: Any) -> List[Any]:
        """
        Accept a list of blocks, or a JSON string encoding one.

        Raises:
            ContentValidationException: If content is not a block list
        """
        if isinstance(content, str):
            try:
                content = json.loads(content)
            except ValueError:
                raise ContentValidationException("Invalid content JSON")
        if not isinstance(content, list):
            raise ContentValidationException("Invalid content JSON")
        return content

    @staticmethod
    def parse_status(status: str) -> WikiStatus:
        try:
            return WikiStatus(status)
        except ValueError:
            raise ValidationException("Invalid status")

    @staticmethod
    def _clean_title(title: Optional[str]) -> str:
        if not within_length(title, TITLE_MIN_LENGTH, TITLE_MAX_LENGTH):
            raise ContentValidationException("Title length is invalid")
        cleaned = clean_text(title)
        if not cleaned:
            raise ContentValidationException("Title has no text")
        return cleaned

    @staticmethod
    def _clean_summary(summary: Optional[str]) -> Optional[str]:
        if not within_length(summary, 0, SUMMARY_MAX_LENGTH):
            raise ContentValidationException("Summary too long")
        return clean_text(summary) or None

    @staticmethod
    def _clean_cover(url: Optional[str]) -> Optional[str]:
        if url and len(url) > COVER_MAX_LENGTH:
            raise ContentValidationException("Cover image URL too long")
        return sanitize_url(url) or None

    @staticmethod
    def suggest_slug(repo: WikiRepository, base_slug: str, exclude_id: Optional[int] = None) -> str:
        """First free slug among base, base-2, base-3, ..."""
        candidate = base_slug
        suffix = 2
        while repo.slug_exists(candidate, exclude_id):
            candidate = f"{base_slug}-{suffix}"
            suffix += 1
        return candidate

    @staticmethod
    def _resolve_slug(
        repo: WikiRepository,
        title: str,
        slug_override: Optional[str],
        exclude_id: Optional[int] = None,
    ) -> str:
        base_slug = slugify(title)
        requested = slugify(slug_override) if slug_override else base_slug
        if not requested:
            raise ValidationException("Invalid title")
        if repo.slug_exists(requested, exclude_id):
            raise SlugConflictException(
                requested, WikiService.suggest_slug(repo, requested, exclude_id)
            )
        return requested

    @staticmethod
    def _commit(repo: WikiRepository, action: str) -> None:
        try:
            repo.commit()
        except IntegrityError:
            repo.rollback()
            raise ConflictException("Slug already exists")
        except SQLAlchemyError as e:
            repo.rollback()
            logger.error(f"Failed to {action} wiki article: {e}")
            raise StorageException()

    # Reads

    @staticmethod
    def list_published(
        db: Session, category: Optional[str] = None, skip: int = 0, limit: int = 50
    ) -> List[db_models.WikiArticle]:
        return WikiRepository(db).list_by_status(
            WikiStatus.PUBLISHED, category=category, skip=skip, limit=limit
        )

    @staticmethod
    def list_drafts(db: Session, caller: db_models.User) -> List[db_models.WikiArticle]:
        """
        Raises:
            InsufficientPermissionsException: Without can_edit_wiki
        """
        AuthorizationService.ensure_can_view_wiki_drafts(db, caller)
        return WikiRepository(db).list_by_status(WikiStatus.DRAFT, limit=200)

    @staticmethod
    def list_categories(db: Session) -> List[str]:
        return WikiRepository(db).list_categories()

    @staticmethod
    def recent_changes(db: Session, limit: int = RECENT_CHANGES_DEFAULT) -> List[db_models.WikiArticle]:
        limit = max(1, min(limit, RECENT_CHANGES_MAX))
        return WikiRepository(db).list_recent_changes(limit)

    @staticmethod
    def get_by_slug(
        db: Session, slug: str, viewer: Optional[db_models.User] = None
    ) -> db_models.WikiArticle:
        """
        Get an article by slug.

        Unpublished articles look missing to viewers without can_edit_wiki.

        Raises:
            WikiArticleNotFoundException: If not found or not visible
        """
        article = WikiRepository(db).get_by_slug(slug)
        if article is None:
            raise WikiArticleNotFoundException()
        if article.status != WikiStatus.PUBLISHED and not AuthorizationService.can_view_wiki_drafts(
            db, viewer
        ):
            raise WikiArticleNotFoundException()
        return article

    @staticmethod
    def _get_article(db: Session, article_id: int) -> db_models.WikiArticle:
        article = WikiRepository(db).get_by_id(article_id)
        if article is None:
            raise WikiArticleNotFoundException()
        return article

    # Writes

    @staticmethod
    def create_article(
        db: Session, caller: db_models.User, data: schemas.WikiArticleCreate
    ) -> db_models.WikiArticle:
        """
        Create an article.

        Args:
            db: Database session
            caller: Admin or moderator
            data: Article fields; slug defaults to one derived from the title

        Returns:
            Created article

        Raises:
            InsufficientPermissionsException: If caller is not admin or moderator
            ContentValidationException: Bad title, summary, cover or content
            ValidationException: Bad status or a title without slug characters
            SlugConflictException: Slug already used (carries a suggestion)
        """
        AuthorizationService.ensure_can_edit_wiki(caller)
        if data.content is None:
            raise ContentValidationException("Missing title/content")
        title = WikiService._clean_title(data.title)
        summary = WikiService._clean_summary(data.summary)
        cover = WikiService._clean_cover(data.cover_image_url)
        status = WikiService.parse_status(data.status)
        content = WikiService.normalize_content(data.content)

        repo = WikiRepository(db)
        slug = WikiService._resolve_slug(repo, title, data.slug)

        article = db_models.WikiArticle(
            title=title,
            slug=slug,
            summary=summary,
            content=content,
            category=clean_text(data.category) or None,
            cover_image_url=cover,
            status=status,
            author_id=caller.id,
            updated_by=caller.id,
        )
        repo.add(article)
        WikiService._commit(repo, "create")
        repo.refresh(article)
        logger.info(f"Wiki article {article.id} '{article.slug}' created by user {caller.id}")
        return article

    @staticmethod
    def _snapshot(article: db_models.WikiArticle, editor_id: int) -> db_models.WikiArticleHistory:
        return db_models.WikiArticleHistory(
            article_id=article.id,
            title=article.title,
            summary=article.summary,
            content=list(article.content or []),
            category=article.category,
            cover_image_url=article.cover_image_url,
            status=article.status,
            edited_by=editor_id,
        )

    @staticmethod
    def update_article(
        db: Session,
        caller: db_models.User,
        article_id: int,
        data: schemas.WikiArticleUpdate,
    ) -> db_models.WikiArticle:
        """
        Update an article after snapshotting its current state.

        The snapshot and the change are committed together. Changing the
        title regenerates the slug unless one is given explicitly.

        Raises:
            InsufficientPermissionsException: If caller is not admin or moderator
            WikiArticleNotFoundException: If article not found
            ContentValidationException: Bad field values
            SlugConflictException: New slug already used
        """
        AuthorizationService.ensure_can_edit_wiki(caller)
        article = WikiService._get_article(db, article_id)
        repo = WikiRepository(db)

        fields = data.model_dump(exclude_unset=True)
        title = WikiService._clean_title(fields["title"]) if fields.get("title") else None
        summary = (
            WikiService._clean_summary(fields["summary"]) if "summary" in fields else None
        )
        cover = (
            WikiService._clean_cover(fields["cover_image_url"])
            if "cover_image_url" in fields
            else None
        )
        status = WikiService.parse_status(fields["status"]) if fields.get("status") else None
        content = (
            WikiService.normalize_content(fields["content"])
            if fields.get("content") is not None
            else None
        )

        slug = article.slug
        if title or fields.get("slug"):
            slug = WikiService._resolve_slug(
                repo, title or article.title, fields.get("slug"), exclude_id=article.id
            )

        repo.add_history(WikiService._snapshot(article, caller.id))

        if title:
            article.title = title
        if "summary" in fields:
            article.summary = summary
        if "cover_image_url" in fields:
            article.cover_image_url = cover
        if "category" in fields:
            article.category = clean_text(fields["category"]) or None
        if status is not None:
            article.status = status
        if content is not None:
            article.content = content
        article.slug = slug
        article.updated_by = caller.id
        article.updated_at = utc_now()

        WikiService._commit(repo, "update")
        repo.refresh(article)
        logger.info(f"Wiki article {article.id} updated by user {caller.id}")
        return article

    @staticmethod
    def archive_article(db: Session, caller: db_models.User, article_id: int) -> None:
        """
        Delete means archive; the row and its history stay.

        Raises:
            InsufficientPermissionsException: If caller is not admin or moderator
            WikiArticleNotFoundException: If article not found
        """
        AuthorizationService.ensure_can_edit_wiki(caller)
        article = WikiService._get_article(db, article_id)
        repo = WikiRepository(db)
        article.status = WikiStatus.ARCHIVED
        article.updated_by = caller.id
        article.updated_at = utc_now()
        WikiService._commit(repo, "archive")
        logger.info(f"Wiki article {article.id} archived by user {caller.id}")

    @staticmethod
    def get_history(
        db: Session, caller: db_models.User, article_id: int
    ) -> List[db_models.WikiArticleHistory]:
        AuthorizationService.ensure_can_edit_wiki(caller)
        WikiService._get_article(db, article_id)
        return WikiRepository(db).get_history(article_id)

    @staticmethod
    def rollback(
        db: Session, caller: db_models.User, article_id: int, history_id: int
    ) -> db_models.WikiArticle:
        """
        Restore an article to a history snapshot.

        No history row is written for the rollback itself.

        Raises:
            InsufficientPermissionsException: If caller is not admin or moderator
            WikiArticleNotFoundException: If article not found
            NotFoundException: If the snapshot does not belong to the article
        """
        AuthorizationService.ensure_can_edit_wiki(caller)
        article = WikiService._get_article(db, article_id)
        repo = WikiRepository(db)
        entry = repo.get_history_entry(article.id, history_id)
        if entry is None:
            raise NotFoundException("History not found")

        for field in _SNAPSHOT_FIELDS:
            setattr(article, field, getattr(entry, field))
        article.content = list(entry.content or [])
        article.updated_by = caller.id
        article.updated_at = utc_now()

        WikiService._commit(repo, "roll back")
        repo.refresh(article)
        logger.info(
            f"Wiki article {article.id} rolled back to history {history_id} by user {caller.id}"
        )
        return article
