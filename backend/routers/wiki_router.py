"""
Wiki router: published articles for everyone, drafts and history for editors.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import PaginationLimit, PaginationSkip
from repositories.database import get_db
from services.wiki_service import RECENT_CHANGES_DEFAULT, RECENT_CHANGES_MAX, WikiService

router = APIRouter(prefix="/wiki", tags=["wiki"])


@router.get("", response_model=List[schemas.WikiArticleSummary])
def list_articles(
    category: Optional[str] = Query(None, max_length=50),
    skip: PaginationSkip = 0,
    limit: PaginationLimit = 50,
    db: Session = Depends(get_db),
) -> List[db_models.WikiArticle]:
    """Published articles, most recently updated first."""
    return WikiService.list_published(db, category=category, skip=skip, limit=limit)


@router.get("/categories", response_model=List[str])
def list_categories(db: Session = Depends(get_db)) -> List[str]:
    return WikiService.list_categories(db)


@router.get("/recent", response_model=List[schemas.WikiArticleSummary])
def recent_changes(
    limit: int = Query(RECENT_CHANGES_DEFAULT, ge=1, le=RECENT_CHANGES_MAX),
    db: Session = Depends(get_db),
) -> List[db_models.WikiArticle]:
    return WikiService.recent_changes(db, limit)


@router.get("/drafts", response_model=List[schemas.WikiArticleSummary])
def list_drafts(
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> List[db_models.WikiArticle]:
    """Drafts, for holders of can_edit_wiki."""
    return WikiService.list_drafts(db, current_user)


@router.get("/articles/{slug}", response_model=schemas.WikiArticleResponse)
def get_article(
    slug: str,
    db: Session = Depends(get_db),
    current_user: Optional[db_models.User] = Depends(auth.get_current_user_optional),
) -> db_models.WikiArticle:
    """
    Get an article by slug.

    Unpublished articles answer 404 unless the viewer holds can_edit_wiki.
    """
    return WikiService.get_by_slug(db, slug, current_user)


@router.post("/articles", response_model=schemas.WikiArticleResponse, status_code=201)
def create_article(
    article: schemas.WikiArticleCreate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_unbanned_user),
) -> db_models.WikiArticle:
    return WikiService.create_article(db, current_user, article)


@router.patch("/articles/{article_id}", response_model=schemas.WikiArticleResponse)
def update_article(
    article_id: int,
    article: schemas.WikiArticleUpdate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_unbanned_user),
) -> db_models.WikiArticle:
    """Update an article; the previous version is kept in its history."""
    return WikiService.update_article(db, current_user, article_id, article)


@router.delete("/articles/{article_id}", response_model=schemas.MessageAck)
def archive_article(
    article_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_unbanned_user),
) -> schemas.MessageAck:
    WikiService.archive_article(db, current_user, article_id)
    return schemas.MessageAck(message="Article archived")


@router.get(
    "/articles/{article_id}/history", response_model=List[schemas.WikiHistoryResponse]
)
def get_history(
    article_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> List[db_models.WikiArticleHistory]:
    return WikiService.get_history(db, current_user, article_id)


@router.post(
    "/articles/{article_id}/rollback/{history_id}",
    response_model=schemas.WikiArticleResponse,
)
def rollback_article(
    article_id: int,
    history_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_unbanned_user),
) -> db_models.WikiArticle:
    """Restore an article to one of its history entries."""
    return WikiService.rollback(db, current_user, article_id, history_id)
