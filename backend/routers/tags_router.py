"""
Tags router for tag-related endpoints.
"""

from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import repositories.db_models as db_models
import models.schemas as schemas
import authentication.auth as auth
from repositories.database import get_db
from services.tag_service import TagService

router = APIRouter(prefix="/tags", tags=["tags"])


@router.get("", response_model=List[schemas.TagResponse])
def get_all_tags(db: Session = Depends(get_db)):
    """
    Get all tags.
    Public endpoint - no authentication required.
    """
    return TagService.get_all_tags(db)


@router.get("/{tag_id}", response_model=schemas.TagResponse)
def get_tag(tag_id: int, db: Session = Depends(get_db)):
    return TagService.get_tag_by_id(db, tag_id)


@router.post("", response_model=schemas.TagResponse, status_code=201)
def create_tag(
    tag: schemas.TagCreate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_unbanned_user),
):
    """
    Create a tag. Requires can_manage_tags; the change is audited.

    Domain exceptions are caught by centralized exception handlers.
    """
    return TagService.create_tag(db, current_user, tag.name, tag.color)


@router.patch("/{tag_id}", response_model=schemas.TagResponse)
def update_tag(
    tag_id: int,
    tag: schemas.TagUpdate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_unbanned_user),
):
    return TagService.update_tag(db, current_user, tag_id, tag.name, tag.color)


@router.delete("/{tag_id}", response_model=schemas.MessageAck)
def delete_tag(
    tag_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_unbanned_user),
):
    TagService.delete_tag(db, current_user, tag_id)
    return schemas.MessageAck(message="Tag deleted")
