from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from repositories.database import get_db
from services import CategoryService

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=List[schemas.CategoryResponse])
def get_categories(
    db: Session = Depends(get_db),
):
    """
    Get all categories.

    Categories are few in number, so pagination is not needed.
    """
    return CategoryService.get_all_categories(db)


@router.get("/hub", response_model=List[schemas.CategoryHubItem])
def get_category_hub(db: Session = Depends(get_db)):
    """Categories with topic and post counts."""
    return CategoryService.get_hub(db)


@router.get("/{category_id}", response_model=schemas.CategoryResponse)
def get_category(category_id: int, db: Session = Depends(get_db)):
    """Get a specific category by ID."""
    return CategoryService.get_category_by_id(db, category_id)


@router.post("", response_model=schemas.CategoryResponse, status_code=201)
def create_category(
    category: schemas.CategoryCreate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_unbanned_user),
):
    return CategoryService.create_category(db, current_user, category)


@router.patch("/{category_id}", response_model=schemas.CategoryResponse)
def update_category(
    category_id: int,
    category: schemas.CategoryUpdate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_unbanned_user),
):
    return CategoryService.update_category(db, current_user, category_id, category)


@router.delete("/{category_id}", response_model=schemas.MessageAck)
def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_unbanned_user),
):
    """Delete a category; its topics are kept without a category."""
    CategoryService.delete_category(db, current_user, category_id)
    return schemas.MessageAck(message="Category deleted")
