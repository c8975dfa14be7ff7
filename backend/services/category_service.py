"""
Category service for business logic.
"""

from typing import List, Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from helpers.sanitization import clean_text, within_length
from helpers.text_utils import slugify
from models.exceptions import (
    CategoryNotFoundException,
    DuplicateNameException,
    StorageException,
    ValidationException,
)
from repositories.category_repository import CategoryRepository
from services.authorization_service import AuthorizationService

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50
DESCRIPTION_MAX_LENGTH = 200
SORT_ORDER_MAX = 999


class CategoryService:
    """Service for category-related business logic."""

    @staticmethod
    def get_all_categories(db: Session) -> List[db_models.Category]:
        """
        Get all categories in display order.

        Args:
            db: Database session

        Returns:
            List of categories
        """
        return CategoryRepository(db).list_ordered()

    @staticmethod
    def get_hub(db: Session) -> List[schemas.CategoryHubItem]:
        """Categories with topic and post counts."""
        return [
            schemas.CategoryHubItem(
                id=category.id,
                name=category.name,
                slug=category.slug,
                description=category.description,
                sort_order=category.sort_order,
                topic_count=topic_count,
                post_count=post_count,
            )
            for category, topic_count, post_count in CategoryRepository(db).get_stats()
        ]

    @staticmethod
    def get_category_by_id(db: Session, category_id: int) -> db_models.Category:
        """
        Raises:
            CategoryNotFoundException: If category not found
        """
        category = CategoryRepository(db).get_by_id(category_id)
        if not category:
            raise CategoryNotFoundException()
        return category

    @staticmethod
    def _clean_name(name: Optional[str]) -> str:
        if not (name or "").strip():
            raise ValidationException("Missing name")
        if not within_length(name, NAME_MIN_LENGTH, NAME_MAX_LENGTH):
            raise ValidationException("Category name length is invalid")
        cleaned = clean_text(name)
        if not cleaned:
            raise ValidationException("Missing name")
        return cleaned

    @staticmethod
    def _clean_description(description: Optional[str]) -> str:
        if not within_length(description, 0, DESCRIPTION_MAX_LENGTH):
            raise ValidationException("Category description too long")
        return clean_text(description)

    @staticmethod
    def _check_sort_order(sort_order: int) -> int:
        if not (0 <= sort_order <= SORT_ORDER_MAX):
            raise ValidationException("Sort order is invalid")
        return sort_order

    @staticmethod
    def _slug_for(name: str) -> str:
        slug = slugify(name, max_length=60)
        if not slug:
            raise ValidationException("Category name must contain letters or digits")
        return slug

    @staticmethod
    def _ensure_unique(
        repo: CategoryRepository, name: str, slug: str, exclude_id: Optional[int] = None
    ) -> None:
        for existing in (repo.get_by_name(name), repo.get_by_slug(slug)):
            if existing is not None and existing.id != exclude_id:
                raise DuplicateNameException("Category already exists")

    @staticmethod
    def _commit(repo: CategoryRepository, action: str) -> None:
        try:
            repo.commit()
        except IntegrityError:
            repo.rollback()
            raise DuplicateNameException("Category already exists")
        except SQLAlchemyError as e:
            repo.rollback()
            logger.error(f"Failed to {action} category: {e}")
            raise StorageException()

    @staticmethod
    def create_category(
        db: Session,
        caller: db_models.User,
        category_data: schemas.CategoryCreate,
    ) -> db_models.Category:
        """
        Create a new category with a slug derived from its name.

        Args:
            db: Database session
            caller: Acting user, needs can_manage_tags
            category_data: Category creation data

        Returns:
            Created category

        Raises:
            InsufficientPermissionsException: Without can_manage_tags
            ValidationException: Bad name, description or sort order
            DuplicateNameException: Name or slug already used
        """
        AuthorizationService.ensure_can_manage_categories(db, caller)
        name = CategoryService._clean_name(category_data.name)
        description = CategoryService._clean_description(category_data.description)
        sort_order = CategoryService._check_sort_order(category_data.sort_order)
        slug = CategoryService._slug_for(name)

        repo = CategoryRepository(db)
        CategoryService._ensure_unique(repo, name, slug)

        category = db_models.Category(
            name=name, slug=slug, description=description, sort_order=sort_order
        )
        repo.add(category)
        CategoryService._commit(repo, "create")
        repo.refresh(category)
        logger.info(f"Category {category.id} '{category.slug}' created by user {caller.id}")
        return category

    @staticmethod
    def update_category(
        db: Session,
        caller: db_models.User,
        category_id: int,
        category_data: schemas.CategoryUpdate,
    ) -> db_models.Category:
        """
        Update a category. A new name also regenerates the slug.

        Raises:
            InsufficientPermissionsException: Without can_manage_tags
            CategoryNotFoundException: If category not found
            ValidationException: Bad name, description or sort order
            DuplicateNameException: Name or slug already used
        """
        AuthorizationService.ensure_can_manage_categories(db, caller)
        category = CategoryService.get_category_by_id(db, category_id)
        repo = CategoryRepository(db)

        if category_data.name is not None:
            name = CategoryService._clean_name(category_data.name)
            slug = CategoryService._slug_for(name)
            CategoryService._ensure_unique(repo, name, slug, exclude_id=category.id)
            category.name = name
            category.slug = slug
        if category_data.description is not None:
            category.description = CategoryService._clean_description(
                category_data.description
            )
        if category_data.sort_order is not None:
            category.sort_order = CategoryService._check_sort_order(
                category_data.sort_order
            )

        CategoryService._commit(repo, "update")
        repo.refresh(category)
        return category

    @staticmethod
    def delete_category(db: Session, caller: db_models.User, category_id: int) -> None:
        """
        Delete a category. Its topics stay, without a category.

        Raises:
            InsufficientPermissionsException: Without can_manage_tags
            CategoryNotFoundException: If category not found
        """
        AuthorizationService.ensure_can_manage_categories(db, caller)
        category = CategoryService.get_category_by_id(db, category_id)
        repo = CategoryRepository(db)
        repo.remove(category)
        CategoryService._commit(repo, "delete")
        logger.info(f"Category {category_id} deleted by user {caller.id}")
