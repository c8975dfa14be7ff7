"""
Admin endpoints: user listing, role changes and moderator grants.
"""

from typing import Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import PaginationLimitLarge, PaginationSkip
from repositories.database import get_db
from services import PermissionService, UserService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/users", response_model=List[schemas.AdminUserItem])
def list_users(
    skip: PaginationSkip = 0,
    limit: PaginationLimitLarge = 100,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_admin_user),
) -> List[schemas.AdminUserItem]:
    """List users with their moderator grants."""
    return UserService.list_users_for_admin(db, skip=skip, limit=limit)


@router.get("/users/search", response_model=List[schemas.AdminUserItem])
def search_users(
    q: Optional[str] = Query(None, max_length=100),
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_admin_user),
) -> List[schemas.AdminUserItem]:
    """Search by username, nickname, email or exact id."""
    return UserService.search_users_for_admin(db, q)


@router.patch("/users/{user_id}/role", response_model=schemas.AdminUserItem)
def set_user_role(
    user_id: int,
    role_update: schemas.RoleUpdate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_admin_user),
) -> schemas.AdminUserItem:
    """
    Change a user's role.

    Leaving the moderator role drops the capability grant; entering it
    creates an empty grant.
    """
    user = PermissionService.set_role(db, current_user, user_id, role_update.role)
    return UserService.to_admin_item(db, user)


@router.patch("/users/{user_id}/permissions", response_model=schemas.PermissionSet)
def set_user_permissions(
    user_id: int,
    permissions: Dict[str, bool] = Body(...),
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_admin_user),
) -> db_models.ModeratorPermission:
    """
    Overwrite a user's capability grant.

    Omitted capabilities are stored as false; unknown names are rejected.
    A plain user becomes a moderator.
    """
    return PermissionService.set_permissions(
        db, current_user, user_id, permissions
    )
