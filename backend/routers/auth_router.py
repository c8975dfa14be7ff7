"""Authentication router endpoints."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.rate_limiter import limiter
from models.config import settings
from repositories.database import get_db
from services import UserService
from services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=schemas.Token, status_code=201)
@limiter.limit(settings.REGISTER_RATE_LIMIT)
def register(
    request: Request, user: schemas.UserCreate, db: Session = Depends(get_db)
) -> schemas.Token:
    """
    Register a new user and log them in.

    Domain exceptions are caught by centralized exception handlers.
    """
    created = AuthService.register(db, user)
    return AuthService.issue_token(created)


@router.post("/login", response_model=schemas.Token)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
def login(
    request: Request,
    credentials: schemas.UserLogin,
    db: Session = Depends(get_db),
) -> schemas.Token:
    """Login with username or email."""
    return AuthService.login(db, credentials.username_or_email, credentials.password)


@router.get("/me", response_model=schemas.UserMe)
async def read_users_me(
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> db_models.User:
    """Get current user."""
    return current_user


@router.post("/change-password", response_model=schemas.MessageAck)
def change_password(
    password_change: schemas.PasswordChange,
    current_user: db_models.User = Depends(auth.get_unbanned_user),
    db: Session = Depends(get_db),
) -> schemas.MessageAck:
    UserService.change_password(
        db,
        current_user,
        password_change.current_password,
        password_change.new_password,
    )
    return schemas.MessageAck(message="Password changed")
