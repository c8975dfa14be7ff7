"""
Authentication Service

Handles registration, login and token issuance.
"""

from datetime import timedelta

from loguru import logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from authentication.auth import (
    authenticate_user,
    create_access_token,
    get_password_hash,
)
from helpers.password_validation import (
    is_valid_email,
    is_valid_username,
    validate_password_complexity,
)
from models.config import settings
from models.exceptions import (
    InvalidCredentialsException,
    StorageException,
    UserAlreadyExistsException,
    ValidationException,
)
from repositories.db_models import Role
from repositories.user_repository import UserRepository
from services.moderation_service import ModerationService


class AuthService:
    """Service for authentication business logic."""

    @staticmethod
    def issue_token(user: db_models.User) -> schemas.Token:
        access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        access_token = create_access_token(
            data={"sub": str(user.email)}, expires_delta=access_token_expires
        )
        # nosec B106: "bearer" is OAuth2 token type, not a password
        return schemas.Token(
            access_token=access_token,
            token_type="bearer",  # nosec B106
            user=schemas.UserMe.model_validate(user),
        )

    @staticmethod
    def register(db: Session, user_data: schemas.UserCreate) -> db_models.User:
        """
        Register a new user with the plain user role.

        Args:
            db: Database session
            user_data: Username, email and password

        Returns:
            Created user

        Raises:
            ValidationException: Invalid username, email or password
            UserAlreadyExistsException: Username or email already taken
        """
        username = user_data.username.strip()
        email = str(user_data.email).strip().lower()

        if not is_valid_username(username):
            raise ValidationException("Invalid username")
        if not is_valid_email(email):
            raise ValidationException("Invalid email")
        is_valid, errors = validate_password_complexity(user_data.password)
        if not is_valid:
            raise ValidationException("Invalid password")

        repo = UserRepository(db)
        if repo.username_exists(username) or repo.email_exists(email):
            raise UserAlreadyExistsException("Username or email already exists")

        user = db_models.User(
            username=username,
            email=email,
            hashed_password=get_password_hash(user_data.password),
            role=Role.USER,
        )
        try:
            repo.create(user)
        except IntegrityError:
            repo.rollback()
            raise UserAlreadyExistsException("Username or email already exists")
        except SQLAlchemyError as e:
            repo.rollback()
            logger.error(f"Failed to register user '{username}': {e}")
            raise StorageException()

        logger.info(f"User {user.id} registered as '{user.username}'")
        return user

    @staticmethod
    def login(db: Session, username_or_email: str, password: str) -> schemas.Token:
        """
        Authenticate a user and create an access token.

        Banned users can log in; the ban is enforced on state-changing
        requests. An expired ban is cleared here.

        Raises:
            InvalidCredentialsException: If identifier or password is incorrect
        """
        user = authenticate_user(db, username_or_email, password)
        if user is None:
            raise InvalidCredentialsException("Invalid credentials")

        ModerationService.refresh_ban_state(db, user)
        return AuthService.issue_token(user)
