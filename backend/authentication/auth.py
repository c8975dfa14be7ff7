from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import bcrypt
from fastapi import Depends
from fastapi.security import (
    HTTPAuthorizationCredentials,
    HTTPBearer,
    OAuth2PasswordBearer,
)
import jwt
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from models.config import settings
from models.exceptions import (
    AuthenticationException,
    InsufficientPermissionsException,
    UserBannedException,
)
from repositories.database import get_db
from repositories.db_models import Capability, Role
from repositories.user_repository import UserRepository

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login", auto_error=False)
optional_oauth2_scheme = HTTPBearer(auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode(), hashed_password.encode())
    except ValueError:
        # Over-long input or malformed hash
        return False


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=15)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(
        to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM
    )
    return encoded_jwt


def authenticate_user(
    db: Session, username_or_email: str, password: str
) -> db_models.User | None:
    user = UserRepository(db).get_by_username_or_email(username_or_email)
    if not user:
        return None
    if not verify_password(password, str(user.hashed_password)):
        return None
    return user


def _user_from_token(db: Session, token: str) -> Optional[db_models.User]:
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    email_value = payload.get("sub")
    if email_value is None:
        return None
    token_data = schemas.TokenData(email=str(email_value))
    return UserRepository(db).get_by_email(token_data.email or "")


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme), db: Session = Depends(get_db)
) -> db_models.User:
    """
    Get the current authenticated user from the JWT token.

    Raises:
        AuthenticationException: If the token is missing, invalid or names
            an unknown user.
    """
    if not token:
        raise AuthenticationException("Not authenticated")
    try:
        user = _user_from_token(db, token)
    except jwt.exceptions.InvalidTokenError:
        raise AuthenticationException("Could not validate credentials")
    if user is None:
        raise AuthenticationException("Could not validate credentials")
    return user


async def get_current_active_user(
    current_user: db_models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> db_models.User:
    """
    Get the current user after lazy ban expiry.

    A temporary ban whose end has passed is cleared here, before any route
    logic sees the user.
    """
    # Inline import to avoid circular deps
    from services.moderation_service import ModerationService

    ModerationService.refresh_ban_state(db, current_user)
    return current_user


async def get_unbanned_user(
    current_user: db_models.User = Depends(get_current_active_user),
) -> db_models.User:
    """
    Guard for every state-changing request.

    Raises:
        UserBannedException: If a ban is still in force.
    """
    from services.moderation_service import ModerationService

    if ModerationService.is_currently_banned(current_user):
        raise UserBannedException(current_user.banned_until)
    return current_user


async def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(
        optional_oauth2_scheme
    ),
    db: Session = Depends(get_db),
) -> Optional[db_models.User]:
    """
    Get current user if authenticated, otherwise return None.

    If credentials are provided but expired, raises AuthenticationException
    so the user knows to re-login (returns 401).
    If credentials are malformed or invalid, returns None.
    """
    if credentials is None:
        return None

    try:
        return _user_from_token(db, credentials.credentials)
    except jwt.exceptions.ExpiredSignatureError:
        # Token was provided but expired - user should re-login
        raise AuthenticationException("Session expired. Please log in again.")
    except jwt.exceptions.InvalidTokenError:
        # Other JWT errors (malformed token, etc.) - treat as anonymous
        return None


async def get_admin_user(
    current_user: db_models.User = Depends(get_current_active_user),
) -> db_models.User:
    """
    Require the admin role.

    Raises:
        InsufficientPermissionsException: If user is not an admin.
    """
    if current_user.role != Role.ADMIN:
        raise InsufficientPermissionsException("Admin only")
    return current_user


async def get_moderator_user(
    current_user: db_models.User = Depends(get_current_active_user),
) -> db_models.User:
    """
    Require the admin or moderator role.

    Raises:
        InsufficientPermissionsException: If user is neither.
    """
    if current_user.role not in (Role.ADMIN, Role.MODERATOR):
        raise InsufficientPermissionsException("Moderators only")
    return current_user


def require_capability(capability: Capability) -> Callable:
    """
    Build a dependency that requires an unbanned caller holding a capability.

    Usage:
        @router.post("/ban")
        def ban(user = Depends(require_capability(Capability.BAN_USERS))): ...
    """

    async def dependency(
        current_user: db_models.User = Depends(get_unbanned_user),
        db: Session = Depends(get_db),
    ) -> db_models.User:
        from services.permission_service import PermissionService

        PermissionService.require_capability(db, current_user, capability)
        return current_user

    return dependency
