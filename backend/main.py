# ruff: noqa: E402
# E402 disabled: load_dotenv() must run before other imports for Sentry DSN

import os
import time
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager

from dotenv import load_dotenv

load_dotenv()

import sentry_sdk
from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware

from core.correlation import (
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from core.logging_config import configure_logging
from core.sentry_config import init_sentry
from helpers.rate_limiter import limiter
from models.config import settings
from models.exceptions import (
    AlreadyExistsException,
    AuthenticationException,
    BusinessRuleException,
    ConflictException,
    DomainException,
    NotFoundException,
    PermissionDeniedException,
    SlugConflictException,
    StorageException,
    UserBannedException,
    ValidationException,
)
from repositories.database import Base, engine
from routers import (
    admin_router,
    auth_router,
    badges_router,
    categories_router,
    follows_router,
    messages_router,
    moderation_router,
    notifications_router,
    posts_router,
    reactions_router,
    reports_router,
    tags_router,
    topics_router,
    users_router,
    wiki_router,
)

# Initialize Sentry BEFORE app creation
init_sentry()

# Configure logging with Loguru
configure_logging(os.getenv("ENVIRONMENT", "development"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler.

    - Optionally create tables when `AUTO_CREATE_DB` is enabled (development).
    - Place other startup/shutdown tasks here.
    """
    if settings.AUTO_CREATE_DB:
        logger.info(
            "AUTO_CREATE_DB enabled; creating database tables via SQLAlchemy create_all()"
        )
        Base.metadata.create_all(bind=engine)
    else:
        logger.info("AUTO_CREATE_DB disabled; skipping automatic create_all()")

    logger.info(f"Forum API started (environment={settings.ENVIRONMENT})")
    yield
    logger.info("Forum API stopped")


app = FastAPI(title="Forum API", lifespan=lifespan)

# Attach rate limiter to app
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Inject correlation ID into request context and Sentry."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        correlation_id = (
            request.headers.get("X-Correlation-ID") or generate_correlation_id()
        )
        set_correlation_id(correlation_id)
        sentry_sdk.set_tag("correlation_id", correlation_id)

        response = await call_next(request)
        response.headers["X-Correlation-ID"] = correlation_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log all incoming requests with performance monitoring."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start_time = time.perf_counter()
        client_host = request.client.host if request.client else "unknown"
        logger.info(f"Request: {request.method} {request.url.path} from {client_host}")

        response = await call_next(request)

        duration = time.perf_counter() - start_time
        logger.info(
            f"Response: {request.method} {request.url.path} "
            f"status={response.status_code} duration={duration:.3f}s"
        )
        if duration > settings.SLOW_REQUEST_THRESHOLD:
            logger.warning(
                f"Slow request: {request.method} {request.url.path} "
                f"took {duration:.2f}s (threshold: {settings.SLOW_REQUEST_THRESHOLD}s)"
            )

        response.headers["X-Response-Time"] = f"{duration:.3f}s"
        return response


# Middleware runs in reverse order of registration
app.add_middleware(CorrelationIdMiddleware)
app.add_middleware(RequestLoggingMiddleware)

cors_origins = ["*"] if settings.ENVIRONMENT == "development" else settings.CORS_ORIGINS
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True if settings.ENVIRONMENT != "development" else False,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(
    status_code: int, exc: DomainException, log_prefix: str, request: Request, **extra
) -> JSONResponse:
    """Tag Sentry, log the domain error and render the JSON error body."""
    sentry_sdk.set_tag("correlation_id", exc.correlation_id)
    sentry_sdk.set_tag("exception_type", exc.__class__.__name__)

    logger.warning(
        f"{log_prefix}: {exc.message}",
        correlation_id=exc.correlation_id,
        exception_type=exc.__class__.__name__,
        path=str(request.url.path),
    )

    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, **extra, "correlation_id": exc.correlation_id},
        headers=(
            {"WWW-Authenticate": "Bearer"}
            if status_code == status.HTTP_401_UNAUTHORIZED
            else None
        ),
    )


# Global unhandled exception handler (returns generic 500 and logs details)
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch all unhandled exceptions with full Sentry capture."""
    correlation_id = get_correlation_id() or generate_correlation_id()

    sentry_sdk.set_tag("correlation_id", correlation_id)
    sentry_sdk.capture_exception(exc)

    # Use repr() to escape curly braces in exception message
    # (loguru's .format() interprets them as placeholders otherwise)
    logger.exception(
        f"Unhandled exception: {exc!r}",
        correlation_id=correlation_id,
        path=str(request.url.path),
        method=request.method,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "correlation_id": correlation_id,
        },
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed request bodies and parameters are plain 400s."""
    correlation_id = get_correlation_id() or generate_correlation_id()
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    logger.warning(
        f"Request validation failed: {location} {message}",
        correlation_id=correlation_id,
        path=str(request.url.path),
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": f"{location}: {message}" if location else message,
            "correlation_id": correlation_id,
        },
    )


# Centralized exception handlers
@app.exception_handler(NotFoundException)
async def not_found_exception_handler(
    request: Request, exc: NotFoundException
) -> JSONResponse:
    return _error_response(status.HTTP_404_NOT_FOUND, exc, "Not found", request)


@app.exception_handler(AlreadyExistsException)
async def already_exists_exception_handler(
    request: Request, exc: AlreadyExistsException
) -> JSONResponse:
    return _error_response(status.HTTP_409_CONFLICT, exc, "Already exists", request)


@app.exception_handler(ValidationException)
async def validation_exception_handler(
    request: Request, exc: ValidationException
) -> JSONResponse:
    return _error_response(
        status.HTTP_400_BAD_REQUEST, exc, "Validation error", request
    )


@app.exception_handler(PermissionDeniedException)
async def permission_denied_exception_handler(
    request: Request, exc: PermissionDeniedException
) -> JSONResponse:
    return _error_response(
        status.HTTP_403_FORBIDDEN, exc, "Permission denied", request
    )


@app.exception_handler(UserBannedException)
async def user_banned_handler(
    request: Request, exc: UserBannedException
) -> JSONResponse:
    """Banned callers get 403 with the end of their ban (null when permanent)."""
    return _error_response(
        status.HTTP_403_FORBIDDEN,
        exc,
        "User banned",
        request,
        banned_until=exc.banned_until.isoformat() if exc.banned_until else None,
    )


@app.exception_handler(AuthenticationException)
async def authentication_exception_handler(
    request: Request, exc: AuthenticationException
) -> JSONResponse:
    # Auth failures are security-relevant, capture in Sentry
    sentry_sdk.capture_exception(exc)
    return _error_response(
        status.HTTP_401_UNAUTHORIZED, exc, "Authentication failed", request
    )


@app.exception_handler(BusinessRuleException)
async def business_rule_exception_handler(
    request: Request, exc: BusinessRuleException
) -> JSONResponse:
    return _error_response(
        status.HTTP_400_BAD_REQUEST, exc, "Business rule violation", request
    )


@app.exception_handler(ConflictException)
async def conflict_exception_handler(
    request: Request, exc: ConflictException
) -> JSONResponse:
    return _error_response(status.HTTP_409_CONFLICT, exc, "Conflict", request)


@app.exception_handler(SlugConflictException)
async def slug_conflict_handler(
    request: Request, exc: SlugConflictException
) -> JSONResponse:
    return _error_response(
        status.HTTP_409_CONFLICT,
        exc,
        "Slug conflict",
        request,
        suggested_slug=exc.suggested_slug,
    )


@app.exception_handler(StorageException)
async def storage_exception_handler(
    request: Request, exc: StorageException
) -> JSONResponse:
    sentry_sdk.capture_exception(exc)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, exc, "Storage failure", request
    )


@app.exception_handler(DomainException)
async def domain_exception_handler(
    request: Request, exc: DomainException
) -> JSONResponse:
    """Handle generic domain exceptions with Sentry integration."""
    # Capture unexpected domain exceptions
    sentry_sdk.capture_exception(exc)
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        exc,
        "Domain exception",
        request,
        type=exc.__class__.__name__,
    )


app.include_router(auth_router.router, prefix="/api")
app.include_router(users_router.router, prefix="/api")
app.include_router(admin_router.router, prefix="/api")
app.include_router(moderation_router.router, prefix="/api")
app.include_router(reports_router.router, prefix="/api")
app.include_router(categories_router.router, prefix="/api")
app.include_router(topics_router.router, prefix="/api")
app.include_router(posts_router.router, prefix="/api")
app.include_router(follows_router.router, prefix="/api")
app.include_router(messages_router.router, prefix="/api")
app.include_router(notifications_router.router, prefix="/api")
app.include_router(tags_router.router, prefix="/api")
app.include_router(reactions_router.router, prefix="/api")
app.include_router(badges_router.router, prefix="/api")
app.include_router(wiki_router.router, prefix="/api")


@app.get("/")
def root() -> dict:
    return {"message": "Forum API"}


@app.get("/api/health")
def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "healthy"}
