"""
Custom domain exceptions for the forum.

These exceptions are raised by the service layer and converted to HTTP responses
by centralized exception handlers in main.py, keeping services HTTP-agnostic.

The authentication module (auth.py) also raises these domain exceptions so the
identity guards can be reused outside of request handling (CLI tools, scripts).

Every exception carries a correlation ID for Sentry and user error reports.
"""

from datetime import datetime

from core.correlation import generate_correlation_id, get_correlation_id


class DomainException(Exception):
    """
    Base class for all domain exceptions.

    Attributes:
        message: Human-readable error message.
        correlation_id: Unique ID for error tracking (auto-generated if not provided).
    """

    def __init__(self, message: str, correlation_id: str | None = None):
        self.message = message
        # Use request correlation ID if available, otherwise generate new one
        self.correlation_id = (
            correlation_id or get_correlation_id() or generate_correlation_id()
        )
        super().__init__(self.message)


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    pass


class PermissionDeniedException(DomainException):
    """Raised when the caller is authenticated but not allowed to act."""

    pass


class ValidationException(DomainException):
    """Raised when input validation fails."""

    pass


class ConflictException(DomainException):
    """Raised when operation conflicts with existing data."""

    pass


class AuthenticationException(DomainException):
    """Raised when authentication fails."""

    pass


class AlreadyExistsException(DomainException):
    """Raised when trying to create a resource that already exists."""

    pass


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    pass


class StorageException(DomainException):
    """Raised when the backing store fails during a primary mutation.

    The message is always generic; the underlying error is only logged.
    """

    def __init__(self, message: str = "Storage failure") -> None:
        super().__init__(message)


# Specific exceptions for domain entities


class UserNotFoundException(NotFoundException):
    """User not found."""

    def __init__(self, message: str = "User not found") -> None:
        super().__init__(message)


class UserAlreadyExistsException(AlreadyExistsException):
    """Username or email already taken."""

    pass


class TopicNotFoundException(NotFoundException):
    """Topic not found."""

    def __init__(self, message: str = "Topic not found") -> None:
        super().__init__(message)


class PostNotFoundException(NotFoundException):
    """Post not found."""

    def __init__(self, message: str = "Post not found") -> None:
        super().__init__(message)


class CategoryNotFoundException(NotFoundException):
    """Category not found."""

    def __init__(self, message: str = "Category not found") -> None:
        super().__init__(message)


class TagNotFoundException(NotFoundException):
    """Tag not found."""

    def __init__(self, message: str = "Tag not found") -> None:
        super().__init__(message)


class ReactionNotFoundException(NotFoundException):
    """Reaction not found."""

    def __init__(self, message: str = "Reaction not found") -> None:
        super().__init__(message)


class BadgeNotFoundException(NotFoundException):
    """Badge not found."""

    def __init__(self, message: str = "Badge not found") -> None:
        super().__init__(message)


class ReportNotFoundException(NotFoundException):
    """Report not found."""

    def __init__(self, message: str = "Report not found") -> None:
        super().__init__(message)


class MessageNotFoundException(NotFoundException):
    """Message not found."""

    def __init__(self, message: str = "Message not found") -> None:
        super().__init__(message)


class WikiArticleNotFoundException(NotFoundException):
    """Wiki article or history entry not found."""

    def __init__(self, message: str = "Article not found") -> None:
        super().__init__(message)


class InvalidCredentialsException(AuthenticationException):
    """Invalid username/email or password."""

    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(message)


class InsufficientPermissionsException(PermissionDeniedException):
    """User doesn't have sufficient permissions."""

    pass


class CannotModerateAdminException(PermissionDeniedException):
    """Raised when a moderation action targets an admin."""

    def __init__(self, action: str = "moderate") -> None:
        super().__init__(f"Cannot {action} admin")
        self.action = action


class TopicLockedException(PermissionDeniedException):
    """Raised when posting into a locked topic."""

    def __init__(self) -> None:
        super().__init__("Topic is locked")


class InvalidRoleException(ValidationException):
    """Role outside of user/moderator/admin."""

    def __init__(self, role: str) -> None:
        super().__init__(f"Invalid role: {role}")
        self.role = role


class InvalidCapabilityException(ValidationException):
    """Capability name outside of the known allow-list."""

    def __init__(self, capability: str) -> None:
        super().__init__(f"Unknown capability: {capability}")
        self.capability = capability


class InvalidMuteDurationException(ValidationException):
    """Mute duration is not a positive integer number of minutes."""

    def __init__(self) -> None:
        super().__init__("Invalid mute duration")


class InvalidReportException(ValidationException):
    """Report payload failed validation."""

    pass


class SelfActionException(ValidationException):
    """Raised when a user targets themselves where that is forbidden."""

    pass


class ContentValidationException(ValidationException):
    """Content validation failed."""

    pass


class PostAlreadyDeletedException(BusinessRuleException):
    """Raised when deleting or editing an already deleted post."""

    def __init__(self, message: str = "Post already deleted") -> None:
        super().__init__(message)


class DuplicateNameException(ConflictException):
    """Name already used by another tag/category/reaction/badge."""

    pass


class SlugConflictException(ConflictException):
    """Raised when a wiki slug is already taken."""

    def __init__(self, slug: str, suggested_slug: str) -> None:
        super().__init__(f"Slug '{slug}' is already in use")
        self.slug = slug
        self.suggested_slug = suggested_slug


class UserBannedException(PermissionDeniedException):
    """Raised when a banned user tries to perform a state-changing action."""

    def __init__(self, banned_until: datetime | None = None):
        super().__init__("User is banned")
        self.banned_until = banned_until
