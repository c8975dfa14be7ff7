"""
Services layer for business logic.

This package contains service modules that encapsulate business logic
separate from the API routes.
"""

from .permission_service import PermissionService
from .moderation_service import ModerationService
from .authorization_service import AuthorizationService
from .notification_service import NotificationService
from .report_service import ReportService
from .category_service import CategoryService
from .topic_service import TopicService
from .post_service import PostService
from .user_service import UserService

__all__ = [
    "PermissionService",
    "ModerationService",
    "AuthorizationService",
    "NotificationService",
    "ReportService",
    "CategoryService",
    "TopicService",
    "PostService",
    "UserService",
]
