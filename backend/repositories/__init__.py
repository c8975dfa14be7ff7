"""
Repository pattern implementation for data access layer.
"""

from .base import BaseRepository
from .ban_repository import BanRepository
from .category_repository import CategoryRepository
from .notification_repository import NotificationRepository
from .permission_repository import PermissionRepository
from .post_repository import PostRepository
from .report_repository import ReportRepository
from .topic_repository import TopicRepository
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "BanRepository",
    "CategoryRepository",
    "NotificationRepository",
    "PermissionRepository",
    "PostRepository",
    "ReportRepository",
    "TopicRepository",
    "UserRepository",
]
