"""Notification type definitions for the in-app inbox."""

from enum import Enum
from typing import NamedTuple


class NotificationConfig(NamedTuple):
    """Configuration for a notification type."""

    key: str  # value persisted in notifications.type
    audience: str  # who receives it
    carries_snippet: bool


class NotificationType(Enum):
    """
    Notification types with their persisted key and audience.

    Each type is produced by exactly one fan-out rule.
    """

    COMMENT_REPLY = NotificationConfig("comment_reply", "parent post author", True)
    FOLLOWED_TOPIC_POST = NotificationConfig(
        "followed_topic_post", "topic followers", True
    )
    FOLLOWED_USER_POST = NotificationConfig(
        "followed_user_post", "followers of the author", True
    )
    FOLLOWED_USER_TOPIC = NotificationConfig(
        "followed_user_topic", "followers of the author", True
    )
    MESSAGE = NotificationConfig("message", "message recipient", True)
    REPORT = NotificationConfig("report", "admins and moderators", False)

    @property
    def key(self) -> str:
        """Get the persisted key for this notification type."""
        return self.value.key

    @property
    def audience(self) -> str:
        """Get the audience description for this notification type."""
        return self.value.audience

    @property
    def carries_snippet(self) -> bool:
        """Whether payloads of this type include a content snippet."""
        return self.value.carries_snippet
