"""
In-app notification fan-out and inbox operations.

Fan-out runs after the triggering action has been committed. Each rule
category stages and commits its own rows; a failing category is rolled back,
logged and swallowed so the triggering action still succeeds.
"""

from typing import Any, Iterable, List, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from models.config import settings
from models.exceptions import StorageException, ValidationException
from models.notification_types import NotificationType
from helpers.text_utils import make_snippet
from repositories.follow_repository import FollowRepository
from repositories.notification_repository import NotificationRepository
from repositories.user_repository import UserRepository


class NotificationService:
    """Service computing recipient sets and managing the inbox."""

    @staticmethod
    def _snippet(content: Optional[str]) -> str:
        return make_snippet(content, settings.SNIPPET_LENGTH)

    @staticmethod
    def _fan_out(
        db: Session,
        notification_type: NotificationType,
        recipient_ids: Iterable[int],
        payload: dict[str, Any],
        actor_id: int,
    ) -> int:
        """
        Insert one notification per recipient, excluding the actor.

        Never raises: failures are rolled back and logged.

        Args:
            db: Database session
            notification_type: Rule category
            recipient_ids: Candidate recipients
            payload: Payload copied into every row
            actor_id: User whose action triggered the fan-out

        Returns:
            Number of notifications created
        """
        try:
            recipients = [uid for uid in recipient_ids if uid != actor_id]
            if not recipients:
                return 0
            repo = NotificationRepository(db)
            repo.create_many(recipients, notification_type.key, payload)
            repo.commit()
        except Exception:
            db.rollback()
            logger.exception(
                f"Failed to create {notification_type.key} notifications "
                f"for actor {actor_id}"
            )
            return 0

        logger.debug(
            f"Created {len(recipients)} {notification_type.key} notification(s)"
        )
        return len(recipients)

    @staticmethod
    def notify_post_created(
        db: Session,
        post: db_models.Post,
        topic: db_models.Topic,
        author: db_models.User,
    ) -> int:
        """
        Fan out a new post to three independent audiences.

        The parent post's author gets comment_reply, topic followers get
        followed_topic_post and the author's followers get followed_user_post.
        A recipient that matches several rules receives one row per rule.

        Args:
            db: Database session
            post: Newly committed post
            topic: Topic the post belongs to
            author: Post author (the actor)

        Returns:
            Total notifications created
        """
        snippet = NotificationService._snippet(post.content)
        author_name = author.display_name
        created = 0

        parent_author_id: Optional[int] = None
        try:
            if post.parent_post_id is not None:
                parent = db.get(db_models.Post, post.parent_post_id)
                parent_author_id = parent.author_id if parent else None
        except SQLAlchemyError:
            logger.exception(f"Failed to resolve parent of post {post.id}")

        if parent_author_id is not None:
            created += NotificationService._fan_out(
                db,
                NotificationType.COMMENT_REPLY,
                [parent_author_id],
                {
                    "topicId": topic.id,
                    "postId": post.id,
                    "parentPostId": post.parent_post_id,
                    "authorId": author.id,
                    "authorNickname": author_name,
                    "snippet": snippet,
                },
                author.id,
            )

        follow_payload = {
            "topicId": topic.id,
            "topicTitle": topic.title,
            "postId": post.id,
            "authorId": author.id,
            "authorNickname": author_name,
            "snippet": snippet,
        }
        follow_repo = FollowRepository(db)

        try:
            topic_followers = follow_repo.get_topic_follower_ids(topic.id)
        except SQLAlchemyError:
            logger.exception(f"Failed to load followers of topic {topic.id}")
            topic_followers = []
        created += NotificationService._fan_out(
            db,
            NotificationType.FOLLOWED_TOPIC_POST,
            topic_followers,
            follow_payload,
            author.id,
        )

        try:
            user_followers = follow_repo.get_follower_ids(author.id)
        except SQLAlchemyError:
            logger.exception(f"Failed to load followers of user {author.id}")
            user_followers = []
        created += NotificationService._fan_out(
            db,
            NotificationType.FOLLOWED_USER_POST,
            user_followers,
            follow_payload,
            author.id,
        )

        return created

    @staticmethod
    def notify_topic_created(
        db: Session, topic: db_models.Topic, author: db_models.User
    ) -> int:
        """Tell the author's followers about a new topic."""
        try:
            followers = FollowRepository(db).get_follower_ids(author.id)
        except SQLAlchemyError:
            logger.exception(f"Failed to load followers of user {author.id}")
            return 0
        return NotificationService._fan_out(
            db,
            NotificationType.FOLLOWED_USER_TOPIC,
            followers,
            {
                "topicId": topic.id,
                "topicTitle": topic.title,
                "authorId": author.id,
                "authorNickname": author.display_name,
            },
            author.id,
        )

    @staticmethod
    def notify_message(
        db: Session, message: db_models.Message, sender: db_models.User
    ) -> int:
        """Tell the recipient about a direct message."""
        return NotificationService._fan_out(
            db,
            NotificationType.MESSAGE,
            [message.recipient_id],
            {
                "from": sender.id,
                "messageId": message.id,
                "fromUsername": sender.username,
                "fromNickname": sender.nickname,
                "snippet": NotificationService._snippet(message.content),
            },
            sender.id,
        )

    @staticmethod
    def notify_report(
        db: Session,
        report: db_models.Report,
        reporter: db_models.User,
        target_user: db_models.User,
        topic_id: Optional[int] = None,
    ) -> int:
        """Tell every admin and moderator except the reporter about a report."""
        try:
            staff_ids = UserRepository(db).get_staff_ids(exclude_user_id=reporter.id)
        except SQLAlchemyError:
            logger.exception(f"Failed to load staff for report {report.id}")
            return 0
        return NotificationService._fan_out(
            db,
            NotificationType.REPORT,
            staff_ids,
            {
                "reportId": report.id,
                "type": "post" if report.post_id else "user",
                "postId": report.post_id,
                "contextPostId": report.context_post_id,
                "topicId": topic_id,
                "reporterId": reporter.id,
                "targetUserId": target_user.id,
                "targetUsername": target_user.username,
            },
            reporter.id,
        )

    # Inbox

    @staticmethod
    def list_notifications(
        db: Session, user: db_models.User, unread_only: bool = False
    ) -> List[db_models.Notification]:
        """Latest notifications of the user, newest first."""
        return NotificationRepository(db).list_for_user(
            user.id, unread_only=unread_only, limit=settings.NOTIFICATION_LIST_LIMIT
        )

    @staticmethod
    def _clean_ids(raw_ids: List[Any]) -> List[int]:
        clean: List[int] = []
        for raw in raw_ids:
            if isinstance(raw, bool):
                continue
            if isinstance(raw, float) and raw.is_integer():
                raw = int(raw)
            if isinstance(raw, str) and raw.strip().isdigit():
                raw = int(raw.strip())
            if isinstance(raw, int) and raw > 0:
                clean.append(raw)
        return clean

    @staticmethod
    def mark_read(
        db: Session, user: db_models.User, ids: Optional[List[Any]] = None
    ) -> int:
        """
        Mark notifications as read.

        Args:
            db: Database session
            user: Owner of the notifications
            ids: Notification ids; None or empty marks every unread one

        Returns:
            Number of notifications updated

        Raises:
            ValidationException: If ids were given but none is a positive
                integer, or more than the allowed maximum were given
        """
        clean_ids: Optional[List[int]] = None
        if ids:
            clean_ids = NotificationService._clean_ids(ids)
            if not clean_ids:
                raise ValidationException("Invalid ids")
            if len(clean_ids) > settings.NOTIFICATION_MARK_READ_MAX:
                raise ValidationException("Too many ids")

        repo = NotificationRepository(db)
        try:
            updated = repo.mark_read(user.id, clean_ids)
            repo.commit()
        except SQLAlchemyError as e:
            repo.rollback()
            logger.error(f"Failed to mark notifications read for user {user.id}: {e}")
            raise StorageException()
        return updated

    @staticmethod
    def unread_count(db: Session, user: db_models.User) -> int:
        return NotificationRepository(db).unread_count(user.id)
