"""
Direct messaging between users.
"""

from typing import Any, List

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from helpers.sanitization import clean_text, within_length
from models.config import settings
from models.exceptions import (
    ContentValidationException,
    SelfActionException,
    StorageException,
    UserNotFoundException,
)
from repositories.message_repository import MessageRepository
from repositories.user_repository import UserRepository
from services.notification_service import NotificationService


class MessageService:
    """Service for direct messages."""

    @staticmethod
    def _parse_recipient_id(raw: Any) -> int:
        if isinstance(raw, bool):
            raise ContentValidationException("Missing recipient or content")
        if isinstance(raw, str) and raw.strip().isdigit():
            raw = int(raw.strip())
        if isinstance(raw, float) and raw.is_integer():
            raw = int(raw)
        if not isinstance(raw, int) or raw <= 0:
            raise ContentValidationException("Missing recipient or content")
        return raw

    @staticmethod
    def send_message(
        db: Session, sender: db_models.User, recipient_id: Any, content: str
    ) -> db_models.Message:
        """
        Send a message and notify the recipient.

        Args:
            db: Database session
            sender: Sending user (already checked for bans)
            recipient_id: Positive user id
            content: Message text

        Returns:
            Created message

        Raises:
            ContentValidationException: Bad recipient id, empty or too long content
            SelfActionException: If messaging oneself
            UserNotFoundException: If recipient not found
        """
        target_id = MessageService._parse_recipient_id(recipient_id)
        if not (content or "").strip():
            raise ContentValidationException("Missing recipient or content")
        if not within_length(content, 1, settings.MESSAGE_MAX_LENGTH):
            raise ContentValidationException("Message is too long")
        cleaned = clean_text(content)
        if not cleaned:
            raise ContentValidationException("Missing recipient or content")
        if target_id == sender.id:
            raise SelfActionException("Cannot message yourself")

        if UserRepository(db).get_by_id(target_id) is None:
            raise UserNotFoundException("Recipient not found")

        repo = MessageRepository(db)
        message = db_models.Message(
            sender_id=sender.id, recipient_id=target_id, content=cleaned
        )
        try:
            repo.add(message)
            repo.commit()
        except SQLAlchemyError as e:
            repo.rollback()
            logger.error(f"Failed to send message from {sender.id}: {e}")
            raise StorageException()
        repo.refresh(message)

        NotificationService.notify_message(db, message, sender)
        return message

    @staticmethod
    def get_thread(
        db: Session, user: db_models.User, other_id: int
    ) -> List[db_models.Message]:
        return MessageRepository(db).get_thread(user.id, other_id)

    @staticmethod
    def list_conversations(
        db: Session, user: db_models.User
    ) -> List[schemas.ConversationSummary]:
        """
        One entry per correspondent, most recent conversation first.

        Built from the user's latest messages.
        """
        conversations: dict[int, schemas.ConversationSummary] = {}
        for message in MessageRepository(db).get_recent_involving(user.id):
            incoming = message.recipient_id == user.id
            other = message.sender if incoming else message.recipient
            summary = conversations.get(other.id)
            if summary is None:
                summary = schemas.ConversationSummary(
                    user_id=other.id,
                    username=other.username,
                    nickname=other.nickname,
                    last_message=message.content,
                    last_message_at=message.created_at,
                    unread_count=0,
                )
                conversations[other.id] = summary
            if incoming and not message.is_read:
                summary.unread_count += 1
        return list(conversations.values())

    @staticmethod
    def mark_read(db: Session, user: db_models.User, message_id: int) -> None:
        """Mark one received message as read; others' messages are ignored."""
        repo = MessageRepository(db)
        message = repo.get_by_id(message_id)
        if message is None or message.recipient_id != user.id:
            return
        message.is_read = True
        try:
            repo.commit()
        except SQLAlchemyError as e:
            repo.rollback()
            logger.error(f"Failed to mark message {message_id} read: {e}")
            raise StorageException()

    @staticmethod
    def mark_thread_read(db: Session, user: db_models.User, other_id: int) -> int:
        repo = MessageRepository(db)
        try:
            updated = repo.mark_thread_read(user.id, other_id)
            repo.commit()
        except SQLAlchemyError as e:
            repo.rollback()
            logger.error(f"Failed to mark thread {user.id}/{other_id} read: {e}")
            raise StorageException()
        return updated

    @staticmethod
    def unread_count(db: Session, user: db_models.User) -> int:
        return MessageRepository(db).unread_count(user.id)
