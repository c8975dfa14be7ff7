"""
Topic and user follow management.
"""

from loguru import logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from models.exceptions import (
    SelfActionException,
    StorageException,
    TopicNotFoundException,
    UserNotFoundException,
)
from repositories.follow_repository import FollowRepository
from repositories.topic_repository import TopicRepository
from repositories.user_repository import UserRepository


class FollowService:
    """Follow and unfollow topics or users. Inserts are idempotent."""

    @staticmethod
    def _commit(repo: FollowRepository, what: str) -> None:
        try:
            repo.commit()
        except IntegrityError:
            # A concurrent request inserted the same pair
            repo.db.rollback()
        except SQLAlchemyError as e:
            repo.db.rollback()
            logger.error(f"Failed to update {what}: {e}")
            raise StorageException()

    @staticmethod
    def is_following_topic(db: Session, user: db_models.User, topic_id: int) -> bool:
        return FollowRepository(db).get_topic_follow(user.id, topic_id) is not None

    @staticmethod
    def follow_topic(db: Session, user: db_models.User, topic_id: int) -> None:
        """
        Raises:
            TopicNotFoundException: If topic not found
        """
        if TopicRepository(db).get_by_id(topic_id) is None:
            raise TopicNotFoundException()
        repo = FollowRepository(db)
        if repo.add_topic_follow(user.id, topic_id):
            FollowService._commit(repo, f"topic follow {user.id}->{topic_id}")

    @staticmethod
    def unfollow_topic(db: Session, user: db_models.User, topic_id: int) -> None:
        repo = FollowRepository(db)
        if repo.remove_topic_follow(user.id, topic_id):
            FollowService._commit(repo, f"topic follow {user.id}->{topic_id}")

    @staticmethod
    def is_following_user(db: Session, user: db_models.User, target_id: int) -> bool:
        return FollowRepository(db).get_user_follow(user.id, target_id) is not None

    @staticmethod
    def follow_user(db: Session, user: db_models.User, target_id: int) -> None:
        """
        Raises:
            SelfActionException: If following oneself
            UserNotFoundException: If target not found
        """
        if target_id == user.id:
            raise SelfActionException("Cannot follow yourself")
        if UserRepository(db).get_by_id(target_id) is None:
            raise UserNotFoundException()
        repo = FollowRepository(db)
        if repo.add_user_follow(user.id, target_id):
            FollowService._commit(repo, f"user follow {user.id}->{target_id}")
            logger.info(f"User {user.id} now follows user {target_id}")

    @staticmethod
    def unfollow_user(db: Session, user: db_models.User, target_id: int) -> None:
        repo = FollowRepository(db)
        if repo.remove_user_follow(user.id, target_id):
            FollowService._commit(repo, f"user follow {user.id}->{target_id}")
