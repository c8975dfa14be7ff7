"""
Repository for topic and user follows.
"""

from typing import List, Optional

from sqlalchemy.orm import Session

from repositories.db_models import TopicFollow, UserFollow


class FollowRepository:
    """
    Data access for both follow tables.

    Not a BaseRepository: it spans two models and never loads by id.
    """

    def __init__(self, db: Session):
        self.db = db

    # Topic follows

    def get_topic_follow(self, user_id: int, topic_id: int) -> Optional[TopicFollow]:
        return (
            self.db.query(TopicFollow)
            .filter(TopicFollow.user_id == user_id, TopicFollow.topic_id == topic_id)
            .first()
        )

    def add_topic_follow(self, user_id: int, topic_id: int) -> bool:
        """Stage a topic follow unless it already exists. Returns True if staged."""
        if self.get_topic_follow(user_id, topic_id) is not None:
            return False
        self.db.add(TopicFollow(user_id=user_id, topic_id=topic_id))
        return True

    def remove_topic_follow(self, user_id: int, topic_id: int) -> bool:
        follow = self.get_topic_follow(user_id, topic_id)
        if follow is None:
            return False
        self.db.delete(follow)
        return True

    def get_topic_follower_ids(self, topic_id: int) -> List[int]:
        """Ids of users following a topic, ascending."""
        rows = (
            self.db.query(TopicFollow.user_id)
            .filter(TopicFollow.topic_id == topic_id)
            .order_by(TopicFollow.user_id)
            .all()
        )
        return [row[0] for row in rows]

    # User follows

    def get_user_follow(
        self, follower_id: int, followed_id: int
    ) -> Optional[UserFollow]:
        return (
            self.db.query(UserFollow)
            .filter(
                UserFollow.follower_id == follower_id,
                UserFollow.followed_id == followed_id,
            )
            .first()
        )

    def add_user_follow(self, follower_id: int, followed_id: int) -> bool:
        """Stage a user follow unless it already exists. Returns True if staged."""
        if self.get_user_follow(follower_id, followed_id) is not None:
            return False
        self.db.add(UserFollow(follower_id=follower_id, followed_id=followed_id))
        return True

    def remove_user_follow(self, follower_id: int, followed_id: int) -> bool:
        follow = self.get_user_follow(follower_id, followed_id)
        if follow is None:
            return False
        self.db.delete(follow)
        return True

    def get_follower_ids(self, followed_id: int) -> List[int]:
        """Ids of users following `followed_id`, ascending."""
        rows = (
            self.db.query(UserFollow.follower_id)
            .filter(UserFollow.followed_id == followed_id)
            .order_by(UserFollow.follower_id)
            .all()
        )
        return [row[0] for row in rows]

    def count_followers(self, followed_id: int) -> int:
        return (
            self.db.query(UserFollow)
            .filter(UserFollow.followed_id == followed_id)
            .count()
        )

    def commit(self) -> None:
        """Commit the current transaction."""
        self.db.commit()
