"""
Repository for reaction types and per-post reactions.
"""

from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from repositories.base import BaseRepository
from repositories.db_models import CatalogAudit, Post, PostReaction, Reaction, Topic


class ReactionRepository(BaseRepository[Reaction]):
    """Repository for Reaction entity operations."""

    def __init__(self, db: Session):
        super().__init__(Reaction, db)

    def get_by_name(self, name: str) -> Optional[Reaction]:
        return (
            self.db.query(Reaction)
            .filter(func.lower(Reaction.name) == name.strip().lower())
            .first()
        )

    def list_all(self) -> List[Reaction]:
        return self.db.query(Reaction).order_by(Reaction.name).all()

    def get_post_reaction(
        self, post_id: int, user_id: int, reaction_id: int
    ) -> Optional[PostReaction]:
        return (
            self.db.query(PostReaction)
            .filter(
                PostReaction.post_id == post_id,
                PostReaction.user_id == user_id,
                PostReaction.reaction_id == reaction_id,
            )
            .first()
        )

    def get_post_summary(self, post_id: int) -> List[tuple]:
        """
        Count reactions on a post grouped by reaction type.

        Args:
            post_id: Post ID

        Returns:
            List of (Reaction, count) tuples ordered by reaction name
        """
        return (
            self.db.query(Reaction, func.count(PostReaction.id))
            .join(PostReaction, PostReaction.reaction_id == Reaction.id)
            .filter(PostReaction.post_id == post_id)
            .group_by(Reaction.id)
            .order_by(Reaction.name)
            .all()
        )

    def get_user_reaction_ids(self, post_id: int, user_id: int) -> List[int]:
        rows = (
            self.db.query(PostReaction.reaction_id)
            .filter(PostReaction.post_id == post_id, PostReaction.user_id == user_id)
            .all()
        )
        return [row[0] for row in rows]

    def add_audit(self, entry: CatalogAudit) -> None:
        """Stage a catalog audit row."""
        self.db.add(entry)

    def delete_uses(self, reaction_id: int) -> None:
        self.db.query(PostReaction).filter(
            PostReaction.reaction_id == reaction_id
        ).delete(synchronize_session=False)

    def list_audit(self, limit: int = 50) -> List[CatalogAudit]:
        """Latest reaction and badge catalog changes, newest first."""
        return (
            self.db.query(CatalogAudit)
            .order_by(CatalogAudit.created_at.desc(), CatalogAudit.id.desc())
            .limit(limit)
            .all()
        )

    def get_by_user(self, user_id: int, limit: int = 50) -> List[tuple]:
        """
        Latest reactions a user placed.

        Returns:
            (PostReaction, Reaction, Post, Topic) tuples, newest first
        """
        return (
            self.db.query(PostReaction, Reaction, Post, Topic)
            .join(Reaction, Reaction.id == PostReaction.reaction_id)
            .join(Post, Post.id == PostReaction.post_id)
            .join(Topic, Topic.id == Post.topic_id)
            .filter(PostReaction.user_id == user_id)
            .order_by(PostReaction.created_at.desc(), PostReaction.id.desc())
            .limit(limit)
            .all()
        )
