"""
Database models using SQLAlchemy 2.0 style with Mapped type hints.

Covers identity and moderation state (users, moderator grants, ban log,
reports), forum content (categories, topics, posts, tags, reactions, badges,
wiki), social graph (follows, messages) and the notification inbox.
"""

import enum
from datetime import datetime, timezone
from typing import Any, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from repositories.database import Base


class Role(str, enum.Enum):
    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"


class Capability(str, enum.Enum):
    """Closed set of moderator capabilities; values are grant column names."""

    MANAGE_TAGS = "can_manage_tags"
    DELETE_POSTS = "can_delete_posts"
    BAN_USERS = "can_ban_users"
    EDIT_WIKI = "can_edit_wiki"
    MANAGE_REACTIONS = "can_manage_reactions"


class BanAction(str, enum.Enum):
    WARN = "warn"
    MUTE = "mute"
    BAN = "ban"
    UNBAN = "unban"


class ReportStatus(str, enum.Enum):
    OPEN = "open"
    REVIEWED = "reviewed"
    CLOSED = "closed"


class TagAuditAction(str, enum.Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class CatalogEntity(str, enum.Enum):
    REACTION = "reaction"
    BADGE = "badge"


class WikiStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


def _utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    username: Mapped[str] = mapped_column(
        String(30), unique=True, index=True, nullable=False
    )
    email: Mapped[str] = mapped_column(
        String(254), unique=True, index=True, nullable=False
    )
    hashed_password: Mapped[str] = mapped_column(String, nullable=False)
    role: Mapped[Role] = mapped_column(Enum(Role), default=Role.USER, nullable=False)

    # Live moderation state; every change is paired with a BanRecord
    is_banned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    banned_until: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Profile
    nickname: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    avatar_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    about: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    hide_badges: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    # Relationships
    permission: Mapped[Optional["ModeratorPermission"]] = relationship(
        "ModeratorPermission",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
    topics: Mapped[List["Topic"]] = relationship("Topic", back_populates="author")
    posts: Mapped[List["Post"]] = relationship(
        "Post", back_populates="author", foreign_keys="[Post.author_id]"
    )

    @property
    def display_name(self) -> str:
        return self.nickname or self.username


class ModeratorPermission(Base):
    """Capability grant row; present only for users whose role is moderator."""

    __tablename__ = "moderator_permissions"

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    can_manage_tags: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    can_delete_posts: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    can_ban_users: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    can_edit_wiki: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    can_manage_reactions: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utc_now, onupdate=_utc_now
    )

    user: Mapped["User"] = relationship("User", back_populates="permission")

    def grants(self, capability: Capability) -> bool:
        """Read one capability flag through the closed enum."""
        return bool(getattr(self, capability.value))


class BanRecord(Base):
    """Append-only moderation log entry."""

    __tablename__ = "bans"
    __table_args__ = (Index("ix_bans_user_created", "user_id", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    action: Mapped[BanAction] = mapped_column(Enum(BanAction), nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    banned_until: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_by: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    user: Mapped["User"] = relationship("User", foreign_keys=[user_id])
    actor: Mapped["User"] = relationship("User", foreign_keys=[created_by])


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    slug: Mapped[str] = mapped_column(
        String(60), unique=True, index=True, nullable=False
    )
    description: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    topics: Mapped[List["Topic"]] = relationship("Topic", back_populates="category")


class TopicTag(Base):
    __tablename__ = "topic_tags"
    __table_args__ = (UniqueConstraint("topic_id", "tag_id", name="uq_topic_tag"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    topic_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("topics.id", ondelete="CASCADE"), nullable=False
    )
    tag_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tags.id", ondelete="CASCADE"), nullable=False
    )


class Topic(Base):
    __tablename__ = "topics"
    __table_args__ = (Index("ix_topics_category_sticky", "category_id", "is_sticky"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    category_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True
    )
    author_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    is_sticky: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_locked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    author: Mapped["User"] = relationship("User", back_populates="topics")
    category: Mapped[Optional["Category"]] = relationship(
        "Category", back_populates="topics"
    )
    posts: Mapped[List["Post"]] = relationship(
        "Post", back_populates="topic", cascade="all, delete-orphan"
    )
    tags: Mapped[List["Tag"]] = relationship(
        "Tag", secondary="topic_tags", viewonly=True, order_by="Tag.name"
    )


class Post(Base):
    __tablename__ = "posts"
    __table_args__ = (Index("ix_posts_topic_created", "topic_id", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    topic_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("topics.id", ondelete="CASCADE"), nullable=False
    )
    author_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    parent_post_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("posts.id", ondelete="SET NULL"), nullable=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Soft delete fields
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    deleted_by: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )

    topic: Mapped["Topic"] = relationship("Topic", back_populates="posts")
    author: Mapped["User"] = relationship(
        "User", back_populates="posts", foreign_keys=[author_id]
    )
    parent: Mapped[Optional["Post"]] = relationship(
        "Post", remote_side=[id], foreign_keys=[parent_post_id]
    )


class TopicFollow(Base):
    __tablename__ = "topic_follows"
    __table_args__ = (
        UniqueConstraint("user_id", "topic_id", name="uq_topic_follow_user_topic"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    topic_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("topics.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)


class UserFollow(Base):
    __tablename__ = "user_follows"
    __table_args__ = (
        UniqueConstraint(
            "follower_id", "followed_id", name="uq_user_follow_follower_followed"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    follower_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    followed_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)


class Message(Base):
    __tablename__ = "messages"
    __table_args__ = (
        Index("ix_messages_pair", "sender_id", "recipient_id"),
        Index("ix_messages_recipient_read", "recipient_id", "is_read"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    sender_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    recipient_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    sender: Mapped["User"] = relationship("User", foreign_keys=[sender_id])
    recipient: Mapped["User"] = relationship("User", foreign_keys=[recipient_id])


class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (Index("ix_notifications_user_read", "user_id", "is_read"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(40), nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)


class Report(Base):
    __tablename__ = "reports"
    __table_args__ = (Index("ix_reports_status_created", "status", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    reporter_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    post_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("posts.id", ondelete="SET NULL"), nullable=True
    )
    target_user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    context_post_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("posts.id", ondelete="SET NULL"), nullable=True
    )
    reason: Mapped[str] = mapped_column(String(500), nullable=False)
    status: Mapped[ReportStatus] = mapped_column(
        Enum(ReportStatus), default=ReportStatus.OPEN, nullable=False
    )
    resolved_by: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    reporter: Mapped["User"] = relationship("User", foreign_keys=[reporter_id])
    target_user: Mapped["User"] = relationship("User", foreign_keys=[target_user_id])
    resolver: Mapped[Optional["User"]] = relationship(
        "User", foreign_keys=[resolved_by]
    )
    post: Mapped[Optional["Post"]] = relationship("Post", foreign_keys=[post_id])


class Tag(Base):
    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(
        String(50), unique=True, index=True, nullable=False
    )
    color: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)


class TagAudit(Base):
    """Append-only record of tag create/update/delete."""

    __tablename__ = "tag_audit"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    tag_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    action: Mapped[TagAuditAction] = mapped_column(
        Enum(TagAuditAction), nullable=False
    )
    old_name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    new_name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    changed_by: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)


class TopicTagAudit(Base):
    """Append-only record of a topic's tag set being replaced."""

    __tablename__ = "topic_tag_audit"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    topic_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("topics.id", ondelete="CASCADE"), nullable=False
    )
    old_tag_ids: Mapped[List[int]] = mapped_column(JSON, nullable=False, default=list)
    new_tag_ids: Mapped[List[int]] = mapped_column(JSON, nullable=False, default=list)
    changed_by: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)


class CatalogAudit(Base):
    """Append-only record of reaction and badge create/delete."""

    __tablename__ = "catalog_audit"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    entity: Mapped[CatalogEntity] = mapped_column(Enum(CatalogEntity), nullable=False)
    entity_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    action: Mapped[TagAuditAction] = mapped_column(
        Enum(TagAuditAction), nullable=False
    )
    old_name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    new_name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    changed_by: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)


class Reaction(Base):
    __tablename__ = "reactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    emoji: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)


class PostReaction(Base):
    __tablename__ = "post_reactions"
    __table_args__ = (
        UniqueConstraint(
            "post_id", "user_id", "reaction_id", name="uq_post_reaction_user"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    post_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    reaction_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("reactions.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)


class Badge(Base):
    __tablename__ = "badges"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)


class UserBadge(Base):
    __tablename__ = "user_badges"
    __table_args__ = (UniqueConstraint("user_id", "badge_id", name="uq_user_badge"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    badge_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("badges.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    badge: Mapped["Badge"] = relationship("Badge")


class WikiArticle(Base):
    __tablename__ = "wiki_articles"
    __table_args__ = (Index("ix_wiki_articles_status_updated", "status", "updated_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(120), nullable=False)
    slug: Mapped[str] = mapped_column(
        String(140), unique=True, index=True, nullable=False
    )
    summary: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)
    content: Mapped[List[Any]] = mapped_column(JSON, nullable=False, default=list)
    category: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    cover_image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    status: Mapped[WikiStatus] = mapped_column(
        Enum(WikiStatus), default=WikiStatus.DRAFT, nullable=False
    )
    author_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    updated_by: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    history: Mapped[List["WikiArticleHistory"]] = relationship(
        "WikiArticleHistory",
        back_populates="article",
        cascade="all, delete-orphan",
        order_by="WikiArticleHistory.id.desc()",
    )


class WikiArticleHistory(Base):
    """Snapshot of an article taken before each update."""

    __tablename__ = "wiki_article_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    article_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("wiki_articles.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(120), nullable=False)
    summary: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)
    content: Mapped[List[Any]] = mapped_column(JSON, nullable=False, default=list)
    category: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    cover_image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    status: Mapped[WikiStatus] = mapped_column(Enum(WikiStatus), nullable=False)
    edited_by: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    article: Mapped["WikiArticle"] = relationship(
        "WikiArticle", back_populates="history"
    )
