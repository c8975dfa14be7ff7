from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import Any, Optional, List
from repositories.db_models import (
    BanAction,
    CatalogEntity,
    ReportStatus,
    Role,
    TagAuditAction,
    WikiStatus,
)


# User Schemas
class UserCreate(BaseModel):
    username: str
    email: str
    password: str


class UserLogin(BaseModel):
    username_or_email: str = Field(..., description="Username or email address")
    password: str


class UserPublic(BaseModel):
    id: int
    username: str
    nickname: Optional[str] = None
    avatar_url: Optional[str] = None
    about: Optional[str] = None
    role: Role
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserMe(UserPublic):
    email: str
    is_banned: bool
    banned_until: Optional[datetime] = None
    hide_badges: bool = False


class UserProfileUpdate(BaseModel):
    nickname: Optional[str] = Field(default=None, max_length=50)
    avatar_url: Optional[str] = Field(default=None, max_length=500)
    about: Optional[str] = Field(default=None, max_length=1000)
    hide_badges: Optional[bool] = None


class PasswordChange(BaseModel):
    current_password: str
    new_password: str


class Token(BaseModel):
    access_token: str
    token_type: str
    user: UserMe


class TokenData(BaseModel):
    email: Optional[str] = None


class UserProfile(BaseModel):
    """Public profile with counters and (unless hidden) badges."""

    user: UserPublic
    topic_count: int
    post_count: int
    follower_count: int
    badges: List["BadgeResponse"] = []


class ActivityItem(BaseModel):
    """One entry of a user's activity feed: a post written or a reaction placed."""

    type: str
    post_id: int
    topic_id: int
    topic_title: str
    content: Optional[str] = None
    reaction_name: Optional[str] = None
    created_at: datetime


# Permission Schemas
class PermissionSet(BaseModel):
    """Full capability set; omitted capabilities are False."""

    can_manage_tags: bool = False
    can_delete_posts: bool = False
    can_ban_users: bool = False
    can_edit_wiki: bool = False
    can_manage_reactions: bool = False

    model_config = ConfigDict(from_attributes=True)


class MyPermissions(PermissionSet):
    role: Role


class RoleUpdate(BaseModel):
    role: str


class AdminUserItem(BaseModel):
    id: int
    username: str
    email: str
    nickname: Optional[str] = None
    role: Role
    is_banned: bool
    banned_until: Optional[datetime] = None
    created_at: datetime
    permissions: Optional[PermissionSet] = None


# Moderation Schemas
class WarnRequest(BaseModel):
    user_id: int
    reason: Optional[str] = Field(default=None, max_length=500)


class MuteRequest(BaseModel):
    user_id: int
    minutes: int
    reason: Optional[str] = Field(default=None, max_length=500)


class BanRequest(BaseModel):
    user_id: int
    banned_until: Optional[datetime] = Field(
        default=None, description="End of the ban; omitted means permanent"
    )
    reason: Optional[str] = Field(default=None, max_length=500)


class UnbanRequest(BaseModel):
    user_id: int
    reason: Optional[str] = Field(default=None, max_length=500)


class BanRecordResponse(BaseModel):
    id: int
    user_id: int
    action: BanAction
    reason: Optional[str] = None
    banned_until: Optional[datetime] = None
    created_by: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BanLogEntry(BanRecordResponse):
    username: str
    created_by_username: str


class ModerationResult(BaseModel):
    """Target user's live state after a moderation action plus the log row."""

    user_id: int
    is_banned: bool
    banned_until: Optional[datetime] = None
    record: BanRecordResponse


# Report Schemas
class ReportCreate(BaseModel):
    post_id: Optional[int] = None
    user_id: Optional[int] = None
    context_post_id: Optional[int] = None
    reason: str = ""


class ReportStatusUpdate(BaseModel):
    status: str


class ReportResponse(BaseModel):
    id: int
    reporter_id: int
    post_id: Optional[int] = None
    target_user_id: int
    context_post_id: Optional[int] = None
    reason: str
    status: ReportStatus
    resolved_by: Optional[int] = None
    resolved_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReportListItem(ReportResponse):
    reporter_username: str
    target_username: str
    resolved_by_username: Optional[str] = None
    topic_id: Optional[int] = None
    post_content: Optional[str] = None


# Notification Schemas
class NotificationResponse(BaseModel):
    id: int
    type: str
    payload: dict[str, Any]
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MarkReadRequest(BaseModel):
    ids: Optional[List[Any]] = None


class CountResponse(BaseModel):
    count: int


# Category Schemas
class CategoryCreate(BaseModel):
    name: str
    description: Optional[str] = None
    sort_order: int = 0


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    sort_order: Optional[int] = None


class CategoryResponse(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    sort_order: int

    model_config = ConfigDict(from_attributes=True)


class CategoryHubItem(CategoryResponse):
    topic_count: int
    post_count: int


# Tag Schemas
class TagCreate(BaseModel):
    name: str
    color: Optional[str] = Field(default=None, max_length=20)


class TagUpdate(BaseModel):
    name: Optional[str] = None
    color: Optional[str] = Field(default=None, max_length=20)


class TagResponse(BaseModel):
    id: int
    name: str
    color: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class TagAuditResponse(BaseModel):
    id: int
    tag_id: Optional[int] = None
    action: TagAuditAction
    old_name: Optional[str] = None
    new_name: Optional[str] = None
    changed_by: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TopicTagAuditResponse(BaseModel):
    id: int
    topic_id: int
    old_tag_ids: List[int]
    new_tag_ids: List[int]
    changed_by: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CatalogAuditResponse(BaseModel):
    id: int
    entity: CatalogEntity
    entity_id: Optional[int] = None
    action: TagAuditAction
    old_name: Optional[str] = None
    new_name: Optional[str] = None
    changed_by: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# Topic Schemas
class TopicCreate(BaseModel):
    title: str
    content: str
    category_id: int
    tag_ids: List[int] = []


class TopicTagsUpdate(BaseModel):
    tag_ids: List[int]


class TopicModerationUpdate(BaseModel):
    is_sticky: Optional[bool] = None
    is_locked: Optional[bool] = None
    category_id: Optional[int] = None


class TopicResponse(BaseModel):
    id: int
    title: str
    category_id: Optional[int] = None
    author_id: int
    is_sticky: bool
    is_locked: bool
    created_at: datetime
    tags: List[TagResponse] = []

    model_config = ConfigDict(from_attributes=True)


class TopicDetail(TopicResponse):
    author_username: str
    category_name: Optional[str] = None
    post_count: int = 0


# Post Schemas
class PostCreate(BaseModel):
    content: str
    parent_post_id: Optional[int] = None


class PostUpdate(BaseModel):
    content: str


class PostResponse(BaseModel):
    id: int
    topic_id: int
    author_id: int
    parent_post_id: Optional[int] = None
    content: str
    is_deleted: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PostWithAuthor(PostResponse):
    author_username: str
    author_nickname: Optional[str] = None


# Follow Schemas
class FollowStatus(BaseModel):
    following: bool


# Message Schemas
class MessageCreate(BaseModel):
    recipient_id: Any = Field(..., description="Positive user id of the recipient")
    content: str = ""


class MessageResponse(BaseModel):
    id: int
    sender_id: int
    recipient_id: int
    content: str
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ConversationSummary(BaseModel):
    user_id: int
    username: str
    nickname: Optional[str] = None
    last_message: str
    last_message_at: datetime
    unread_count: int


# Reaction Schemas
class ReactionCreate(BaseModel):
    name: str
    emoji: Optional[str] = Field(default=None, max_length=16)
    image_url: Optional[str] = Field(default=None, max_length=500)


class ReactionResponse(BaseModel):
    id: int
    name: str
    emoji: Optional[str] = None
    image_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ReactionToggle(BaseModel):
    reaction_id: int


class ReactionToggleResponse(BaseModel):
    reacted: bool


class PostReactionSummary(BaseModel):
    reaction_id: int
    name: str
    emoji: Optional[str] = None
    image_url: Optional[str] = None
    count: int
    reacted_by_me: bool = False


# Badge Schemas
class BadgeCreate(BaseModel):
    name: str
    description: Optional[str] = Field(default=None, max_length=200)
    image_url: Optional[str] = Field(default=None, max_length=500)


class BadgeResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


# Wiki Schemas
class WikiArticleCreate(BaseModel):
    title: str
    slug: Optional[str] = None
    summary: Optional[str] = None
    content: Any = None
    category: Optional[str] = Field(default=None, max_length=50)
    cover_image_url: Optional[str] = None
    status: str = WikiStatus.DRAFT.value


class WikiArticleUpdate(BaseModel):
    title: Optional[str] = None
    slug: Optional[str] = None
    summary: Optional[str] = None
    content: Any = None
    category: Optional[str] = Field(default=None, max_length=50)
    cover_image_url: Optional[str] = None
    status: Optional[str] = None


class WikiArticleSummary(BaseModel):
    id: int
    title: str
    slug: str
    summary: Optional[str] = None
    category: Optional[str] = None
    cover_image_url: Optional[str] = None
    status: WikiStatus
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class WikiArticleResponse(WikiArticleSummary):
    content: List[Any]
    author_id: int
    updated_by: Optional[int] = None
    created_at: datetime


class WikiHistoryResponse(BaseModel):
    id: int
    article_id: int
    title: str
    summary: Optional[str] = None
    content: List[Any]
    category: Optional[str] = None
    cover_image_url: Optional[str] = None
    status: WikiStatus
    edited_by: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# Generic
class MessageAck(BaseModel):
    message: str


class CreatedId(BaseModel):
    id: int


UserProfile.model_rebuild()
