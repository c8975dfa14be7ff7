"""Topic router endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import PaginationLimit, PaginationLimitLarge, PaginationSkip
from repositories.database import get_db
from services import PostService, TopicService
from services.follow_service import FollowService

router = APIRouter(prefix="/topics", tags=["topics"])


@router.get("", response_model=List[schemas.TopicDetail])
def list_topics(
    category: Optional[str] = Query(None, max_length=60, description="Category slug"),
    skip: PaginationSkip = 0,
    limit: PaginationLimit = 50,
    db: Session = Depends(get_db),
) -> List[schemas.TopicDetail]:
    """List topics, sticky ones first."""
    return TopicService.list_topics(db, category, skip=skip, limit=limit)


@router.post("", response_model=schemas.TopicDetail, status_code=201)
def create_topic(
    topic: schemas.TopicCreate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_unbanned_user),
) -> schemas.TopicDetail:
    """Create a topic with its first post."""
    created = TopicService.create_topic(
        db,
        current_user,
        topic.title,
        topic.content,
        topic.category_id,
        topic.tag_ids,
    )
    return TopicService.to_detail(db, created)


@router.get("/{topic_id}", response_model=schemas.TopicDetail)
def get_topic(topic_id: int, db: Session = Depends(get_db)) -> schemas.TopicDetail:
    return TopicService.to_detail(db, TopicService.get_topic(db, topic_id))


@router.delete("/{topic_id}", response_model=schemas.MessageAck)
def delete_topic(
    topic_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_unbanned_user),
) -> schemas.MessageAck:
    TopicService.delete_topic(db, current_user, topic_id)
    return schemas.MessageAck(message="Topic deleted")


@router.put("/{topic_id}/tags", response_model=schemas.TopicTagsUpdate)
def set_topic_tags(
    topic_id: int,
    update: schemas.TopicTagsUpdate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_unbanned_user),
) -> schemas.TopicTagsUpdate:
    """Replace the tag set of a topic. Unknown tag ids are dropped."""
    tag_ids = TopicService.set_tags(db, current_user, topic_id, update.tag_ids)
    return schemas.TopicTagsUpdate(tag_ids=tag_ids)


@router.patch("/{topic_id}/moderation", response_model=schemas.TopicDetail)
def update_topic_moderation(
    topic_id: int,
    update: schemas.TopicModerationUpdate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_unbanned_user),
) -> schemas.TopicDetail:
    """Pin, lock or move a topic."""
    topic = TopicService.update_moderation(
        db,
        current_user,
        topic_id,
        is_sticky=update.is_sticky,
        is_locked=update.is_locked,
        category_id=update.category_id,
    )
    return TopicService.to_detail(db, topic)


@router.get("/{topic_id}/posts", response_model=List[schemas.PostWithAuthor])
def get_topic_posts(
    topic_id: int,
    skip: PaginationSkip = 0,
    limit: PaginationLimitLarge = 100,
    db: Session = Depends(get_db),
) -> List[schemas.PostWithAuthor]:
    return PostService.get_posts_for_topic(db, topic_id, skip=skip, limit=limit)


@router.post(
    "/{topic_id}/posts", response_model=schemas.PostWithAuthor, status_code=201
)
def create_post(
    topic_id: int,
    post: schemas.PostCreate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_unbanned_user),
) -> schemas.PostWithAuthor:
    """
    Reply in a topic.

    Notifications go out after the post is stored; failures there do not
    affect the response.
    """
    created = PostService.create_post(
        db, current_user, topic_id, post.content, post.parent_post_id
    )
    return PostService.to_schema(created)


@router.get("/{topic_id}/follow", response_model=schemas.FollowStatus)
def get_topic_follow_status(
    topic_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> schemas.FollowStatus:
    return schemas.FollowStatus(
        following=FollowService.is_following_topic(db, current_user, topic_id)
    )


@router.post("/{topic_id}/follow", response_model=schemas.FollowStatus)
def follow_topic(
    topic_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_unbanned_user),
) -> schemas.FollowStatus:
    FollowService.follow_topic(db, current_user, topic_id)
    return schemas.FollowStatus(following=True)


@router.delete("/{topic_id}/follow", response_model=schemas.FollowStatus)
def unfollow_topic(
    topic_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_unbanned_user),
) -> schemas.FollowStatus:
    FollowService.unfollow_topic(db, current_user, topic_id)
    return schemas.FollowStatus(following=False)
