"""Post router endpoints: edit, delete and reactions on a single post."""

from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from repositories.database import get_db
from services import PostService
from services.reaction_service import ReactionService

router = APIRouter(prefix="/posts", tags=["posts"])


@router.patch("/{post_id}", response_model=schemas.PostWithAuthor)
def edit_post(
    post_id: int,
    update: schemas.PostUpdate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_unbanned_user),
) -> schemas.PostWithAuthor:
    """Edit a post. Only its author may do this."""
    return PostService.to_schema(
        PostService.edit_post(db, current_user, post_id, update.content)
    )


@router.delete("/{post_id}", response_model=schemas.MessageAck)
def delete_post(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_unbanned_user),
) -> schemas.MessageAck:
    """
    Soft delete a post.

    Allowed for the author, admins, and moderators holding can_delete_posts.
    """
    PostService.delete_post(db, current_user, post_id)
    return schemas.MessageAck(message="Post deleted")


@router.get("/{post_id}/reactions", response_model=List[schemas.PostReactionSummary])
def get_post_reactions(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: Optional[db_models.User] = Depends(auth.get_current_user_optional),
) -> List[schemas.PostReactionSummary]:
    return ReactionService.get_post_summary(db, post_id, current_user)


@router.post("/{post_id}/reactions", response_model=schemas.ReactionToggleResponse)
def toggle_post_reaction(
    post_id: int,
    toggle: schemas.ReactionToggle,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_unbanned_user),
) -> schemas.ReactionToggleResponse:
    reacted = ReactionService.toggle_reaction(
        db, current_user, post_id, toggle.reaction_id
    )
    return schemas.ReactionToggleResponse(reacted=reacted)
