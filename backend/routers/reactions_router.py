"""Reaction type management. Toggling a reaction lives on the posts router."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from repositories.database import get_db
from services.reaction_service import ReactionService

router = APIRouter(prefix="/reactions", tags=["reactions"])


@router.get("", response_model=List[schemas.ReactionResponse])
def get_reactions(db: Session = Depends(get_db)):
    return ReactionService.get_all_reactions(db)


@router.post("", response_model=schemas.ReactionResponse, status_code=201)
def create_reaction(
    reaction: schemas.ReactionCreate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_unbanned_user),
):
    """Create a reaction type. Requires can_manage_reactions."""
    return ReactionService.create_reaction(
        db, current_user, reaction.name, reaction.emoji, reaction.image_url
    )


@router.delete("/{reaction_id}", response_model=schemas.MessageAck)
def delete_reaction(
    reaction_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_unbanned_user),
):
    ReactionService.delete_reaction(db, current_user, reaction_id)
    return schemas.MessageAck(message="Reaction deleted")
