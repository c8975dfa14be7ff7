"""Direct message endpoints."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from repositories.database import get_db
from services.message_service import MessageService

router = APIRouter(prefix="/messages", tags=["messages"])


@router.post("", response_model=schemas.MessageResponse, status_code=201)
def send_message(
    message: schemas.MessageCreate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_unbanned_user),
) -> db_models.Message:
    """Send a message; the recipient gets a notification."""
    return MessageService.send_message(
        db, current_user, message.recipient_id, message.content
    )


@router.get("/conversations", response_model=List[schemas.ConversationSummary])
def list_conversations(
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> List[schemas.ConversationSummary]:
    return MessageService.list_conversations(db, current_user)


@router.get("/unread-count", response_model=schemas.CountResponse)
def get_unread_count(
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> schemas.CountResponse:
    return schemas.CountResponse(count=MessageService.unread_count(db, current_user))


@router.get("/with/{user_id}", response_model=List[schemas.MessageResponse])
def get_thread(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> List[db_models.Message]:
    """Messages exchanged with one user, oldest first."""
    return MessageService.get_thread(db, current_user, user_id)


@router.post("/with/{user_id}/read", response_model=schemas.CountResponse)
def mark_thread_read(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> schemas.CountResponse:
    return schemas.CountResponse(
        count=MessageService.mark_thread_read(db, current_user, user_id)
    )


@router.post("/{message_id}/read", response_model=schemas.MessageAck)
def mark_message_read(
    message_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> schemas.MessageAck:
    MessageService.mark_read(db, current_user, message_id)
    return schemas.MessageAck(message="OK")
