"""
Router for moderation endpoints: capability lookup, warn/mute/ban/unban and
the moderation logs.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from models.config import settings
from repositories.database import get_db
from services.moderation_service import ModerationService
from services.permission_service import PermissionService
from services.reaction_service import ReactionService
from services.tag_service import TagService

router = APIRouter(prefix="/moderation", tags=["moderation"])


def _result(
    target_user_id: int, record: db_models.BanRecord, db: Session
) -> schemas.ModerationResult:
    target = db.get(db_models.User, target_user_id)
    return schemas.ModerationResult(
        user_id=target_user_id,
        is_banned=bool(target.is_banned) if target else False,
        banned_until=target.banned_until if target else None,
        record=schemas.BanRecordResponse.model_validate(record),
    )


@router.get("/permissions/me", response_model=schemas.MyPermissions)
def get_my_permissions(
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> schemas.MyPermissions:
    """Effective capabilities of the caller."""
    return schemas.MyPermissions(
        role=current_user.role, **PermissionService.get_permissions(db, current_user)
    )


@router.post("/warn", response_model=schemas.ModerationResult)
def warn_user(
    request: schemas.WarnRequest,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_unbanned_user),
) -> schemas.ModerationResult:
    record = ModerationService.warn(db, current_user, request.user_id, request.reason)
    return _result(request.user_id, record, db)


@router.post("/mute", response_model=schemas.ModerationResult)
def mute_user(
    request: schemas.MuteRequest,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_unbanned_user),
) -> schemas.ModerationResult:
    """Suspend a user for a number of minutes."""
    record = ModerationService.mute(
        db, current_user, request.user_id, request.minutes, request.reason
    )
    return _result(request.user_id, record, db)


@router.post("/ban", response_model=schemas.ModerationResult)
def ban_user(
    request: schemas.BanRequest,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_unbanned_user),
) -> schemas.ModerationResult:
    """Ban a user until a moment, or permanently without `banned_until`."""
    record = ModerationService.ban(
        db, current_user, request.user_id, request.banned_until, request.reason
    )
    return _result(request.user_id, record, db)


@router.post("/unban", response_model=schemas.ModerationResult)
def unban_user(
    request: schemas.UnbanRequest,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_unbanned_user),
) -> schemas.ModerationResult:
    record = ModerationService.unban(db, current_user, request.user_id, request.reason)
    return _result(request.user_id, record, db)


@router.get("/bans", response_model=List[schemas.BanLogEntry])
def get_ban_log(
    limit: int = Query(settings.BAN_LOG_LIMIT, ge=1, le=settings.BAN_LOG_LIMIT),
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_moderator_user),
) -> list[dict]:
    """Latest moderation actions, newest first."""
    return ModerationService.get_ban_log(db, limit)


@router.get("/tag-audit", response_model=List[schemas.TagAuditResponse])
def get_tag_audit(
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(
        auth.require_capability(db_models.Capability.MANAGE_TAGS)
    ),
) -> List[db_models.TagAudit]:
    return TagService.get_audit(db)


@router.get("/topic-tag-audit", response_model=List[schemas.TopicTagAuditResponse])
def get_topic_tag_audit(
    topic_id: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(
        auth.require_capability(db_models.Capability.MANAGE_TAGS)
    ),
) -> List[db_models.TopicTagAudit]:
    """Tag set changes, optionally for one topic."""
    return TagService.get_topic_audit(db, topic_id)


@router.get("/catalog-audit", response_model=List[schemas.CatalogAuditResponse])
def get_catalog_audit(
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(
        auth.require_capability(db_models.Capability.MANAGE_TAGS)
    ),
) -> List[db_models.CatalogAudit]:
    """Reaction and badge catalog changes, newest first."""
    return ReactionService.get_audit(db)
