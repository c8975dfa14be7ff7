"""
Report intake and resolution.
"""

from typing import List, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from helpers.sanitization import clean_text, within_length
from helpers.time_utils import utc_now
from models.config import settings
from models.exceptions import (
    InsufficientPermissionsException,
    InvalidReportException,
    PostNotFoundException,
    ReportNotFoundException,
    SelfActionException,
    StorageException,
    UserNotFoundException,
    ValidationException,
)
from repositories.db_models import ReportStatus
from repositories.post_repository import PostRepository
from repositories.report_repository import ReportRepository
from repositories.user_repository import UserRepository
from services.notification_service import NotificationService
from services.permission_service import PermissionService


class ReportService:
    """Service for filing and resolving reports."""

    @staticmethod
    def _clean_reason(reason: Optional[str]) -> str:
        if not within_length(
            reason,
            settings.REPORT_REASON_MIN_LENGTH,
            settings.REPORT_REASON_MAX_LENGTH,
        ):
            raise InvalidReportException("Reason length is invalid")
        cleaned = clean_text(reason)
        if not cleaned:
            raise InvalidReportException("Reason has no text")
        return cleaned

    @staticmethod
    def parse_status(status: str | ReportStatus) -> ReportStatus:
        """
        Raises:
            ValidationException: If status is not open, reviewed or closed
        """
        if isinstance(status, ReportStatus):
            return status
        try:
            return ReportStatus(status)
        except ValueError:
            raise ValidationException("Invalid status")

    @staticmethod
    def file_report(
        db: Session,
        reporter: db_models.User,
        post_id: Optional[int] = None,
        user_id: Optional[int] = None,
        context_post_id: Optional[int] = None,
        reason: Optional[str] = None,
    ) -> db_models.Report:
        """
        File a report against a post or a user.

        A post report takes precedence when both ids are given; its target
        user is the post's author and `user_id` is ignored. A user report may
        point at one of the target's posts as context.

        Args:
            db: Database session
            reporter: Reporting user
            post_id: Reported post
            user_id: Reported user
            context_post_id: Post illustrating a user report
            reason: Free-text reason, 3 to 500 characters after trimming

        Returns:
            The new open report

        Raises:
            InvalidReportException: Missing target, bad reason length or a
                context post written by someone else
            SelfActionException: Reporter reports themselves
            PostNotFoundException: Post or context post does not exist
            UserNotFoundException: Reported user does not exist
        """
        if post_id is None and user_id is None:
            raise InvalidReportException("Missing target")
        cleaned_reason = ReportService._clean_reason(reason)

        post_repo = PostRepository(db)
        user_repo = UserRepository(db)

        target_post: Optional[db_models.Post] = None
        context_post: Optional[db_models.Post] = None

        if post_id is not None:
            target_post = post_repo.get_by_id(post_id)
            if target_post is None:
                raise PostNotFoundException()
            target_user = target_post.author
            topic_id: Optional[int] = target_post.topic_id
        else:
            if user_id == reporter.id:
                raise SelfActionException("You cannot report yourself")
            found = user_repo.get_by_id(user_id)  # type: ignore[arg-type]
            if found is None:
                raise UserNotFoundException()
            target_user = found
            topic_id = None

            if context_post_id is not None:
                context_post = post_repo.get_by_id(context_post_id)
                if context_post is None:
                    raise PostNotFoundException("Context post not found")
                if context_post.author_id != target_user.id:
                    raise InvalidReportException(
                        "Context post does not belong to user"
                    )
                topic_id = context_post.topic_id

        report_repo = ReportRepository(db)
        report = db_models.Report(
            reporter_id=reporter.id,
            post_id=target_post.id if target_post else None,
            target_user_id=target_user.id,
            context_post_id=context_post.id if context_post else None,
            reason=cleaned_reason,
            status=ReportStatus.OPEN,
        )
        try:
            report_repo.add(report)
            report_repo.commit()
        except SQLAlchemyError as e:
            report_repo.rollback()
            logger.error(f"Failed to file report by user {reporter.id}: {e}")
            raise StorageException()
        report_repo.refresh(report)

        logger.info(
            f"Report {report.id} filed by user {reporter.id} "
            f"against user {target_user.id}"
            + (f" (post {report.post_id})" if report.post_id else "")
        )

        NotificationService.notify_report(
            db, report, reporter, target_user, topic_id=topic_id
        )
        return report

    @staticmethod
    def set_status(
        db: Session,
        moderator: db_models.User,
        report_id: int,
        status: str | ReportStatus,
    ) -> db_models.Report:
        """
        Move a report to any status.

        Leaving `open` stamps the resolver and time; returning to `open`
        clears both.

        Raises:
            InsufficientPermissionsException: If caller is not staff
            ValidationException: If status is invalid
            ReportNotFoundException: If report does not exist
        """
        if not PermissionService.is_staff(moderator):
            raise InsufficientPermissionsException("Moderator only")
        new_status = ReportService.parse_status(status)

        report_repo = ReportRepository(db)
        report = report_repo.get_by_id(report_id)
        if report is None:
            raise ReportNotFoundException()

        report.status = new_status
        if new_status == ReportStatus.OPEN:
            report.resolved_by = None
            report.resolved_at = None
        else:
            report.resolved_by = moderator.id
            report.resolved_at = utc_now()

        try:
            report_repo.commit()
        except SQLAlchemyError as e:
            report_repo.rollback()
            logger.error(f"Failed to update report {report_id}: {e}")
            raise StorageException()
        report_repo.refresh(report)

        logger.info(
            f"Report {report.id} set to {new_status.value} by user {moderator.id}"
        )
        return report

    @staticmethod
    def list_reports(
        db: Session, status: Optional[str] = None
    ) -> List[dict]:
        """
        Moderation queue, newest first.

        An unknown status filter is ignored and lists everything.
        """
        status_filter: Optional[ReportStatus] = None
        if status:
            try:
                status_filter = ReportStatus(status)
            except ValueError:
                status_filter = None

        reports = ReportRepository(db).list_reports(
            status_filter, limit=settings.REPORT_LIST_LIMIT
        )
        items = []
        for report in reports:
            topic_id = report.post.topic_id if report.post else None
            if topic_id is None and report.context_post_id is not None:
                context = db.get(db_models.Post, report.context_post_id)
                topic_id = context.topic_id if context else None
            items.append(
                {
                    "id": report.id,
                    "reporter_id": report.reporter_id,
                    "post_id": report.post_id,
                    "target_user_id": report.target_user_id,
                    "context_post_id": report.context_post_id,
                    "reason": report.reason,
                    "status": report.status,
                    "resolved_by": report.resolved_by,
                    "resolved_at": report.resolved_at,
                    "created_at": report.created_at,
                    "reporter_username": report.reporter.username,
                    "target_username": report.target_user.username,
                    "resolved_by_username": (
                        report.resolver.username if report.resolver else None
                    ),
                    "topic_id": topic_id,
                    "post_content": report.post.content if report.post else None,
                }
            )
        return items
