"""알림 서비스: 알림 비즈니스 로직.

Notification Service: Business logic for notification management.
Handles read/unread operations and fan-out for issue events.

Dispatch methods (``create``, ``create_bulk`` and the ``notify_*`` helpers)
are best-effort: they never raise. Failures are logged and reported
through the boolean return value.
"""

import logging
from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.issue import Issue, IssuePriority
from app.models.notification import Notification, NotificationType
from app.repositories.notification_repository import notification_repository

logger = logging.getLogger(__name__)


class NotificationService:
    """알림 서비스.

    Notification service providing shared read/unread operations
    and best-effort dispatch for issue events.
    """

    # --- 공통 조회/읽음 처리 (Shared read/unread operations) ---

    async def list_notifications(
        self,
        db: AsyncSession,
        user_id: UUID,
        unread_only: bool = False,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[Notification], int]:
        """사용자의 알림 목록을 페이지네이션하여 조회합니다.

        List paginated notifications for a user.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user_id: 사용자 UUID (User UUID)
            unread_only: 미읽음만 조회 (Only unread notifications)
            page: 페이지 번호 (Page number)
            per_page: 페이지당 항목 수 (Items per page)

        Returns:
            tuple[Sequence[Notification], int]: (알림 목록, 전체 개수)
                                                 (List of notifications, total count)
        """
        return await notification_repository.get_user_notifications(
            db, user_id, unread_only, page, per_page
        )

    async def get_unread_count(
        self,
        db: AsyncSession,
        user_id: UUID,
    ) -> int:
        """사용자의 읽지 않은 알림 수를 조회합니다.

        Get the count of unread notifications for a user.
        """
        return await notification_repository.get_unread_count(db, user_id)

    async def mark_read(
        self,
        db: AsyncSession,
        notification_ids: Sequence[UUID],
        user_id: UUID,
    ) -> int:
        """선택한 알림을 읽음 처리합니다 (Mark selected notifications as read)."""
        return await notification_repository.mark_read(db, notification_ids, user_id)

    async def mark_all_read(
        self,
        db: AsyncSession,
        user_id: UUID,
    ) -> int:
        """사용자의 모든 읽지 않은 알림을 읽음 처리합니다.

        Mark all unread notifications as read for a user.

        Returns:
            int: 읽음 처리된 알림 수 (Count of notifications marked as read)
        """
        return await notification_repository.mark_all_read(db, user_id)

    def build_response(self, notification: Notification) -> dict:
        return {
            "id": str(notification.id),
            "title": notification.title,
            "message": notification.message,
            "type": notification.type,
            "reference_type": notification.reference_type,
            "reference_id": str(notification.reference_id) if notification.reference_id else None,
            "is_read": notification.is_read,
            "read_at": notification.read_at,
            "created_at": notification.created_at,
        }

    # --- 전송 (Best-effort dispatch) ---

    async def create_bulk(
        self,
        db: AsyncSession,
        user_ids: Sequence[UUID],
        title: str,
        message: str,
        notification_type: NotificationType = NotificationType.issue,
        reference_id: UUID | None = None,
        reference_type: str | None = "issue",
    ) -> bool:
        """여러 사용자에게 알림을 생성합니다: 실패해도 예외를 던지지 않습니다.

        Insert the same notification for every recipient inside a SAVEPOINT.
        An empty recipient list is a successful no-op.

        Returns:
            bool: 전송 성공 여부 (Whether the notifications were written)
        """
        if not user_ids:
            return True
        try:
            async with db.begin_nested():
                await notification_repository.create_many(
                    db, user_ids, title, message, notification_type, reference_type, reference_id
                )
        except Exception:
            logger.exception(
                "Failed to create notifications",
                extra={
                    "recipients": [str(u) for u in user_ids],
                    "title": title,
                    "reference_id": str(reference_id) if reference_id else None,
                },
            )
            return False
        return True

    async def create(
        self,
        db: AsyncSession,
        user_id: UUID,
        title: str,
        message: str,
        notification_type: NotificationType = NotificationType.issue,
        reference_id: UUID | None = None,
        reference_type: str | None = "issue",
    ) -> bool:
        """단일 사용자에게 알림을 생성합니다 (Best-effort single notification)."""
        return await self.create_bulk(
            db, [user_id], title, message, notification_type, reference_id, reference_type
        )

    async def notify_issue_merge(
        self,
        db: AsyncSession,
        reporter_ids: Sequence[UUID],
        master: Issue,
    ) -> bool:
        """중복 이슈 신고자들에게 병합 알림 (Tell duplicate reporters their issue was merged)."""
        return await self.create_bulk(
            db,
            reporter_ids,
            title="Issue Merged",
            message=f'Your issue has been merged with: "{master.title}". You can track progress there.',
            reference_id=master.id,
        )

    async def notify_master_reporter_merge(
        self,
        db: AsyncSession,
        master: Issue,
        merged_count: int,
    ) -> bool:
        """마스터 이슈 신고자에게 병합 알림 (Tell the master's reporter duplicates were folded in)."""
        return await self.create(
            db,
            master.reported_by,
            title="Issues Merged Into Your Report",
            message=f'{merged_count} duplicate issue(s) have been merged into your issue "{master.title}".',
            reference_id=master.id,
        )

    async def notify_issue_status_change(
        self,
        db: AsyncSession,
        issue: Issue,
        new_status: str,
    ) -> bool:
        return await self.create(
            db,
            issue.reported_by,
            title="Issue Status Updated",
            message=f'Your issue "{issue.title}" has been updated to: {new_status.replace("_", " ")}',
            reference_id=issue.id,
        )

    async def notify_issue_assignment(
        self,
        db: AsyncSession,
        assignee_id: UUID,
        issue: Issue,
    ) -> bool:
        return await self.create(
            db,
            assignee_id,
            title="New Issue Assigned",
            message=f'You have been assigned to issue: "{issue.title}"',
            reference_id=issue.id,
        )

    async def notify_reporter_assigned(
        self,
        db: AsyncSession,
        issue: Issue,
        assignee_name: str,
    ) -> bool:
        return await self.create(
            db,
            issue.reported_by,
            title="Issue Assigned",
            message=f'Your issue "{issue.title}" has been assigned to {assignee_name}',
            reference_id=issue.id,
        )

    async def notify_new_issue(
        self,
        db: AsyncSession,
        caretaker_ids: Sequence[UUID],
        issue: Issue,
    ) -> bool:
        """긴급/높음 우선순위 신규 이슈를 관리인에게 알림 (Alert caretakers to high/urgent issues)."""
        label: str = "🚨 URGENT" if issue.priority == IssuePriority.urgent else "⚠️ High Priority"
        return await self.create_bulk(
            db,
            caretaker_ids,
            title=f"{label} Issue Reported",
            message=f"New {issue.category.value} issue: {issue.title}",
            reference_id=issue.id,
        )


# 싱글턴 인스턴스: Singleton instance
notification_service: NotificationService = NotificationService()
