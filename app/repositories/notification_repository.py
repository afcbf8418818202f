"""알림 레포지토리: 알림 관련 DB 쿼리 담당.

Notification Repository: Handles all notification-related database queries.
Extends BaseRepository with user-specific notification operations.
"""

from datetime import datetime, timezone
from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.notification import Notification, NotificationType
from app.repositories.base import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    """알림 레포지토리.

    Notification repository with user-specific read/unread operations.

    Extends:
        BaseRepository[Notification]
    """

    def __init__(self) -> None:
        """레포지토리를 초기화합니다.

        Initialize the notification repository with Notification model.
        """
        super().__init__(Notification)

    async def get_user_notifications(
        self,
        db: AsyncSession,
        user_id: UUID,
        unread_only: bool = False,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[Notification], int]:
        """사용자의 알림 목록을 페이지네이션하여 조회합니다.

        Retrieve paginated notifications for a user, newest first.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user_id: 사용자 UUID (User UUID)
            unread_only: 미읽음만 조회 여부 (Only return unread notifications)
            page: 페이지 번호, 1부터 시작 (Page number, 1-based)
            per_page: 페이지당 항목 수 (Items per page)

        Returns:
            tuple[Sequence[Notification], int]: (알림 목록, 전체 개수)
                                                 (List of notifications, total count)
        """
        query: Select = (
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
        )
        if unread_only:
            query = query.where(Notification.is_read.is_(False))
        return await self.get_paginated(db, query, page, per_page)

    async def get_unread_count(
        self,
        db: AsyncSession,
        user_id: UUID,
    ) -> int:
        """사용자의 읽지 않은 알림 수를 조회합니다.

        Get the count of unread notifications for a user.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user_id: 사용자 UUID (User UUID)

        Returns:
            int: 읽지 않은 알림 수 (Count of unread notifications)
        """
        query: Select = (
            select(func.count())
            .select_from(Notification)
            .where(
                Notification.user_id == user_id,
                Notification.is_read.is_(False),
            )
        )
        count: int = (await db.execute(query)).scalar() or 0
        return count

    async def mark_read(
        self,
        db: AsyncSession,
        notification_ids: Sequence[UUID],
        user_id: UUID,
    ) -> int:
        """선택한 알림을 읽음 처리합니다.

        Mark the given notifications of a user as read.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            notification_ids: 알림 UUID 목록 (Notification UUIDs)
            user_id: 사용자 UUID (User UUID, other users' rows are never touched)

        Returns:
            int: 업데이트된 알림 수 (Count of updated notifications)
        """
        result = await db.execute(
            update(Notification)
            .where(
                Notification.id.in_(list(notification_ids)),
                Notification.user_id == user_id,
            )
            .values(is_read=True, read_at=datetime.now(timezone.utc))
        )
        await db.flush()
        return result.rowcount

    async def mark_all_read(
        self,
        db: AsyncSession,
        user_id: UUID,
    ) -> int:
        """사용자의 모든 읽지 않은 알림을 읽음 처리합니다.

        Mark all unread notifications as read for a user.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user_id: 사용자 UUID (User UUID)

        Returns:
            int: 업데이트된 알림 수 (Count of updated notifications)
        """
        result = await db.execute(
            update(Notification)
            .where(
                Notification.user_id == user_id,
                Notification.is_read.is_(False),
            )
            .values(is_read=True, read_at=datetime.now(timezone.utc))
        )
        await db.flush()
        return result.rowcount

    async def create_many(
        self,
        db: AsyncSession,
        user_ids: Sequence[UUID],
        title: str,
        message: str,
        notification_type: NotificationType,
        reference_type: str | None = None,
        reference_id: UUID | None = None,
    ) -> list[Notification]:
        """여러 수신자에게 같은 알림을 한 번에 생성합니다.

        Insert one notification per recipient in a single flush.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user_ids: 수신자 UUID 목록 (Recipient user UUIDs)
            title: 알림 제목 (Notification title)
            message: 알림 메시지 (Notification message)
            notification_type: 알림 유형 (Notification type)
            reference_type: 참조 유형, 선택 (Optional reference type)
            reference_id: 참조 ID, 선택 (Optional reference UUID)

        Returns:
            list[Notification]: 생성된 알림 목록 (Created notifications)
        """
        notifications: list[Notification] = [
            Notification(
                user_id=uid,
                title=title,
                message=message,
                type=notification_type,
                reference_type=reference_type,
                reference_id=reference_id,
            )
            for uid in user_ids
        ]
        db.add_all(notifications)
        await db.flush()
        return notifications


# 싱글턴 인스턴스: Singleton instance
notification_repository: NotificationRepository = NotificationRepository()
