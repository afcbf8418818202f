"""이슈 레포지토리.

Issue repository: The issue store. Handles issues table queries.
"""

from datetime import datetime
from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.issue import Issue, IssueCategory, IssuePriority, IssueStatus
from app.repositories.base import BaseRepository

# 병합된 중복 이슈에 남기는 메모: pointer written over a merged duplicate's notes
MERGED_POINTER_TEMPLATE: str = "Merged into issue: {master_id}. Original notes preserved in master issue."


class IssueRepository(BaseRepository[Issue]):

    def __init__(self) -> None:
        super().__init__(Issue)

    async def get_filtered(
        self,
        db: AsyncSession,
        status: IssueStatus | None = None,
        category: IssueCategory | None = None,
        priority: IssuePriority | None = None,
        hostel_name: str | None = None,
        assigned_to: UUID | None = None,
        unassigned: bool = False,
        search: str | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[Issue], int]:
        query: Select = select(Issue).order_by(Issue.created_at.desc())
        if status:
            query = query.where(Issue.status == status)
        if category:
            query = query.where(Issue.category == category)
        if priority:
            query = query.where(Issue.priority == priority)
        if hostel_name:
            query = query.where(Issue.hostel_name == hostel_name)
        if unassigned:
            query = query.where(Issue.assigned_to.is_(None))
        elif assigned_to:
            query = query.where(Issue.assigned_to == assigned_to)
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(Issue.title.ilike(pattern), Issue.description.ilike(pattern)))
        return await self.get_paginated(db, query, page, per_page)

    async def get_by_reporter(
        self,
        db: AsyncSession,
        reporter_id: UUID,
        status: IssueStatus | None = None,
        category: IssueCategory | None = None,
        priority: IssuePriority | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[Issue], int]:
        query: Select = (
            select(Issue)
            .where(Issue.reported_by == reporter_id)
            .order_by(Issue.created_at.desc())
        )
        if status:
            query = query.where(Issue.status == status)
        if category:
            query = query.where(Issue.category == category)
        if priority:
            query = query.where(Issue.priority == priority)
        return await self.get_paginated(db, query, page, per_page)

    async def find_similar(
        self,
        db: AsyncSession,
        category: IssueCategory,
        hostel_name: str | None,
        exclude_id: UUID,
        statuses: Sequence[IssueStatus],
        limit: int,
    ) -> Sequence[Issue]:
        """같은 분류/기숙사의 열린 이슈를 최신순으로 조회합니다.

        Issues sharing ``category`` and ``hostel_name`` whose status is in
        ``statuses``, excluding ``exclude_id``, newest first, at most ``limit`` rows.

        ``hostel_name`` is compared with IS NOT DISTINCT FROM, so an issue
        without a hostel matches other issues without one, unlike a plain
        ``hostel_name = :value`` equality filter, which never matches NULL.
        """
        query: Select = (
            select(Issue)
            .where(
                Issue.id != exclude_id,
                Issue.category == category,
                Issue.hostel_name.is_not_distinct_from(hostel_name),
                Issue.status.in_(list(statuses)),
            )
            .order_by(Issue.created_at.desc())
            .limit(limit)
        )
        result = await db.execute(query)
        return result.scalars().all()

    async def close_as_merged(
        self,
        db: AsyncSession,
        duplicates: Sequence[Issue],
        master_id: UUID,
        closed_at: datetime,
    ) -> None:
        """중복 이슈를 닫고 메모를 마스터 참조로 덮어씁니다.

        Close each duplicate and replace its notes with a pointer to the master.
        Flushes once for the whole batch.
        """
        pointer: str = MERGED_POINTER_TEMPLATE.format(master_id=master_id)
        for issue in duplicates:
            issue.status = IssueStatus.closed
            issue.notes = pointer
            issue.updated_at = closed_at
        await db.flush()


issue_repository: IssueRepository = IssueRepository()
