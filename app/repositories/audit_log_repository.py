"""감사 로그 레포지토리.

Audit log repository: Append-only writes and filtered reads on audit_logs.
There is deliberately no update or delete path for audit rows.
"""

from datetime import datetime
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit_log import AuditAction, AuditEntityType, AuditLog
from app.repositories.base import BaseRepository


class AuditLogRepository(BaseRepository[AuditLog]):

    def __init__(self) -> None:
        super().__init__(AuditLog)

    async def append(
        self,
        db: AsyncSession,
        entry: dict[str, Any],
    ) -> AuditLog:
        """감사 로그 한 건을 추가합니다 (Insert one audit row and flush)."""
        log = AuditLog(**entry)
        db.add(log)
        await db.flush()
        return log

    async def get_filtered(
        self,
        db: AsyncSession,
        entity_type: AuditEntityType | None = None,
        entity_id: UUID | None = None,
        user_id: UUID | None = None,
        action: AuditAction | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[Sequence[AuditLog], int]:
        query: Select = select(AuditLog)
        if entity_type:
            query = query.where(AuditLog.entity_type == entity_type)
        if entity_id:
            query = query.where(AuditLog.entity_id == entity_id)
        if user_id:
            query = query.where(AuditLog.user_id == user_id)
        if action:
            query = query.where(AuditLog.action == action)
        if start_date:
            query = query.where(AuditLog.created_at >= start_date)
        if end_date:
            query = query.where(AuditLog.created_at <= end_date)

        total: int = (
            await db.execute(select(func.count()).select_from(query.subquery()))
        ).scalar() or 0
        result = await db.execute(
            query.order_by(AuditLog.created_at.desc()).offset(offset).limit(limit)
        )
        return result.scalars().all(), total


audit_log_repository: AuditLogRepository = AuditLogRepository()
