"""감사 로그 서비스.

Audit Service: Records important actions for accountability.
Writes are best-effort: ``log`` never raises. A failed write is logged and
reported through the boolean return value so the caller's primary operation
always completes.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit_log import AuditAction, AuditEntityType, AuditLog
from app.models.user import User
from app.repositories.audit_log_repository import audit_log_repository

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AuditContext:
    """요청 메타데이터 (Client metadata attached to audit rows)."""

    ip_address: str | None = None
    user_agent: str | None = None


class AuditService:

    async def log(
        self,
        db: AsyncSession,
        user_id: UUID,
        action: AuditAction,
        entity_type: AuditEntityType,
        entity_id: UUID,
        old_data: dict[str, Any] | None = None,
        new_data: dict[str, Any] | None = None,
        context: AuditContext | None = None,
    ) -> bool:
        """감사 로그를 기록합니다: 실패해도 예외를 던지지 않습니다.

        Append one audit entry inside a SAVEPOINT so a failed insert leaves
        the caller's session usable.

        Returns:
            bool: 기록 성공 여부 (Whether the entry was written)
        """
        context = context or AuditContext()
        try:
            async with db.begin_nested():
                await audit_log_repository.append(
                    db,
                    {
                        "user_id": user_id,
                        "action": action,
                        "entity_type": entity_type,
                        "entity_id": entity_id,
                        "old_data": old_data,
                        "new_data": new_data,
                        "ip_address": context.ip_address,
                        "user_agent": context.user_agent,
                    },
                )
        except Exception:
            logger.exception(
                "Failed to write audit log",
                extra={
                    "user_id": str(user_id),
                    "action": action.value,
                    "entity_type": entity_type.value,
                    "entity_id": str(entity_id),
                },
            )
            return False
        return True

    async def log_issue_create(
        self,
        db: AsyncSession,
        actor: User,
        issue_id: UUID,
        issue_data: dict[str, Any],
        context: AuditContext | None = None,
    ) -> bool:
        return await self.log(
            db, actor.id, AuditAction.create, AuditEntityType.issue, issue_id,
            new_data=issue_data, context=context,
        )

    async def log_issue_status_update(
        self,
        db: AsyncSession,
        actor: User,
        issue_id: UUID,
        old_status: str,
        new_status: str,
        notes: str | None = None,
        context: AuditContext | None = None,
    ) -> bool:
        return await self.log(
            db, actor.id, AuditAction.update, AuditEntityType.issue, issue_id,
            old_data={"status": old_status},
            new_data={"status": new_status, "notes": notes},
            context=context,
        )

    async def log_issue_assign(
        self,
        db: AsyncSession,
        actor: User,
        issue_id: UUID,
        old_assignee: UUID | None,
        new_assignee: UUID,
        context: AuditContext | None = None,
    ) -> bool:
        return await self.log(
            db, actor.id, AuditAction.assign, AuditEntityType.issue, issue_id,
            old_data={"assigned_to": str(old_assignee) if old_assignee else None},
            new_data={"assigned_to": str(new_assignee)},
            context=context,
        )

    async def log_issue_merge(
        self,
        db: AsyncSession,
        actor: User,
        master_issue_id: UUID,
        merged_issue_ids: Sequence[UUID],
        context: AuditContext | None = None,
    ) -> bool:
        return await self.log(
            db, actor.id, AuditAction.merge, AuditEntityType.issue, master_issue_id,
            new_data={"merged_issue_ids": [str(i) for i in merged_issue_ids]},
            context=context,
        )

    # --- 조회 (Read side) ---

    async def get_logs(
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
        return await audit_log_repository.get_filtered(
            db, entity_type, entity_id, user_id, action, start_date, end_date, limit, offset
        )

    def build_response(self, log: AuditLog) -> dict:
        return {
            "id": str(log.id),
            "user_id": str(log.user_id),
            "action": log.action,
            "entity_type": log.entity_type,
            "entity_id": str(log.entity_id),
            "old_data": log.old_data,
            "new_data": log.new_data,
            "ip_address": log.ip_address,
            "user_agent": log.user_agent,
            "created_at": log.created_at,
        }


audit_service: AuditService = AuditService()
