"""관리자 감사 로그 라우터.

Admin Audit Log Router: Read-only access to the audit trail. Admins only.
"""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_admin
from app.database import get_db
from app.models.audit_log import AuditAction, AuditEntityType
from app.models.user import User
from app.services.audit_service import audit_service

router: APIRouter = APIRouter()


@router.get("")
async def list_audit_logs(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
    entity_type: AuditEntityType | None = Query(None),
    entity_id: UUID | None = Query(None),
    user_id: UUID | None = Query(None),
    action: AuditAction | None = Query(None),
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
) -> dict:
    """감사 로그 조회. 최신순.

    List audit entries, newest first.

    Returns:
        dict: {"items", "total", "limit", "offset"}
    """
    logs, total = await audit_service.get_logs(
        db, entity_type, entity_id, user_id, action, start_date, end_date, limit, offset
    )
    return {
        "items": [audit_service.build_response(log) for log in logs],
        "total": total,
        "limit": limit,
        "offset": offset,
    }
