"""앱 이슈 라우터: 거주자용 이슈 API.

App Issue Router: Resident-facing endpoints.
Any authenticated user can report issues and view their own reports.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_audit_context, get_current_user
from app.database import get_db
from app.models.issue import IssueCategory, IssuePriority, IssueStatus
from app.models.user import User
from app.schemas.common import PaginatedResponse
from app.schemas.issue import IssueCreate
from app.services.audit_service import AuditContext
from app.services.issue_service import issue_service

router: APIRouter = APIRouter()


@router.get("", response_model=PaginatedResponse)
async def list_my_issues(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    status: IssueStatus | None = Query(None),
    category: IssueCategory | None = Query(None),
    priority: IssuePriority | None = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
) -> dict:
    """내 이슈 목록 조회."""
    issues, total = await issue_service.list_for_reporter(
        db, current_user.id, status, category, priority, page, per_page
    )
    items = [await issue_service.build_response(db, i) for i in issues]
    return {"items": items, "total": total, "page": page, "per_page": per_page}


@router.get("/{issue_id}")
async def get_my_issue(
    issue_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict:
    """이슈 상세 조회. 본인 이슈만 (직원은 전체)."""
    issue = await issue_service.get_issue(db, issue_id, current_user)
    return await issue_service.build_response(db, issue)


@router.post("", status_code=201)
async def create_issue(
    data: IssueCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    audit_context: Annotated[AuditContext, Depends(get_audit_context)],
) -> dict:
    """이슈 신고."""
    issue = await issue_service.create_issue(db, current_user, data, audit_context)
    await db.commit()
    return await issue_service.build_response(db, issue)
