"""관리자 이슈 라우터: 이슈 관리 및 중복 병합 API.

Admin Issue Router: Staff endpoints for issue triage: listing, assignment,
status changes, duplicate candidates, and merging duplicates into a master.
Caretakers and admins only.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_audit_context, require_staff
from app.config import settings
from app.database import get_db
from app.models.issue import IssueCategory, IssuePriority, IssueStatus
from app.models.user import User
from app.schemas.common import DuplicateCandidatesResponse, MergeResponse, PaginatedResponse
from app.schemas.issue import IssueAssign, IssueMergeRequest, IssueStatusUpdate
from app.services.audit_service import AuditContext
from app.services.duplicate_merge_service import MergeResult, duplicate_merge_service
from app.services.issue_service import issue_service

router: APIRouter = APIRouter()


@router.get("", response_model=PaginatedResponse)
async def list_issues(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_staff)],
    status: IssueStatus | None = Query(None),
    category: IssueCategory | None = Query(None),
    priority: IssuePriority | None = Query(None),
    hostel_name: str | None = Query(None),
    assigned_to: str | None = Query(None, description="User id or 'unassigned'"),
    search: str | None = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
) -> dict:
    """이슈 목록 조회. 최신순."""
    issues, total = await issue_service.list_issues(
        db, status, category, priority, hostel_name, assigned_to, search, page, per_page
    )
    items = [await issue_service.build_response(db, i) for i in issues]
    return {"items": items, "total": total, "page": page, "per_page": per_page}


@router.post("/merge", response_model=MergeResponse)
async def merge_issues(
    data: IssueMergeRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_staff)],
    audit_context: Annotated[AuditContext, Depends(get_audit_context)],
) -> dict:
    """중복 이슈를 마스터 이슈로 병합합니다.

    Merge duplicate issues into a master issue. The merge commits its own
    transaction; a StoreError response names the step that failed.
    """
    result: MergeResult = await duplicate_merge_service.merge_issues(
        db,
        current_user,
        data.master_issue_id,
        data.duplicate_issue_ids,
        data.merge_notes,
        audit_context,
    )
    return {
        "message": f"Successfully merged {result.merged_count} issue(s)",
        "master_issue": await issue_service.build_response(db, result.master_issue),
        "merged_count": result.merged_count,
        "merged_issue_ids": [str(i) for i in result.merged_issue_ids],
        "affected_reporters": [str(u) for u in result.affected_reporters],
    }


@router.get("/{issue_id}")
async def get_issue(
    issue_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_staff)],
) -> dict:
    """이슈 상세 조회."""
    issue = await issue_service.get_issue(db, issue_id, current_user)
    return await issue_service.build_response(db, issue)


@router.get("/{issue_id}/duplicates", response_model=DuplicateCandidatesResponse)
async def get_potential_duplicates(
    issue_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_staff)],
    limit: int = Query(
        settings.DUPLICATE_SEARCH_DEFAULT_LIMIT, ge=1, le=settings.DUPLICATE_SEARCH_MAX_LIMIT
    ),
) -> dict:
    """중복 후보 조회: 같은 분류/기숙사의 열린 이슈."""
    candidates = await duplicate_merge_service.find_potential_duplicates(db, issue_id, limit)
    items = [await issue_service.build_response(db, c) for c in candidates]
    return {"issue_id": str(issue_id), "candidates": items, "count": len(items)}


@router.patch("/{issue_id}/assign")
async def assign_issue(
    issue_id: UUID,
    data: IssueAssign,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_staff)],
    audit_context: Annotated[AuditContext, Depends(get_audit_context)],
) -> dict:
    """담당자 지정. 대기 중 이슈는 진행 중으로 전환."""
    issue = await issue_service.assign_issue(db, issue_id, data, current_user, audit_context)
    await db.commit()
    return await issue_service.build_response(db, issue)


@router.patch("/{issue_id}/status")
async def update_issue_status(
    issue_id: UUID,
    data: IssueStatusUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_staff)],
    audit_context: Annotated[AuditContext, Depends(get_audit_context)],
) -> dict:
    """상태 변경."""
    issue = await issue_service.update_status(db, issue_id, data, current_user, audit_context)
    await db.commit()
    return await issue_service.build_response(db, issue)
