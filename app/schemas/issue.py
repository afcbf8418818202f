"""이슈 Pydantic 스키마.

Issue request schemas for creation, assignment, status updates, and merges.
"""

from uuid import UUID

from pydantic import BaseModel, Field

from app.models.issue import IssueCategory, IssuePriority, IssueStatus


class IssueCreate(BaseModel):
    """이슈 생성 요청 스키마.

    Issue creation request. hostel_name and room_number fall back to the
    reporter's profile when omitted.
    """

    title: str = Field(..., min_length=3, max_length=200)
    description: str = Field(..., min_length=10, max_length=5000)
    category: IssueCategory
    priority: IssuePriority = IssuePriority.medium
    hostel_name: str | None = Field(None, max_length=255)
    room_number: str | None = Field(None, max_length=50)
    location: str | None = Field(None, max_length=255)
    images: list[str] = Field(default_factory=list, max_length=5)  # 생성 시 최대 5장 (At most 5 at creation)


class IssueAssign(BaseModel):
    assigned_to: UUID
    notes: str | None = Field(None, max_length=1000)


class IssueStatusUpdate(BaseModel):
    status: IssueStatus
    notes: str | None = Field(None, max_length=1000)


class IssueMergeRequest(BaseModel):
    """중복 이슈 병합 요청 스키마.

    Merge request. The master id may appear in duplicate_issue_ids; it is
    dropped before the merge. An empty list is rejected by the service.

    Attributes:
        master_issue_id: 마스터 이슈 UUID (Issue that survives)
        duplicate_issue_ids: 중복 이슈 UUID 목록 (Issues to fold in and close)
        merge_notes: 병합 사유 (Operator rationale, optional)
    """

    master_issue_id: UUID
    duplicate_issue_ids: list[UUID]
    merge_notes: str | None = Field(None, max_length=1000)
