"""공통 Pydantic 응답 스키마 정의.

Common Pydantic response schema definitions shared across the issue,
notification, and audit routers.
"""

from typing import Any

from pydantic import BaseModel


class PaginatedResponse(BaseModel):
    """페이지네이션 응답 스키마.

    Paginated response wrapper schema.

    Attributes:
        items: 항목 목록 (List of result items)
        total: 전체 항목 수 (Total count across all pages)
        page: 현재 페이지 번호 (Current page number, 1-based)
        per_page: 페이지당 항목 수 (Items per page)
    """

    items: list[Any]
    total: int
    page: int  # 1부터 시작 (1-indexed)
    per_page: int


class MessageResponse(BaseModel):
    """범용 메시지 응답 스키마 (Generic confirmation message)."""

    message: str


class MergeResponse(BaseModel):
    """병합 결과 응답 스키마.

    Attributes:
        message: 결과 메시지 (Human-readable summary)
        master_issue: 갱신된 마스터 이슈 (Refreshed master issue)
        merged_count: 병합된 이슈 수 (Number of duplicates closed)
        merged_issue_ids: 병합된 이슈 ID (Ids actually merged, in request order)
        affected_reporters: 알림 대상 신고자 (Reporters notified of the merge)
    """

    message: str
    master_issue: dict[str, Any]
    merged_count: int
    merged_issue_ids: list[str]
    affected_reporters: list[str]


class DuplicateCandidatesResponse(BaseModel):
    issue_id: str
    candidates: list[dict[str, Any]]
    count: int
