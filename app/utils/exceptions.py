"""커스텀 HTTP 예외 클래스 모듈.

Custom HTTP exception classes module.
Provides pre-configured HTTPException subclasses for the error taxonomy
used by the issue services. Services raise these directly and FastAPI
renders them, so status codes are never repeated at call sites.

Taxonomy:
    ForbiddenError     -> 403  actor lacks the required role
    BadRequestError    -> 400  malformed input (e.g. empty duplicate set)
    InvalidStateError  -> 400  operation not allowed in the record's current state
    NotFoundError      -> 404  referenced record missing
    StoreError         -> 500  persistence failure, carries the failed step

Usage:
    from app.utils.exceptions import NotFoundError, InvalidStateError
    raise NotFoundError("Master issue not found")
    raise InvalidStateError("Cannot merge into a closed issue")
"""

from typing import Any
from uuid import UUID

from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    """404 Not Found 예외: 요청한 리소스를 찾을 수 없을 때 사용.

    404 Not Found exception.
    Raised when a requested resource (issue, user, notification) does not exist.

    Args:
        detail: 오류 메시지 (Error message, default: "Resource not found")
    """

    def __init__(self, detail: str = "Resource not found") -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ForbiddenError(HTTPException):
    """403 Forbidden 예외: 권한 부족 시 사용.

    403 Forbidden exception.
    Raised when the authenticated user lacks the required role
    (e.g. a student attempting a staff-only issue operation).

    Args:
        detail: 오류 메시지 (Error message, default: "Insufficient permissions")
    """

    def __init__(self, detail: str = "Insufficient permissions") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class UnauthorizedError(HTTPException):
    """401 Unauthorized 예외: 인증 실패 시 사용.

    401 Unauthorized exception.
    Raised when the bearer token is missing, invalid, or expired,
    or when it points at an unknown or inactive user.

    Args:
        detail: 오류 메시지 (Error message, default: "Authentication required")
    """

    def __init__(self, detail: str = "Authentication required") -> None:
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class BadRequestError(HTTPException):
    """400 Bad Request 예외: 잘못된 요청 데이터 시 사용.

    400 Bad Request exception.
    Raised when the request data is invalid beyond what Pydantic validation catches
    (e.g. a merge request whose duplicate list is empty once the master id is removed).

    Args:
        detail: 오류 메시지 (Error message, default: "Bad request")
    """

    def __init__(self, detail: str = "Bad request") -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class InvalidStateError(HTTPException):
    """400 상태 오류: 현재 상태에서 허용되지 않는 작업.

    400 exception for operations that the target record's current state forbids
    (e.g. merging into an issue that is already closed). Not retryable without
    choosing a different target.

    Args:
        detail: 오류 메시지 (Error message, default: "Invalid state for this operation")
    """

    def __init__(self, detail: str = "Invalid state for this operation") -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class StoreError(HTTPException):
    """500 저장소 오류: 읽기/쓰기 단계 실패.

    500 exception raised when a read or write against the issue store fails.
    The detail names the step that failed and the records involved so an
    operator can review the affected issues before retrying.

    Args:
        step: 실패한 단계 이름 (Name of the failed step, e.g. "close_duplicates")
        message: 원인 메시지 (Underlying error message)
        master_issue_id: 대상 마스터 이슈 ID (Master issue involved, optional)
        duplicate_issue_ids: 관련 중복 이슈 ID 목록 (Duplicate issues involved)
        committed: 변경이 이미 커밋됨 (The changes were already committed before the failure)
    """

    def __init__(
        self,
        step: str,
        message: str,
        master_issue_id: UUID | None = None,
        duplicate_issue_ids: list[UUID] | None = None,
        committed: bool = False,
    ) -> None:
        self.step: str = step
        self.committed: bool = committed
        advice: str = (
            "The changes were committed; reload the listed issues instead of retrying."
            if committed
            else "Review the listed issues manually before retrying."
        )
        detail: dict[str, Any] = {
            "message": f"Issue store failure during {step}: {message}. {advice}",
            "step": step,
            "committed": committed,
            "master_issue_id": str(master_issue_id) if master_issue_id else None,
            "duplicate_issue_ids": [str(i) for i in duplicate_issue_ids or []],
        }
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
