"""앱 알림 라우터: 내 알림 API.

App Notification Router: List, unread count, mark read, and mark all read
for the authenticated user's own notifications.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.common import MessageResponse, PaginatedResponse
from app.schemas.notification import MarkReadRequest
from app.services.notification_service import notification_service

router: APIRouter = APIRouter()


@router.get("", response_model=PaginatedResponse)
async def list_notifications(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    unread_only: bool = False,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
) -> dict:
    """내 알림 목록을 조회합니다.

    List the user's notifications, newest first.

    Args:
        db: 비동기 데이터베이스 세션 (Async database session)
        current_user: 인증된 사용자 (Authenticated user)
        unread_only: 미읽음만 조회 (Only unread notifications)
        page: 페이지 번호 (Page number)
        per_page: 페이지당 항목 수 (Items per page)

    Returns:
        dict: 페이지네이션된 알림 목록 (Paginated notification list)
    """
    notifications, total = await notification_service.list_notifications(
        db, current_user.id, unread_only, page, per_page
    )
    return {
        "items": [notification_service.build_response(n) for n in notifications],
        "total": total,
        "page": page,
        "per_page": per_page,
    }


@router.get("/unread-count")
async def get_unread_count(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict:
    """읽지 않은 알림 수 (Unread notification count)."""
    count: int = await notification_service.get_unread_count(db, current_user.id)
    return {"unread_count": count}


@router.patch("/read", response_model=MessageResponse)
async def mark_read(
    data: MarkReadRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict:
    """선택한 알림을 읽음 처리합니다. 다른 사용자의 알림은 무시됩니다."""
    count: int = await notification_service.mark_read(db, data.notification_ids, current_user.id)
    await db.commit()
    return {"message": f"{count} notification(s) marked as read"}


@router.patch("/read-all", response_model=MessageResponse)
async def mark_all_read(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict:
    """모든 읽지 않은 알림을 읽음 처리합니다."""
    count: int = await notification_service.mark_all_read(db, current_user.id)
    await db.commit()
    return {"message": f"{count} notification(s) marked as read"}
