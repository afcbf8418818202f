"""앱 API 라우터 패키지: 모든 앱(거주자용) 엔드포인트 통합.

App API Router package: Aggregates all resident-facing endpoints
into a single router for inclusion in the FastAPI application.

Included routers:
    - issues: 이슈 신고 및 내 이슈 (Report issues, view my issues)
    - notifications: 내 알림 (My notifications)
"""

from fastapi import APIRouter

from app.api.app.issues import router as issues_router
from app.api.app.notifications import router as notifications_router

app_router: APIRouter = APIRouter()

app_router.include_router(issues_router, prefix="/issues", tags=["App Issues"])
app_router.include_router(notifications_router, prefix="/notifications", tags=["App Notifications"])
