"""관리자 API 라우터 패키지: 모든 관리자 엔드포인트 통합.

Admin API Router package: Aggregates all staff-facing endpoints
into a single router for inclusion in the FastAPI application.

Included routers:
    - issues: 이슈 관리 및 중복 병합 (Issue triage and duplicate merging)
    - audit_logs: 감사 로그 조회 (Audit trail, admin only)
"""

from fastapi import APIRouter

from app.api.admin.audit_logs import router as audit_logs_router
from app.api.admin.issues import router as issues_router

admin_router: APIRouter = APIRouter()

# 이슈: /issues 하위 (list, detail, assign, status, merge, duplicates)
admin_router.include_router(issues_router, prefix="/issues", tags=["Admin Issues"])
# 감사 로그: /audit-logs 하위 (Audit trail)
admin_router.include_router(audit_logs_router, prefix="/audit-logs", tags=["Audit Logs"])
