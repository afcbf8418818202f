"""FastAPI 애플리케이션 엔트리포인트: 미들웨어 및 라우터 등록.

FastAPI application entry point: Logging, middleware and router registration.
Configures JSON logging, request logging, CORS, health check, and includes
the admin and app routers.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.logging_config import setup_logging
from app.middleware.request_logging import RequestLoggingMiddleware

setup_logging()

app: FastAPI = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# 요청 로깅 미들웨어: Structured access log (+ Axiom when configured)
# CORS보다 먼저 등록하여 모든 요청을 캡처 (Registered before CORS to capture all requests)
app.add_middleware(RequestLoggingMiddleware)

# CORS 미들웨어: Cross-Origin Resource Sharing middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """서버 상태 확인 엔드포인트.

    Health check endpoint for load balancers and monitoring.
    """
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# 라우터 등록: Router registration
# ---------------------------------------------------------------------------
from app.api.admin import admin_router  # noqa: E402
from app.api.app import app_router  # noqa: E402

app.include_router(admin_router, prefix="/api/v1/admin")
app.include_router(app_router, prefix="/api/v1/app")
