"""FastAPI 의존성 주입 모듈: 인증 및 권한 검사.

FastAPI dependency injection module: Authentication and authorization.
Provides reusable dependencies for extracting the current user from JWT,
enforcing role-based access, and capturing request metadata for audit rows.

Authentication Flow:
    1. 클라이언트가 Authorization: Bearer <token> 헤더를 전송
       (Client sends Authorization: Bearer <token> header)
    2. HTTPBearer가 토큰을 추출 (HTTPBearer extracts the token)
    3. decode_token()이 JWT를 검증하고 페이로드를 반환
       (decode_token verifies JWT and returns payload)
    4. 페이로드의 "sub" 필드로 DB에서 사용자를 조회
       (User is fetched from DB using payload "sub" field)
    5. 사용자 활성 상태를 확인 (User active status is verified)

Authorization:
    - require_staff: caretaker 또는 admin (Caretakers and admins)
    - require_admin: admin만 (Admins only)
"""

from typing import Annotated
from uuid import UUID

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.user import User, UserRole
from app.repositories.user_repository import user_repository
from app.services.audit_service import AuditContext
from app.utils.exceptions import ForbiddenError, UnauthorizedError
from app.utils.jwt import decode_token

# HTTP Bearer 토큰 추출기: Extracts JWT token from Authorization: Bearer <token> header
security: HTTPBearer = HTTPBearer()


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """JWT 토큰에서 현재 인증된 사용자를 추출합니다.

    Decode JWT from the Authorization header and return the authenticated user.

    Raises:
        UnauthorizedError(401): 토큰이 유효하지 않거나 만료됨 (Invalid or expired token)
        UnauthorizedError(401): 사용자를 찾을 수 없거나 비활성 (User not found or inactive)
    """
    try:
        payload: dict = decode_token(credentials.credentials)
        if payload.get("type") != "access":
            raise UnauthorizedError("Invalid token type")
        user_id = UUID(payload["sub"])
    except UnauthorizedError:
        raise
    except (jwt.InvalidTokenError, KeyError, ValueError, TypeError):
        raise UnauthorizedError("Invalid or expired token") from None

    user: User | None = await user_repository.get_by_id(db, user_id)
    if user is None or not user.is_active:
        raise UnauthorizedError("User not found or inactive")

    return user


async def require_staff(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """직원(관리인/관리자) 권한 확인 (Caretaker or admin required)."""
    if not current_user.role.is_staff:
        raise ForbiddenError("Staff access required")
    return current_user


async def require_admin(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    if current_user.role != UserRole.admin:
        raise ForbiddenError("Admin access required")
    return current_user


def get_audit_context(request: Request) -> AuditContext:
    """감사 로그용 요청 메타데이터 (Client ip and user agent for audit rows)."""
    forwarded: str | None = request.headers.get("x-forwarded-for")
    ip_address: str | None = (
        forwarded.split(",")[0].strip() if forwarded else (request.client.host if request.client else None)
    )
    return AuditContext(ip_address=ip_address, user_agent=request.headers.get("user-agent"))
