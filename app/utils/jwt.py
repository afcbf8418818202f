"""JWT 토큰 생성 및 검증 유틸리티 모듈.

JWT token creation and verification utility module.
Tokens are issued by the hostel auth provider; this service only needs to
verify them and, for tooling and tests, mint access tokens with the same shape.

JWT Payload Structure:
    {
        "sub": "user_uuid",         # 사용자 ID (User identifier)
        "role": "caretaker",        # 역할 이름 (Role name, informational only)
        "exp": 1234567890,          # 만료 시간 UNIX timestamp (Expiration)
        "type": "access"            # 토큰 유형 (Token type discriminator)
    }
"""

from datetime import datetime, timedelta, timezone
from typing import Any
import jwt

from app.config import settings


def create_access_token(data: dict[str, Any]) -> str:
    """JWT 액세스 토큰을 생성합니다.

    Generate a JWT access token with the given payload data.
    Token expires after JWT_ACCESS_TOKEN_EXPIRE_MINUTES (default: 30 min).

    Args:
        data: JWT 페이로드 데이터 (JWT payload data, typically {"sub": user_id, "role": role})

    Returns:
        str: 인코딩된 JWT 문자열 (Encoded JWT token string)
    """
    to_encode: dict[str, Any] = data.copy()
    expire: datetime = datetime.now(timezone.utc) + timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    """JWT 토큰을 디코딩하고 검증합니다.

    Decode and verify a JWT token string.
    Raises jwt.ExpiredSignatureError if the token has expired,
    and jwt.InvalidTokenError for any other validation failure.

    Args:
        token: JWT 토큰 문자열 (Encoded JWT token string)

    Returns:
        dict[str, Any]: 디코딩된 페이로드 딕셔너리 (Decoded payload dictionary)
    """
    return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
