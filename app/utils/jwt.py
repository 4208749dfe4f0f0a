"""JWT 토큰 생성 및 검증 유틸리티 모듈.

JWT token creation and verification utility module.
Tokens are issued by the company directory; this service only verifies
them. ``create_access_token`` exists for seed scripts and tests.

JWT Payload Structure:
    {
        "sub": "user_uuid",     # 사용자 ID (User identifier)
        "role": "LEADER",       # 디렉터리 역할 이름 (Directory role name, informational)
        "exp": 1234567890,      # 만료 시간 UNIX timestamp (Expiration)
        "type": "access"        # 토큰 유형 (Token type discriminator)
    }

The ``role`` claim is not trusted for authorization; the role is re-read
from the user's directory record on every request.
"""

from datetime import datetime, timedelta, timezone
from typing import Any
import jwt

from app.config import settings


def create_access_token(data: dict[str, Any], expires_minutes: int | None = None) -> str:
    """JWT 액세스 토큰을 생성합니다.

    Args:
        data: 페이로드, 일반적으로 {"sub": user_id, "role": role_name}
        expires_minutes: 만료 분 (default: JWT_ACCESS_TOKEN_EXPIRE_MINUTES)

    Returns:
        str: 인코딩된 JWT 문자열 (Encoded JWT token string)
    """
    to_encode: dict[str, Any] = data.copy()
    minutes = expires_minutes if expires_minutes is not None else settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES
    expire: datetime = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    """JWT 토큰을 디코딩하고 검증합니다.

    Raises:
        jwt.ExpiredSignatureError: 토큰 만료 시 (When token has expired)
        jwt.InvalidTokenError: 유효하지 않은 토큰 (When token is invalid)
    """
    return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
