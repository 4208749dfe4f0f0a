"""FastAPI 의존성 주입 모듈 — 인증 및 권한 검사.

FastAPI dependency injection module — Authentication and authorization.

Authentication Flow:
    1. 클라이언트가 Authorization: Bearer <token> 헤더를 전송
       (Client sends Authorization: Bearer <token> header)
    2. decode_token()이 JWT를 검증하고 페이로드를 반환
       (decode_token verifies JWT and returns payload)
    3. 페이로드의 "sub" 필드로 DB에서 사용자(+역할)를 조회
       (User and role are fetched from DB using payload "sub" field)
    4. 사용자 레코드에서 Principal 생성 — 역할은 토큰이 아닌 DB 기준
       (A Principal is built from the user record; the role comes from
       the directory, not from the token claim)
"""

from typing import Annotated
from uuid import UUID

import jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.user import User
from app.repositories.user_repository import user_repository
from app.services.permission_service import Principal, permission_service
from app.utils.exceptions import UnauthorizedError
from app.utils.jwt import decode_token

# HTTP Bearer 토큰 추출기 (Extracts JWT token from Authorization header)
security: HTTPBearer = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """JWT 토큰에서 현재 인증된 사용자를 추출합니다.

    Raises:
        UnauthorizedError(401): 토큰 누락/무효/만료, 사용자 없음 또는 비활성
    """
    if credentials is None:
        raise UnauthorizedError("Missing bearer token")
    try:
        payload: dict = decode_token(credentials.credentials)
        if payload.get("type") != "access":
            raise UnauthorizedError("Invalid token type")
        user_id = UUID(payload["sub"])
    except (jwt.ExpiredSignatureError, jwt.InvalidTokenError, KeyError, ValueError, TypeError):
        raise UnauthorizedError("Invalid or expired token")

    user: User | None = await user_repository.get_with_role(db, user_id)
    if user is None or not user.is_active:
        raise UnauthorizedError("User not found or inactive")
    return user


async def get_principal(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Principal:
    """인증된 사용자 → Principal (역할 + 팀 + 팀장 팀 목록)."""
    return await permission_service.build_principal(db, current_user)


async def require_hr_or_admin(
    principal: Annotated[Principal, Depends(get_principal)],
) -> Principal:
    """HR/Admin 전용 의존성 — 관리자 API 라우터 공통."""
    permission_service.require_org_wide(principal)
    return principal
