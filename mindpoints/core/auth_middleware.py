"""
호출자 식별 의존성

이 서비스는 인증을 직접 수행하지 않습니다. 외부 인증 제공자가 발급한
JWT 의 sub 클레임을 사용자 ID 로 신뢰하며, 결제/추천 플로우처럼
서버 간 호출은 공유 내부 토큰으로 구분합니다.
"""

import hmac
import logging
from typing import Optional

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from mindpoints.config import settings
from mindpoints.core.exceptions import AuthenticationError, AuthorizationError

logger = logging.getLogger(__name__)

# JWT Bearer 토큰 스킴
security = HTTPBearer(auto_error=False)


def decode_user_id(token: str) -> str:
    """JWT 를 검증하고 sub 클레임(사용자 ID)을 반환"""
    if not settings.SECRET_KEY:
        # 서명 키 미설정 시 모든 토큰 거부
        logger.error("SECRET_KEY is not configured; rejecting bearer token")
        raise AuthenticationError("Authentication is not configured")
    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError as e:
        raise AuthenticationError("Invalid or expired token") from e

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError("Token has no subject")
    return str(user_id)


def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """필수 사용자 식별 - 유효한 토큰이 필요함"""
    if not credentials:
        raise AuthenticationError("Authentication required")
    return decode_user_id(credentials.credentials)


def get_current_user_id_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    """선택적 사용자 식별 - 토큰이 없으면 None (유효하지 않은 토큰은 거부)"""
    if not credentials:
        return None
    return decode_user_id(credentials.credentials)


def require_internal_service(
    x_internal_token: Optional[str] = Header(None, alias="X-Internal-Token"),
) -> None:
    """결제/추천 플로우 전용 엔드포인트용 의존성"""
    expected = settings.INTERNAL_API_TOKEN
    if not expected or not x_internal_token:
        raise AuthorizationError("Internal access required")
    if not hmac.compare_digest(x_internal_token, expected):
        logger.warning("Rejected internal call with invalid token")
        raise AuthorizationError("Internal access required")
