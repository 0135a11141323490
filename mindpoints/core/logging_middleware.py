import logging
import time
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

logger = logging.getLogger("mindpoints")

# 헬스 체크 프로브는 DEBUG 로만 기록
QUIET_PATHS = frozenset({"/health"})


class LoggingMiddleware(BaseHTTPMiddleware):
    """요청/응답 로깅 - 응답 상태에 따라 로그 레벨 결정"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        started = time.perf_counter()
        path = request.url.path
        summary = f"{request.method} {path}"

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(f"[Unhandled Error] {summary}")
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        response.headers["X-Process-Time-Ms"] = f"{elapsed_ms:.1f}"

        message = f"{summary} -> {response.status_code} ({elapsed_ms:.1f}ms)"
        if response.status_code >= 500:
            logger.error(message)
        elif response.status_code >= 400:
            logger.warning(message)
        elif path in QUIET_PATHS:
            logger.debug(message)
        else:
            logger.info(message)
        return response
