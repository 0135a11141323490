import logging
import traceback
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from .exceptions import InternalServerError, ServiceUnavailableError
from .retry import is_retryable_error

logger = logging.getLogger("mindpoints")


def _describe(request: Request) -> str:
    client = request.client.host if request.client else "-"
    return f"{request.method} {request.url.path} from {client}"


def _error_body(
    code: str, message: str, details: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    return {
        "success": False,
        "error": {"code": code, "message": message, "details": details or {}},
    }


def _log_by_status(status_code: int, message: str) -> None:
    if status_code >= 500:
        logger.error(message)
    else:
        logger.warning(message)


async def handle_base_api_exception(request, exc):
    _log_by_status(
        exc.status_code,
        f"[{exc.error_code}] {_describe(request)} -> {exc.status_code}: {exc.message}",
    )
    return JSONResponse(status_code=exc.status_code, content=exc.detail)  # type: ignore[arg-type]


async def handle_http_exception(request, exc):
    """FastAPI/Starlette 가 직접 발생시킨 HTTPException (404, 405 등)"""
    _log_by_status(
        exc.status_code,
        f"[HTTPException] {_describe(request)} -> {exc.status_code}: {exc.detail}",
    )

    if isinstance(exc.detail, dict) and "error" in exc.detail:  # type: ignore[truthy-bool]
        content = exc.detail  # type: ignore[assignment]
    else:
        content = _error_body("HTTP_ERROR", str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content=content)


async def handle_validation_error(request, exc):
    """요청 형식 오류 - 원장 검증 실패(잔액 부족 등)는 여기로 오지 않음"""
    errors = exc.errors()
    logger.warning(f"[VALIDATION_001] {_describe(request)} -> 422: {errors}")
    content = _error_body(
        "VALIDATION_001",
        "Validation failed",
        {"errors": [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in errors]},
    )
    return JSONResponse(status_code=422, content=content)


async def handle_unexpected_error(request, exc):
    tb_str = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    logger.error(
        f"[Unhandled Error] {_describe(request)}\n"
        f"{type(exc).__name__}: {str(exc)}\n{tb_str}"
    )

    # 저장소 장애는 재시도 가능 응답, 그 외는 내부 정보 없이 500
    error = ServiceUnavailableError() if is_retryable_error(exc) else InternalServerError()
    return JSONResponse(status_code=error.status_code, content=error.detail)  # type: ignore[arg-type]
