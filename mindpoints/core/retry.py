"""
저장소 호출 재시도 유틸리티

결제 플로우에서 원장 호출을 감싸는 용도입니다.
일시적인 인프라 오류(타임아웃, 연결 끊김, 5xx, rate limit)만 재시도하고
그 외 오류는 즉시 다시 발생시킵니다. 잔액 부족/쿠폰 오류 같은 검증 실패는
예외가 아닌 결과 객체로 반환되므로 재시도 대상이 아닙니다.
"""

import logging
import re
from typing import Any, Callable, Optional, TypeVar

import backoff
from sqlalchemy.exc import DBAPIError, DisconnectionError, OperationalError

from mindpoints.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TRANSIENT_MARKERS = (
    "network",
    "timeout",
    "timed out",
    "econnrefused",
    "econnreset",
    "etimedout",
    "connection reset",
    "connection refused",
    "server closed the connection",
    "could not connect",
    "rate limit",
    "temporarily unavailable",
)

# 메시지 안의 숫자(연산 ID, 코스 ID 등)와 구분하기 위해 단어 단위로만 매칭
_TRANSIENT_STATUS_PATTERN = re.compile(r"\b(?:429|500|502|503|504)\b")
_TRANSIENT_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


def is_retryable_error(error: BaseException) -> bool:
    """일시적 오류 여부 판단

    DB 오류는 예외 타입으로만 판단합니다. 메시지에는 SQL 파라미터가
    포함되므로 IntegrityError 같은 영구 오류를 문자열로 분류하지 않습니다.
    """
    if isinstance(error, (OperationalError, DisconnectionError)):
        return True
    if isinstance(error, DBAPIError):
        return bool(error.connection_invalidated)
    if isinstance(error, (TimeoutError, ConnectionError)):
        return True

    status_code = getattr(error, "status_code", None)
    if isinstance(status_code, int):
        return status_code in _TRANSIENT_STATUS_CODES

    message = str(error).lower()
    if _TRANSIENT_STATUS_PATTERN.search(message):
        return True
    return any(marker in message for marker in _TRANSIENT_MARKERS)


def call_with_retry(
    func: Callable[..., T],
    *args: Any,
    operation_type: str = "ledger",
    max_tries: Optional[int] = None,
    initial_delay: Optional[float] = None,
    max_delay: Optional[float] = None,
    **kwargs: Any,
) -> T:
    """지수 백오프(jitter 포함)로 func 를 실행

    Args:
        func: 실행할 원장 호출
        operation_type: 로그에 남길 작업 이름
        max_tries: 최초 시도를 포함한 최대 시도 횟수
        initial_delay: 첫 재시도 대기 시간(초)
        max_delay: 재시도 대기 상한(초)

    Raises:
        재시도 불가 오류이거나 시도 횟수를 모두 소진한 경우 마지막 예외
    """
    tries = max_tries if max_tries is not None else settings.RETRY_MAX_TRIES
    factor = (
        initial_delay
        if initial_delay is not None
        else settings.RETRY_INITIAL_DELAY_SECONDS
    )
    cap = max_delay if max_delay is not None else settings.RETRY_MAX_DELAY_SECONDS

    def _on_backoff(details: dict) -> None:
        logger.warning(
            f"Retrying {operation_type} in {details['wait']:.2f}s "
            f"(attempt {details['tries']}/{tries}): {details['exception']}"
        )

    def _on_giveup(details: dict) -> None:
        error = details["exception"]
        if is_retryable_error(error):
            logger.error(
                f"{operation_type} failed after {details['tries']} attempts: {error}"
            )

    wrapped = backoff.on_exception(
        backoff.expo,
        Exception,
        max_tries=tries,
        giveup=lambda e: not is_retryable_error(e),
        factor=factor,
        max_value=cap,
        jitter=backoff.full_jitter,
        on_backoff=_on_backoff,
        on_giveup=_on_giveup,
        raise_on_giveup=True,
    )(func)

    return wrapped(*args, **kwargs)
