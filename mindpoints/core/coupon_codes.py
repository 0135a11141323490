import secrets
import time
from typing import Optional

# 혼동되기 쉬운 문자(0/O, 1/I)를 제외한 32자 -> 문자당 5비트
ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
RANDOM_SEGMENT_LENGTH = 12  # 60비트
BASE36_DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("value must be non-negative")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def generate_coupon_code(prefix: str = "MP", timestamp_ms: Optional[int] = None) -> str:
    """쿠폰 코드 생성: {prefix}-{랜덤 12자}-{생성시각(ms) base36}

    랜덤 구간은 추측이 불가능하도록 secrets 로 생성하고, 시간 구간은
    고객 지원 시 발급 시점을 대략 식별하기 위해 붙입니다.
    """
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    random_segment = "".join(
        secrets.choice(ALPHABET) for _ in range(RANDOM_SEGMENT_LENGTH)
    )
    return f"{prefix}-{random_segment}-{to_base36(timestamp_ms)}"
