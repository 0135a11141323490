"""
Mind Points 정책 테이블

코스 카테고리별 구매 시 지급 포인트와 교환 시 필요 포인트를 정의합니다.
모든 함수는 부수효과가 없어 UI 표시용으로 미리 호출해도 안전합니다.
"""

import enum
from typing import Dict, List, Optional, Union

from mindpoints.schemas.points import RedemptionOption


class CourseType(str, enum.Enum):
    CERTIFICATE = "certificate"
    DIPLOMA = "diploma"
    INTERNSHIP = "internship"
    WORKSHEET = "worksheet"
    MASTERCLASS = "masterclass"  # Workshop
    PRE_RECORDED = "pre-recorded"


class InternshipTier(str, enum.Enum):
    HOURS_120 = "120"
    HOURS_240 = "240"


INTERNSHIP_120 = "internship_120"
INTERNSHIP_240 = "internship_240"

# 구매 시 지급 포인트
POINTS_EARN_CONFIG: Dict[str, int] = {
    CourseType.CERTIFICATE.value: 120,
    CourseType.DIPLOMA.value: 200,
    INTERNSHIP_120: 60,
    INTERNSHIP_240: 80,
    CourseType.WORKSHEET.value: 20,
    CourseType.MASTERCLASS.value: 20,
    CourseType.PRE_RECORDED.value: 100,
}

# 교환 시 필요 포인트
POINTS_REDEEM_CONFIG: Dict[str, int] = {
    CourseType.WORKSHEET.value: 80,
    CourseType.CERTIFICATE.value: 300,
    CourseType.DIPLOMA.value: 500,
    INTERNSHIP_120: 120,
    INTERNSHIP_240: 200,
    CourseType.MASTERCLASS.value: 100,
    CourseType.PRE_RECORDED.value: 250,
}

REDEMPTION_LABELS: Dict[str, str] = {
    CourseType.WORKSHEET.value: "Free Worksheet",
    CourseType.CERTIFICATE.value: "Free Certificate Course",
    CourseType.DIPLOMA.value: "Free Diploma",
    INTERNSHIP_120: "Free 120hr Internship",
    INTERNSHIP_240: "Free 240hr Internship",
    CourseType.MASTERCLASS.value: "Free Workshop",
    CourseType.PRE_RECORDED.value: "Free Prerecorded Course",
}

_TIER_KEYS = {
    InternshipTier.HOURS_120: INTERNSHIP_120,
    InternshipTier.HOURS_240: INTERNSHIP_240,
}


def _coerce_tier(
    tier: Optional[Union[InternshipTier, str]],
) -> Optional[InternshipTier]:
    if tier is None or isinstance(tier, InternshipTier):
        return tier
    try:
        return InternshipTier(str(tier).strip())
    except ValueError:
        return None


def parse_internship_duration(duration: Optional[str]) -> InternshipTier:
    """기간 텍스트에서 인턴십 티어 추출 (레거시 데이터 호환용)

    "120" / "2 week" -> 120시간, "240" / "4 week" -> 240시간,
    판단할 수 없으면 더 저렴한 120시간 티어로 처리합니다.
    """
    text = (duration or "").lower()
    if "120" in text or "2 week" in text:
        return InternshipTier.HOURS_120
    if "240" in text or "4 week" in text:
        return InternshipTier.HOURS_240
    return InternshipTier.HOURS_120


def resolve_internship_tier(
    tier: Optional[Union[InternshipTier, str]] = None,
    duration: Optional[str] = None,
) -> InternshipTier:
    """명시적 티어를 우선 사용하고, 없을 때만 기간 텍스트를 해석"""
    explicit = _coerce_tier(tier)
    if explicit is not None:
        return explicit
    return parse_internship_duration(duration)


def calculate_points_earned(
    course_type: Optional[str],
    duration: Optional[str] = None,
    tier: Optional[Union[InternshipTier, str]] = None,
) -> int:
    """구매한 코스의 지급 포인트 계산 (알 수 없는 카테고리는 0)"""
    if not course_type:
        return 0

    if course_type == CourseType.INTERNSHIP.value:
        resolved = resolve_internship_tier(tier=tier, duration=duration)
        return POINTS_EARN_CONFIG[_TIER_KEYS[resolved]]

    if course_type in (INTERNSHIP_120, INTERNSHIP_240):
        return POINTS_EARN_CONFIG[course_type]

    return POINTS_EARN_CONFIG.get(course_type, 0)


def get_points_required_for_redemption(
    course_type: str,
    internship_plan: Optional[Union[InternshipTier, str]] = None,
) -> int:
    """교환에 필요한 포인트 (알 수 없는 카테고리는 0)"""
    if course_type in (INTERNSHIP_120, INTERNSHIP_240):
        return POINTS_REDEEM_CONFIG[course_type]

    if course_type == CourseType.INTERNSHIP.value:
        plan = _coerce_tier(internship_plan) or InternshipTier.HOURS_120
        return POINTS_REDEEM_CONFIG[_TIER_KEYS[plan]]

    return POINTS_REDEEM_CONFIG.get(course_type, 0)


def get_redemption_options() -> List[RedemptionOption]:
    return [
        RedemptionOption(
            course_type=course_type,
            points_required=POINTS_REDEEM_CONFIG[course_type],
            label=label,
        )
        for course_type, label in REDEMPTION_LABELS.items()
    ]
