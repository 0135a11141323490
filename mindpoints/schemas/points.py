from pydantic import BaseModel, Field
from typing import List, Optional


class PointsBalanceResponse(BaseModel):
    """포인트 잔액 응답"""

    balance: int = Field(0, description="현재 사용 가능한 포인트")
    total_earned: int = Field(0, description="누적 지급 포인트")
    total_redeemed: int = Field(0, description="누적 교환 포인트")

    class Config:
        from_attributes = True


class PointsTransactionEntry(BaseModel):
    """포인트 거래 로그 항목"""

    id: int = Field(..., description="거래 ID")
    type: str = Field(..., description="거래 타입 (earn, redeem)")
    points: int = Field(..., description="포인트 (항상 양수, 부호는 type 으로 결정)")
    description: str = Field(..., description="거래 설명")
    enrollment_id: Optional[str] = Field(None, description="수강 등록 참조")
    coupon_id: Optional[int] = Field(None, description="쿠폰 참조")
    balance_after: int = Field(..., description="거래 후 잔액")
    created_at: str = Field(..., description="생성 시간")

    class Config:
        from_attributes = True


class PointsHistoryResponse(BaseModel):
    """포인트 거래 내역 응답"""

    balance: int = Field(..., description="현재 잔액")
    transactions: List[PointsTransactionEntry] = Field(..., description="거래 목록 (최신순)")
    total_count: int = Field(..., description="전체 거래 수")


class PointsAwardRequest(BaseModel):
    """포인트 지급 요청 (내부 서비스 호출)

    amount 의 양수 검증은 서비스에서 수행하여 구조화된 오류로 응답합니다.
    """

    user_id: str = Field(..., min_length=1, description="대상 사용자 ID")
    points: int = Field(..., description="지급 포인트")
    description: str = Field(..., min_length=1, max_length=255, description="지급 사유")
    enrollment_id: Optional[str] = Field(None, description="수강 등록 참조")
    ref_id: Optional[str] = Field(None, max_length=100, description="중복 방지용 연산 ID")


class PointsAwardResponse(BaseModel):
    """포인트 지급 결과"""

    success: bool = Field(..., description="성공 여부")
    new_balance: Optional[int] = Field(None, description="지급 후 잔액")
    error: Optional[str] = Field(None, description="실패 사유")


class PointsRedeemRequest(BaseModel):
    """포인트 교환 요청"""

    course_type: str = Field(..., min_length=1, description="교환할 코스 카테고리")
    internship_plan: Optional[str] = Field(
        None, description="인턴십 플랜 (120 또는 240)"
    )


class PointsRedeemResponse(BaseModel):
    """포인트 교환 결과"""

    success: bool = Field(..., description="성공 여부")
    coupon_code: Optional[str] = Field(None, description="발급된 쿠폰 코드")
    coupon_id: Optional[int] = Field(None, description="발급된 쿠폰 ID")
    new_balance: Optional[int] = Field(None, description="교환 후 잔액")
    error: Optional[str] = Field(None, description="실패 사유")


class RedemptionOption(BaseModel):
    """교환 가능한 카테고리"""

    course_type: str
    points_required: int
    label: str


class PointsIntegrityCheckResponse(BaseModel):
    """포인트 정합성 검증 응답"""

    status: str = Field(..., description="검증 상태 (OK, MISMATCH)")
    user_id: str = Field(..., description="사용자 ID")
    balance: int = Field(..., description="계정 잔액")
    total_earned: int = Field(..., description="계정 누적 지급")
    total_redeemed: int = Field(..., description="계정 누적 교환")
    logged_earned: int = Field(..., description="거래 로그 기준 지급 합계")
    logged_redeemed: int = Field(..., description="거래 로그 기준 교환 합계")
    entry_count: int = Field(..., description="거래 로그 항목 수")
    verified_at: str = Field(..., description="검증 시간")
