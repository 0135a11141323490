from pydantic import BaseModel, Field
from typing import List, Optional


class CouponDetail(BaseModel):
    """할인 적용에 필요한 쿠폰 정보 (소유자 ID는 포함하지 않음)"""

    code: str
    course_type: str
    discount: int
    points_cost: int

    class Config:
        from_attributes = True


class CouponValidationResponse(BaseModel):
    """쿠폰 검증 결과"""

    valid: bool = Field(..., description="사용 가능 여부")
    coupon: Optional[CouponDetail] = Field(None, description="쿠폰 정보")
    error: Optional[str] = Field(None, description="사용 불가 사유")


class CouponUsageResponse(BaseModel):
    """쿠폰 사용 처리 결과"""

    success: bool = Field(..., description="성공 여부")
    error: Optional[str] = Field(None, description="실패 사유")


class CouponItem(BaseModel):
    """내 쿠폰 목록 항목"""

    id: int
    code: str
    course_type: str
    discount: int
    points_cost: int
    is_used: bool
    created_at: str

    class Config:
        from_attributes = True


class ActiveCouponsResponse(BaseModel):
    """사용하지 않은 쿠폰 목록"""

    coupons: List[CouponItem] = Field(..., description="쿠폰 목록 (최신순)")
    total_count: int = Field(..., description="쿠폰 수")
