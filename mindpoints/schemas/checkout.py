from pydantic import BaseModel, Field
from typing import List, Optional


class PurchasedItem(BaseModel):
    """결제 완료된 구매 항목"""

    enrollment_id: str = Field(..., min_length=1, description="수강 등록 ID")
    course_type: Optional[str] = Field(None, description="코스 카테고리")
    title: str = Field("", description="코스명")
    duration: Optional[str] = Field(None, description="기간 텍스트 (레거시)")
    internship_tier: Optional[str] = Field(None, description="인턴십 티어 (120, 240)")


class PurchaseAwardRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    items: List[PurchasedItem] = Field(..., min_length=1)


class PurchaseItemAward(BaseModel):
    enrollment_id: str
    points: int
    awarded: bool
    error: Optional[str] = None


class PurchaseAwardResponse(BaseModel):
    """구매 포인트 지급 결과"""

    user_id: str
    total_awarded: int
    new_balance: int
    items: List[PurchaseItemAward]


class ReferralAwardRequest(BaseModel):
    referrer_user_id: str = Field(..., min_length=1, description="추천인 ID")
    referred_user_id: str = Field(..., min_length=1, description="피추천인 ID")
    points: int = Field(..., description="피추천인이 받은 포인트")
    enrollment_id: Optional[str] = Field(None, description="첫 구매 수강 등록 ID")
