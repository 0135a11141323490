from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, Boolean, CheckConstraint, DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from mindpoints.models.base import BaseModel, BigIntPK

FULL_DISCOUNT_PERCENT = 100


class Coupon(BaseModel):
    """포인트 교환으로 발급되는 1회용, 소유자 전용 100% 할인 쿠폰"""

    __tablename__ = "coupons"
    __table_args__ = (
        CheckConstraint("discount = 100", name="ck_coupons_full_discount"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(Text, unique=True, index=True, nullable=False)
    user_id: Mapped[str] = mapped_column(Text, index=True, nullable=False)
    course_type: Mapped[str] = mapped_column(Text, nullable=False)
    discount: Mapped[int] = mapped_column(
        Integer, nullable=False, default=FULL_DISCOUNT_PERCENT
    )
    # 감사/환불 판단용으로 보관
    points_cost: Mapped[int] = mapped_column(BigInteger, nullable=False)
    is_used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    used_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
