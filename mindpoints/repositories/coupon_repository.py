from datetime import datetime
from typing import List, Optional

from sqlalchemy import desc, update
from sqlalchemy.orm import Session

from mindpoints.models.coupon import FULL_DISCOUNT_PERCENT, Coupon
from mindpoints.repositories.base import BaseRepository
from mindpoints.schemas.coupon import CouponDetail, CouponItem


class CouponRepository(BaseRepository[Coupon, CouponDetail]):
    """쿠폰 리포지토리 - 쿠폰은 생성 후 사용 처리만 가능"""

    def __init__(self, db: Session):
        super().__init__(Coupon, CouponDetail, db)

    def _to_coupon_item(self, model_instance: Coupon) -> CouponItem:
        return CouponItem(
            id=model_instance.id,
            code=model_instance.code,
            course_type=model_instance.course_type,
            discount=model_instance.discount,
            points_cost=model_instance.points_cost,
            is_used=model_instance.is_used,
            created_at=(
                model_instance.created_at.strftime("%Y-%m-%d %H:%M:%S")
                if model_instance.created_at
                else ""
            ),
        )

    def get_by_code(self, code: str) -> Optional[Coupon]:
        return self.get_by_field("code", code)

    def to_detail(self, coupon: Coupon) -> CouponDetail:
        """할인 적용용 필드만 노출 (소유자 ID 제외)"""
        return self._to_schema(coupon)

    def create_coupon(
        self, code: str, user_id: str, course_type: str, points_cost: int
    ) -> Coupon:
        return self.add(
            code=code,
            user_id=user_id,
            course_type=course_type,
            discount=FULL_DISCOUNT_PERCENT,
            points_cost=points_cost,
            is_used=False,
        )

    def mark_used(self, code: str, used_at: datetime) -> bool:
        """미사용 쿠폰만 사용 처리 - 이미 사용된 쿠폰이면 False

        is_used 조건을 UPDATE 문에 포함하여 used_at 이 한 번만 기록되도록 합니다.
        """
        result = self.db.execute(
            update(Coupon)
            .where(Coupon.code == code, Coupon.is_used.is_(False))
            .values(is_used=True, used_at=used_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def get_active_coupons(self, user_id: str) -> List[CouponItem]:
        """미사용 쿠폰 목록 (최신순)"""
        rows = (
            self._fresh_query()
            .filter(Coupon.user_id == user_id, Coupon.is_used.is_(False))
            .order_by(desc(Coupon.created_at), desc(Coupon.id))
            .all()
        )
        return [self._to_coupon_item(row) for row in rows]
