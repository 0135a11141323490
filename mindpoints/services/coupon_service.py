from typing import Optional

from sqlalchemy.orm import Session

from mindpoints.models.base import utc_now
from mindpoints.repositories.coupon_repository import CouponRepository
from mindpoints.schemas.coupon import (
    ActiveCouponsResponse,
    CouponUsageResponse,
    CouponValidationResponse,
)
import logging

logger = logging.getLogger(__name__)


class CouponService:
    """쿠폰 검증 및 사용 처리"""

    def __init__(self, db: Session):
        self.db = db
        self.coupon_repo = CouponRepository(db)

    def validate_coupon(
        self, code: str, user_id: Optional[str] = None
    ) -> CouponValidationResponse:
        """쿠폰 검증 - 상태를 변경하지 않음

        user_id 가 주어지면 소유자 일치 여부도 확인합니다.
        (결제 전 미리보기처럼 호출자 정보가 없을 때만 생략)

        Args:
            code: 쿠폰 코드
            user_id: 호출자 ID

        Returns:
            CouponValidationResponse: 검증 결과
        """
        coupon = self.coupon_repo.get_by_code(code)

        if coupon is None:
            return CouponValidationResponse(valid=False, error="Invalid coupon code")

        if coupon.is_used:
            return CouponValidationResponse(
                valid=False, error="This coupon has already been used"
            )

        if user_id and coupon.user_id != user_id:
            logger.warning(f"User {user_id} tried to use coupon owned by another account")
            return CouponValidationResponse(
                valid=False, error="This coupon does not belong to your account"
            )

        return CouponValidationResponse(
            valid=True, coupon=self.coupon_repo.to_detail(coupon)
        )

    def mark_coupon_used(self, code: str) -> CouponUsageResponse:
        """주문 확정 후 쿠폰 사용 처리 (되돌릴 수 없음)

        두 번째 호출은 할인을 다시 적용하지 않고 오류만 반환합니다.
        """
        try:
            coupon = self.coupon_repo.get_by_code(code)
            if coupon is None:
                self.db.rollback()
                return CouponUsageResponse(success=False, error="Coupon not found")

            if not self.coupon_repo.mark_used(code, used_at=utc_now()):
                self.db.rollback()
                logger.warning(f"Coupon {code} already used")
                return CouponUsageResponse(success=False, error="Coupon already used")

            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to mark coupon {code} as used: {str(e)}")
            raise

        logger.info(f"Coupon {code} marked as used")
        return CouponUsageResponse(success=True)

    def get_active_coupons(self, user_id: str) -> ActiveCouponsResponse:
        coupons = self.coupon_repo.get_active_coupons(user_id)
        return ActiveCouponsResponse(coupons=coupons, total_count=len(coupons))
