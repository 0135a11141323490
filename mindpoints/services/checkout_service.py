"""
결제 플로우 연동 서비스

결제 성공 후 포인트 지급, 추천인 보상, 쿠폰 사용 처리를 담당합니다.
원장 호출은 모두 재시도 래퍼(call_with_retry)로 감싸며, 연산 ID(ref_id)를
수강 등록/피추천인 기준으로 고정하여 재시도가 중복 적립으로 이어지지 않게 합니다.
"""

from typing import List, Optional

from mindpoints.core import points_policy
from mindpoints.core.retry import call_with_retry
from mindpoints.schemas.checkout import (
    PurchaseAwardResponse,
    PurchaseItemAward,
    PurchasedItem,
)
from mindpoints.schemas.coupon import CouponUsageResponse
from mindpoints.schemas.points import PointsAwardResponse
from mindpoints.services.coupon_service import CouponService
from mindpoints.services.point_service import PointService
import logging

logger = logging.getLogger(__name__)


def enrollment_ref_id(enrollment_id: str) -> str:
    return f"enrollment_{enrollment_id}"


def referral_ref_id(referred_user_id: str) -> str:
    return f"referral_{referred_user_id}"


class CheckoutPointsService:
    """결제 완료 이벤트를 원장 연산으로 변환"""

    def __init__(self, point_service: PointService, coupon_service: CouponService):
        self.point_service = point_service
        self.coupon_service = coupon_service

    def award_purchase_points(
        self, user_id: str, items: List[PurchasedItem]
    ) -> PurchaseAwardResponse:
        """구매 항목별 포인트 지급

        정책상 0 포인트인 항목은 건너뜁니다.
        """
        results: List[PurchaseItemAward] = []
        total_awarded = 0

        for item in items:
            points = points_policy.calculate_points_earned(
                item.course_type,
                duration=item.duration,
                tier=item.internship_tier,
            )
            if points <= 0:
                results.append(
                    PurchaseItemAward(
                        enrollment_id=item.enrollment_id, points=0, awarded=False
                    )
                )
                continue

            description = f"{item.title or item.course_type} purchase"
            outcome: PointsAwardResponse = call_with_retry(
                self.point_service.award_points,
                user_id,
                points,
                description,
                enrollment_id=item.enrollment_id,
                ref_id=enrollment_ref_id(item.enrollment_id),
                operation_type="award_purchase_points",
            )

            if outcome.success:
                total_awarded += points
            results.append(
                PurchaseItemAward(
                    enrollment_id=item.enrollment_id,
                    points=points,
                    awarded=outcome.success,
                    error=outcome.error,
                )
            )

        new_balance = self.point_service.get_balance(user_id).balance
        logger.info(
            f"Purchase awards for user {user_id}: {total_awarded} points over {len(items)} items"
        )
        return PurchaseAwardResponse(
            user_id=user_id,
            total_awarded=total_awarded,
            new_balance=new_balance,
            items=results,
        )

    def award_referral_bonus(
        self,
        referrer_user_id: str,
        referred_user_id: str,
        points: int,
        enrollment_id: Optional[str] = None,
    ) -> PointsAwardResponse:
        """피추천인의 첫 구매에 대해 추천인에게 같은 포인트 지급

        ref_id 가 피추천인 기준이므로 추천인은 피추천인 1명당 한 번만 보상받습니다.
        """
        if referrer_user_id == referred_user_id:
            return PointsAwardResponse(
                success=False, error="Users cannot refer themselves"
            )

        return call_with_retry(
            self.point_service.award_points,
            referrer_user_id,
            points,
            "Referral reward",
            enrollment_id=enrollment_id,
            ref_id=referral_ref_id(referred_user_id),
            operation_type="award_referral_bonus",
        )

    def complete_coupon_checkout(
        self, code: str, user_id: Optional[str] = None
    ) -> CouponUsageResponse:
        """주문 확정 후 쿠폰 소비 - user_id 가 있으면 소유자 검증 후 사용 처리"""
        validation = self.coupon_service.validate_coupon(code, user_id=user_id)
        if not validation.valid:
            return CouponUsageResponse(success=False, error=validation.error)

        return call_with_retry(
            self.coupon_service.mark_coupon_used,
            code,
            operation_type="mark_coupon_used",
        )
