"""
쿠폰 API 라우터

- GET /coupons/active: 내 미사용 쿠폰 목록
- GET /coupons/validate/{code}: 쿠폰 검증 (토큰이 있으면 소유자 확인)
- POST /coupons/internal/{code}/use: 주문 확정 후 사용 처리 (결제 플로우 전용)
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query

from mindpoints.core.auth_middleware import (
    get_current_user_id,
    get_current_user_id_optional,
    require_internal_service,
)
from mindpoints.core.exceptions import BaseAPIException, to_http_error
from mindpoints.deps import get_checkout_service, get_coupon_service
from mindpoints.schemas.coupon import (
    ActiveCouponsResponse,
    CouponUsageResponse,
    CouponValidationResponse,
)
from mindpoints.services.checkout_service import CheckoutPointsService
from mindpoints.services.coupon_service import CouponService
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/coupons", tags=["coupons"])


@router.get("/active", response_model=ActiveCouponsResponse)
async def get_my_active_coupons(
    user_id: str = Depends(get_current_user_id),
    coupon_service: CouponService = Depends(get_coupon_service),
) -> ActiveCouponsResponse:
    try:
        return coupon_service.get_active_coupons(user_id)
    except BaseAPIException:
        raise
    except Exception as e:
        logger.error(f"Failed to get coupons for user {user_id}: {str(e)}")
        raise to_http_error(e)


@router.get("/validate/{code}", response_model=CouponValidationResponse)
async def validate_coupon(
    code: str = Path(..., min_length=1, description="쿠폰 코드"),
    user_id: Optional[str] = Depends(get_current_user_id_optional),
    coupon_service: CouponService = Depends(get_coupon_service),
) -> CouponValidationResponse:
    """쿠폰 검증 - 상태를 변경하지 않음

    코드는 대문자로 정규화합니다 (발급 코드는 모두 대문자).
    """
    try:
        return coupon_service.validate_coupon(code.strip().upper(), user_id=user_id)
    except BaseAPIException:
        raise
    except Exception as e:
        logger.error(f"Failed to validate coupon: {str(e)}")
        raise to_http_error(e)


@router.post(
    "/internal/{code}/use",
    response_model=CouponUsageResponse,
    dependencies=[Depends(require_internal_service)],
)
async def mark_coupon_used(
    code: str = Path(..., min_length=1, description="쿠폰 코드"),
    user_id: Optional[str] = Query(None, description="주문자 ID (소유자 검증)"),
    checkout_service: CheckoutPointsService = Depends(get_checkout_service),
) -> CouponUsageResponse:
    """주문 확정 후 쿠폰 사용 처리 - 되돌릴 수 없음"""
    try:
        return checkout_service.complete_coupon_checkout(
            code.strip().upper(), user_id=user_id
        )
    except BaseAPIException:
        raise
    except Exception as e:
        logger.error(f"Failed to mark coupon as used: {str(e)}")
        raise to_http_error(e)
