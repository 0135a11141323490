"""
Mind Points API 라우터

사용자용 엔드포인트 (Bearer 토큰의 sub = 사용자 ID):
- GET /points/balance: 잔액/누적 지급/누적 교환
- GET /points/history: 거래 내역 (최신순)
- GET /points/redemption-options: 교환 가능한 카테고리 (인증 불필요)
- POST /points/redeem: 포인트 교환 -> 100% 할인 쿠폰 발급
- GET /points/integrity/my: 내 계정 정합성 검증

내부 엔드포인트 (X-Internal-Token, 결제/추천 플로우 전용):
- POST /points/internal/award: 단건 지급
- POST /points/internal/purchase-awards: 결제 완료 항목별 지급
- POST /points/internal/referral-award: 추천인 보상

검증 실패(잔액 부족 등)는 200 응답의 success=false, error 로 반환하여
UI 가 메시지를 그대로 표시할 수 있게 합니다.
"""

from typing import List

from fastapi import APIRouter, Depends, Query

from mindpoints.core.auth_middleware import get_current_user_id, require_internal_service
from mindpoints.core.exceptions import BaseAPIException, to_http_error
from mindpoints.deps import get_checkout_service, get_point_service
from mindpoints.schemas.checkout import (
    PurchaseAwardRequest,
    PurchaseAwardResponse,
    ReferralAwardRequest,
)
from mindpoints.schemas.points import (
    PointsAwardRequest,
    PointsAwardResponse,
    PointsBalanceResponse,
    PointsHistoryResponse,
    PointsIntegrityCheckResponse,
    PointsRedeemRequest,
    PointsRedeemResponse,
    RedemptionOption,
)
from mindpoints.services.checkout_service import CheckoutPointsService
from mindpoints.services.point_service import PointService
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/points", tags=["points"])


@router.get("/balance", response_model=PointsBalanceResponse)
async def get_my_balance(
    user_id: str = Depends(get_current_user_id),
    point_service: PointService = Depends(get_point_service),
) -> PointsBalanceResponse:
    """내 포인트 잔액 조회 - 계정이 없으면 0"""
    try:
        return point_service.get_balance(user_id)
    except BaseAPIException:
        raise
    except Exception as e:
        logger.error(f"Failed to get balance for user {user_id}: {str(e)}")
        raise to_http_error(e)


@router.get("/history", response_model=PointsHistoryResponse)
async def get_my_history(
    limit: int = Query(50, ge=1, le=100, description="조회 개수"),
    user_id: str = Depends(get_current_user_id),
    point_service: PointService = Depends(get_point_service),
) -> PointsHistoryResponse:
    """내 포인트 거래 내역 (최신순)"""
    try:
        return point_service.get_points_history(user_id, limit=limit)
    except BaseAPIException:
        raise
    except Exception as e:
        logger.error(f"Failed to get history for user {user_id}: {str(e)}")
        raise to_http_error(e)


@router.get("/redemption-options", response_model=List[RedemptionOption])
async def get_redemption_options(
    point_service: PointService = Depends(get_point_service),
) -> List[RedemptionOption]:
    """교환 가능한 코스 카테고리와 필요 포인트"""
    return point_service.get_redemption_options()


@router.post("/redeem", response_model=PointsRedeemResponse)
async def redeem_points(
    request: PointsRedeemRequest,
    user_id: str = Depends(get_current_user_id),
    point_service: PointService = Depends(get_point_service),
) -> PointsRedeemResponse:
    """
    포인트 교환 - 필요 포인트는 정책 테이블 기준으로 서버에서 결정

    Request Body:
        course_type: worksheet, certificate, diploma, internship(_120/_240),
                     masterclass, pre-recorded
        internship_plan: course_type=internship 일 때 "120" 또는 "240"

    Returns:
        PointsRedeemResponse: 성공 시 쿠폰 코드와 교환 후 잔액
    """
    try:
        return point_service.redeem_for_course(
            user_id, request.course_type, request.internship_plan
        )
    except BaseAPIException:
        raise
    except Exception as e:
        logger.error(f"Failed to redeem points for user {user_id}: {str(e)}")
        raise to_http_error(e)


@router.get("/integrity/my", response_model=PointsIntegrityCheckResponse)
async def verify_my_integrity(
    user_id: str = Depends(get_current_user_id),
    point_service: PointService = Depends(get_point_service),
) -> PointsIntegrityCheckResponse:
    """내 계정과 거래 로그의 정합성 검증"""
    try:
        return point_service.verify_user_integrity(user_id)
    except BaseAPIException:
        raise
    except Exception as e:
        logger.error(f"Failed to verify integrity for user {user_id}: {str(e)}")
        raise to_http_error(e)


# ============================================================================
# 내부 엔드포인트 - 결제/추천 플로우 전용
# ============================================================================


@router.post(
    "/internal/award",
    response_model=PointsAwardResponse,
    dependencies=[Depends(require_internal_service)],
)
async def award_points(
    request: PointsAwardRequest,
    point_service: PointService = Depends(get_point_service),
) -> PointsAwardResponse:
    """단건 포인트 지급 (ref_id 로 재시도 안전)"""
    try:
        return point_service.award_points(
            user_id=request.user_id,
            points=request.points,
            description=request.description,
            enrollment_id=request.enrollment_id,
            ref_id=request.ref_id,
        )
    except BaseAPIException:
        raise
    except Exception as e:
        logger.error(f"Failed to award points for user {request.user_id}: {str(e)}")
        raise to_http_error(e)


@router.post(
    "/internal/purchase-awards",
    response_model=PurchaseAwardResponse,
    dependencies=[Depends(require_internal_service)],
)
async def award_purchase_points(
    request: PurchaseAwardRequest,
    checkout_service: CheckoutPointsService = Depends(get_checkout_service),
) -> PurchaseAwardResponse:
    """결제 완료 후 구매 항목별 포인트 지급"""
    try:
        return checkout_service.award_purchase_points(request.user_id, request.items)
    except BaseAPIException:
        raise
    except Exception as e:
        logger.error(
            f"Failed to award purchase points for user {request.user_id}: {str(e)}"
        )
        raise to_http_error(e)


@router.post(
    "/internal/referral-award",
    response_model=PointsAwardResponse,
    dependencies=[Depends(require_internal_service)],
)
async def award_referral_bonus(
    request: ReferralAwardRequest,
    checkout_service: CheckoutPointsService = Depends(get_checkout_service),
) -> PointsAwardResponse:
    """피추천인의 첫 구매에 대한 추천인 보상"""
    try:
        return checkout_service.award_referral_bonus(
            referrer_user_id=request.referrer_user_id,
            referred_user_id=request.referred_user_id,
            points=request.points,
            enrollment_id=request.enrollment_id,
        )
    except BaseAPIException:
        raise
    except Exception as e:
        logger.error(f"Failed to award referral bonus: {str(e)}")
        raise to_http_error(e)
