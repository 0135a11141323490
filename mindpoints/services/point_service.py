from typing import List, Optional
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mindpoints.config import Settings, settings as default_settings
from mindpoints.core.coupon_codes import generate_coupon_code
from mindpoints.core import points_policy
from mindpoints.models.points import PointsTransactionType
from mindpoints.repositories.coupon_repository import CouponRepository
from mindpoints.repositories.points_repository import PointsRepository
from mindpoints.schemas.points import (
    PointsAwardResponse,
    PointsBalanceResponse,
    PointsHistoryResponse,
    PointsIntegrityCheckResponse,
    PointsRedeemResponse,
    RedemptionOption,
)
import logging

logger = logging.getLogger(__name__)


class PointService:
    """Mind Points 원장 비즈니스 로직

    검증 실패(0 이하 포인트, 계정 없음, 잔액 부족)는 예외 대신
    success=False 결과로 반환합니다. 저장소 오류는 롤백 후 그대로 전파되어
    호출자(결제 플로우)의 재시도 로직이 판단합니다.
    """

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or default_settings
        self.points_repo = PointsRepository(db)
        self.coupon_repo = CouponRepository(db)

    def get_balance(self, user_id: str) -> PointsBalanceResponse:
        """사용자 포인트 잔액 조회 (계정이 없으면 0)"""
        balance = self.points_repo.get_balance_response(user_id)
        logger.info(f"Retrieved balance for user {user_id}: {balance.balance}")
        return balance

    def award_points(
        self,
        user_id: str,
        points: int,
        description: str,
        enrollment_id: Optional[str] = None,
        ref_id: Optional[str] = None,
    ) -> PointsAwardResponse:
        """포인트 지급

        잔액 적립과 earn 거래 로그는 하나의 트랜잭션으로 커밋됩니다.
        ref_id 가 주어지면 같은 연산이 재시도되어도 한 번만 적립됩니다.

        Args:
            user_id: 사용자 ID
            points: 지급할 포인트 (양수)
            description: 거래 설명
            enrollment_id: 수강 등록 참조
            ref_id: 중복 방지용 연산 ID

        Returns:
            PointsAwardResponse: 지급 결과
        """
        if points <= 0:
            logger.warning(f"Rejected award of {points} points for user {user_id}")
            return PointsAwardResponse(
                success=False, error="Points must be greater than 0"
            )

        # 첫 지급이 동시에 들어오면 계정 생성이 유니크 제약에 걸리므로 한 번 더 시도
        attempt = 0
        while True:
            attempt += 1
            try:
                existing = (
                    self.points_repo.get_transaction_by_ref_id(ref_id) if ref_id else None
                )
                if existing is not None:
                    # 같은 사용자, 같은 포인트의 재시도만 처리 완료로 간주
                    if existing.user_id != user_id or existing.points != points:
                        self.db.rollback()
                        logger.error(
                            f"Operation id {ref_id} already used by a different award "
                            f"(user {existing.user_id}, {existing.points} points); "
                            f"rejected award of {points} points for user {user_id}"
                        )
                        return PointsAwardResponse(
                            success=False, error="Duplicate operation id"
                        )

                    balance = self.points_repo.get_balance_response(user_id).balance
                    self.db.rollback()
                    logger.info(
                        f"Award {ref_id} for user {user_id} already processed (idempotent)"
                    )
                    return PointsAwardResponse(success=True, new_balance=balance)

                new_balance = self.points_repo.credit(user_id, points)
                if new_balance is None:
                    account = self.points_repo.create_account(user_id, points)
                    new_balance = account.balance

                self.points_repo.append_transaction(
                    user_id=user_id,
                    tx_type=PointsTransactionType.EARN,
                    points=points,
                    description=description,
                    balance_after=new_balance,
                    enrollment_id=enrollment_id,
                    ref_id=ref_id,
                )
                self.db.commit()
            except IntegrityError as e:
                self.db.rollback()
                if attempt == 1:
                    logger.warning(
                        f"Concurrent award detected for user {user_id}, retrying: {str(e)}"
                    )
                    continue
                logger.error(f"Failed to award points for user {user_id}: {str(e)}")
                raise
            except Exception as e:
                self.db.rollback()
                logger.error(f"Failed to award points for user {user_id}: {str(e)}")
                raise

            logger.info(
                f"Awarded {points} points to user {user_id} (balance: {new_balance})"
            )
            return PointsAwardResponse(success=True, new_balance=new_balance)

    def redeem_points(
        self, user_id: str, course_type: str, points_required: int
    ) -> PointsRedeemResponse:
        """포인트를 차감하고 100% 할인 쿠폰 발급

        차감(조건부 UPDATE), 쿠폰 생성, redeem 거래 로그가 하나의 트랜잭션입니다.

        Args:
            user_id: 사용자 ID
            course_type: 쿠폰을 적용할 코스 카테고리
            points_required: 차감할 포인트

        Returns:
            PointsRedeemResponse: 교환 결과 (쿠폰 코드 포함)
        """
        if points_required <= 0:
            logger.warning(
                f"Rejected redemption of {points_required} points for user {user_id}"
            )
            return PointsRedeemResponse(success=False, error="Invalid points requirement")

        try:
            account = self.points_repo.get_account(user_id)
            if account is None:
                self.db.rollback()
                return PointsRedeemResponse(
                    success=False, error="No points account found"
                )

            new_balance = self.points_repo.debit(user_id, points_required)
            if new_balance is None:
                current_balance = self.points_repo.get_balance_response(user_id).balance
                self.db.rollback()
                logger.warning(
                    f"Insufficient points for user {user_id}: "
                    f"has {current_balance}, needs {points_required}"
                )
                return PointsRedeemResponse(
                    success=False,
                    error=(
                        f"Insufficient points. You have {current_balance} points, "
                        f"but need {points_required}"
                    ),
                )

            coupon = self.coupon_repo.create_coupon(
                code=generate_coupon_code(self.settings.COUPON_CODE_PREFIX),
                user_id=user_id,
                course_type=course_type,
                points_cost=points_required,
            )

            self.points_repo.append_transaction(
                user_id=user_id,
                tx_type=PointsTransactionType.REDEEM,
                points=points_required,
                description=f"Redeemed {points_required} points for {course_type}",
                balance_after=new_balance,
                coupon_id=coupon.id,
            )
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to redeem points for user {user_id}: {str(e)}")
            raise

        logger.info(
            f"User {user_id} redeemed {points_required} points for {course_type} "
            f"(coupon {coupon.id}, balance: {new_balance})"
        )
        return PointsRedeemResponse(
            success=True,
            coupon_code=coupon.code,
            coupon_id=coupon.id,
            new_balance=new_balance,
        )

    def redeem_for_course(
        self,
        user_id: str,
        course_type: str,
        internship_plan: Optional[str] = None,
    ) -> PointsRedeemResponse:
        """정책 테이블 기준 필요 포인트로 교환

        인턴십은 쿠폰 카테고리를 internship_120 / internship_240 으로 구분합니다.
        알 수 없는 카테고리는 필요 포인트가 0 이므로 검증 오류로 반환됩니다.
        """
        points_required = points_policy.get_points_required_for_redemption(
            course_type, internship_plan
        )
        coupon_course_type = course_type
        if course_type == points_policy.CourseType.INTERNSHIP.value:
            tier = points_policy.resolve_internship_tier(tier=internship_plan)
            coupon_course_type = f"internship_{tier.value}"

        return self.redeem_points(user_id, coupon_course_type, points_required)

    def get_points_history(
        self, user_id: str, limit: Optional[int] = None
    ) -> PointsHistoryResponse:
        """사용자 포인트 거래 내역 (최신순)

        Args:
            user_id: 사용자 ID
            limit: 조회 개수 (최대 POINTS_HISTORY_MAX_LIMIT)
        """
        if limit is None or limit <= 0:
            limit = self.settings.POINTS_HISTORY_DEFAULT_LIMIT
        limit = min(limit, self.settings.POINTS_HISTORY_MAX_LIMIT)

        transactions, total_count = self.points_repo.get_history(user_id, limit=limit)
        balance = self.points_repo.get_balance_response(user_id).balance
        logger.info(
            f"Retrieved {len(transactions)} transactions for user {user_id}"
        )
        return PointsHistoryResponse(
            balance=balance, transactions=transactions, total_count=total_count
        )

    def verify_user_integrity(self, user_id: str) -> PointsIntegrityCheckResponse:
        """계정 스냅샷과 거래 로그 합계 비교"""
        account = self.points_repo.get_balance_response(user_id)
        logged_earned, logged_redeemed, entry_count = (
            self.points_repo.get_logged_totals(user_id)
        )

        consistent = (
            account.balance == account.total_earned - account.total_redeemed
            and account.total_earned == logged_earned
            and account.total_redeemed == logged_redeemed
        )
        status = "OK" if consistent else "MISMATCH"

        if status == "MISMATCH":
            logger.warning(f"Points integrity mismatch detected for user {user_id}")
        else:
            logger.info(f"Points integrity verified for user {user_id}")

        return PointsIntegrityCheckResponse(
            status=status,
            user_id=user_id,
            balance=account.balance,
            total_earned=account.total_earned,
            total_redeemed=account.total_redeemed,
            logged_earned=logged_earned,
            logged_redeemed=logged_redeemed,
            entry_count=entry_count,
            verified_at=datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S"),
        )

    def get_redemption_options(self) -> List[RedemptionOption]:
        return points_policy.get_redemption_options()
