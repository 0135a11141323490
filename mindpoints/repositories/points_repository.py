"""
포인트 리포지토리 - 계정/거래 로그 데이터베이스 접근

핵심 특징:
- 잔액 변경은 항상 단일 조건부 UPDATE 문으로 수행됩니다 (읽은 값을 다시 쓰지 않음)
- 차감은 `balance >= n` 조건을 같은 문장에서 검사하여 이중 사용을 방지합니다
- 커밋은 하지 않습니다. 잔액 변경과 로그 추가를 하나의 트랜잭션으로
  묶는 것은 서비스 계층의 책임입니다
"""

from typing import List, Optional, Tuple

from sqlalchemy import case, desc, func, update
from sqlalchemy.orm import Session

from mindpoints.models.points import (
    PointsAccount,
    PointsTransaction,
    PointsTransactionType,
)
from mindpoints.repositories.base import BaseRepository
from mindpoints.schemas.points import PointsBalanceResponse, PointsTransactionEntry


class PointsRepository(BaseRepository[PointsAccount, PointsBalanceResponse]):
    """포인트 계정 및 거래 로그 리포지토리"""

    def __init__(self, db: Session):
        super().__init__(PointsAccount, PointsBalanceResponse, db)

    def _to_transaction_entry(
        self, model_instance: PointsTransaction
    ) -> PointsTransactionEntry:
        """거래 로그 모델을 API 응답 스키마로 변환"""
        tx_type = model_instance.type
        return PointsTransactionEntry(
            id=model_instance.id,
            type=tx_type.value if isinstance(tx_type, PointsTransactionType) else str(tx_type),
            points=model_instance.points,
            description=model_instance.description,
            enrollment_id=model_instance.enrollment_id,
            coupon_id=model_instance.coupon_id,
            balance_after=model_instance.balance_after,
            created_at=(
                model_instance.created_at.strftime("%Y-%m-%d %H:%M:%S")
                if model_instance.created_at
                else ""
            ),
        )

    # ------------------------------------------------------------------
    # 계정
    # ------------------------------------------------------------------

    def get_account(self, user_id: str) -> Optional[PointsAccount]:
        """사용자 계정을 DB 에서 새로 읽어 반환 (없으면 None)"""
        return self.get_by_field("user_id", user_id)

    def get_balance_response(self, user_id: str) -> PointsBalanceResponse:
        """잔액 요약 - 계정이 없으면 0"""
        account = self.get_account(user_id)
        if account is None:
            return PointsBalanceResponse(balance=0, total_earned=0, total_redeemed=0)
        return self._to_schema(account)

    def create_account(self, user_id: str, points: int) -> PointsAccount:
        """첫 지급 시 계정 생성 (user_id 유니크 제약으로 동시 생성 방지)"""
        return self.add(
            user_id=user_id,
            balance=points,
            total_earned=points,
            total_redeemed=0,
        )

    def credit(self, user_id: str, points: int) -> Optional[int]:
        """원자적 적립 - 계정이 없으면 None, 있으면 적립 후 잔액"""
        result = self.db.execute(
            update(PointsAccount)
            .where(PointsAccount.user_id == user_id)
            .values(
                balance=PointsAccount.balance + points,
                total_earned=PointsAccount.total_earned + points,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return None
        return self.get_account(user_id).balance

    def debit(self, user_id: str, points: int) -> Optional[int]:
        """원자적 차감 - 잔액이 부족하거나 계정이 없으면 None

        잔액 확인과 차감이 하나의 UPDATE 문에서 수행되므로
        동시에 들어온 교환 요청이 같은 잔액을 두 번 사용할 수 없습니다.
        """
        result = self.db.execute(
            update(PointsAccount)
            .where(
                PointsAccount.user_id == user_id,
                PointsAccount.balance >= points,
            )
            .values(
                balance=PointsAccount.balance - points,
                total_redeemed=PointsAccount.total_redeemed + points,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return None
        return self.get_account(user_id).balance

    # ------------------------------------------------------------------
    # 거래 로그
    # ------------------------------------------------------------------

    def append_transaction(
        self,
        user_id: str,
        tx_type: PointsTransactionType,
        points: int,
        description: str,
        balance_after: int,
        enrollment_id: Optional[str] = None,
        coupon_id: Optional[int] = None,
        ref_id: Optional[str] = None,
    ) -> PointsTransaction:
        """거래 로그 추가 (수정/삭제 메서드는 제공하지 않음)"""
        entry = PointsTransaction(
            user_id=user_id,
            type=tx_type,
            points=points,
            description=description,
            enrollment_id=enrollment_id,
            coupon_id=coupon_id,
            ref_id=ref_id,
            balance_after=balance_after,
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def get_transaction_by_ref_id(self, ref_id: str) -> Optional[PointsTransaction]:
        """연산 ID 로 이미 기록된 거래 조회 (멱등성 체크용)"""
        return (
            self.db.query(PointsTransaction)
            .filter(PointsTransaction.ref_id == ref_id)
            .first()
        )

    def get_history(
        self, user_id: str, limit: int = 50
    ) -> Tuple[List[PointsTransactionEntry], int]:
        """거래 내역 (최신순)과 전체 건수"""
        total_count = (
            self.db.query(PointsTransaction)
            .filter(PointsTransaction.user_id == user_id)
            .count()
        )

        rows = (
            self.db.query(PointsTransaction)
            .filter(PointsTransaction.user_id == user_id)
            .order_by(desc(PointsTransaction.created_at), desc(PointsTransaction.id))
            .limit(limit)
            .all()
        )

        return [self._to_transaction_entry(row) for row in rows], total_count

    def get_logged_totals(self, user_id: str) -> Tuple[int, int, int]:
        """거래 로그 기준 (지급 합계, 교환 합계, 항목 수)"""
        earned, redeemed, entry_count = (
            self.db.query(
                func.coalesce(
                    func.sum(
                        case(
                            (
                                PointsTransaction.type == PointsTransactionType.EARN,
                                PointsTransaction.points,
                            ),
                            else_=0,
                        )
                    ),
                    0,
                ),
                func.coalesce(
                    func.sum(
                        case(
                            (
                                PointsTransaction.type == PointsTransactionType.REDEEM,
                                PointsTransaction.points,
                            ),
                            else_=0,
                        )
                    ),
                    0,
                ),
                func.count(PointsTransaction.id),
            )
            .filter(PointsTransaction.user_id == user_id)
            .one()
        )
        return int(earned), int(redeemed), int(entry_count)
