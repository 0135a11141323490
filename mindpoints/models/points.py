"""
Mind Points 데이터 모델

사용자별 포인트 계정(잔액 스냅샷)과 모든 포인트 변동을 기록하는
거래 로그(Transaction Log) 테이블을 정의합니다.
계정 행은 지급/교환 시에만 변경되고, 거래 로그는 추가만 가능합니다.
"""

import enum

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Column,
    Enum,
    ForeignKey,
    Text,
)
from sqlalchemy.schema import UniqueConstraint

from mindpoints.models.base import BaseModel, BigIntPK


class PointsTransactionType(str, enum.Enum):
    EARN = "earn"  # 구매/추천 보상 지급
    REDEEM = "redeem"  # 쿠폰 교환 차감


class PointsAccount(BaseModel):
    """
    포인트 계정 테이블 - 사용자당 1행

    원칙:
    1. balance == total_earned - total_redeemed (DB 제약으로 강제)
    2. total_earned / total_redeemed 는 감소하지 않음
    3. 첫 지급 시 생성되며 삭제되지 않음
    """

    __tablename__ = "points_accounts"
    __table_args__ = (
        UniqueConstraint("user_id"),
        CheckConstraint("balance >= 0", name="ck_points_accounts_balance_non_negative"),
        CheckConstraint(
            "balance = total_earned - total_redeemed",
            name="ck_points_accounts_balance_consistent",
        ),
    )

    id = Column(BigIntPK, primary_key=True, autoincrement=True)

    # 외부 인증 제공자가 발급한 불투명 사용자 식별자
    user_id = Column(Text, nullable=False, index=True)

    balance = Column(BigInteger, nullable=False, default=0)
    total_earned = Column(BigInteger, nullable=False, default=0)
    total_redeemed = Column(BigInteger, nullable=False, default=0)


class PointsTransaction(BaseModel):
    """
    포인트 거래 로그 - 계정 변동 1건당 1행, 불변

    points 는 항상 양수로 저장하며 부호는 type 으로 결정됩니다.
    (earn = 잔액 증가, redeem = 잔액 감소)
    """

    __tablename__ = "points_transactions"
    __table_args__ = (
        UniqueConstraint("ref_id"),  # 재시도 시 중복 지급 방지
        CheckConstraint("points > 0", name="ck_points_transactions_points_positive"),
    )

    id = Column(BigIntPK, primary_key=True, autoincrement=True)

    user_id = Column(Text, nullable=False, index=True)

    type = Column(
        Enum(
            PointsTransactionType,
            name="points_transaction_type",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
    )

    points = Column(BigInteger, nullable=False)

    # 사용자에게 노출되는 설명 (예: "Certificate purchase")
    description = Column(Text, nullable=False)

    # 구매(수강 등록) 역참조 - 외부 결제 플로우 소유
    enrollment_id = Column(Text, nullable=True)

    # 교환으로 발급된 쿠폰 역참조
    coupon_id = Column(BigInteger, ForeignKey("coupons.id"), nullable=True)

    # 연산 식별자 - 같은 ref_id 로는 한 번만 기록됨
    ref_id = Column(Text, nullable=True)

    # 이 거래 직후의 잔액 (감사 추적용)
    balance_after = Column(BigInteger, nullable=False)
