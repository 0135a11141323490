# 모든 모델을 한 곳에서 import 하여 Base.metadata 에 등록

from .base import Base, BaseModel
from .coupon import Coupon
from .points import PointsAccount, PointsTransaction, PointsTransactionType

__all__ = [
    "Base",
    "BaseModel",
    "Coupon",
    "PointsAccount",
    "PointsTransaction",
    "PointsTransactionType",
]
