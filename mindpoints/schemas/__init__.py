from .points import PointsBalanceResponse, PointsHistoryResponse, PointsTransactionEntry
from .coupon import CouponDetail, CouponValidationResponse
from .checkout import PurchasedItem, PurchaseAwardResponse
