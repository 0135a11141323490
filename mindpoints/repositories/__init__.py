# Repository layer - Data access with Pydantic responses

from .base import BaseRepository
from .points_repository import PointsRepository
from .coupon_repository import CouponRepository

__all__ = [
    "BaseRepository",
    "PointsRepository",
    "CouponRepository",
]
