from typing import Callable

from dependency_injector.wiring import Provider, inject
from fastapi import Depends
from sqlalchemy.orm import Session

from mindpoints.containers import Container
from mindpoints.database.session import get_db

# Services
from mindpoints.services.checkout_service import CheckoutPointsService
from mindpoints.services.coupon_service import CouponService
from mindpoints.services.point_service import PointService


@inject
def get_point_service(
    db: Session = Depends(get_db),
    factory: Callable[..., PointService] = Depends(
        Provider[Container.services.point_service]
    ),
) -> PointService:
    return factory(db=db)


@inject
def get_coupon_service(
    db: Session = Depends(get_db),
    factory: Callable[..., CouponService] = Depends(
        Provider[Container.services.coupon_service]
    ),
) -> CouponService:
    return factory(db=db)


@inject
def get_checkout_service(
    point_service: PointService = Depends(get_point_service),
    coupon_service: CouponService = Depends(get_coupon_service),
    factory: Callable[..., CheckoutPointsService] = Depends(
        Provider[Container.services.checkout_service]
    ),
) -> CheckoutPointsService:
    # 같은 요청의 세션을 공유하는 서비스로 구성
    return factory(point_service=point_service, coupon_service=coupon_service)
