from dependency_injector import containers, providers

from mindpoints.config import Settings
from mindpoints.services.checkout_service import CheckoutPointsService
from mindpoints.services.coupon_service import CouponService
from mindpoints.services.point_service import PointService


class ConfigModule(containers.DeclarativeContainer):
    """Application configuration."""

    config = providers.Singleton(Settings)


class ServiceModule(containers.DeclarativeContainer):
    """Service layer factories.

    요청마다 새 DB 세션을 db 인자로 넘겨 호출합니다 (mindpoints.deps 참고).
    """

    config = providers.DependenciesContainer()

    point_service = providers.Factory(PointService, settings=config.config)
    coupon_service = providers.Factory(CouponService)
    checkout_service = providers.Factory(CheckoutPointsService)


class Container(containers.DeclarativeContainer):
    """Application container."""

    wiring_config = containers.WiringConfiguration(
        modules=["mindpoints.deps"],
    )

    config = providers.Container(ConfigModule)
    services = providers.Container(ServiceModule, config=config)
