import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from mindpoints.models import Base
from mindpoints.services.coupon_service import CouponService
from mindpoints.services.point_service import PointService


@pytest.fixture
def engine():
    """테스트용 인메모리 SQLite 엔진 (모든 세션이 같은 커넥션 공유)"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    TestingSessionLocal = sessionmaker(
        bind=engine, autoflush=False, expire_on_commit=False
    )
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def point_service(db_session):
    return PointService(db_session)


@pytest.fixture
def coupon_service(db_session):
    return CouponService(db_session)
