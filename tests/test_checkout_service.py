import pytest

from sqlalchemy.exc import OperationalError

from mindpoints.config import settings
from mindpoints.models.points import PointsTransaction
from mindpoints.schemas.checkout import PurchasedItem
from mindpoints.services.checkout_service import (
    CheckoutPointsService,
    enrollment_ref_id,
    referral_ref_id,
)
from mindpoints.services.point_service import PointService


class FlakyPointService(PointService):
    """처음 N 번의 지급 호출에서 연결 오류를 발생시키는 원장"""

    def __init__(self, db, failures: int):
        super().__init__(db)
        self.failures = failures
        self.calls = 0

    def award_points(self, *args, **kwargs):
        self.calls += 1
        if self.calls <= self.failures:
            raise OperationalError("UPDATE", {}, Exception("connection reset by peer"))
        return super().award_points(*args, **kwargs)


@pytest.fixture(autouse=True)
def no_retry_delay(monkeypatch):
    monkeypatch.setattr(settings, "RETRY_INITIAL_DELAY_SECONDS", 0.0)
    monkeypatch.setattr(settings, "RETRY_MAX_DELAY_SECONDS", 0.0)


@pytest.fixture
def checkout_service(point_service, coupon_service):
    return CheckoutPointsService(point_service, coupon_service)


class TestPurchaseAwards:
    """결제 완료 후 포인트 지급 테스트"""

    def test_awards_points_per_item(self, checkout_service, db_session):
        items = [
            PurchasedItem(enrollment_id="e1", course_type="certificate", title="Python"),
            PurchasedItem(
                enrollment_id="e2", course_type="internship", internship_tier="240"
            ),
            PurchasedItem(
                enrollment_id="e3", course_type="internship", duration="2 Weeks"
            ),
        ]

        result = checkout_service.award_purchase_points("u1", items)

        assert result.total_awarded == 120 + 80 + 60
        assert result.new_balance == 260
        assert [i.points for i in result.items] == [120, 80, 60]
        assert all(i.awarded for i in result.items)

        ref_ids = {t.ref_id for t in db_session.query(PointsTransaction).all()}
        assert ref_ids == {"enrollment_e1", "enrollment_e2", "enrollment_e3"}

    def test_zero_point_items_are_skipped(self, checkout_service, db_session):
        items = [PurchasedItem(enrollment_id="e1", course_type="bootcamp")]

        result = checkout_service.award_purchase_points("u1", items)

        assert result.total_awarded == 0
        assert result.items[0].awarded is False
        assert db_session.query(PointsTransaction).count() == 0

    def test_replayed_checkout_does_not_double_award(self, checkout_service):
        items = [PurchasedItem(enrollment_id="e1", course_type="diploma")]

        checkout_service.award_purchase_points("u1", items)
        result = checkout_service.award_purchase_points("u1", items)

        assert result.new_balance == 200

    def test_transient_error_is_retried(self, db_session, coupon_service):
        flaky = FlakyPointService(db_session, failures=2)
        service = CheckoutPointsService(flaky, coupon_service)

        result = service.award_purchase_points(
            "u1", [PurchasedItem(enrollment_id="e1", course_type="worksheet")]
        )

        assert flaky.calls == 3
        assert result.total_awarded == 20
        assert result.new_balance == 20

    def test_gives_up_after_max_tries(self, db_session, coupon_service):
        flaky = FlakyPointService(db_session, failures=10)
        service = CheckoutPointsService(flaky, coupon_service)

        with pytest.raises(OperationalError):
            service.award_purchase_points(
                "u1", [PurchasedItem(enrollment_id="e1", course_type="worksheet")]
            )

        assert flaky.calls == settings.RETRY_MAX_TRIES


class TestReferralAward:
    """추천인 보상 테스트"""

    def test_referrer_receives_points(self, checkout_service, point_service):
        result = checkout_service.award_referral_bonus("referrer", "friend", 120)

        assert result.success is True
        assert point_service.get_balance("referrer").balance == 120

    def test_referrer_rewarded_once_per_referred_user(
        self, checkout_service, point_service
    ):
        checkout_service.award_referral_bonus("referrer", "friend", 120)
        checkout_service.award_referral_bonus("referrer", "friend", 120)

        assert point_service.get_balance("referrer").total_earned == 120

    def test_other_referrer_for_same_referred_user_is_rejected(
        self, checkout_service, point_service
    ):
        checkout_service.award_referral_bonus("referrer", "friend", 120)

        result = checkout_service.award_referral_bonus("someone-else", "friend", 120)

        assert result.success is False
        assert result.error == "Duplicate operation id"
        assert point_service.get_balance("someone-else").balance == 0

    def test_self_referral_rejected(self, checkout_service, point_service):
        result = checkout_service.award_referral_bonus("u1", "u1", 120)

        assert result.success is False
        assert result.error == "Users cannot refer themselves"
        assert point_service.get_balance("u1").balance == 0


class TestCouponCheckout:
    """주문 확정 시 쿠폰 사용 테스트"""

    def test_owner_completes_checkout_once(self, checkout_service, point_service):
        point_service.award_points("u1", 120, "Seed")
        code = point_service.redeem_points("u1", "worksheet", 80).coupon_code

        first = checkout_service.complete_coupon_checkout(code, user_id="u1")
        second = checkout_service.complete_coupon_checkout(code, user_id="u1")

        assert first.success is True
        assert second.success is False
        assert second.error == "This coupon has already been used"

    def test_other_user_cannot_consume_coupon(self, checkout_service, point_service):
        point_service.award_points("u1", 120, "Seed")
        code = point_service.redeem_points("u1", "worksheet", 80).coupon_code

        result = checkout_service.complete_coupon_checkout(code, user_id="u2")

        assert result.success is False
        assert result.error == "This coupon does not belong to your account"


def test_ref_id_formats():
    assert enrollment_ref_id("abc") == "enrollment_abc"
    assert referral_ref_id("friend") == "referral_friend"
