import pytest
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from mindpoints.models.coupon import Coupon
from mindpoints.models.points import (
    PointsAccount,
    PointsTransaction,
    PointsTransactionType,
)


def _account(db_session, user_id):
    return (
        db_session.query(PointsAccount)
        .populate_existing()
        .filter(PointsAccount.user_id == user_id)
        .first()
    )


def _transactions(db_session, user_id):
    return (
        db_session.query(PointsTransaction)
        .filter(PointsTransaction.user_id == user_id)
        .order_by(PointsTransaction.id)
        .all()
    )


class TestGetBalance:
    """잔액 조회 테스트"""

    def test_unknown_user_has_zero_balance(self, point_service, db_session):
        result = point_service.get_balance("nobody")

        assert result.balance == 0
        assert result.total_earned == 0
        assert result.total_redeemed == 0
        # 조회만으로 계정이 생성되지 않아야 함
        assert _account(db_session, "nobody") is None

    def test_balance_reflects_awards_and_redemptions(self, point_service):
        point_service.award_points("u1", 120, "Certificate purchase")
        point_service.redeem_points("u1", "worksheet", 80)

        result = point_service.get_balance("u1")

        assert result.balance == 40
        assert result.total_earned == 120
        assert result.total_redeemed == 80


class TestAwardPoints:
    """포인트 지급 테스트"""

    def test_first_award_creates_account(self, point_service, db_session):
        result = point_service.award_points(
            "u1", 120, "Certificate purchase", enrollment_id="enr-1"
        )

        assert result.success is True
        assert result.new_balance == 120

        account = _account(db_session, "u1")
        assert account.balance == 120
        assert account.total_earned == 120
        assert account.total_redeemed == 0

        entries = _transactions(db_session, "u1")
        assert len(entries) == 1
        assert entries[0].type == PointsTransactionType.EARN
        assert entries[0].points == 120
        assert entries[0].enrollment_id == "enr-1"
        assert entries[0].balance_after == 120

    def test_subsequent_award_updates_existing_account(self, point_service, db_session):
        point_service.award_points("u1", 120, "Certificate purchase")
        result = point_service.award_points("u1", 20, "Worksheet purchase")

        assert result.success is True
        assert result.new_balance == 140
        assert db_session.query(PointsAccount).count() == 1
        assert [e.balance_after for e in _transactions(db_session, "u1")] == [120, 140]

    @pytest.mark.parametrize("points", [0, -5])
    def test_non_positive_points_rejected_without_writes(
        self, point_service, db_session, points
    ):
        result = point_service.award_points("u1", points, "Bad award")

        assert result.success is False
        assert result.error == "Points must be greater than 0"
        assert result.new_balance is None
        assert _account(db_session, "u1") is None
        assert _transactions(db_session, "u1") == []

    def test_same_ref_id_is_credited_once(self, point_service, db_session):
        first = point_service.award_points(
            "u1", 120, "Certificate purchase", ref_id="enrollment_enr-1"
        )
        second = point_service.award_points(
            "u1", 120, "Certificate purchase", ref_id="enrollment_enr-1"
        )

        assert first.success is True
        assert second.success is True
        assert second.new_balance == 120
        assert _account(db_session, "u1").total_earned == 120
        assert len(_transactions(db_session, "u1")) == 1

    def test_ref_id_of_another_user_is_rejected(self, point_service, db_session):
        point_service.award_points(
            "u1", 120, "Certificate purchase", ref_id="enrollment_e1"
        )

        result = point_service.award_points(
            "u2", 50, "Masterclass purchase", ref_id="enrollment_e1"
        )

        assert result.success is False
        assert result.error == "Duplicate operation id"
        assert result.new_balance is None
        assert _account(db_session, "u2") is None
        assert _transactions(db_session, "u2") == []
        assert _account(db_session, "u1").total_earned == 120

    def test_ref_id_reused_with_different_points_is_rejected(
        self, point_service, db_session
    ):
        point_service.award_points(
            "u1", 120, "Certificate purchase", ref_id="enrollment_e1"
        )

        result = point_service.award_points(
            "u1", 200, "Diploma purchase", ref_id="enrollment_e1"
        )

        assert result.success is False
        assert result.error == "Duplicate operation id"
        assert _account(db_session, "u1").total_earned == 120
        assert len(_transactions(db_session, "u1")) == 1

    def test_concurrent_first_award_retries_as_update(self, point_service, db_session):
        """다른 요청이 먼저 계정을 만든 경우 유니크 제약 위반 후 적립으로 재시도"""
        point_service.award_points("u1", 120, "Certificate purchase")

        real_credit = point_service.points_repo.credit
        calls = []

        def credit_missing_once(user_id, points):
            calls.append(user_id)
            if len(calls) == 1:
                return None  # 계정이 아직 없다고 판단한 요청
            return real_credit(user_id, points)

        with patch.object(
            point_service.points_repo, "credit", side_effect=credit_missing_once
        ):
            result = point_service.award_points("u1", 20, "Worksheet purchase")

        assert result.success is True
        assert result.new_balance == 140
        assert len(calls) == 2
        assert db_session.query(PointsAccount).count() == 1
        assert len(_transactions(db_session, "u1")) == 2

    def test_storage_error_rolls_back_and_propagates(self, point_service, db_session):
        point_service.award_points("u1", 120, "Certificate purchase")

        with patch.object(
            point_service.points_repo,
            "append_transaction",
            side_effect=OperationalError("INSERT", {}, Exception("connection reset")),
        ):
            with pytest.raises(OperationalError):
                point_service.award_points("u1", 20, "Worksheet purchase")

        # 잔액 변경과 로그 추가는 함께 롤백됨
        account = _account(db_session, "u1")
        assert account.balance == 120
        assert account.total_earned == 120
        assert len(_transactions(db_session, "u1")) == 1


class TestRedeemPoints:
    """포인트 교환 테스트"""

    def test_redeem_issues_full_discount_coupon(self, point_service, db_session):
        point_service.award_points("u1", 120, "Certificate purchase")

        result = point_service.redeem_points("u1", "worksheet", 80)

        assert result.success is True
        assert result.new_balance == 40
        assert result.coupon_code.startswith("MP-")

        coupon = db_session.query(Coupon).filter(Coupon.id == result.coupon_id).one()
        assert coupon.code == result.coupon_code
        assert coupon.user_id == "u1"
        assert coupon.course_type == "worksheet"
        assert coupon.discount == 100
        assert coupon.points_cost == 80
        assert coupon.is_used is False

        account = _account(db_session, "u1")
        assert account.balance == 40
        assert account.total_redeemed == 80

        redeem_entry = _transactions(db_session, "u1")[-1]
        assert redeem_entry.type == PointsTransactionType.REDEEM
        assert redeem_entry.points == 80
        assert redeem_entry.coupon_id == coupon.id
        assert redeem_entry.description == "Redeemed 80 points for worksheet"
        assert redeem_entry.balance_after == 40

    def test_insufficient_balance_returns_exact_message(self, point_service, db_session):
        point_service.award_points("u1", 120, "Certificate purchase")
        point_service.redeem_points("u1", "worksheet", 80)

        result = point_service.redeem_points("u1", "diploma", 500)

        assert result.success is False
        assert result.error == "Insufficient points. You have 40 points, but need 500"
        assert _account(db_session, "u1").balance == 40
        assert db_session.query(Coupon).count() == 1
        assert len(_transactions(db_session, "u1")) == 2

    def test_exact_balance_can_be_redeemed(self, point_service, db_session):
        point_service.award_points("u1", 80, "Seed")

        result = point_service.redeem_points("u1", "worksheet", 80)

        assert result.success is True
        assert result.new_balance == 0

    def test_no_account(self, point_service, db_session):
        result = point_service.redeem_points("ghost", "worksheet", 80)

        assert result.success is False
        assert result.error == "No points account found"
        assert db_session.query(Coupon).count() == 0

    @pytest.mark.parametrize("points_required", [0, -1])
    def test_invalid_points_requirement(self, point_service, points_required):
        result = point_service.redeem_points("u1", "worksheet", points_required)

        assert result.success is False
        assert result.error == "Invalid points requirement"

    def test_stale_snapshot_cannot_double_spend(self, point_service, db_session):
        """두 요청이 같은 잔액 스냅샷을 보고 동시에 교환해도 한 번만 성공"""
        point_service.award_points("u1", 100, "Seed")
        stale = _account(db_session, "u1")
        db_session.expunge(stale)

        with patch.object(point_service.points_repo, "get_account", return_value=stale):
            first = point_service.redeem_points("u1", "worksheet", 80)
            second = point_service.redeem_points("u1", "worksheet", 80)

        assert first.success is True
        assert second.success is False
        account = _account(db_session, "u1")
        assert account.balance == 20
        assert account.total_redeemed == 80
        assert db_session.query(Coupon).count() == 1

    def test_coupon_failure_leaves_balance_untouched(self, point_service, db_session):
        point_service.award_points("u1", 120, "Seed")

        with patch.object(
            point_service.coupon_repo,
            "create_coupon",
            side_effect=OperationalError("INSERT", {}, Exception("timeout")),
        ):
            with pytest.raises(OperationalError):
                point_service.redeem_points("u1", "worksheet", 80)

        account = _account(db_session, "u1")
        assert account.balance == 120
        assert account.total_redeemed == 0
        assert db_session.query(Coupon).count() == 0


class TestRedeemForCourse:
    """정책 테이블 기반 교환 테스트"""

    def test_uses_policy_cost(self, point_service):
        point_service.award_points("u1", 400, "Seed")

        result = point_service.redeem_for_course("u1", "certificate")

        assert result.success is True
        assert result.new_balance == 100

    def test_internship_plan_selects_tier(self, point_service, db_session):
        point_service.award_points("u1", 250, "Seed")

        result = point_service.redeem_for_course("u1", "internship", "240")

        assert result.success is True
        assert result.new_balance == 50
        coupon = db_session.query(Coupon).one()
        assert coupon.course_type == "internship_240"
        assert coupon.points_cost == 200

    def test_unknown_course_is_rejected(self, point_service):
        point_service.award_points("u1", 400, "Seed")

        result = point_service.redeem_for_course("u1", "bootcamp")

        assert result.success is False
        assert result.error == "Invalid points requirement"


class TestHistoryAndIntegrity:
    """거래 내역 및 정합성 테스트"""

    def test_history_newest_first_with_limit(self, point_service):
        point_service.award_points("u1", 120, "Certificate purchase")
        point_service.award_points("u1", 20, "Worksheet purchase")
        point_service.redeem_points("u1", "worksheet", 80)

        result = point_service.get_points_history("u1", limit=2)

        assert result.balance == 60
        assert result.total_count == 3
        assert [t.type for t in result.transactions] == ["redeem", "earn"]
        assert result.transactions[0].points == 80
        assert result.transactions[1].description == "Worksheet purchase"

    def test_history_limit_is_capped(self, point_service):
        with patch.object(
            point_service.points_repo, "get_history", return_value=([], 0)
        ) as mock_history:
            point_service.get_points_history("u1", limit=1000)

        mock_history.assert_called_once_with("u1", limit=100)

    def test_invariant_holds_after_mixed_operations(self, point_service):
        totals = []
        for points in (120, 200, 20):
            point_service.award_points("u1", points, "Purchase")
            totals.append(point_service.get_balance("u1"))
        for cost in (80, 500, 300):
            point_service.redeem_points("u1", "course", cost)
            totals.append(point_service.get_balance("u1"))

        for snapshot in totals:
            assert snapshot.balance == snapshot.total_earned - snapshot.total_redeemed
            assert snapshot.balance >= 0
        # 누적값은 감소하지 않음
        for before, after in zip(totals, totals[1:]):
            assert after.total_earned >= before.total_earned
            assert after.total_redeemed >= before.total_redeemed

        report = point_service.verify_user_integrity("u1")
        assert report.status == "OK"
        assert report.logged_earned == 340
        assert report.logged_redeemed == 80
        assert report.entry_count == 4

    def test_integrity_detects_log_mismatch(self, point_service, db_session):
        point_service.award_points("u1", 120, "Certificate purchase")
        db_session.query(PointsTransaction).delete()
        db_session.commit()

        report = point_service.verify_user_integrity("u1")

        assert report.status == "MISMATCH"
        assert report.total_earned == 120
        assert report.logged_earned == 0

    def test_redemption_options(self, point_service):
        options = {o.course_type: o.points_required for o in point_service.get_redemption_options()}

        assert options["worksheet"] == 80
        assert options["internship_240"] == 200
