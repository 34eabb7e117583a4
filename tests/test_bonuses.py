"""Tests for the bonus calculator (no database)."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from salestrack.core.errors import ValidationError
from salestrack.models.bonuses import Bonus
from salestrack.schemas.bonus import BonusRuleResponse
from salestrack.schemas.objective import ObjectiveResponse
from salestrack.schemas.sale import SaleRecord
from salestrack.services import bonuses


def _objective(target_amount="20", target_count=0, employee="julie"):
    return ObjectiveResponse(
        id=7,
        employee_name=employee,
        target_amount=Decimal(target_amount),
        target_sales_count=target_count,
        period_start=date(2025, 3, 1),
        period_end=date(2025, 3, 31),
    )


def _rule(rule_id, name, minimum, maximum, rate, is_active=True):
    return BonusRuleResponse(
        id=rule_id,
        name=name,
        min_achievement_percent=Decimal(minimum),
        max_achievement_percent=Decimal(maximum) if maximum is not None else None,
        bonus_percent=Decimal(rate),
        is_active=is_active,
    )


def _sale(when, commission, employee="julie", status="active", amount="100"):
    return SaleRecord(
        employee_name=employee,
        amount=Decimal(amount),
        commission_amount=Decimal(commission),
        status=status,
        created_at=when,
    )


RULES = [
    _rule(1, "Bronze", "50", "100", "5"),
    _rule(2, "Silver", "100", None, "10"),
    _rule(3, "Gold", "120", None, "20", is_active=False),
]

MID_MARCH = datetime(2025, 3, 15, 12, 0, tzinfo=timezone.utc)


class TestAchievement:
    def test_above_target_is_not_clamped(self):
        assert bonuses.achievement_percent(_objective("20"), Decimal("30"), 0) == Decimal("150.00")

    def test_count_target_when_no_amount_target(self):
        assert bonuses.achievement_percent(_objective("0", target_count=4), Decimal("0"), 2) == Decimal("50.00")

    def test_no_target_means_zero(self):
        assert bonuses.achievement_percent(_objective("0"), Decimal("30"), 3) == Decimal("0.00")

    def test_capped_to_the_stored_precision(self):
        percent = bonuses.achievement_percent(_objective("0.01"), Decimal("5000"), 0)
        assert percent == bonuses.MAX_ACHIEVEMENT_PERCENT


class TestRuleMatching:
    def test_open_tier_above_one_hundred(self):
        assert bonuses.match_bonus_rule(RULES, Decimal("150")).name == "Silver"

    def test_maximum_is_exclusive(self):
        assert bonuses.match_bonus_rule(RULES, Decimal("99.99")).name == "Bronze"
        assert bonuses.match_bonus_rule(RULES, Decimal("100")).name == "Silver"

    def test_inactive_rule_never_matches(self):
        assert bonuses.match_bonus_rule(RULES, Decimal("130")).name == "Silver"

    def test_below_every_tier(self):
        assert bonuses.match_bonus_rule(RULES, Decimal("40")) is None
        assert bonuses.match_bonus_rule([], Decimal("40")) is None

    def test_overlapping_rules_pick_highest_threshold(self):
        rules = [_rule(1, "Base", "0", None, "2"), _rule(2, "Push", "80", None, "8")]
        assert bonuses.match_bonus_rule(rules, Decimal("90")).name == "Push"
        assert bonuses.match_bonus_rule(rules, Decimal("10")).name == "Base"

    def test_range_check(self):
        bonuses.check_rule_range(Decimal("50"), None)
        bonuses.check_rule_range(Decimal("50"), Decimal("60"))

        with pytest.raises(ValidationError) as exc:
            bonuses.check_rule_range(Decimal("50"), Decimal("50"))
        assert "max_achievement_percent" in exc.value.errors


class TestComputeBonus:
    def test_share_of_commission_earned_in_period(self):
        sales = [
            _sale(MID_MARCH, "10"),
            _sale(MID_MARCH, "10"),
            _sale(MID_MARCH, "10", amount="250"),
            _sale(MID_MARCH, "10", status="cancelled"),
            _sale(MID_MARCH, "10", employee="sherman"),
            _sale(datetime(2025, 4, 1, 0, 0, tzinfo=timezone.utc), "10"),
        ]

        result = bonuses.compute_bonus(_objective("20"), sales, RULES)

        assert result.employee_name == "julie"
        assert result.objective_id == 7
        assert result.total_sales == 3
        assert result.total_amount == Decimal("450.00")
        assert result.total_commission == Decimal("30.00")
        assert result.achievement_percent == Decimal("150.00")
        assert result.bonus_rule_name == "Silver"
        assert result.bonus_rate == Decimal("10.00")
        assert result.bonus_amount == Decimal("3.00")

    def test_no_rule_reached(self):
        result = bonuses.compute_bonus(_objective("20"), [_sale(MID_MARCH, "5")], RULES)

        assert result.achievement_percent == Decimal("25.00")
        assert result.bonus_rule_id is None
        assert result.bonus_amount == Decimal("0.00")

    def test_no_sales(self):
        result = bonuses.compute_bonus(_objective("20"), [], RULES)
        assert result.total_sales == 0
        assert result.bonus_amount == Decimal("0.00")


class TestStatusFlow:
    def test_approve_then_pay(self):
        bonus = Bonus(status="pending")

        bonuses.apply_status(bonus, "approved", "admin", MID_MARCH, notes="Q1")
        assert bonus.status == "approved"
        assert bonus.approved_by == "admin"
        assert bonus.approved_at == MID_MARCH
        assert bonus.notes == "Q1"

        bonuses.apply_status(bonus, "paid", "admin", MID_MARCH)
        assert bonus.status == "paid"
        assert bonus.paid_at == MID_MARCH

    def test_reject_is_final(self):
        bonus = Bonus(status="pending")
        bonuses.apply_status(bonus, "rejected", "admin", MID_MARCH)

        with pytest.raises(ValidationError):
            bonuses.apply_status(bonus, "approved", "admin", MID_MARCH)
        assert bonus.status == "rejected"

    def test_cannot_pay_before_approval(self):
        bonus = Bonus(status="pending")

        with pytest.raises(ValidationError) as exc:
            bonuses.apply_status(bonus, "paid", "admin", MID_MARCH)
        assert "status" in exc.value.errors
        assert bonus.paid_at is None
