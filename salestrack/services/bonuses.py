# =========================================================
# BONUS CALCULATOR
#
# A bonus is a share of the commission earned on an objective:
# - achievement = achieved / target, NOT clamped, so tiers above
#   100% can be reached (amount target first, else sales count)
# - the active rule with the highest threshold not above the
#   achievement sets the rate; no matching rule means rate 0
# - bonus_amount = total_commission * rate / 100
#
# Lifecycle: pending -> approved -> paid, or pending -> rejected.
# =========================================================

from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from salestrack.core.errors import ValidationError
from salestrack.models.bonuses import (
    BONUS_STATUS_APPROVED,
    BONUS_STATUS_PAID,
    BONUS_STATUS_PENDING,
    BONUS_STATUS_REJECTED,
)
from salestrack.schemas.bonus import BonusComputation
from salestrack.services.objectives import HUNDRED, as_objective, sales_in_period
from salestrack.services.stats import TWO_PLACES, ZERO, as_utc, money

# Upper bound of the stored column
MAX_ACHIEVEMENT_PERCENT = Decimal("99999.99")

STATUS_TRANSITIONS = {
    BONUS_STATUS_PENDING: {BONUS_STATUS_APPROVED, BONUS_STATUS_REJECTED},
    BONUS_STATUS_APPROVED: {BONUS_STATUS_PAID},
}


def achievement_percent(objective, achieved_amount, achieved_count) -> Decimal:
    objective = as_objective(objective)

    if objective.target_amount > 0:
        ratio = money(achieved_amount) / Decimal(str(objective.target_amount))
    elif objective.target_sales_count > 0:
        ratio = Decimal(achieved_count) / Decimal(objective.target_sales_count)
    else:
        return ZERO

    return min(MAX_ACHIEVEMENT_PERCENT, (ratio * HUNDRED).quantize(TWO_PLACES))


def _rule_matches(rule, percent: Decimal) -> bool:
    if not rule.is_active:
        return False
    if percent < rule.min_achievement_percent:
        return False
    return rule.max_achievement_percent is None or percent < rule.max_achievement_percent


def match_bonus_rule(rules: Iterable, percent: Decimal):
    """Best tier reached by ``percent``, or None."""
    candidates = [rule for rule in rules or [] if _rule_matches(rule, percent)]
    if not candidates:
        return None
    return max(candidates, key=lambda rule: (rule.min_achievement_percent, rule.id or 0))


def check_rule_range(min_percent: Decimal, max_percent: Optional[Decimal]):
    if max_percent is not None and max_percent <= min_percent:
        raise ValidationError(
            {"max_achievement_percent": "Maximum must be greater than the minimum achievement"}
        )


def compute_bonus(objective, sales, rules: Iterable) -> BonusComputation:
    objective = as_objective(objective)
    matching = sales_in_period(objective, sales)

    total_commission = sum((money(sale.commission_amount) for sale in matching), ZERO)
    total_amount = sum((money(sale.amount) for sale in matching), ZERO)

    percent = achievement_percent(objective, total_commission, len(matching))
    rule = match_bonus_rule(rules, percent)

    rate = money(rule.bonus_percent) if rule else ZERO

    return BonusComputation(
        employee_name=objective.employee_name,
        objective_id=objective.id,
        period_start=objective.period_start,
        period_end=objective.period_end,
        total_sales=len(matching),
        total_amount=total_amount,
        total_commission=total_commission,
        achievement_percent=percent,
        bonus_rule_id=rule.id if rule else None,
        bonus_rule_name=rule.name if rule else None,
        bonus_rate=rate,
        bonus_amount=(total_commission * rate / HUNDRED).quantize(TWO_PLACES),
    )


def apply_status(bonus, new_status: str, approver: str, now: datetime, notes: Optional[str] = None):
    """Move ``bonus`` to ``new_status`` and stamp who and when."""
    allowed = STATUS_TRANSITIONS.get(bonus.status, set())
    if new_status not in allowed:
        raise ValidationError({"status": f"Cannot move a {bonus.status} bonus to {new_status}"})

    now = as_utc(now)

    if new_status in (BONUS_STATUS_APPROVED, BONUS_STATUS_REJECTED):
        bonus.approved_at = now
        bonus.approved_by = approver
    elif new_status == BONUS_STATUS_PAID:
        bonus.paid_at = now

    if notes is not None:
        bonus.notes = notes

    bonus.status = new_status
    return bonus
