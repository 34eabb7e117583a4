# =========================================================
# OBJECTIVE PROGRESS
#
# Matches an employee's active sales against an objective period
# (both ends inclusive, whole days, UTC) and derives:
# - achieved amount (sum of commissions) and sales count
# - progress percentages, clamped to [0, 100], 0 for a zero target
# - days remaining until the end of the period, never negative
# =========================================================

import math
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Iterable, Optional

from salestrack.schemas.objective import ObjectiveProgress, ObjectiveResponse
from salestrack.services.stats import (
    TWO_PLACES,
    ZERO,
    active_sales,
    as_utc,
    day_end,
    day_start,
    money,
)

HUNDRED = Decimal("100")
SECONDS_PER_DAY = 86400


def as_objective(objective) -> Optional[ObjectiveResponse]:
    if objective is None:
        return None
    if isinstance(objective, ObjectiveResponse):
        return objective
    return ObjectiveResponse.model_validate(objective)


def period_window(period_start: date, period_end: date) -> tuple[datetime, datetime]:
    return day_start(period_start), day_end(period_end)


def progress_percentage(achieved, target) -> Decimal:
    achieved = Decimal(str(achieved or 0))
    target = Decimal(str(target or 0))

    if target <= 0:
        return ZERO

    return min(HUNDRED, achieved * HUNDRED / target).quantize(TWO_PLACES)


def days_remaining(period_end: date, now: datetime) -> int:
    seconds_left = (day_end(period_end) - as_utc(now)).total_seconds()
    return max(0, math.ceil(seconds_left / SECONDS_PER_DAY))


def sales_in_period(objective, sales) -> list:
    """Active sales of the objective's employee inside its period."""
    objective = as_objective(objective)
    start, end = period_window(objective.period_start, objective.period_end)

    return [
        sale
        for timestamp, sale in active_sales(sales)
        if sale.employee_name == objective.employee_name and start <= timestamp <= end
    ]


def compute_progress(objective, sales, now: datetime) -> ObjectiveProgress:
    objective = as_objective(objective)
    matching = sales_in_period(objective, sales)

    achieved_amount = sum((money(sale.commission_amount) for sale in matching), ZERO)
    achieved_count = len(matching)

    return ObjectiveProgress(
        objective=objective,
        achieved_amount=achieved_amount,
        achieved_sales_count=achieved_count,
        progress_percentage_amount=progress_percentage(achieved_amount, objective.target_amount),
        progress_percentage_sales=progress_percentage(achieved_count, objective.target_sales_count),
        days_remaining=days_remaining(objective.period_end, now),
    )


def progress_for_objectives(objectives: Iterable, sales, now: datetime) -> list[ObjectiveProgress]:
    sales = list(sales or [])
    return [
        compute_progress(objective, sales, now)
        for objective in objectives or []
        if getattr(objective, "is_active", False)
    ]


def _newest_first(objective: ObjectiveResponse):
    created = as_utc(objective.created_at) or datetime.min.replace(tzinfo=timezone.utc)
    return created, objective.id or 0


def select_current_objective(objectives: Iterable, employee_name: str, now: datetime) -> Optional[ObjectiveResponse]:
    """
    The active objective of ``employee_name`` whose period contains ``now``.

    When several qualify, the most recently created one wins (ties broken by
    the highest id), so the choice is stable across calls.
    """
    now = as_utc(now)

    candidates = []
    for objective in objectives or []:
        objective = as_objective(objective)
        if objective is None or not objective.is_active:
            continue
        if objective.employee_name != employee_name:
            continue
        start, end = period_window(objective.period_start, objective.period_end)
        if start <= now <= end:
            candidates.append(objective)

    if not candidates:
        return None

    return max(candidates, key=_newest_first)


def periods_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    return a_start <= b_end and b_start <= a_end


def find_overlapping(
    objectives: Iterable,
    employee_name: str,
    objective_type: str,
    period_start: date,
    period_end: date,
    exclude_id: Optional[int] = None,
):
    """First active objective of the same employee and type sharing a day."""
    for objective in objectives or []:
        if not objective.is_active:
            continue
        if exclude_id is not None and objective.id == exclude_id:
            continue
        if objective.employee_name != employee_name or objective.objective_type != objective_type:
            continue
        if periods_overlap(objective.period_start, objective.period_end, period_start, period_end):
            return objective
    return None


def build_history_snapshot(objective, progress: ObjectiveProgress, now: datetime) -> dict:
    """Column values for the ObjectiveHistory row archiving ``objective``."""
    objective = as_objective(objective)
    now = as_utc(now)

    targets_reached = []
    if objective.target_amount > 0:
        targets_reached.append(progress.achieved_amount >= objective.target_amount)
    if objective.target_sales_count > 0:
        targets_reached.append(progress.achieved_sales_count >= objective.target_sales_count)

    _, period_end = period_window(objective.period_start, objective.period_end)

    return {
        "objective_id": objective.id,
        "employee_name": objective.employee_name,
        "objective_type": objective.objective_type,
        "target_amount": objective.target_amount,
        "target_sales_count": objective.target_sales_count,
        "achieved_amount": progress.achieved_amount,
        "achieved_sales_count": progress.achieved_sales_count,
        "progress_percentage_amount": progress.progress_percentage_amount,
        "progress_percentage_sales": progress.progress_percentage_sales,
        "period_start": objective.period_start,
        "period_end": objective.period_end,
        "description": objective.description,
        "is_completed": now > period_end,
        # An objective without any target is never "achieved"
        "objective_achieved": bool(targets_reached) and all(targets_reached),
        "created_at": objective.created_at,
        "archived_at": now,
    }
