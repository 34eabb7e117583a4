# =========================================================
# SALES AGGREGATION ENGINE
#
# Pure functions over SaleRecord lists:
# - Totals / average (average is 0 when there are no sales)
# - Trailing 6-month breakdown (oldest first)
# - Insurance type breakdown (current calendar month)
# - Per-employee breakdown and top sellers
# - Trailing 7-day evolution
#
# Only active sales are counted. Entries without a timestamp,
# or that are not sales at all, are skipped rather than raised on.
# "now" is always passed in, so identical inputs give identical output.
# =========================================================

from calendar import monthrange
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional

from salestrack.models.sales import SALE_STATUS_ACTIVE
from salestrack.schemas.report import (
    DashboardStats,
    DayBucket,
    EmployeeSummary,
    InsuranceTypeBucket,
    MonthBucket,
    SalesSummary,
    TopSeller,
)
from salestrack.schemas.sale import SaleRecord

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")

TRAILING_MONTHS = 6
TRAILING_DAYS = 7
TOP_SELLERS_LIMIT = 5
RECENT_SALES_LIMIT = 10

# French short month names, as shown on the dashboards
MONTH_LABELS = [
    "janv.", "févr.", "mars", "avr.", "mai", "juin",
    "juil.", "août", "sept.", "oct.", "nov.", "déc.",
]


# =========================================================
# HELPERS
# =========================================================
def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive timestamps (SQLite hands those back) as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def money(value) -> Decimal:
    if value is None:
        return ZERO
    try:
        return Decimal(str(value)).quantize(TWO_PLACES)
    except (InvalidOperation, ValueError):
        return ZERO


def day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def day_end(day: date) -> datetime:
    return datetime.combine(day, time.max, tzinfo=timezone.utc)


def month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    """First and last instant of a calendar month."""
    last_day = monthrange(year, month)[1]
    return day_start(date(year, month, 1)), day_end(date(year, month, last_day))


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _range_bounds(start, end) -> tuple[Optional[datetime], Optional[datetime]]:
    # Plain dates cover the whole day on both ends
    if isinstance(start, datetime):
        start = as_utc(start)
    elif isinstance(start, date):
        start = day_start(start)

    if isinstance(end, datetime):
        end = as_utc(end)
    elif isinstance(end, date):
        end = day_end(end)

    return start, end


def active_sales(sales: Optional[Iterable]) -> list[tuple[datetime, SaleRecord]]:
    """(timestamp, sale) pairs for active, well-formed sales, in input order."""
    rows = []

    for sale in sales or []:
        if not isinstance(sale, SaleRecord):
            continue
        if sale.status != SALE_STATUS_ACTIVE:
            continue
        timestamp = as_utc(sale.created_at)
        if timestamp is None:
            continue
        rows.append((timestamp, sale))

    return rows


def _filter_range(rows, start=None, end=None):
    start, end = _range_bounds(start, end)
    return [
        (timestamp, sale)
        for timestamp, sale in rows
        if (start is None or timestamp >= start) and (end is None or timestamp <= end)
    ]


def _totals(rows) -> tuple[Decimal, Decimal, int]:
    total_amount = sum((money(sale.amount) for _, sale in rows), ZERO)
    total_commission = sum((money(sale.commission_amount) for _, sale in rows), ZERO)
    return total_amount, total_commission, len(rows)


# =========================================================
# SUMMARY
# =========================================================
def summarize(sales, start=None, end=None) -> SalesSummary:
    rows = _filter_range(active_sales(sales), start, end)
    total_amount, total_commission, count = _totals(rows)

    if count == 0:
        average_amount = ZERO
    else:
        average_amount = (total_amount / count).quantize(TWO_PLACES)

    return SalesSummary(
        total_amount=total_amount,
        total_commission=total_commission,
        sales_count=count,
        average_amount=average_amount,
        start_date=start.date() if isinstance(start, datetime) else start,
        end_date=end.date() if isinstance(end, datetime) else end,
    )


# =========================================================
# MONTHLY BREAKDOWN (TRAILING WINDOW)
# =========================================================
def monthly_breakdown(sales, now: datetime, months: int = TRAILING_MONTHS) -> list[MonthBucket]:
    now = as_utc(now)
    rows = active_sales(sales)

    buckets = []

    for offset in range(months - 1, -1, -1):
        year, month = shift_month(now.year, now.month, -offset)
        start, end = month_bounds(year, month)

        month_rows = [(t, s) for t, s in rows if start <= t <= end]
        total_amount, total_commission, count = _totals(month_rows)

        buckets.append(
            MonthBucket(
                month=MONTH_LABELS[month - 1],
                month_start=start.date(),
                month_end=end.date(),
                total_amount=total_amount,
                total_commission=total_commission,
                sales_count=count,
            )
        )

    return buckets


# =========================================================
# INSURANCE TYPE BREAKDOWN (CURRENT MONTH)
# =========================================================
def insurance_type_breakdown(sales, now: datetime) -> list[InsuranceTypeBucket]:
    now = as_utc(now)
    start, end = month_bounds(now.year, now.month)

    grouped: dict[str, dict] = {}

    for _, sale in _filter_range(active_sales(sales), start, end):
        for line in sale.insurances:
            # Grouped by exact name, case included
            bucket = grouped.setdefault(
                line.insurance_name,
                {"sales_count": 0, "total_commission": ZERO},
            )
            bucket["sales_count"] += 1
            bucket["total_commission"] += money(line.commission_amount)

    return [
        InsuranceTypeBucket(insurance_name=name, **values)
        for name, values in grouped.items()
    ]


# =========================================================
# PER EMPLOYEE
# =========================================================
def _group_by_employee(rows) -> dict[str, list]:
    grouped: dict[str, list] = {}
    for timestamp, sale in rows:
        grouped.setdefault(sale.employee_name, []).append((timestamp, sale))
    return grouped


def employee_breakdown(sales, start=None, end=None) -> list[EmployeeSummary]:
    rows = _filter_range(active_sales(sales), start, end)

    results = []

    for employee_name, employee_rows in _group_by_employee(rows).items():
        summary = summarize([sale for _, sale in employee_rows], start, end)
        results.append(EmployeeSummary(employee_name=employee_name, **summary.model_dump()))

    return results


def top_sellers(sales, limit: int = TOP_SELLERS_LIMIT, start=None, end=None) -> list[TopSeller]:
    rows = _filter_range(active_sales(sales), start, end)

    sellers = []
    for employee_name, employee_rows in _group_by_employee(rows).items():
        _, total_commission, count = _totals(employee_rows)
        sellers.append(
            TopSeller(
                employee_name=employee_name,
                sales_count=count,
                total_commission=total_commission,
            )
        )

    # sorted() is stable, ties keep input order
    ranked = sorted(sellers, key=lambda seller: seller.total_commission, reverse=True)
    return ranked[:limit]


# =========================================================
# DAILY EVOLUTION
# =========================================================
def weekly_evolution(sales, now: datetime, days: int = TRAILING_DAYS) -> list[DayBucket]:
    now = as_utc(now)
    rows = active_sales(sales)

    evolution = []

    for i in range(days - 1, -1, -1):
        day = now.date() - timedelta(days=i)
        day_rows = [(t, s) for t, s in rows if t.date() == day]
        _, total_commission, count = _totals(day_rows)

        evolution.append(
            DayBucket(day=day, sales_count=count, total_commission=total_commission)
        )

    return evolution


# =========================================================
# DASHBOARD
# =========================================================
def dashboard_stats(sales, now: datetime, include_top_sellers: bool = False) -> DashboardStats:
    now = as_utc(now)
    rows = active_sales(sales)

    _, total_commission, total_sales = _totals(rows)

    # Same calendar days as the evolution chart, today included
    week_start = day_start(now.date() - timedelta(days=TRAILING_DAYS - 1))
    sales_this_week = sum(1 for timestamp, _ in rows if week_start <= timestamp <= day_end(now.date()))

    month_start, month_end = month_bounds(now.year, now.month)
    current_month = summarize([sale for _, sale in rows], month_start, month_end)

    recent = sorted(rows, key=lambda row: row[0], reverse=True)[:RECENT_SALES_LIMIT]

    return DashboardStats(
        total_sales=total_sales,
        total_commission=total_commission,
        sales_this_week=sales_this_week,
        current_month=current_month,
        top_sellers=top_sellers([sale for _, sale in rows]) if include_top_sellers else [],
        recent_sales=[sale for _, sale in recent],
        weekly_evolution=weekly_evolution([sale for _, sale in rows], now),
    )
