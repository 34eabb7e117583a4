"""Tests for the sales aggregation engine (no database)."""

from datetime import date, datetime, timezone
from decimal import Decimal

from salestrack.schemas.sale import InsuranceLine, SaleRecord
from salestrack.services import stats


def _sale(employee, when, commission, amount="0", status="active", lines=None):
    return SaleRecord(
        employee_name=employee,
        amount=Decimal(amount),
        commission_amount=Decimal(commission),
        status=status,
        created_at=when,
        insurances=[
            InsuranceLine(insurance_name=name, commission_amount=Decimal(value))
            for name, value in (lines or [])
        ],
    )


NOW = datetime(2025, 3, 20, 15, 0, tzinfo=timezone.utc)


# ---- summarize ----

class TestSummarize:
    def test_empty_input_is_all_zero(self):
        summary = stats.summarize([])
        assert summary.sales_count == 0
        assert summary.total_amount == Decimal("0.00")
        assert summary.total_commission == Decimal("0.00")
        assert summary.average_amount == Decimal("0.00")

    def test_none_input_is_all_zero(self):
        assert stats.summarize(None).sales_count == 0

    def test_totals_and_average(self):
        sales = [
            _sale("julie", NOW, "10", amount="100"),
            _sale("julie", NOW, "5", amount="50"),
            _sale("sherman", NOW, "2.50", amount="25"),
        ]
        summary = stats.summarize(sales)
        assert summary.sales_count == 3
        assert summary.total_amount == Decimal("175.00")
        assert summary.total_commission == Decimal("17.50")
        assert summary.average_amount == Decimal("58.33")

    def test_average_times_count_is_close_to_total(self):
        sales = [_sale("julie", NOW, "1", amount=str(v)) for v in (10, 20, 33)]
        summary = stats.summarize(sales)
        assert abs(summary.average_amount * summary.sales_count - summary.total_amount) < Decimal("0.05")

    def test_cancelled_sales_are_ignored(self):
        sales = [
            _sale("julie", NOW, "10", amount="100"),
            _sale("julie", NOW, "99", amount="999", status="cancelled"),
        ]
        summary = stats.summarize(sales)
        assert summary.sales_count == 1
        assert summary.total_commission == Decimal("10.00")

    def test_malformed_entries_are_skipped(self):
        sales = [None, {"amount": 5}, _sale("julie", None, "10"), _sale("julie", NOW, "4")]
        summary = stats.summarize(sales)
        assert summary.sales_count == 1
        assert summary.total_commission == Decimal("4.00")

    def test_date_range_includes_whole_end_day(self):
        sales = [
            _sale("julie", datetime(2025, 3, 1, 0, 0, tzinfo=timezone.utc), "1"),
            _sale("julie", datetime(2025, 3, 10, 23, 59, 59, tzinfo=timezone.utc), "2"),
            _sale("julie", datetime(2025, 3, 11, 0, 0, tzinfo=timezone.utc), "4"),
        ]
        summary = stats.summarize(sales, date(2025, 3, 1), date(2025, 3, 10))
        assert summary.sales_count == 2
        assert summary.total_commission == Decimal("3.00")
        assert summary.start_date == date(2025, 3, 1)

    def test_naive_timestamps_are_read_as_utc(self):
        sales = [_sale("julie", datetime(2025, 3, 10, 12, 0), "3")]
        summary = stats.summarize(sales, date(2025, 3, 10), date(2025, 3, 10))
        assert summary.sales_count == 1


# ---- monthly_breakdown ----

class TestMonthlyBreakdown:
    def test_six_buckets_oldest_first_with_french_labels(self):
        buckets = stats.monthly_breakdown([], NOW)
        assert [b.month for b in buckets] == ["oct.", "nov.", "déc.", "janv.", "févr.", "mars"]
        assert buckets[0].month_start == date(2024, 10, 1)
        assert buckets[-1].month_end == date(2025, 3, 31)
        assert all(b.sales_count == 0 for b in buckets)

    def test_last_instant_of_month_stays_in_that_month(self):
        last_instant = datetime(2025, 2, 28, 23, 59, 59, 999999, tzinfo=timezone.utc)
        buckets = stats.monthly_breakdown([_sale("julie", last_instant, "7")], NOW)
        february = next(b for b in buckets if b.month == "févr.")
        march = next(b for b in buckets if b.month == "mars")
        assert february.sales_count == 1
        assert february.total_commission == Decimal("7.00")
        assert march.sales_count == 0

    def test_sales_outside_window_are_not_counted(self):
        old = datetime(2024, 9, 30, 12, 0, tzinfo=timezone.utc)
        buckets = stats.monthly_breakdown([_sale("julie", old, "7")], NOW)
        assert sum(b.sales_count for b in buckets) == 0

    def test_window_crosses_year(self):
        buckets = stats.monthly_breakdown([], datetime(2025, 1, 5, tzinfo=timezone.utc), months=3)
        assert [(b.month_start.year, b.month_start.month) for b in buckets] == [
            (2024, 11), (2024, 12), (2025, 1),
        ]


# ---- insurance_type_breakdown ----

class TestInsuranceTypeBreakdown:
    def test_counts_each_line_in_current_month(self):
        sales = [
            _sale("julie", NOW, "15", lines=[("Annulation", "10"), ("Multirisque", "5")]),
            _sale("sherman", NOW, "10", lines=[("Annulation", "10")]),
            _sale("sherman", datetime(2025, 2, 1, tzinfo=timezone.utc), "10", lines=[("Annulation", "10")]),
        ]
        buckets = {b.insurance_name: b for b in stats.insurance_type_breakdown(sales, NOW)}
        assert buckets["Annulation"].sales_count == 2
        assert buckets["Annulation"].total_commission == Decimal("20.00")
        assert buckets["Multirisque"].sales_count == 1

    def test_names_are_case_sensitive(self):
        sales = [
            _sale("julie", NOW, "1", lines=[("Annulation", "1")]),
            _sale("julie", NOW, "1", lines=[("annulation", "1")]),
        ]
        names = [b.insurance_name for b in stats.insurance_type_breakdown(sales, NOW)]
        assert sorted(names) == ["Annulation", "annulation"]


# ---- employees / top sellers ----

class TestEmployees:
    def test_breakdown_keeps_first_appearance_order(self):
        sales = [
            _sale("sherman", NOW, "1"),
            _sale("julie", NOW, "5"),
            _sale("sherman", NOW, "2"),
        ]
        rows = stats.employee_breakdown(sales)
        assert [r.employee_name for r in rows] == ["sherman", "julie"]
        assert rows[0].sales_count == 2
        assert rows[0].total_commission == Decimal("3.00")

    def test_top_sellers_sorted_by_commission(self):
        sales = [
            _sale("alvin", NOW, "3"),
            _sale("julie", NOW, "20"),
            _sale("sherman", NOW, "8"),
        ]
        ranked = stats.top_sellers(sales)
        assert [s.employee_name for s in ranked] == ["julie", "sherman", "alvin"]

    def test_top_sellers_ties_keep_input_order(self):
        sales = [_sale("stef", NOW, "5"), _sale("alvin", NOW, "5"), _sale("julie", NOW, "9")]
        ranked = stats.top_sellers(sales)
        assert [s.employee_name for s in ranked] == ["julie", "stef", "alvin"]

    def test_top_sellers_truncated_to_five(self):
        sales = [_sale(f"user{i}", NOW, str(i)) for i in range(1, 9)]
        assert len(stats.top_sellers(sales)) == 5


# ---- weekly evolution / dashboard ----

class TestDashboard:
    def test_weekly_evolution_has_seven_days_oldest_first(self):
        sales = [_sale("julie", NOW, "4"), _sale("julie", datetime(2025, 3, 14, 9, tzinfo=timezone.utc), "2")]
        days = stats.weekly_evolution(sales, NOW)
        assert len(days) == 7
        assert days[0].day == date(2025, 3, 14)
        assert days[-1].day == date(2025, 3, 20)
        assert days[0].sales_count == 1
        assert days[-1].total_commission == Decimal("4.00")

    def test_empty_current_month_gives_zero_dashboard(self):
        dashboard = stats.dashboard_stats([], NOW)
        assert dashboard.total_sales == 0
        assert dashboard.total_commission == Decimal("0.00")
        assert dashboard.sales_this_week == 0
        assert dashboard.current_month.sales_count == 0
        assert dashboard.current_month.average_amount == Decimal("0.00")
        assert dashboard.recent_sales == []
        assert dashboard.top_sellers == []

    def test_dashboard_figures(self):
        sales = [
            _sale("julie", datetime(2025, 1, 5, tzinfo=timezone.utc), "10"),
            _sale("julie", datetime(2025, 3, 2, tzinfo=timezone.utc), "5"),
            _sale("sherman", datetime(2025, 3, 19, tzinfo=timezone.utc), "7"),
        ]
        dashboard = stats.dashboard_stats(sales, NOW, include_top_sellers=True)
        assert dashboard.total_sales == 3
        assert dashboard.total_commission == Decimal("22.00")
        assert dashboard.sales_this_week == 1
        assert dashboard.current_month.sales_count == 2
        assert dashboard.recent_sales[0].employee_name == "sherman"
        assert dashboard.top_sellers[0].employee_name == "julie"

    def test_week_count_matches_evolution_days(self):
        sales = [
            # Inside the last 168 hours but before the first charted day
            _sale("julie", datetime(2025, 3, 13, 23, 0, tzinfo=timezone.utc), "3"),
            _sale("julie", datetime(2025, 3, 14, 0, 30, tzinfo=timezone.utc), "2"),
            _sale("sherman", datetime(2025, 3, 20, 8, 0, tzinfo=timezone.utc), "1"),
        ]
        dashboard = stats.dashboard_stats(sales, NOW)
        assert dashboard.sales_this_week == 2
        assert dashboard.sales_this_week == sum(day.sales_count for day in dashboard.weekly_evolution)

    def test_recent_sales_limited_to_ten(self):
        sales = [_sale("julie", datetime(2025, 3, d, tzinfo=timezone.utc), "1") for d in range(1, 16)]
        dashboard = stats.dashboard_stats(sales, NOW)
        assert len(dashboard.recent_sales) == 10
        assert dashboard.recent_sales[0].created_at.day == 15

    def test_same_input_same_output(self):
        sales = [_sale("julie", NOW, "10")]
        assert stats.dashboard_stats(sales, NOW) == stats.dashboard_stats(sales, NOW)
