# =========================================================
# REPORTS ROUTER
#
# EMPLOYEES:
# - Dashboard, summary, monthly and insurance breakdowns
#   computed over their own sales only
#
# ADMINS:
# - Same reports over every employee
# - Per-employee breakdown and top sellers
#
# Every figure is computed by services.stats from the scoped
# sale list, so both roles share one code path.
# =========================================================

from datetime import date, datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from salestrack.database import get_db
from salestrack.core.access import Action, Actor, Resource, require_access
from salestrack.core.auth import get_admin_actor, get_current_actor
from salestrack.core.errors import ValidationError
from salestrack.schemas.report import (
    DashboardStats,
    EmployeeSummary,
    InsuranceTypeBucket,
    MonthBucket,
    SalesSummary,
    TopSeller,
)
from salestrack.services import stats
from salestrack.services.sales import fetch_sale_records

router = APIRouter(prefix="/reports", tags=["Reports"])


def _check_range(start_date: Optional[date], end_date: Optional[date]):
    if start_date and end_date and start_date > end_date:
        raise ValidationError({"start_date": "Start date must be before end date"})


def _scoped_sales(db: Session, actor: Actor, **filters):
    require_access(actor, Action.READ, Resource.REPORT, actor.username)
    return fetch_sale_records(db, actor, **filters)


# =========================================================
# DASHBOARD
# =========================================================
@router.get("/dashboard", response_model=DashboardStats)
def dashboard(
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    sales = _scoped_sales(db, actor)
    return stats.dashboard_stats(
        sales,
        now=datetime.now(timezone.utc),
        include_top_sellers=actor.is_admin,
    )


# =========================================================
# SUMMARY (DATE RANGE)
# =========================================================
@router.get("/summary", response_model=SalesSummary)
def summary(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    employee_name: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    _check_range(start_date, end_date)

    sales = _scoped_sales(
        db,
        actor,
        start=start_date,
        end=end_date,
        employee_name=employee_name.strip().lower() if employee_name else None,
    )
    return stats.summarize(sales, start_date, end_date)


# =========================================================
# TRAILING MONTHS
# =========================================================
@router.get("/monthly", response_model=list[MonthBucket])
def monthly(
    months: int = Query(stats.TRAILING_MONTHS, ge=1, le=24),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    sales = _scoped_sales(db, actor)
    return stats.monthly_breakdown(sales, now=datetime.now(timezone.utc), months=months)


# =========================================================
# INSURANCE TYPES (CURRENT MONTH)
# =========================================================
@router.get("/insurance-types", response_model=list[InsuranceTypeBucket])
def insurance_types(
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    sales = _scoped_sales(db, actor)
    return stats.insurance_type_breakdown(sales, now=datetime.now(timezone.utc))


# =========================================================
# ADMIN ONLY
# =========================================================
@router.get("/employees", response_model=list[EmployeeSummary])
def employees(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_admin_actor),
):
    _check_range(start_date, end_date)

    sales = fetch_sale_records(db, actor, start=start_date, end=end_date)
    return stats.employee_breakdown(sales, start_date, end_date)


@router.get("/top-sellers", response_model=list[TopSeller])
def top_sellers(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    limit: int = Query(stats.TOP_SELLERS_LIMIT, ge=1, le=50),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_admin_actor),
):
    _check_range(start_date, end_date)

    sales = fetch_sale_records(db, actor, start=start_date, end=end_date)
    return stats.top_sellers(sales, limit=limit, start=start_date, end=end_date)
