# salestrack/services/sales.py

"""Scoped sale loading shared by the sales, reports, objectives and export routers."""

from datetime import date, datetime, timezone

from sqlalchemy.orm import Session, joinedload

from salestrack.core.access import Actor, scope_sales_query
from salestrack.core.errors import ValidationError
from salestrack.models.insurance_types import InsuranceType
from salestrack.models.sales import SALE_STATUS_ACTIVE, Sale
from salestrack.models.sale_insurances import SaleInsurance
from salestrack.schemas.sale import SaleRecord
from salestrack.services.stats import ZERO, day_end, day_start, money


def sales_query(db: Session, actor: Actor):
    query = db.query(Sale).options(joinedload(Sale.insurances))
    return scope_sales_query(query, actor)


def fetch_sale_records(
    db: Session,
    actor: Actor,
    start: date | None = None,
    end: date | None = None,
    employee_name: str | None = None,
    include_cancelled: bool = False,
) -> list[SaleRecord]:
    """Sales visible to ``actor`` as SaleRecords, oldest first."""
    query = sales_query(db, actor)

    if start:
        query = query.filter(Sale.created_at >= day_start(start))
    if end:
        query = query.filter(Sale.created_at <= day_end(end))
    if employee_name:
        query = query.filter(Sale.employee_name == employee_name)
    if not include_cancelled:
        query = query.filter(Sale.status == SALE_STATUS_ACTIVE)

    sales = query.order_by(Sale.created_at, Sale.id).all()
    return [SaleRecord.model_validate(sale) for sale in sales]


def sale_timestamp(sale_date: date, now: datetime) -> datetime:
    """A sale keeps its chosen day, stamped with the current time of day."""
    now = now.astimezone(timezone.utc)
    return datetime.combine(sale_date, now.timetz())


def build_insurance_lines(db: Session, insurance_type_ids: list[int]) -> list[SaleInsurance]:
    """
    One line per selected type, snapshotting name and commission.

    Unknown or deactivated types are reported as a validation error on
    ``insurance_type_ids``.
    """
    types = (
        db.query(InsuranceType)
        .filter(
            InsuranceType.id.in_(insurance_type_ids),
            InsuranceType.is_active == True,  # noqa: E712
        )
        .all()
    )
    by_id = {insurance_type.id: insurance_type for insurance_type in types}

    missing = [str(type_id) for type_id in insurance_type_ids if type_id not in by_id]
    if missing:
        raise ValidationError(
            {"insurance_type_ids": f"Unknown or inactive insurance type: {', '.join(missing)}"}
        )

    return [
        SaleInsurance(
            insurance_type_id=by_id[type_id].id,
            insurance_name=by_id[type_id].name,
            commission_amount=money(by_id[type_id].commission_amount),
        )
        for type_id in insurance_type_ids
    ]


def total_commission(lines: list[SaleInsurance]):
    return sum((money(line.commission_amount) for line in lines), ZERO)
