# =========================================================
# SALES ROUTER
#
# EMPLOYEES:
# - Create sales in their own name
# - List / read / edit / cancel only their own sales
#
# ADMINS:
# - Everything, for every employee
# - May record a sale on behalf of an employee
#
# Commission is never taken from the client: it is the sum of
# the flat commissions of the selected insurance types.
# =========================================================

import asyncio
import json
import logging
from datetime import date, datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from salestrack.database import get_db
from salestrack.core.access import Action, Actor, Resource, require_access
from salestrack.core.auth import get_current_actor
from salestrack.core.errors import NotFound, ValidationError
from salestrack.core.events import broker
from salestrack.core.rate_limiter import limiter
from salestrack.core.validation import validate_sale_form
from salestrack.models.sales import SALE_STATUS_ACTIVE, SALE_STATUS_CANCELLED, Sale
from salestrack.schemas.sale import SaleCreate, SaleResponse, SaleUpdate
from salestrack.services import system_settings as settings_service
from salestrack.services import users as user_service
from salestrack.services.audit import changed_fields, record_action, snapshot
from salestrack.services.sales import (
    build_insurance_lines,
    sale_timestamp,
    sales_query,
    total_commission,
)
from salestrack.services.stats import as_utc, day_end, day_start

router = APIRouter(prefix="/sales", tags=["Sales"])

logger = logging.getLogger("salestrack")

KEEP_ALIVE_SECONDS = 15


def _sale_event(sale: Sale) -> dict:
    return {
        "type": "sale_created",
        "sale_id": sale.id,
        "employee_name": sale.employee_name,
        "client_name": sale.client_name,
        "commission_amount": str(sale.commission_amount),
        "created_at": as_utc(sale.created_at).isoformat(),
    }


def _check_daily_limit(db: Session, employee_name: str, sale_date: date):
    limit = settings_service.get_setting(db, "max_sales_per_day")

    recorded = (
        db.query(Sale.id)
        .filter(
            Sale.employee_name == employee_name,
            Sale.status == SALE_STATUS_ACTIVE,
            Sale.created_at >= day_start(sale_date),
            Sale.created_at <= day_end(sale_date),
        )
        .count()
    )
    if recorded >= limit:
        raise ValidationError({"sale_date": f"Daily limit of {limit} sales reached"})


def _load_sale(db: Session, sale_id: int, actor: Actor, action: Action) -> Sale:
    # Existence first, then ownership: another employee's sale is a 403, not a 404
    sale = db.query(Sale).filter(Sale.id == sale_id).first()

    if not sale:
        raise NotFound("Sale")

    require_access(actor, action, Resource.SALE, sale.employee_name)
    return sale


# =========================================================
# CREATE SALE
# =========================================================
@router.post("", response_model=SaleResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_sale(
    request: Request,
    sale_data: SaleCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    now = datetime.now(timezone.utc)

    employee_name = actor.username
    if sale_data.employee_name and sale_data.employee_name.strip().lower() != actor.username:
        employee_name = sale_data.employee_name.strip().lower()

    require_access(actor, Action.CREATE, Resource.SALE, employee_name)

    employee = user_service.get_user_by_username(db, employee_name)
    if not employee:
        raise ValidationError({"employee_name": "Unknown employee"})
    if not employee.is_active:
        raise ValidationError({"employee_name": "Employee account is deactivated"})

    cleaned, errors = validate_sale_form(sale_data.model_dump(), today=now.date())
    if errors:
        raise ValidationError(errors)

    _check_daily_limit(db, employee.username, cleaned["sale_date"])

    lines = build_insurance_lines(db, cleaned["insurance_type_ids"])

    try:
        sale = Sale(
            employee_id=employee.id,
            employee_name=employee.username,
            client_name=cleaned["client_name"],
            reservation_number=cleaned["reservation_number"],
            amount=sale_data.amount,
            commission_amount=total_commission(lines),
            notes=cleaned["notes"],
            status=SALE_STATUS_ACTIVE,
            created_at=sale_timestamp(cleaned["sale_date"], now),
        )
        sale.insurances = lines

        db.add(sale)
        db.commit()
        db.refresh(sale)

    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(status_code=500, detail="Unable to record sale")

    logger.info(f"Sale {sale.id} recorded for {sale.employee_name} by {actor.username}")

    broker.publish(_sale_event(sale))

    return sale


# =========================================================
# LIVE FEED (SERVER-SENT EVENTS)
# =========================================================
@router.get("/events")
async def sale_events(
    request: Request,
    actor: Actor = Depends(get_current_actor),
):
    async def stream():
        subscription = broker.subscribe(actor)
        try:
            yield ": connected\n\n"
            while True:
                if await request.is_disconnected():
                    break
                try:
                    event = await asyncio.wait_for(subscription.queue.get(), KEEP_ALIVE_SECONDS)
                except asyncio.TimeoutError:
                    yield ": keep-alive\n\n"
                    continue
                yield f"event: {event['type']}\ndata: {json.dumps(event)}\n\n"
        finally:
            broker.unsubscribe(subscription)

    return StreamingResponse(
        stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
        },
    )


# =========================================================
# LIST SALES (OWNER SCOPED)
# =========================================================
@router.get("", response_model=list[SaleResponse])
def list_sales(
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    employee_name: Optional[str] = Query(None),
    sale_status: Optional[str] = Query(None, alias="status", pattern="^(active|cancelled)$"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
):
    if start_date and end_date and start_date > end_date:
        raise ValidationError({"start_date": "Start date must be before end date"})

    query = sales_query(db, actor)

    if start_date:
        query = query.filter(Sale.created_at >= day_start(start_date))
    if end_date:
        query = query.filter(Sale.created_at <= day_end(end_date))
    if employee_name:
        query = query.filter(Sale.employee_name == employee_name.strip().lower())
    if sale_status:
        query = query.filter(Sale.status == sale_status)

    return (
        query
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .limit(limit)
        .offset(offset)
        .all()
    )


# =========================================================
# GET SINGLE SALE
# =========================================================
@router.get("/{sale_id}", response_model=SaleResponse)
def get_sale(
    sale_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return _load_sale(db, sale_id, actor, Action.READ)


# =========================================================
# UPDATE SALE
# =========================================================
@router.put("/{sale_id}", response_model=SaleResponse)
def update_sale(
    sale_id: int,
    request: Request,
    sale_data: SaleUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    sale = _load_sale(db, sale_id, actor, Action.UPDATE)

    if sale.status != SALE_STATUS_ACTIVE:
        raise ValidationError({"status": "A cancelled sale cannot be edited"})

    before = snapshot(sale, SaleResponse)

    changes = {
        key: value
        for key, value in sale_data.model_dump(exclude_unset=True).items()
        if value is not None
    }

    # Re-validate the whole form as it will be stored
    form = {
        "client_name": changes.get("client_name", sale.client_name),
        "reservation_number": changes.get("reservation_number", sale.reservation_number),
        "notes": changes.get("notes", sale.notes),
        "sale_date": as_utc(sale.created_at).date(),
        "insurance_type_ids": changes.get(
            "insurance_type_ids",
            [line.insurance_type_id for line in sale.insurances],
        ),
    }
    cleaned, errors = validate_sale_form(form, today=datetime.now(timezone.utc).date())
    if errors:
        raise ValidationError(errors)

    try:
        sale.client_name = cleaned["client_name"]
        sale.reservation_number = cleaned["reservation_number"]
        sale.notes = cleaned["notes"]

        if "amount" in changes:
            sale.amount = changes["amount"]

        # Lines are only rebuilt when the selection changes, so existing
        # commission snapshots survive a later repricing
        if "insurance_type_ids" in changes:
            lines = build_insurance_lines(db, cleaned["insurance_type_ids"])
            sale.insurances = lines
            sale.commission_amount = total_commission(lines)

        db.flush()
        old_values, new_values = changed_fields(before, snapshot(sale, SaleResponse))
        if new_values:
            record_action(
                db, actor, "update", "sales", sale.id,
                old_values=old_values, new_values=new_values, request=request,
            )
        db.commit()
        db.refresh(sale)

    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(status_code=500, detail="Unable to update sale")

    logger.info(f"Sale {sale.id} updated by {actor.username}")
    return sale


# =========================================================
# CANCEL SALE (SOFT DELETE)
# =========================================================
@router.delete("/{sale_id}", response_model=SaleResponse)
def cancel_sale(
    sale_id: int,
    request: Request,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    sale = _load_sale(db, sale_id, actor, Action.DELETE)

    if sale.status == SALE_STATUS_CANCELLED:
        return sale

    try:
        sale.status = SALE_STATUS_CANCELLED
        record_action(
            db, actor, "cancel", "sales", sale.id,
            old_values={"status": SALE_STATUS_ACTIVE}, new_values={"status": SALE_STATUS_CANCELLED},
            request=request,
        )
        db.commit()
        db.refresh(sale)

    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(status_code=500, detail="Unable to cancel sale")

    logger.info(f"Sale {sale.id} cancelled by {actor.username}")
    return sale
