from datetime import date, datetime, timezone
from io import BytesIO
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from salestrack.database import get_db
from salestrack.core.access import Action, Actor, Resource, require_access
from salestrack.core.auth import get_current_actor
from salestrack.core.errors import ValidationError
from salestrack.core.rate_limiter import limiter
from salestrack.services.exports import (
    PDF_MEDIA_TYPE,
    XLSX_MEDIA_TYPE,
    build_sales_pdf,
    build_sales_workbook,
    export_filename,
)
from salestrack.services.sales import fetch_sale_records

router = APIRouter(prefix="/exports", tags=["Exports"])


def _export_sales(db: Session, actor: Actor, start_date, end_date, employee_name):
    if start_date and end_date and start_date > end_date:
        raise ValidationError({"start_date": "Start date must be before end date"})

    require_access(actor, Action.READ, Resource.REPORT, actor.username)

    return fetch_sale_records(
        db,
        actor,
        start=start_date,
        end=end_date,
        employee_name=employee_name.strip().lower() if employee_name else None,
    )


def _download(content: bytes, media_type: str, filename: str):
    return StreamingResponse(
        BytesIO(content),
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# =========================================================
# EXPORT ROUTES
# =========================================================

@router.get("/sales.xlsx")
@limiter.limit("10/minute")
def export_sales_excel(
    request: Request,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    employee_name: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    sales = _export_sales(db, actor, start_date, end_date, employee_name)
    today = datetime.now(timezone.utc).date()

    return _download(
        build_sales_workbook(sales, start_date, end_date),
        XLSX_MEDIA_TYPE,
        export_filename("xlsx", start_date, end_date, today),
    )


@router.get("/sales.pdf")
@limiter.limit("10/minute")
def export_sales_pdf(
    request: Request,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    employee_name: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    sales = _export_sales(db, actor, start_date, end_date, employee_name)
    today = datetime.now(timezone.utc).date()

    return _download(
        build_sales_pdf(sales, start_date, end_date),
        PDF_MEDIA_TYPE,
        export_filename("pdf", start_date, end_date, today),
    )
