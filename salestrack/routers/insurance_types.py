# salestrack/routers/insurance_types.py

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from salestrack.database import get_db
from salestrack.core.access import Actor
from salestrack.core.auth import get_admin_actor, get_current_actor
from salestrack.core.errors import NotFound, ValidationError
from salestrack.models.insurance_types import InsuranceType
from salestrack.schemas.insurance_type import (
    InsuranceTypeCreate,
    InsuranceTypeUpdate,
    InsuranceTypeResponse,
)
from salestrack.services.audit import changed_fields, record_action, snapshot

router = APIRouter(
    prefix="/insurance-types",
    tags=["Insurance Types"],
)

logger = logging.getLogger("salestrack")


def _get_insurance_type(db: Session, insurance_type_id: int) -> InsuranceType:
    insurance_type = db.query(InsuranceType).filter(InsuranceType.id == insurance_type_id).first()
    if not insurance_type:
        raise NotFound("Insurance type")
    return insurance_type


def _clean_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise ValidationError({"name": "Name cannot be blank"})
    return name


def _commit(db: Session, action: str, record=None):
    """Flush, let ``record`` write its audit row once ids exist, then commit."""
    try:
        db.flush()
        if record is not None:
            record()
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Insurance type with this name already exists",
        )
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Unable to {action} insurance type")


def _ensure_unique_name(db: Session, name: str, exclude_id: int | None = None):
    query = db.query(InsuranceType).filter(InsuranceType.name == name)
    if exclude_id is not None:
        query = query.filter(InsuranceType.id != exclude_id)

    if query.first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Insurance type with this name already exists",
        )


@router.post(
    "",
    response_model=InsuranceTypeResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_insurance_type(
    request: Request,
    data: InsuranceTypeCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_admin_actor),
):
    name = _clean_name(data.name)
    _ensure_unique_name(db, name)

    insurance_type = InsuranceType(
        name=name,
        commission_amount=data.commission_amount,
        is_active=True,
    )

    db.add(insurance_type)
    _commit(
        db,
        "create",
        lambda: record_action(
            db, actor, "create", "insurance_types", insurance_type.id,
            new_values=snapshot(insurance_type, InsuranceTypeResponse), request=request,
        ),
    )
    db.refresh(insurance_type)

    logger.info(f"Insurance type {name!r} created by {actor.username}")
    return insurance_type


@router.get(
    "",
    response_model=list[InsuranceTypeResponse],
)
def list_insurance_types(
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    query = db.query(InsuranceType)

    # Only admins see retired types
    if not (include_inactive and actor.is_admin):
        query = query.filter(InsuranceType.is_active == True)  # noqa: E712

    return query.order_by(InsuranceType.name).all()


@router.put(
    "/{insurance_type_id}",
    response_model=InsuranceTypeResponse,
)
def update_insurance_type(
    insurance_type_id: int,
    request: Request,
    data: InsuranceTypeUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_admin_actor),
):
    insurance_type = _get_insurance_type(db, insurance_type_id)
    before = snapshot(insurance_type, InsuranceTypeResponse)

    update_data = data.model_dump(exclude_unset=True)

    if update_data.get("name") is not None:
        update_data["name"] = _clean_name(update_data["name"])
        _ensure_unique_name(db, update_data["name"], exclude_id=insurance_type.id)

    # Recorded sales keep their own commission snapshot
    for field, value in update_data.items():
        if value is not None:
            setattr(insurance_type, field, value)

    def record():
        old_values, new_values = changed_fields(before, snapshot(insurance_type, InsuranceTypeResponse))
        if new_values:
            record_action(
                db, actor, "update", "insurance_types", insurance_type.id,
                old_values=old_values, new_values=new_values, request=request,
            )

    _commit(db, "update", record)
    db.refresh(insurance_type)

    logger.info(f"Insurance type {insurance_type.id} updated by {actor.username}")
    return insurance_type


@router.delete(
    "/{insurance_type_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_insurance_type(
    insurance_type_id: int,
    request: Request,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_admin_actor),
):
    insurance_type = _get_insurance_type(db, insurance_type_id)

    # Soft delete: past sales still point at it
    insurance_type.is_active = False
    _commit(
        db,
        "deactivate",
        lambda: record_action(db, actor, "deactivate", "insurance_types", insurance_type.id, request=request),
    )

    logger.info(f"Insurance type {insurance_type.id} deactivated by {actor.username}")
