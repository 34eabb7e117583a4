# =========================================================
# OBJECTIVES ROUTER
#
# ADMINS:
# - Create / edit / deactivate objectives for any employee
# - Archive an objective into the history table
#
# EMPLOYEES:
# - Read their own objectives, progress and history
#
# Progress is always recomputed from the sales table; nothing
# about progress is stored until an objective is archived.
# =========================================================

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from salestrack.database import get_db
from salestrack.core.access import Action, Actor, Resource, require_access, scope_owned_query
from salestrack.core.auth import get_admin_actor, get_current_actor
from salestrack.core.errors import NotFound, ValidationError
from salestrack.models.objectives import Objective, ObjectiveHistory
from salestrack.schemas.objective import (
    ObjectiveCreate,
    ObjectiveHistoryResponse,
    ObjectiveProgress,
    ObjectiveResponse,
    ObjectiveUpdate,
)
from salestrack.services import objectives as objective_service
from salestrack.services import users as user_service
from salestrack.services.audit import changed_fields, record_action, snapshot
from salestrack.services.sales import fetch_sale_records

router = APIRouter(prefix="/objectives", tags=["Objectives"])

logger = logging.getLogger("salestrack")


def _get_objective(db: Session, objective_id: int) -> Objective:
    objective = db.query(Objective).filter(Objective.id == objective_id).first()
    if not objective:
        raise NotFound("Objective")
    return objective


def _resolve_employee(actor: Actor, employee_name: Optional[str]) -> str:
    if employee_name and actor.is_admin:
        return employee_name.strip().lower()
    return actor.username


def _check_no_overlap(db: Session, employee_name, objective_type, period_start, period_end, exclude_id=None):
    if period_end < period_start:
        raise ValidationError({"period_end": "Period end must not be before period start"})

    candidates = (
        db.query(Objective)
        .filter(
            Objective.employee_name == employee_name,
            Objective.objective_type == objective_type,
            Objective.is_active == True,  # noqa: E712
        )
        .all()
    )

    clash = objective_service.find_overlapping(
        candidates, employee_name, objective_type, period_start, period_end, exclude_id=exclude_id,
    )
    if clash:
        raise ValidationError(
            {
                "period_start": f"Overlaps the {clash.objective_type} objective "
                f"{clash.period_start} to {clash.period_end}"
            }
        )


# =========================================================
# LIST
# =========================================================
@router.get("", response_model=list[ObjectiveResponse])
def list_objectives(
    employee_name: Optional[str] = Query(None),
    active_only: bool = Query(True),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    query = scope_owned_query(db.query(Objective), Objective.employee_name, actor)

    if employee_name:
        query = query.filter(Objective.employee_name == employee_name.strip().lower())
    if active_only:
        query = query.filter(Objective.is_active == True)  # noqa: E712

    return query.order_by(Objective.period_start.desc(), Objective.id.desc()).all()


# =========================================================
# CREATE / UPDATE / DEACTIVATE (ADMIN)
# =========================================================
@router.post("", response_model=ObjectiveResponse, status_code=status.HTTP_201_CREATED)
def create_objective(
    request: Request,
    data: ObjectiveCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_admin_actor),
):
    employee = user_service.get_user_by_username(db, data.employee_name)
    if not employee:
        raise ValidationError({"employee_name": "Unknown employee"})

    _check_no_overlap(db, employee.username, data.objective_type, data.period_start, data.period_end)

    try:
        objective = Objective(
            employee_name=employee.username,
            objective_type=data.objective_type,
            target_amount=data.target_amount,
            target_sales_count=data.target_sales_count,
            period_start=data.period_start,
            period_end=data.period_end,
            description=data.description,
            is_active=True,
        )
        db.add(objective)
        db.flush()

        record_action(
            db, actor, "create", "employee_objectives", objective.id,
            new_values=snapshot(objective, ObjectiveResponse), request=request,
        )
        db.commit()
        db.refresh(objective)

    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(status_code=500, detail="Unable to create objective")

    logger.info(f"Objective {objective.id} created for {objective.employee_name} by {actor.username}")
    return objective


@router.put("/{objective_id}", response_model=ObjectiveResponse)
def update_objective(
    objective_id: int,
    request: Request,
    data: ObjectiveUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_admin_actor),
):
    objective = _get_objective(db, objective_id)
    before = snapshot(objective, ObjectiveResponse)

    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}

    objective_type = changes.get("objective_type", objective.objective_type)
    period_start = changes.get("period_start", objective.period_start)
    period_end = changes.get("period_end", objective.period_end)

    if changes.get("is_active", objective.is_active):
        _check_no_overlap(
            db, objective.employee_name, objective_type, period_start, period_end, exclude_id=objective.id,
        )
    elif period_end < period_start:
        raise ValidationError({"period_end": "Period end must not be before period start"})

    try:
        for field, value in changes.items():
            setattr(objective, field, value)
        db.flush()

        old_values, new_values = changed_fields(before, snapshot(objective, ObjectiveResponse))
        if new_values:
            record_action(
                db, actor, "update", "employee_objectives", objective.id,
                old_values=old_values, new_values=new_values, request=request,
            )
        db.commit()
        db.refresh(objective)

    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(status_code=500, detail="Unable to update objective")

    logger.info(f"Objective {objective.id} updated by {actor.username}")
    return objective


@router.delete("/{objective_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_objective(
    objective_id: int,
    request: Request,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_admin_actor),
):
    objective = _get_objective(db, objective_id)

    try:
        objective.is_active = False
        record_action(db, actor, "deactivate", "employee_objectives", objective.id, request=request)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(status_code=500, detail="Unable to deactivate objective")

    logger.info(f"Objective {objective.id} deactivated by {actor.username}")


# =========================================================
# PROGRESS
# =========================================================
@router.get("/progress", response_model=list[ObjectiveProgress])
def objectives_progress(
    employee_name: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    query = scope_owned_query(db.query(Objective), Objective.employee_name, actor).filter(
        Objective.is_active == True  # noqa: E712
    )
    if employee_name and actor.is_admin:
        query = query.filter(Objective.employee_name == employee_name.strip().lower())

    objectives = query.order_by(Objective.period_start, Objective.id).all()
    if not objectives:
        return []

    earliest = min(objective.period_start for objective in objectives)
    latest = max(objective.period_end for objective in objectives)
    sales = fetch_sale_records(db, actor, start=earliest, end=latest)

    return objective_service.progress_for_objectives(objectives, sales, now=datetime.now(timezone.utc))


@router.get("/current", response_model=Optional[ObjectiveProgress])
def current_objective(
    employee_name: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    now = datetime.now(timezone.utc)
    employee_name = _resolve_employee(actor, employee_name)

    require_access(actor, Action.READ, Resource.OBJECTIVE, employee_name)

    objectives = (
        db.query(Objective)
        .filter(
            Objective.employee_name == employee_name,
            Objective.is_active == True,  # noqa: E712
        )
        .all()
    )

    objective = objective_service.select_current_objective(objectives, employee_name, now)
    if objective is None:
        return None

    sales = fetch_sale_records(
        db, actor, start=objective.period_start, end=objective.period_end, employee_name=employee_name,
    )
    return objective_service.compute_progress(objective, sales, now)


# =========================================================
# HISTORY
# =========================================================
@router.post(
    "/{objective_id}/archive",
    response_model=ObjectiveHistoryResponse,
    status_code=status.HTTP_201_CREATED,
)
def archive_objective(
    objective_id: int,
    request: Request,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_admin_actor),
):
    now = datetime.now(timezone.utc)
    objective = _get_objective(db, objective_id)

    already_archived = (
        db.query(ObjectiveHistory.id).filter(ObjectiveHistory.objective_id == objective.id).first()
    )
    if already_archived:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Objective already archived",
        )

    sales = fetch_sale_records(
        db,
        actor,
        start=objective.period_start,
        end=objective.period_end,
        employee_name=objective.employee_name,
    )
    progress = objective_service.compute_progress(objective, sales, now)

    try:
        history = ObjectiveHistory(**objective_service.build_history_snapshot(objective, progress, now))
        db.add(history)

        # An archived objective no longer counts as current
        objective.is_active = False
        db.flush()

        record_action(
            db, actor, "archive", "employee_objectives", objective.id,
            new_values=snapshot(history, ObjectiveHistoryResponse), request=request,
        )
        db.commit()
        db.refresh(history)

    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Objective already archived",
        )
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(status_code=500, detail="Unable to archive objective")

    logger.info(f"Objective {objective.id} archived by {actor.username}")
    return history


@router.get("/history", response_model=list[ObjectiveHistoryResponse])
def objective_history(
    employee_name: Optional[str] = Query(None),
    objective_type: Optional[str] = Query(None, pattern="^(weekly|monthly|yearly)$"),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    query = scope_owned_query(db.query(ObjectiveHistory), ObjectiveHistory.employee_name, actor)

    if employee_name:
        query = query.filter(ObjectiveHistory.employee_name == employee_name.strip().lower())
    if objective_type:
        query = query.filter(ObjectiveHistory.objective_type == objective_type)

    return query.order_by(ObjectiveHistory.archived_at.desc(), ObjectiveHistory.id.desc()).all()
