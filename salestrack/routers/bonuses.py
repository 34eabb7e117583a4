# =========================================================
# BONUSES ROUTER
#
# ADMINS:
# - Manage bonus rules (achievement tiers)
# - Grant a bonus for an objective, then approve / reject / pay it
#
# EMPLOYEES:
# - Read the active rules
# - Read their own bonuses and preview what an objective earns
#
# A granted bonus freezes the figures at grant time; the preview
# always recomputes from the sales table.
# =========================================================

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from salestrack.database import get_db
from salestrack.core.access import Action, Actor, Resource, require_access, scope_owned_query
from salestrack.core.auth import get_admin_actor, get_current_actor
from salestrack.core.errors import NotFound, ValidationError
from salestrack.models.bonuses import Bonus, BonusRule
from salestrack.models.objectives import Objective
from salestrack.schemas.bonus import (
    BonusComputation,
    BonusCreate,
    BonusResponse,
    BonusRuleCreate,
    BonusRuleResponse,
    BonusRuleUpdate,
    BonusStatus,
    BonusStatusUpdate,
)
from salestrack.services import bonuses as bonus_service
from salestrack.services.audit import record_action, snapshot
from salestrack.services.sales import fetch_sale_records

router = APIRouter(prefix="/bonuses", tags=["Bonuses"])

logger = logging.getLogger("salestrack")


def _active_rules(db: Session) -> list[BonusRule]:
    return db.query(BonusRule).filter(BonusRule.is_active == True).all()  # noqa: E712


def _get_rule(db: Session, rule_id: int) -> BonusRule:
    rule = db.query(BonusRule).filter(BonusRule.id == rule_id).first()
    if not rule:
        raise NotFound("Bonus rule")
    return rule


def _get_objective(db: Session, objective_id: int) -> Objective:
    objective = db.query(Objective).filter(Objective.id == objective_id).first()
    if not objective:
        raise NotFound("Objective")
    return objective


def _compute_for(db: Session, actor: Actor, objective: Objective):
    sales = fetch_sale_records(
        db,
        actor,
        start=objective.period_start,
        end=objective.period_end,
        employee_name=objective.employee_name,
    )
    return bonus_service.compute_bonus(objective, sales, _active_rules(db))


def _clean_rule_name(db: Session, name: str, exclude_id: Optional[int] = None) -> str:
    name = name.strip()
    if not name:
        raise ValidationError({"name": "Name cannot be blank"})

    query = db.query(BonusRule).filter(BonusRule.name == name)
    if exclude_id is not None:
        query = query.filter(BonusRule.id != exclude_id)
    if query.first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Bonus rule with this name already exists",
        )
    return name


# =========================================================
# RULES
# =========================================================
@router.get("/rules", response_model=list[BonusRuleResponse])
def list_bonus_rules(
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    require_access(actor, Action.READ, Resource.BONUS_RULE)

    query = db.query(BonusRule)
    if not (include_inactive and actor.is_admin):
        query = query.filter(BonusRule.is_active == True)  # noqa: E712

    return query.order_by(BonusRule.min_achievement_percent, BonusRule.id).all()


@router.post("/rules", response_model=BonusRuleResponse, status_code=status.HTTP_201_CREATED)
def create_bonus_rule(
    request: Request,
    data: BonusRuleCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_admin_actor),
):
    name = _clean_rule_name(db, data.name)
    bonus_service.check_rule_range(data.min_achievement_percent, data.max_achievement_percent)

    try:
        rule = BonusRule(
            name=name,
            min_achievement_percent=data.min_achievement_percent,
            max_achievement_percent=data.max_achievement_percent,
            bonus_percent=data.bonus_percent,
            is_active=True,
        )
        db.add(rule)
        db.flush()

        record_action(
            db, actor, "create", "bonus_rules", rule.id,
            new_values=snapshot(rule, BonusRuleResponse), request=request,
        )
        db.commit()
        db.refresh(rule)

    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(status_code=500, detail="Unable to create bonus rule")

    logger.info(f"Bonus rule {rule.name!r} created by {actor.username}")
    return rule


@router.put("/rules/{rule_id}", response_model=BonusRuleResponse)
def update_bonus_rule(
    rule_id: int,
    request: Request,
    data: BonusRuleUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_admin_actor),
):
    rule = _get_rule(db, rule_id)
    before = snapshot(rule, BonusRuleResponse)

    changes = data.model_dump(exclude_unset=True)
    if changes.get("name") is not None:
        changes["name"] = _clean_rule_name(db, changes["name"], exclude_id=rule.id)

    # max_achievement_percent may be cleared to open the tier
    changes = {k: v for k, v in changes.items() if v is not None or k == "max_achievement_percent"}

    bonus_service.check_rule_range(
        changes.get("min_achievement_percent", rule.min_achievement_percent),
        changes.get("max_achievement_percent", rule.max_achievement_percent),
    )

    try:
        for field, value in changes.items():
            setattr(rule, field, value)
        db.flush()

        record_action(
            db, actor, "update", "bonus_rules", rule.id,
            old_values=before, new_values=snapshot(rule, BonusRuleResponse), request=request,
        )
        db.commit()
        db.refresh(rule)

    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(status_code=500, detail="Unable to update bonus rule")

    logger.info(f"Bonus rule {rule.id} updated by {actor.username}")
    return rule


@router.delete("/rules/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_bonus_rule(
    rule_id: int,
    request: Request,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_admin_actor),
):
    rule = _get_rule(db, rule_id)

    # Soft delete: granted bonuses keep their rule
    try:
        rule.is_active = False
        record_action(db, actor, "deactivate", "bonus_rules", rule.id, request=request)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(status_code=500, detail="Unable to deactivate bonus rule")

    logger.info(f"Bonus rule {rule.id} deactivated by {actor.username}")


# =========================================================
# PREVIEW
# =========================================================
@router.get("/preview/{objective_id}", response_model=BonusComputation)
def preview_bonus(
    objective_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    objective = _get_objective(db, objective_id)
    require_access(actor, Action.READ, Resource.OBJECTIVE, objective.employee_name)

    return _compute_for(db, actor, objective)


# =========================================================
# BONUSES
# =========================================================
@router.get("", response_model=list[BonusResponse])
def list_bonuses(
    employee_name: Optional[str] = Query(None),
    bonus_status: Optional[BonusStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    query = scope_owned_query(db.query(Bonus), Bonus.employee_name, actor)

    if employee_name:
        query = query.filter(Bonus.employee_name == employee_name.strip().lower())
    if bonus_status:
        query = query.filter(Bonus.status == bonus_status)

    return query.order_by(Bonus.period_start.desc(), Bonus.id.desc()).all()


@router.post("", response_model=BonusResponse, status_code=status.HTTP_201_CREATED)
def grant_bonus(
    request: Request,
    data: BonusCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_admin_actor),
):
    objective = _get_objective(db, data.objective_id)

    if db.query(Bonus.id).filter(Bonus.objective_id == objective.id).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A bonus was already granted for this objective",
        )

    computation = _compute_for(db, actor, objective)

    try:
        bonus = Bonus(**computation.model_dump(), notes=data.notes)
        db.add(bonus)
        db.flush()

        record_action(
            db, actor, "create", "bonuses", bonus.id,
            new_values=computation.model_dump(mode="json"), request=request,
        )
        db.commit()
        db.refresh(bonus)

    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A bonus was already granted for this objective",
        )
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(status_code=500, detail="Unable to grant bonus")

    logger.info(
        f"Bonus {bonus.id} of {bonus.bonus_amount} granted to {bonus.employee_name} by {actor.username}"
    )
    return bonus


@router.get("/{bonus_id}", response_model=BonusResponse)
def get_bonus(
    bonus_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    bonus = db.query(Bonus).filter(Bonus.id == bonus_id).first()
    if not bonus:
        raise NotFound("Bonus")

    require_access(actor, Action.READ, Resource.BONUS, bonus.employee_name)
    return bonus


@router.patch("/{bonus_id}/status", response_model=BonusResponse)
def update_bonus_status(
    bonus_id: int,
    request: Request,
    data: BonusStatusUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_admin_actor),
):
    bonus = db.query(Bonus).filter(Bonus.id == bonus_id).first()
    if not bonus:
        raise NotFound("Bonus")

    previous = bonus.status
    bonus_service.apply_status(bonus, data.status, actor.username, datetime.now(timezone.utc), data.notes)

    try:
        record_action(
            db, actor, "status_change", "bonuses", bonus.id,
            old_values={"status": previous}, new_values={"status": bonus.status}, request=request,
        )
        db.commit()
        db.refresh(bonus)

    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(status_code=500, detail="Unable to update bonus")

    logger.info(f"Bonus {bonus.id} moved from {previous} to {bonus.status} by {actor.username}")
    return bonus
