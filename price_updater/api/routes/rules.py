"""Discount rule management routes."""

import logging
from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from price_updater.api.deps import get_database, get_repository
from price_updater.db.models import DiscountRule as RuleModel
from price_updater.discounts.models import parse_bracket, parse_condition
from price_updater.storage.repository import PriceRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/rules", tags=["rules"])


def _validate_conditions(value: list[dict[str, Any]] | None):
    if value is not None:
        for condition in value:
            parse_condition(condition)
    return value


def _validate_brackets(value: list[dict[str, Any]] | None):
    if value is not None:
        for bracket in value:
            parse_bracket(bracket)
    return value


class RuleCreate(BaseModel):
    title: str | None = None
    rule_type: str = "bulk"
    enabled: bool = True
    conditions: list[dict[str, Any]] = []
    brackets: list[dict[str, Any]] = []

    check_conditions = field_validator("conditions")(_validate_conditions)
    check_brackets = field_validator("brackets")(_validate_brackets)


class RuleResponse(BaseModel):
    id: int
    title: str | None
    rule_type: str
    enabled: bool
    conditions: list[dict[str, Any]]
    brackets: list[dict[str, Any]]

    class Config:
        from_attributes = True


class RuleUpdate(BaseModel):
    title: str | None = None
    rule_type: str | None = None
    enabled: bool | None = None
    conditions: list[dict[str, Any]] | None = None
    brackets: list[dict[str, Any]] | None = None

    check_conditions = field_validator("conditions")(_validate_conditions)
    check_brackets = field_validator("brackets")(_validate_brackets)


async def _get_rule_or_404(db: AsyncSession, rule_id: int) -> RuleModel:
    result = await db.execute(select(RuleModel).where(RuleModel.id == rule_id))
    rule = result.scalar_one_or_none()

    if not rule:
        raise HTTPException(status_code=404, detail="Rule not found")

    return rule


@router.get("", response_model=List[RuleResponse])
async def list_rules(db: AsyncSession = Depends(get_database)):
    """List all discount rules."""
    result = await db.execute(select(RuleModel).order_by(RuleModel.id.asc()))
    return result.scalars().all()


@router.post("", response_model=RuleResponse, status_code=201)
async def create_rule(
    rule_data: RuleCreate,
    db: AsyncSession = Depends(get_database),
    repository: PriceRepository = Depends(get_repository),
):
    """Create a new discount rule."""
    rule = RuleModel(
        title=rule_data.title,
        rule_type=rule_data.rule_type,
        enabled=rule_data.enabled,
        conditions=rule_data.conditions,
        brackets=rule_data.brackets,
    )

    db.add(rule)
    await db.commit()
    await db.refresh(rule)
    await repository.invalidate_rules()

    logger.info(f"Created discount rule {rule.id} ({rule.title or rule.rule_type})")
    return rule


@router.get("/{rule_id}", response_model=RuleResponse)
async def get_rule(rule_id: int, db: AsyncSession = Depends(get_database)):
    """Get a discount rule by ID."""
    return await _get_rule_or_404(db, rule_id)


@router.patch("/{rule_id}", response_model=RuleResponse)
async def update_rule(
    rule_id: int,
    rule_data: RuleUpdate,
    db: AsyncSession = Depends(get_database),
    repository: PriceRepository = Depends(get_repository),
):
    """Update a discount rule."""
    rule = await _get_rule_or_404(db, rule_id)

    if rule_data.title is not None:
        rule.title = rule_data.title
    if rule_data.rule_type is not None:
        rule.rule_type = rule_data.rule_type
    if rule_data.enabled is not None:
        rule.enabled = rule_data.enabled
    if rule_data.conditions is not None:
        rule.conditions = rule_data.conditions
    if rule_data.brackets is not None:
        rule.brackets = rule_data.brackets

    await db.commit()
    await db.refresh(rule)
    await repository.invalidate_rules()

    return rule


@router.delete("/{rule_id}", status_code=204)
async def delete_rule(
    rule_id: int,
    db: AsyncSession = Depends(get_database),
    repository: PriceRepository = Depends(get_repository),
):
    """Delete a discount rule."""
    await _get_rule_or_404(db, rule_id)

    await db.execute(delete(RuleModel).where(RuleModel.id == rule_id))
    await db.commit()
    await repository.invalidate_rules()

    return None
