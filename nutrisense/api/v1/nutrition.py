"""
Consumption logging and nutrition profile endpoints.
Writes trigger a background recompute for the affected user; reads serve
logged intake and the user's daily targets.
"""

from datetime import date, datetime, time, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from nutrisense.core.dependencies import get_db, get_recompute_service
from nutrisense.models.nutrition import (
    ConsumptionLogBody,
    ConsumptionLogRequest,
    DailyNutritionLogRead,
    DailyNutritionSummary,
    NutrientValues,
    NutritionProfileBody,
    NutritionProfileCreate,
    NutritionProfileRead,
    UserTargetsRead,
)
from nutrisense.repositories.nutrition_repository import NutritionRepository
from nutrisense.repositories.user_repository import UserRepository
from nutrisense.services.health.targets import bmi_for, build_daily_targets
from nutrisense.services.recompute import RecomputeService

router = APIRouter(tags=["nutrition"])


@router.post(
    "/users/{user_id}/logs",
    response_model=DailyNutritionLogRead,
    status_code=status.HTTP_201_CREATED,
)
async def log_consumption(
    user_id: str,
    body: ConsumptionLogBody,
    service: RecomputeService = Depends(get_recompute_service),
):
    """Resolve and store a consumption event, then schedule a recompute."""
    owner_id = service.item_owner(body.expense_item_id)
    if owner_id is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Item not found"
        )
    if owner_id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Item belongs to another user"
        )

    request = ConsumptionLogRequest(user_id=user_id, **body.model_dump())
    row = service.log_consumption(request)
    service.submit(user_id)
    return DailyNutritionLogRead.model_validate(row)


@router.post(
    "/items/{item_id}/profiles",
    response_model=NutritionProfileRead,
    status_code=status.HTTP_201_CREATED,
)
async def upsert_profile(
    item_id: str,
    body: NutritionProfileBody,
    service: RecomputeService = Depends(get_recompute_service),
):
    """Store a new nutrition profile for an item; the newest one wins."""
    owner_id = service.item_owner(item_id)
    if owner_id is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Item not found"
        )

    profile = service.upsert_profile(NutritionProfileCreate(expense_item_id=item_id, **body.model_dump()))
    service.submit(owner_id)
    return NutritionProfileRead.model_validate(profile)


@router.get("/users/{user_id}/logs", response_model=List[DailyNutritionLogRead])
async def list_logs(
    user_id: str,
    from_ts: Optional[datetime] = None,
    to_ts: Optional[datetime] = None,
    db: Session = Depends(get_db),
):
    """Consumption logs in a window, newest first; defaults to the last 7 days."""
    to_ts = to_ts or datetime.utcnow()
    from_ts = from_ts or to_ts - timedelta(days=7)
    if from_ts > to_ts:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="from_ts must not be after to_ts"
        )

    logs = NutritionRepository(db).recent_logs(user_id, from_ts, to_ts)
    return [DailyNutritionLogRead.model_validate(log) for log in logs]


@router.get("/users/{user_id}/nutrition/daily", response_model=DailyNutritionSummary)
async def daily_summary(
    user_id: str,
    day: Optional[date] = Query(default=None),
    db: Session = Depends(get_db),
):
    """Totals logged on ``day`` (today by default) against the user's targets."""
    day = day or datetime.utcnow().date()
    totals = NutritionRepository(db).aggregate_by_range(
        user_id,
        datetime.combine(day, time.min),
        datetime.combine(day, time.max),
    )
    targets = build_daily_targets(UserRepository(db).get_body_metrics(user_id))
    return DailyNutritionSummary(
        user_id=user_id,
        log_date=day,
        totals=NutrientValues(**totals),
        targets=targets,
    )


@router.get("/users/{user_id}/targets", response_model=UserTargetsRead)
async def user_targets(user_id: str, db: Session = Depends(get_db)):
    metrics = UserRepository(db).get_body_metrics(user_id)
    return UserTargetsRead(
        user_id=user_id,
        targets=build_daily_targets(metrics),
        bmi=bmi_for(metrics),
    )
