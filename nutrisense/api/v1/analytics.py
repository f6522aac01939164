"""
Analytics read endpoints and the on-demand recompute trigger.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from nutrisense.core.dependencies import get_db, get_recompute_service
from nutrisense.models.nutrition import ConsumptionModelRead, SnapshotRead
from nutrisense.repositories.analytics_repository import AnalyticsRepository
from nutrisense.services.recompute import RecomputeService

router = APIRouter(tags=["analytics"])


class RecomputeResponse(BaseModel):
    user_id: str
    snapshot_id: Optional[str]
    reliability_score: Optional[float]
    anomaly_count: int
    model_count: int
    alerts_created: int


@router.post("/users/{user_id}/recompute", response_model=RecomputeResponse)
async def recompute(
    user_id: str,
    service: RecomputeService = Depends(get_recompute_service),
):
    """Recompute snapshot, models and alerts (app foreground trigger) and wait for it."""
    result = await service.submit(user_id)
    return RecomputeResponse(
        user_id=result.user_id,
        snapshot_id=result.snapshot_id,
        reliability_score=result.reliability_score,
        anomaly_count=result.anomaly_count,
        model_count=result.model_count,
        alerts_created=len(result.alert_ids),
    )


@router.get("/users/{user_id}/analytics/latest", response_model=SnapshotRead)
async def latest_snapshot(user_id: str, db: Session = Depends(get_db)):
    snapshot = AnalyticsRepository(db).get_latest_snapshot(user_id)
    if snapshot is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No analytics snapshot for user"
        )
    return SnapshotRead.model_validate(snapshot)


@router.get("/users/{user_id}/analytics/snapshots", response_model=List[SnapshotRead])
async def list_snapshots(
    user_id: str,
    limit: int = Query(default=30, ge=1, le=365),
    db: Session = Depends(get_db),
):
    return [SnapshotRead.model_validate(s) for s in AnalyticsRepository(db).list_snapshots(user_id, limit)]


@router.get("/users/{user_id}/consumption-models", response_model=List[ConsumptionModelRead])
async def list_consumption_models(
    user_id: str,
    limit: int = Query(default=50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    models = AnalyticsRepository(db).list_top_consumption_models(user_id, limit)
    return [ConsumptionModelRead.model_validate(m) for m in models]
