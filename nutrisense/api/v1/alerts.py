"""
Alert read side: listing and dismissing.
"""

from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from nutrisense.core.dependencies import get_db
from nutrisense.models.health import HealthAlertRead
from nutrisense.repositories.health_repository import HealthRepository

router = APIRouter(tags=["alerts"])


@router.get("/users/{user_id}/alerts", response_model=List[HealthAlertRead])
async def list_alerts(user_id: str, unread_only: bool = False, db: Session = Depends(get_db)):
    """Alerts ordered by severity, newest first within a severity."""
    alerts = HealthRepository(db).get_alerts(user_id, unread_only=unread_only)
    return [HealthAlertRead.model_validate(a) for a in alerts]


@router.post("/alerts/{alert_id}/read", response_model=HealthAlertRead)
async def mark_alert_read(alert_id: str, db: Session = Depends(get_db)):
    alert = HealthRepository(db).mark_read(alert_id)
    if alert is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Alert not found"
        )
    return HealthAlertRead.model_validate(alert)


@router.post("/users/{user_id}/alerts/read-all")
async def mark_all_alerts_read(user_id: str, db: Session = Depends(get_db)) -> Dict[str, int]:
    return {"updated": HealthRepository(db).mark_all_read(user_id)}
