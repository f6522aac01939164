"""
Health alert repository.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, desc, select, update
from sqlalchemy.orm import Session

from nutrisense.db.models.health import HealthAlert
from nutrisense.models.health import SEVERITY_RANK, AlertSeverity, AlertType


class HealthRepository:
    """Repository for alert creation and the read flag."""

    def __init__(self, db: Session):
        self.db = db

    def create_alert(
        self,
        user_id: str,
        alert_type: AlertType,
        severity: AlertSeverity,
        message: str,
        nutrient_key: Optional[str] = None,
        current_value: Optional[float] = None,
        target_value: Optional[float] = None,
        triggered_at: Optional[datetime] = None,
    ) -> HealthAlert:
        alert = HealthAlert(
            user_id=user_id,
            alert_type=AlertType(alert_type).value,
            nutrient_key=nutrient_key,
            current_value=current_value,
            target_value=target_value,
            severity=AlertSeverity(severity).value,
            message=message,
            is_read=False,
            triggered_at=triggered_at or datetime.utcnow(),
        )
        self.db.add(alert)
        self.db.flush()
        return alert

    def get_alert(self, alert_id: str) -> Optional[HealthAlert]:
        return self.db.get(HealthAlert, alert_id)

    def get_alerts(self, user_id: str, unread_only: bool = False) -> List[HealthAlert]:
        """Alerts for a user, most severe first, newest first within a severity."""
        stmt = select(HealthAlert).where(HealthAlert.user_id == user_id)
        if unread_only:
            stmt = stmt.where(HealthAlert.is_read == False)
        stmt = stmt.order_by(desc(HealthAlert.triggered_at))

        alerts = list(self.db.execute(stmt).scalars())
        # Stable sort keeps recency order inside each severity
        return sorted(alerts, key=lambda a: SEVERITY_RANK[AlertSeverity(a.severity)], reverse=True)

    def mark_read(self, alert_id: str) -> Optional[HealthAlert]:
        alert = self.get_alert(alert_id)
        if alert is None:
            return None
        alert.is_read = True
        self.db.flush()
        return alert

    def mark_all_read(self, user_id: str) -> int:
        result = self.db.execute(
            update(HealthAlert)
            .where(and_(HealthAlert.user_id == user_id, HealthAlert.is_read == False))
            .values(is_read=True)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount or 0
