"""
Alert engine.

Turns the latest analytics snapshot into deficiency/excess alerts and scans
purchased items for upcoming expiry. For a given alert key there is at most
one unread alert; a key that is already unread is never created again.
"""

from datetime import date, datetime, timedelta
from typing import List, Optional, Set

import structlog
from sqlalchemy.orm import Session

from nutrisense.core.config import AlertTuning
from nutrisense.db.models.analytics import NutritionAnalyticsSnapshot
from nutrisense.db.models.expense import ExpenseItem
from nutrisense.db.models.health import HealthAlert
from nutrisense.models.health import NOTIFY_SEVERITIES, AlertSeverity, AlertType
from nutrisense.models.nutrition import DailyTargets, NutrientKey
from nutrisense.repositories.analytics_repository import AnalyticsRepository
from nutrisense.repositories.expense_repository import ExpenseRepository
from nutrisense.repositories.health_repository import HealthRepository
from nutrisense.services.analytics.nutrition_analytics import AnalyticsEngine
from nutrisense.services.notifications.dispatchers import LoggingNotificationDispatcher
from nutrisense.services.notifications.interfaces import INotificationDispatcher, Notification

logger = structlog.get_logger(__name__)

NOTIFICATION_TITLES = {
    AlertType.DEFICIENCY: "Nutrition Deficiency Alert",
    AlertType.EXCESS: "Nutrition Excess Alert",
    AlertType.EXPIRY_WARNING: "Expiry Alert",
}


class AlertEngine:
    """Creates severity-ranked, de-duplicated health alerts."""

    def __init__(
        self,
        db: Session,
        dispatcher: Optional[INotificationDispatcher] = None,
        tuning: Optional[AlertTuning] = None,
        analytics_engine: Optional[AnalyticsEngine] = None,
    ):
        self.health_repo = HealthRepository(db)
        self.analytics_repo = AnalyticsRepository(db)
        self.expense_repo = ExpenseRepository(db)
        self.dispatcher = dispatcher or LoggingNotificationDispatcher()
        self.tuning = tuning or AlertTuning()
        self.analytics_engine = analytics_engine or AnalyticsEngine(db)
        self.pending_notifications: List[Notification] = []

    def alert_key(self, alert_type: str, nutrient_key: Optional[str], severity: str) -> str:
        alert_type = AlertType(alert_type).value
        severity = AlertSeverity(severity).value
        if self.tuning.dedup_includes_severity:
            return f"{alert_type}:{nutrient_key or ''}:{severity}"
        return f"{alert_type}:{nutrient_key or ''}"

    def candidate_type(self, key: str, gap_ratio: float) -> Optional[AlertType]:
        """Deficiency for under-target nutrients, excess for over-limit ones."""
        if key in self.tuning.deficiency_keys and gap_ratio < self.tuning.deficiency_gap:
            return AlertType.DEFICIENCY
        if key in self.tuning.excess_keys and gap_ratio > self.tuning.excess_gap:
            return AlertType.EXCESS
        return None

    def classify_severity(self, gap_ratio: float, z_score: float, reliability: float) -> Optional[AlertSeverity]:
        t = self.tuning
        magnitude = abs(gap_ratio) + t.z_score_weight * abs(z_score)

        # Low-trust data only alerts on large deviations
        if reliability < t.low_trust_reliability and magnitude < t.low_trust_magnitude:
            return None

        if magnitude >= t.critical_magnitude:
            return AlertSeverity.CRITICAL
        if magnitude >= t.high_magnitude:
            return AlertSeverity.HIGH
        if magnitude >= t.medium_magnitude:
            return AlertSeverity.MEDIUM
        if magnitude >= t.low_magnitude:
            return AlertSeverity.LOW
        return None

    def classify_expiry(self, days_left: int) -> Optional[AlertSeverity]:
        if days_left > self.tuning.expiry_horizon_days:
            return None
        if days_left < 0:
            return AlertSeverity.HIGH
        if days_left <= self.tuning.expiry_imminent_days:
            return AlertSeverity.MEDIUM
        return AlertSeverity.LOW

    def _dispatch(self, alert_type: AlertType, body: str) -> None:
        self.pending_notifications.append(Notification(title=NOTIFICATION_TITLES[alert_type], body=body))

    def flush_notifications(self) -> int:
        """
        Deliver queued notifications.
        Call only once the alerts behind them are committed.
        """
        pending, self.pending_notifications = self.pending_notifications, []
        delivered = 0
        for notification in pending:
            try:
                self.dispatcher.notify(notification.title, notification.body)
                delivered += 1
            except Exception as e:
                # Delivery is fire-and-forget; the alert row is already stored
                logger.warning("Notification dispatch failed", title=notification.title, error=str(e))
        return delivered

    def _nutrient_alerts(
        self,
        user_id: str,
        snapshot: NutritionAnalyticsSnapshot,
        targets: DailyTargets,
        existing: Set[str],
    ) -> List[HealthAlert]:
        created = []
        reliability = snapshot.reliability_score
        reliability_pct = round(reliability * 100)

        for metric in snapshot.metrics or []:
            key = metric["key"]
            gap_ratio = float(metric.get("target_gap_ratio", 0.0))
            alert_type = self.candidate_type(key, gap_ratio)
            if alert_type is None:
                continue

            severity = self.classify_severity(gap_ratio, float(metric.get("z_score", 0.0)), reliability)
            if severity is None:
                continue

            dedup_key = self.alert_key(alert_type, key, severity)
            if dedup_key in existing:
                continue

            current = round(float(metric.get("recent_avg", 0.0)))
            target = round(targets.for_key(NutrientKey(key)))
            direction = "low" if alert_type == AlertType.DEFICIENCY else "high"
            message = (
                f"{key.capitalize()} is {direction}: 7-day average {current} vs target {target} "
                f"(data reliability {reliability_pct}%)."
            )

            alert = self.health_repo.create_alert(
                user_id=user_id,
                alert_type=alert_type,
                severity=severity,
                message=message,
                nutrient_key=key,
                current_value=current,
                target_value=target,
            )
            existing.add(dedup_key)
            created.append(alert)

            if severity in NOTIFY_SEVERITIES:
                self._dispatch(alert_type, message)

        return created

    @staticmethod
    def _expiry_message(item: ExpenseItem, days_left: int) -> str:
        if days_left < 0:
            return f"{item.name} is expired."
        if days_left == 0:
            return f"{item.name} expires today."
        return f"{item.name} expires in {days_left} day{'' if days_left == 1 else 's'}."

    def _expiry_alerts(self, user_id: str, today: date, existing: Set[str]) -> List[HealthAlert]:
        t = self.tuning
        items = self.expense_repo.list_expiring_items(
            user_id,
            until=today + timedelta(days=t.expiry_horizon_days),
            since=today - timedelta(days=t.expiry_lookback_days),
        )

        created = []
        for item in items:
            days_left = (item.expiry_date - today).days
            severity = self.classify_expiry(days_left)
            if severity is None:
                continue

            dedup_key = self.alert_key(AlertType.EXPIRY_WARNING, item.id, severity)
            if dedup_key in existing:
                continue

            message = self._expiry_message(item, days_left)
            alert = self.health_repo.create_alert(
                user_id=user_id,
                alert_type=AlertType.EXPIRY_WARNING,
                severity=severity,
                message=message,
                nutrient_key=item.id,
                current_value=days_left,
                target_value=t.expiry_horizon_days,
            )
            existing.add(dedup_key)
            created.append(alert)

            if days_left <= 0:
                self._dispatch(AlertType.EXPIRY_WARNING, message)

        return created

    def run(
        self,
        user_id: str,
        targets: DailyTargets,
        snapshot: Optional[NutritionAnalyticsSnapshot] = None,
        today: Optional[date] = None,
        use_stored_snapshot: bool = True,
        deliver: bool = True,
    ) -> List[HealthAlert]:
        """
        Evaluate nutrient and expiry alerts for a user.

        Args:
            user_id: User to evaluate
            targets: Daily nutrient targets for the user
            snapshot: Snapshot to evaluate; defaults to the latest stored one,
                recomputed if none exists
            today: Reference day for expiry checks
            use_stored_snapshot: When False a missing snapshot skips nutrient
                alerts instead of falling back to stored or recomputed data
            deliver: Send notifications before returning; otherwise they stay
                queued until ``flush_notifications``

        Returns:
            Alerts created by this run
        """
        today = today or datetime.utcnow().date()
        existing = {
            self.alert_key(a.alert_type, a.nutrient_key, a.severity)
            for a in self.health_repo.get_alerts(user_id, unread_only=True)
        }

        if snapshot is None and use_stored_snapshot:
            snapshot = self.analytics_repo.get_latest_snapshot(user_id)
            if snapshot is None:
                snapshot = self.analytics_engine.recompute(user_id, targets)

        created: List[HealthAlert] = []
        if snapshot is None:
            logger.info("No snapshot available, skipping nutrient alerts", user_id=user_id)
        elif snapshot.reliability_score < self.tuning.reliability_floor:
            logger.info(
                "Reliability below floor, skipping nutrient alerts",
                user_id=user_id,
                reliability=round(snapshot.reliability_score, 3),
            )
        else:
            created.extend(self._nutrient_alerts(user_id, snapshot, targets, existing))

        created.extend(self._expiry_alerts(user_id, today, existing))

        logger.info("Alert engine finished", user_id=user_id, created=len(created))
        if deliver:
            self.flush_notifications()
        return created
