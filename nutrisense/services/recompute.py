"""
Recompute orchestration.

Every trigger (a consumption log, a profile upsert, the app returning to the
foreground) re-reads current state and overwrites the derived artifacts:
snapshot, consumption models, alerts. The engines themselves stay
synchronous; ``submit`` runs a recompute on a worker thread and hands back
an ``asyncio.Task`` the caller may await or ignore.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Set

import structlog
from sqlalchemy.orm import Session

from nutrisense.core.config import EngineTuning
from nutrisense.db.database import Database
from nutrisense.db.models.nutrition import DailyNutritionLog, NutritionProfile
from nutrisense.models.nutrition import ConsumptionLogRequest, DailyTargets, NutritionProfileCreate
from nutrisense.repositories.expense_repository import ExpenseRepository
from nutrisense.repositories.nutrition_repository import NutritionRepository
from nutrisense.repositories.user_repository import UserRepository
from nutrisense.services.analytics.consumption_modeler import ConsumptionModeler
from nutrisense.services.analytics.nutrition_analytics import AnalyticsEngine
from nutrisense.services.health.alert_engine import AlertEngine
from nutrisense.services.health.targets import build_daily_targets
from nutrisense.services.notifications.dispatchers import LoggingNotificationDispatcher
from nutrisense.services.notifications.interfaces import INotificationDispatcher
from nutrisense.services.nutrition.consumption_resolver import ConsumptionResolver

logger = structlog.get_logger(__name__)


@dataclass
class RecomputeResult:
    """Outcome of one full recompute."""
    user_id: str
    snapshot_id: Optional[str] = None
    reliability_score: Optional[float] = None
    anomaly_count: int = 0
    model_count: int = 0
    alert_ids: List[str] = field(default_factory=list)


class RecomputeService:
    """Entry point tying the store handle to the engines."""

    def __init__(
        self,
        database: Database,
        tuning: Optional[EngineTuning] = None,
        dispatcher: Optional[INotificationDispatcher] = None,
    ):
        self.database = database
        self.tuning = tuning or EngineTuning()
        self.dispatcher = dispatcher or LoggingNotificationDispatcher()
        self.resolver = ConsumptionResolver(self.tuning.resolver)
        self._tasks: Set[asyncio.Task] = set()

    def targets_for(self, db: Session, user_id: str) -> DailyTargets:
        return build_daily_targets(UserRepository(db).get_body_metrics(user_id))

    def log_consumption(self, request: ConsumptionLogRequest, now: Optional[datetime] = None) -> DailyNutritionLog:
        """Resolve and persist one consumption event."""
        with self.database.session_scope() as db:
            repo = NutritionRepository(db)
            profile = repo.get_latest_profile(request.expense_item_id)
            resolved = self.resolver.resolve(request, profile, now=now)
            row = repo.log_consumption(resolved)

        logger.info(
            "Consumption logged",
            user_id=request.user_id,
            item_id=request.expense_item_id,
            confidence=round(row.confidence_score, 3),
            source=row.source,
        )
        return row

    def upsert_profile(self, profile: NutritionProfileCreate, created_at: Optional[datetime] = None) -> NutritionProfile:
        with self.database.session_scope() as db:
            row = NutritionRepository(db).upsert_nutrition_profile(profile, created_at=created_at)

        logger.info("Nutrition profile stored", item_id=row.expense_item_id, source=row.source)
        return row

    def item_owner(self, item_id: str) -> Optional[str]:
        """User who purchased ``item_id``, or None for unknown items."""
        with self.database.session_scope() as db:
            item = ExpenseRepository(db).get_item(item_id)
            return item.user_id if item else None

    def recompute(self, user_id: str, now: Optional[datetime] = None) -> RecomputeResult:
        """
        Recompute snapshot, consumption models and alerts in one transaction.
        Failures roll back and propagate. Notifications go out only after
        the transaction commits.
        """
        now = now or datetime.utcnow()
        result = RecomputeResult(user_id=user_id)

        with self.database.session_scope() as db:
            targets = self.targets_for(db, user_id)
            analytics = AnalyticsEngine(db, self.tuning.analytics, self.tuning.resolver)
            modeler = ConsumptionModeler(db, self.tuning.modeler)
            alerts = AlertEngine(db, self.dispatcher, self.tuning.alerts, analytics)

            snapshot = analytics.recompute(user_id, targets, to_ts=now)
            if snapshot is not None:
                result.snapshot_id = snapshot.id
                result.reliability_score = snapshot.reliability_score
                result.anomaly_count = snapshot.anomaly_count

            result.model_count = len(modeler.recompute(user_id, now=now))
            # A window with no logs must not fall back to an older snapshot
            created = alerts.run(
                user_id,
                targets,
                snapshot=snapshot,
                today=now.date(),
                use_stored_snapshot=False,
                deliver=False,
            )
            result.alert_ids = [alert.id for alert in created]

        alerts.flush_notifications()
        return result

    def submit(self, user_id: str) -> asyncio.Task:
        """
        Schedule a recompute on a worker thread.
        Must be called from a running event loop.
        """
        task = asyncio.create_task(asyncio.to_thread(self.recompute, user_id))
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._on_done(user_id, t))
        return task

    def _on_done(self, user_id: str, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning("Recompute cancelled", user_id=user_id)
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Recompute failed", user_id=user_id, exc_info=exc)
            return
        result = task.result()
        logger.info(
            "Recompute finished",
            user_id=user_id,
            snapshot_id=result.snapshot_id,
            models=result.model_count,
            alerts=len(result.alert_ids),
        )

    async def drain(self) -> None:
        """Wait for every pending recompute; failures are already logged."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
