"""
Per-item consumption models: rate, trend, variability and a depletion estimate.
"""

from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Dict, List, Optional

import structlog
from sqlalchemy.orm import Session

from nutrisense.core.config import ModelerTuning
from nutrisense.db.models.analytics import ConsumptionModel
from nutrisense.repositories.analytics_repository import AnalyticsRepository
from nutrisense.repositories.nutrition_repository import NutritionRepository, ServingRow
from nutrisense.services.analytics.statistics import (
    clamp,
    coefficient_of_variation,
    linear_regression_slope,
    mean,
)

logger = structlog.get_logger(__name__)


def group_by_item(rows: List[ServingRow]) -> Dict[str, List[ServingRow]]:
    grouped: Dict[str, List[ServingRow]] = OrderedDict()
    for row in rows:
        grouped.setdefault(row.expense_item_id, []).append(row)
    return grouped


class ConsumptionModeler:
    """Builds and upserts one consumption model per consumed item."""

    def __init__(self, db: Session, tuning: Optional[ModelerTuning] = None):
        self.nutrition_repo = NutritionRepository(db)
        self.analytics_repo = AnalyticsRepository(db)
        self.tuning = tuning or ModelerTuning()

    def model_confidence(self, rows: List[ServingRow], variability: float) -> float:
        t = self.tuning
        return clamp(
            t.row_confidence_weight * mean([row.avg_confidence for row in rows])
            + t.volume_weight * clamp(len(rows) / t.full_volume_rows, 0.0, 1.0)
            + t.stability_weight * (1 - clamp(variability, 0.0, 1.0)),
            0.0,
            1.0,
        )

    @staticmethod
    def predict_depletion(avg_daily_servings: float, now: datetime) -> Optional[datetime]:
        """One serving left at the current rate; None for items not being consumed."""
        if avg_daily_servings <= 0:
            return None
        days = round(max(1.0, 1.0 / avg_daily_servings))
        return now + timedelta(days=days)

    def recompute(
        self,
        user_id: str,
        from_ts: Optional[datetime] = None,
        to_ts: Optional[datetime] = None,
        window_days: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> List[ConsumptionModel]:
        now = now or datetime.utcnow()
        to_ts = to_ts or now
        from_ts = from_ts or to_ts - timedelta(days=window_days or self.tuning.default_window_days)

        rows = self.nutrition_repo.serving_series_by_item(user_id, from_ts, to_ts)
        if not rows:
            return []

        models = []
        for item_id, item_rows in group_by_item(rows).items():
            servings = [row.servings for row in item_rows]
            avg = mean(servings)
            variability = clamp(coefficient_of_variation(servings), 0.0, 1.0)

            models.append(
                self.analytics_repo.upsert_consumption_model(
                    user_id=user_id,
                    expense_item_id=item_id,
                    avg_daily_servings=avg,
                    trend_slope=linear_regression_slope(servings),
                    variability=variability,
                    confidence=self.model_confidence(item_rows, variability),
                    last_predicted_depletion=self.predict_depletion(avg, now),
                    updated_at=now,
                )
            )

        logger.info("Consumption models updated", user_id=user_id, models=len(models))
        return models
