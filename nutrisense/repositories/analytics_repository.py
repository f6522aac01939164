"""
Analytics repository: snapshot history and upserted consumption models.
"""

from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy import and_, desc, select
from sqlalchemy.orm import Session

from nutrisense.db.models.analytics import ConsumptionModel, NutritionAnalyticsSnapshot
from nutrisense.models.nutrition import NutrientMetric


class AnalyticsRepository:
    """Repository for derived analytics artifacts."""

    def __init__(self, db: Session):
        self.db = db

    def save_snapshot(
        self,
        user_id: str,
        from_ts: datetime,
        to_ts: datetime,
        reliability_score: float,
        coverage_score: float,
        anomaly_count: int,
        metrics: Sequence[NutrientMetric],
        created_at: Optional[datetime] = None,
    ) -> NutritionAnalyticsSnapshot:
        """Append a snapshot; history is never rewritten."""
        snapshot = NutritionAnalyticsSnapshot(
            user_id=user_id,
            from_ts=from_ts,
            to_ts=to_ts,
            reliability_score=reliability_score,
            coverage_score=coverage_score,
            anomaly_count=anomaly_count,
            metrics=[metric.model_dump(mode="json") for metric in metrics],
            created_at=created_at or datetime.utcnow(),
        )
        self.db.add(snapshot)
        self.db.flush()
        return snapshot

    def get_latest_snapshot(self, user_id: str) -> Optional[NutritionAnalyticsSnapshot]:
        stmt = (
            select(NutritionAnalyticsSnapshot)
            .where(NutritionAnalyticsSnapshot.user_id == user_id)
            .order_by(desc(NutritionAnalyticsSnapshot.to_ts), desc(NutritionAnalyticsSnapshot.created_at))
            .limit(1)
        )
        return self.db.execute(stmt).scalars().first()

    def list_snapshots(self, user_id: str, limit: int = 30) -> List[NutritionAnalyticsSnapshot]:
        stmt = (
            select(NutritionAnalyticsSnapshot)
            .where(NutritionAnalyticsSnapshot.user_id == user_id)
            .order_by(desc(NutritionAnalyticsSnapshot.to_ts), desc(NutritionAnalyticsSnapshot.created_at))
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars())

    def get_consumption_model_for_item(self, user_id: str, expense_item_id: str) -> Optional[ConsumptionModel]:
        stmt = select(ConsumptionModel).where(
            and_(
                ConsumptionModel.user_id == user_id,
                ConsumptionModel.expense_item_id == expense_item_id,
            )
        )
        return self.db.execute(stmt).scalars().first()

    def upsert_consumption_model(
        self,
        user_id: str,
        expense_item_id: str,
        avg_daily_servings: float,
        trend_slope: float,
        variability: float,
        confidence: float,
        last_predicted_depletion: Optional[datetime],
        updated_at: Optional[datetime] = None,
    ) -> ConsumptionModel:
        """Insert or overwrite the single model row for (user, item)."""
        model = self.get_consumption_model_for_item(user_id, expense_item_id)
        if model is None:
            model = ConsumptionModel(user_id=user_id, expense_item_id=expense_item_id)
            self.db.add(model)

        model.avg_daily_servings = avg_daily_servings
        model.trend_slope = trend_slope
        model.variability = variability
        model.confidence = confidence
        model.last_predicted_depletion = last_predicted_depletion
        model.updated_at = updated_at or datetime.utcnow()

        self.db.flush()
        return model

    def list_top_consumption_models(self, user_id: str, limit: int = 50) -> List[ConsumptionModel]:
        stmt = (
            select(ConsumptionModel)
            .where(ConsumptionModel.user_id == user_id)
            .order_by(desc(ConsumptionModel.confidence), desc(ConsumptionModel.updated_at))
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars())
