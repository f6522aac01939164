"""
Derived analytics: rolling snapshots and per-item consumption models.
"""

import uuid

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, JSON, String, UniqueConstraint
from sqlalchemy.sql import func

from nutrisense.db.database import Base


class NutritionAnalyticsSnapshot(Base):
    """Point-in-time rollup of a user's nutrition signal over a window."""

    __tablename__ = "nutrition_analytics_snapshots"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    from_ts = Column(DateTime, nullable=False)
    to_ts = Column(DateTime, nullable=False, index=True)

    reliability_score = Column(Float, nullable=False, default=0.0)
    coverage_score = Column(Float, nullable=False, default=0.0)
    anomaly_count = Column(Integer, nullable=False, default=0)
    metrics = Column(JSON, nullable=False, default=list)  # one entry per tracked nutrient

    created_at = Column(DateTime, nullable=False, default=func.now())

    def metric(self, key: str):
        """Return the stored metric dict for a nutrient key, if any."""
        for entry in self.metrics or []:
            if entry.get("key") == key:
                return entry
        return None

    def __repr__(self):
        return (
            f"<NutritionAnalyticsSnapshot(id={self.id}, user={self.user_id}, "
            f"reliability={self.reliability_score:.2f})>"
        )


class ConsumptionModel(Base):
    """Consumption rate model for one (user, item) pair; overwritten on recompute."""

    __tablename__ = "consumption_models"
    __table_args__ = (
        UniqueConstraint("user_id", "expense_item_id", name="uq_consumption_model_user_item"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    expense_item_id = Column(String(36), ForeignKey("expense_items.id"), nullable=False, index=True)

    avg_daily_servings = Column(Float, nullable=False, default=0.0)
    trend_slope = Column(Float, nullable=False, default=0.0)
    variability = Column(Float, nullable=False, default=0.0)
    confidence = Column(Float, nullable=False, default=0.0)
    last_predicted_depletion = Column(DateTime, nullable=True)

    updated_at = Column(DateTime, nullable=False, default=func.now())

    def __repr__(self):
        return (
            f"<ConsumptionModel(user={self.user_id}, item={self.expense_item_id}, "
            f"avg={self.avg_daily_servings:.2f})>"
        )
