"""
Nutrition profile and consumption log models.

Both tables are append-only: a newer profile replaces an older one by being
more recent, and a log row is never updated after it is written.
"""

import uuid

from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, String, Text
from sqlalchemy.sql import func

from nutrisense.db.database import Base


class NutritionProfile(Base):
    """Per-serving nutrient estimate for a purchased item."""

    __tablename__ = "nutrition_profiles"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    expense_item_id = Column(String(36), ForeignKey("expense_items.id"), nullable=False, index=True)

    source = Column(String(20), nullable=False)  # label_scan, barcode_api, ai_inferred, manual
    serving_size_g = Column(Float, nullable=True)

    # Per serving
    calories = Column(Float, nullable=True)
    protein_g = Column(Float, nullable=True)
    carbs_g = Column(Float, nullable=True)
    fat_g = Column(Float, nullable=True)
    fiber_g = Column(Float, nullable=True)
    sugar_g = Column(Float, nullable=True)
    sodium_mg = Column(Float, nullable=True)

    ai_confidence_score = Column(Float, nullable=True)
    raw_label_text = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, default=func.now(), index=True)

    def __repr__(self):
        return f"<NutritionProfile(id={self.id}, item={self.expense_item_id}, source={self.source})>"


class DailyNutritionLog(Base):
    """One resolved consumption event with absolute nutrient quantities."""

    __tablename__ = "daily_nutrition_logs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    expense_item_id = Column(String(36), ForeignKey("expense_items.id"), nullable=False, index=True)

    log_date = Column(Date, nullable=False, index=True)
    logged_at = Column(DateTime, nullable=False, index=True)
    consumed_servings = Column(Float, nullable=False, default=1.0)

    # Absolute quantities for this event
    calories = Column(Float, nullable=True)
    protein_g = Column(Float, nullable=True)
    carbs_g = Column(Float, nullable=True)
    fat_g = Column(Float, nullable=True)
    fiber_g = Column(Float, nullable=True)
    sugar_g = Column(Float, nullable=True)
    sodium_mg = Column(Float, nullable=True)

    confidence_score = Column(Float, nullable=False)
    source = Column(String(20), nullable=False)

    created_at = Column(DateTime, server_default=func.now())

    def __repr__(self):
        return (
            f"<DailyNutritionLog(id={self.id}, item={self.expense_item_id}, "
            f"date={self.log_date}, confidence={self.confidence_score:.2f})>"
        )
