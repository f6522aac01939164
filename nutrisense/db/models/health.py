"""
Health alert model.
"""

import uuid

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, String, Text
from sqlalchemy.sql import func

from nutrisense.db.database import Base


class HealthAlert(Base):
    """Severity-tagged alert; only ``is_read`` changes after creation."""

    __tablename__ = "health_alerts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    alert_type = Column(String(30), nullable=False, index=True)  # deficiency, excess, expiry_warning
    nutrient_key = Column(String(64), nullable=True)  # nutrient key, or item id for expiry
    current_value = Column(Float, nullable=True)
    target_value = Column(Float, nullable=True)
    severity = Column(String(10), nullable=False)
    message = Column(Text, nullable=False)

    is_read = Column(Boolean, nullable=False, default=False, index=True)
    triggered_at = Column(DateTime, nullable=False, default=func.now())

    def __repr__(self):
        return f"<HealthAlert(type={self.alert_type}, key={self.nutrient_key}, severity={self.severity})>"
