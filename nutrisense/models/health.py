"""
Health models: alert taxonomy and the body metrics used to derive daily targets.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AlertType(str, Enum):
    DEFICIENCY = "deficiency"
    EXCESS = "excess"
    EXPIRY_WARNING = "expiry_warning"


class AlertSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


SEVERITY_RANK = {
    AlertSeverity.CRITICAL: 4,
    AlertSeverity.HIGH: 3,
    AlertSeverity.MEDIUM: 2,
    AlertSeverity.LOW: 1,
}

# Severities that also produce a local notification
NOTIFY_SEVERITIES = (AlertSeverity.CRITICAL, AlertSeverity.HIGH)


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class ActivityLevel(str, Enum):
    SEDENTARY = "sedentary"
    LIGHT = "light"
    MODERATE = "moderate"
    ACTIVE = "active"
    VERY_ACTIVE = "very_active"


class HealthGoal(str, Enum):
    WEIGHT_LOSS = "weight_loss"
    WEIGHT_GAIN = "weight_gain"
    MUSCLE_GAIN = "muscle_gain"
    MAINTENANCE = "maintenance"


class BodyMetrics(BaseModel):
    """User body metrics; any missing field means default targets apply."""

    weight_kg: Optional[float] = Field(default=None, gt=0)
    height_cm: Optional[float] = Field(default=None, gt=0)
    age: Optional[int] = Field(default=None, gt=0)
    gender: Optional[Gender] = None
    activity_level: ActivityLevel = ActivityLevel.MODERATE
    health_goals: List[HealthGoal] = Field(default_factory=list)


class HealthAlertRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    alert_type: AlertType
    nutrient_key: Optional[str] = None
    current_value: Optional[float] = None
    target_value: Optional[float] = None
    severity: AlertSeverity
    message: str
    is_read: bool
    triggered_at: datetime
