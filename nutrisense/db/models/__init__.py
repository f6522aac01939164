"""
Database models for the NutriSense engine.
"""

from .user import User
from .expense import ExpenseItem
from .nutrition import NutritionProfile, DailyNutritionLog
from .analytics import NutritionAnalyticsSnapshot, ConsumptionModel
from .health import HealthAlert

__all__ = [
    # User models
    "User",

    # Purchased items
    "ExpenseItem",

    # Nutrition models
    "NutritionProfile",
    "DailyNutritionLog",

    # Derived analytics
    "NutritionAnalyticsSnapshot",
    "ConsumptionModel",

    # Alerts
    "HealthAlert",
]
