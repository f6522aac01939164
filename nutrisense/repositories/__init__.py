"""
Repository layer for data access abstraction.
"""

from .nutrition_repository import NutritionRepository, DailyTotals, LogCoverage, ServingRow
from .analytics_repository import AnalyticsRepository
from .health_repository import HealthRepository
from .expense_repository import ExpenseRepository
from .user_repository import UserRepository

__all__ = [
    "NutritionRepository",
    "DailyTotals",
    "LogCoverage",
    "ServingRow",
    "AnalyticsRepository",
    "HealthRepository",
    "ExpenseRepository",
    "UserRepository",
]
