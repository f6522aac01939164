"""
Health services: daily targets and the alert engine.
"""

from .targets import build_daily_targets, DEFAULT_DAILY_TARGETS
from .alert_engine import AlertEngine

__all__ = [
    "build_daily_targets",
    "DEFAULT_DAILY_TARGETS",
    "AlertEngine",
]
