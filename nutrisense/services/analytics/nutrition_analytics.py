"""
Nutrition analytics engine.

Aggregates resolved consumption logs into a daily series, computes robust
per-nutrient metrics, derives a reliability score from how much signal the
window holds, and persists one snapshot per call.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

import structlog
from sqlalchemy.orm import Session

from nutrisense.core.config import AnalyticsTuning, ResolverTuning
from nutrisense.db.models.analytics import NutritionAnalyticsSnapshot
from nutrisense.models.nutrition import (
    NUTRIENT_FIELDS,
    TRACKED_NUTRIENTS,
    DailyTargets,
    NutrientMetric,
)
from nutrisense.repositories.analytics_repository import AnalyticsRepository
from nutrisense.repositories.nutrition_repository import DailyTotals, NutritionRepository
from nutrisense.services.analytics.statistics import (
    clamp,
    linear_regression_slope,
    mean,
    median,
    percentile,
    robust_z_score,
)
from nutrisense.services.nutrition.consumption_resolver import ConsumptionResolver

logger = structlog.get_logger(__name__)


@dataclass
class ReliabilityBreakdown:
    """Components of the reliability score, kept for logging and tests."""
    day_coverage: float
    macro_coverage: float
    profile_match_coverage: float
    confidence_blend: float
    reliability_score: float


class AnalyticsEngine:
    """Recomputes the nutrition analytics snapshot for a user."""

    def __init__(
        self,
        db: Session,
        tuning: Optional[AnalyticsTuning] = None,
        resolver_tuning: Optional[ResolverTuning] = None,
    ):
        self.nutrition_repo = NutritionRepository(db)
        self.analytics_repo = AnalyticsRepository(db)
        self.tuning = tuning or AnalyticsTuning()
        self.resolver = ConsumptionResolver(resolver_tuning)

    def resolve_window(
        self,
        from_ts: Optional[datetime] = None,
        to_ts: Optional[datetime] = None,
        window_days: Optional[int] = None,
    ) -> Tuple[datetime, datetime]:
        to_ts = to_ts or datetime.utcnow()
        days = window_days or self.tuning.default_window_days
        from_ts = from_ts or to_ts - timedelta(days=days)
        return from_ts, to_ts

    def build_metrics(self, series: List[DailyTotals], targets: DailyTargets) -> Tuple[List[NutrientMetric], int]:
        """One metric per tracked nutrient plus the number of anomalous nutrients."""
        metrics = []
        anomaly_count = 0

        for key in TRACKED_NUTRIENTS:
            field = NUTRIENT_FIELDS[key]
            values = [day.totals.get(field, 0.0) for day in series]
            recent = values[-self.tuning.recent_window:]
            recent_avg = mean(recent)
            z_score = robust_z_score(recent_avg, values)
            target = targets.for_key(key)

            if len(values) >= self.tuning.anomaly_min_points and abs(z_score) >= self.tuning.anomaly_z_threshold:
                anomaly_count += 1
                logger.debug("Nutrient anomaly", nutrient=key.value, z_score=round(z_score, 2))

            metrics.append(
                NutrientMetric(
                    key=key,
                    recent_avg=recent_avg,
                    median=median(values),
                    p90=percentile(values, self.tuning.p90),
                    z_score=z_score,
                    trend_slope=linear_regression_slope(values),
                    target_gap_ratio=(recent_avg - target) / target if target > 0 else 0.0,
                )
            )

        return metrics, anomaly_count

    def compute_reliability(
        self,
        user_id: str,
        series: List[DailyTotals],
        from_ts: datetime,
        to_ts: datetime,
    ) -> ReliabilityBreakdown:
        t = self.tuning
        coverage = self.nutrition_repo.log_coverage(user_id, from_ts, to_ts)
        item_ids = self.nutrition_repo.logged_item_ids(user_id, from_ts, to_ts)
        profiles = self.nutrition_repo.get_latest_profiles(item_ids)

        period_days = max(1, round((to_ts - from_ts).total_seconds() / 86400))
        day_coverage = clamp(len(series) / period_days, 0.0, 1.0)

        macro_coverage = 0.0
        if coverage.total_logs > 0:
            macro_coverage = clamp(coverage.logs_with_macros / coverage.total_logs, 0.0, 1.0)

        profile_match = 0.0
        if item_ids:
            profile_match = clamp(len(profiles) / len(item_ids), 0.0, 1.0)

        avg_profile_confidence = mean([self.resolver.profile_confidence(p) for p in profiles.values()])
        confidence_blend = clamp(
            t.log_confidence_weight * coverage.avg_confidence
            + t.profile_confidence_weight * avg_profile_confidence,
            0.0,
            1.0,
        )

        reliability = clamp(
            t.day_coverage_weight * day_coverage
            + t.macro_coverage_weight * macro_coverage
            + t.profile_match_weight * profile_match
            + t.confidence_blend_weight * confidence_blend,
            0.0,
            1.0,
        )
        return ReliabilityBreakdown(
            day_coverage=day_coverage,
            macro_coverage=macro_coverage,
            profile_match_coverage=profile_match,
            confidence_blend=confidence_blend,
            reliability_score=reliability,
        )

    def recompute(
        self,
        user_id: str,
        targets: DailyTargets,
        from_ts: Optional[datetime] = None,
        to_ts: Optional[datetime] = None,
        window_days: Optional[int] = None,
    ) -> Optional[NutritionAnalyticsSnapshot]:
        """
        Recompute and persist a snapshot for ``user_id``.

        Returns None when the window holds no logs at all. Store errors
        propagate to the caller.
        """
        from_ts, to_ts = self.resolve_window(from_ts, to_ts, window_days)
        series = self.nutrition_repo.daily_series(user_id, from_ts, to_ts)

        if not series and self.nutrition_repo.log_coverage(user_id, from_ts, to_ts).total_logs == 0:
            logger.info("No nutrition signal in window", user_id=user_id)
            return None

        metrics, anomaly_count = self.build_metrics(series, targets)
        reliability = self.compute_reliability(user_id, series, from_ts, to_ts)

        snapshot = self.analytics_repo.save_snapshot(
            user_id=user_id,
            from_ts=from_ts,
            to_ts=to_ts,
            reliability_score=reliability.reliability_score,
            coverage_score=reliability.day_coverage,
            anomaly_count=anomaly_count,
            metrics=metrics,
        )

        logger.info(
            "Nutrition snapshot saved",
            user_id=user_id,
            snapshot_id=snapshot.id,
            days=len(series),
            reliability=round(reliability.reliability_score, 3),
            coverage=round(reliability.day_coverage, 3),
            anomalies=anomaly_count,
        )
        return snapshot
