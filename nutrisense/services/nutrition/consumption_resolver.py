"""
Consumption resolver: turns a raw "log N servings of item X" request and the
item's latest nutrition profile into a confidence-scored log entry.
"""

import math
from datetime import datetime
from typing import Dict, Optional

import structlog

from nutrisense.core.config import ResolverTuning
from nutrisense.db.models.nutrition import NutritionProfile
from nutrisense.models.nutrition import (
    NUTRIENT_FIELDS,
    ConsumptionLogRequest,
    NutritionSource,
    ResolvedConsumptionLog,
)
from nutrisense.services.analytics.statistics import clamp

logger = structlog.get_logger(__name__)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


class ConsumptionResolver:
    """Resolves nutrient quantities and a calibrated confidence for one event."""

    def __init__(self, tuning: Optional[ResolverTuning] = None):
        self.tuning = tuning or ResolverTuning()

    def source_weight(self, source: Optional[str]) -> float:
        return self.tuning.source_weights.get(source, self.tuning.unknown_source_weight)

    def profile_confidence(self, profile: Optional[NutritionProfile]) -> float:
        """Explicit extractor confidence if present, else a prior from the profile source."""
        if profile is None:
            return self.tuning.missing_profile_confidence
        if _is_number(profile.ai_confidence_score):
            return clamp(profile.ai_confidence_score, self.tuning.explicit_confidence_floor, 1.0)
        return self.tuning.source_prior.get(profile.source, self.tuning.default_source_prior)

    def profile_recency_weight(self, profile: Optional[NutritionProfile], now: datetime) -> float:
        if profile is None or profile.created_at is None:
            return self.tuning.missing_profile_recency
        age_days = max(0.0, (now - profile.created_at).total_seconds() / 86400)
        score = math.exp(-age_days / self.tuning.recency_half_life_days)
        return clamp(score, self.tuning.recency_floor, 1.0)

    @staticmethod
    def completeness(values: Dict[str, Optional[float]]) -> float:
        present = sum(1 for field in NUTRIENT_FIELDS.values() if _is_number(values.get(field)))
        return present / len(NUTRIENT_FIELDS)

    @staticmethod
    def direct_values_authoritative(provided: Dict[str, Optional[float]]) -> bool:
        """
        Directly supplied values win only if at least one is present and at
        least one is strictly positive. A zero-filled submission does not
        override profile data.
        """
        present = [value for value in provided.values() if _is_number(value)]
        return bool(present) and any(value > 0 for value in present)

    def resolve_nutrients(
        self,
        provided: Dict[str, Optional[float]],
        profile: Optional[NutritionProfile],
        consumed_servings: float,
    ) -> Dict[str, Optional[float]]:
        servings = max(self.tuning.min_servings, consumed_servings or 0.0)
        use_direct = self.direct_values_authoritative(provided)

        values: Dict[str, Optional[float]] = {}
        for field in NUTRIENT_FIELDS.values():
            direct = provided.get(field)
            if use_direct and _is_number(direct):
                values[field] = max(0.0, float(direct))
                continue

            per_serving = getattr(profile, field, None) if profile is not None else None
            if _is_number(per_serving):
                values[field] = max(0.0, per_serving * servings)
                continue

            values[field] = None
        return values

    def resolve(
        self,
        request: ConsumptionLogRequest,
        profile: Optional[NutritionProfile],
        now: Optional[datetime] = None,
    ) -> ResolvedConsumptionLog:
        now = now or datetime.utcnow()
        nutrients = self.resolve_nutrients(request.nutrient_dict(), profile, request.consumed_servings)

        t = self.tuning
        confidence = clamp(
            t.base
            + t.completeness_weight * self.completeness(nutrients)
            + t.profile_confidence_weight * self.profile_confidence(profile)
            + t.recency_weight * self.profile_recency_weight(profile, now)
            + t.source_weight * self.source_weight(profile.source if profile else None),
            0.0,
            1.0,
        )

        logged_at = request.logged_at or now
        resolved = ResolvedConsumptionLog(
            user_id=request.user_id,
            expense_item_id=request.expense_item_id,
            consumed_servings=request.consumed_servings,
            log_date=request.log_date or logged_at.date(),
            logged_at=logged_at,
            nutrients=nutrients,
            confidence_score=confidence,
            source=NutritionSource(profile.source) if profile else NutritionSource.MANUAL,
        )

        logger.debug(
            "Consumption resolved",
            item_id=request.expense_item_id,
            has_profile=profile is not None,
            confidence=round(confidence, 3),
        )
        return resolved
