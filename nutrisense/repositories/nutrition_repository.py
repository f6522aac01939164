"""
Nutrition repository: profiles, consumption logs and the windowed
aggregates the analytics engines read.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy import and_, case, desc, func, or_, select
from sqlalchemy.orm import Session

from nutrisense.db.models.nutrition import DailyNutritionLog, NutritionProfile
from nutrisense.models.nutrition import (
    MACRO_FIELDS,
    NUTRIENT_FIELDS,
    NutritionProfileCreate,
    ResolvedConsumptionLog,
)


@dataclass
class DailyTotals:
    """Nutrient totals for one calendar day with at least one log."""
    log_date: date
    totals: Dict[str, float]
    avg_confidence: float
    log_count: int


@dataclass
class LogCoverage:
    total_logs: int
    logs_with_macros: int
    avg_confidence: float


@dataclass
class ServingRow:
    """Servings of one item consumed on one day."""
    expense_item_id: str
    log_date: date
    servings: float
    avg_confidence: float
    log_count: int


class NutritionRepository:
    """Repository for nutrition profiles and consumption logs."""

    def __init__(self, db: Session):
        self.db = db

    def _in_window(self, user_id: str, from_ts: datetime, to_ts: datetime):
        return and_(
            DailyNutritionLog.user_id == user_id,
            DailyNutritionLog.logged_at >= from_ts,
            DailyNutritionLog.logged_at <= to_ts,
        )

    # Profiles

    def upsert_nutrition_profile(
        self,
        profile: NutritionProfileCreate,
        created_at: Optional[datetime] = None,
        profile_id: Optional[str] = None,
    ) -> NutritionProfile:
        """Store a profile; the newest one per item is authoritative."""
        row = NutritionProfile(
            expense_item_id=profile.expense_item_id,
            source=profile.source.value,
            serving_size_g=profile.serving_size_g,
            ai_confidence_score=profile.ai_confidence_score,
            raw_label_text=profile.raw_label_text,
            created_at=created_at or datetime.utcnow(),
            **profile.nutrient_dict(),
        )
        if profile_id:
            row.id = profile_id
            row = self.db.merge(row)
        else:
            self.db.add(row)
        self.db.flush()
        return row

    def get_latest_profile(self, expense_item_id: str) -> Optional[NutritionProfile]:
        stmt = (
            select(NutritionProfile)
            .where(NutritionProfile.expense_item_id == expense_item_id)
            .order_by(desc(NutritionProfile.created_at))
            .limit(1)
        )
        return self.db.execute(stmt).scalars().first()

    def get_latest_profiles(self, expense_item_ids: Iterable[str]) -> Dict[str, NutritionProfile]:
        """Latest profile per item for the given items; items without one are omitted."""
        ids = list(expense_item_ids)
        if not ids:
            return {}
        stmt = (
            select(NutritionProfile)
            .where(NutritionProfile.expense_item_id.in_(ids))
            .order_by(desc(NutritionProfile.created_at))
        )
        latest: Dict[str, NutritionProfile] = {}
        for profile in self.db.execute(stmt).scalars():
            latest.setdefault(profile.expense_item_id, profile)
        return latest

    # Logs

    def log_consumption(self, resolved: ResolvedConsumptionLog) -> DailyNutritionLog:
        row = DailyNutritionLog(
            user_id=resolved.user_id,
            expense_item_id=resolved.expense_item_id,
            log_date=resolved.log_date,
            logged_at=resolved.logged_at,
            consumed_servings=resolved.consumed_servings,
            confidence_score=resolved.confidence_score,
            source=resolved.source.value,
            **resolved.nutrients,
        )
        self.db.add(row)
        self.db.flush()
        return row

    def recent_logs(self, user_id: str, from_ts: datetime, to_ts: datetime) -> List[DailyNutritionLog]:
        stmt = (
            select(DailyNutritionLog)
            .where(self._in_window(user_id, from_ts, to_ts))
            .order_by(desc(DailyNutritionLog.logged_at))
        )
        return list(self.db.execute(stmt).scalars())

    def aggregate_by_range(self, user_id: str, from_ts: datetime, to_ts: datetime) -> Dict[str, float]:
        columns = [
            func.coalesce(func.sum(getattr(DailyNutritionLog, field)), 0).label(field)
            for field in NUTRIENT_FIELDS.values()
        ]
        row = self.db.execute(select(*columns).where(self._in_window(user_id, from_ts, to_ts))).one()
        return {field: float(row._mapping[field]) for field in NUTRIENT_FIELDS.values()}

    def daily_series(self, user_id: str, from_ts: datetime, to_ts: datetime) -> List[DailyTotals]:
        """Per-day nutrient totals, ordered by day; days without logs are absent."""
        fields = list(NUTRIENT_FIELDS.values())
        columns = [
            func.coalesce(func.sum(getattr(DailyNutritionLog, field)), 0).label(field)
            for field in fields
        ]
        stmt = (
            select(
                DailyNutritionLog.log_date,
                *columns,
                func.avg(DailyNutritionLog.confidence_score).label("avg_confidence"),
                func.count(DailyNutritionLog.id).label("log_count"),
            )
            .where(self._in_window(user_id, from_ts, to_ts))
            .group_by(DailyNutritionLog.log_date)
            .order_by(DailyNutritionLog.log_date)
        )
        series = []
        for row in self.db.execute(stmt):
            mapping = row._mapping
            series.append(
                DailyTotals(
                    log_date=mapping["log_date"],
                    totals={field: float(mapping[field]) for field in fields},
                    avg_confidence=float(mapping["avg_confidence"] or 0.0),
                    log_count=int(mapping["log_count"]),
                )
            )
        return series

    def log_coverage(self, user_id: str, from_ts: datetime, to_ts: datetime) -> LogCoverage:
        has_macro = or_(*[getattr(DailyNutritionLog, field).isnot(None) for field in MACRO_FIELDS])
        stmt = select(
            func.count(DailyNutritionLog.id),
            func.coalesce(func.sum(case((has_macro, 1), else_=0)), 0),
            func.coalesce(func.avg(DailyNutritionLog.confidence_score), 0.0),
        ).where(self._in_window(user_id, from_ts, to_ts))
        total, with_macros, avg_confidence = self.db.execute(stmt).one()
        return LogCoverage(
            total_logs=int(total or 0),
            logs_with_macros=int(with_macros or 0),
            avg_confidence=float(avg_confidence or 0.0),
        )

    def logged_item_ids(self, user_id: str, from_ts: datetime, to_ts: datetime) -> List[str]:
        stmt = (
            select(DailyNutritionLog.expense_item_id)
            .where(self._in_window(user_id, from_ts, to_ts))
            .distinct()
        )
        return list(self.db.execute(stmt).scalars())

    def serving_series_by_item(self, user_id: str, from_ts: datetime, to_ts: datetime) -> List[ServingRow]:
        """Daily servings per item, ordered by item then day."""
        stmt = (
            select(
                DailyNutritionLog.expense_item_id,
                DailyNutritionLog.log_date,
                func.sum(DailyNutritionLog.consumed_servings).label("servings"),
                func.avg(DailyNutritionLog.confidence_score).label("avg_confidence"),
                func.count(DailyNutritionLog.id).label("log_count"),
            )
            .where(self._in_window(user_id, from_ts, to_ts))
            .group_by(DailyNutritionLog.expense_item_id, DailyNutritionLog.log_date)
            .order_by(DailyNutritionLog.expense_item_id, DailyNutritionLog.log_date)
        )
        return [
            ServingRow(
                expense_item_id=row.expense_item_id,
                log_date=row.log_date,
                servings=float(row.servings or 0.0),
                avg_confidence=float(row.avg_confidence or 0.0),
                log_count=int(row.log_count),
            )
            for row in self.db.execute(stmt)
        ]
