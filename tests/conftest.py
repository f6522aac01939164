"""
Test configuration and fixtures.
Uses an in-memory SQLite store handle per test.
"""

from datetime import datetime, timedelta

import pytest

from nutrisense.core.config import EngineTuning
from nutrisense.db.database import Database
from nutrisense.models.nutrition import (
    NUTRIENT_FIELDS,
    NutritionProfileCreate,
    NutritionSource,
    ResolvedConsumptionLog,
)
from nutrisense.repositories.analytics_repository import AnalyticsRepository
from nutrisense.repositories.expense_repository import ExpenseRepository
from nutrisense.repositories.nutrition_repository import NutritionRepository
from nutrisense.repositories.user_repository import UserRepository
from nutrisense.services.notifications.dispatchers import RecordingNotificationDispatcher

NOW = datetime(2024, 6, 15, 12, 0, 0)
USER_ID = "user-1"
OATS_ID = "item-oats"
MILK_ID = "item-milk"

OATS_PROFILE = NutritionProfileCreate(
    expense_item_id=OATS_ID,
    source=NutritionSource.LABEL_SCAN,
    serving_size_g=40,
    calories=200,
    protein_g=5,
    carbs_g=30,
    fat_g=8,
    fiber_g=1,
    sugar_g=12,
    sodium_mg=150,
)


@pytest.fixture
def database():
    """Fresh in-memory store handle with all tables created."""
    db = Database("sqlite://")
    db.create_all()
    yield db
    db.drop_all()
    db.dispose()


@pytest.fixture
def db_session(database):
    """Session bound to the test store; tests flush, nothing is committed."""
    session = database.session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def tuning() -> EngineTuning:
    return EngineTuning()


@pytest.fixture
def dispatcher() -> RecordingNotificationDispatcher:
    return RecordingNotificationDispatcher()


@pytest.fixture
def seeded(database):
    """Committed user with two purchased items; oats carry a label-scan profile."""
    with database.session_scope() as db:
        UserRepository(db).upsert_user(USER_ID, email="test@nutrisense.app")
        expenses = ExpenseRepository(db)
        expenses.add_item(USER_ID, "Rolled oats", item_id=OATS_ID, category="grains")
        expenses.add_item(USER_ID, "Whole milk", item_id=MILK_ID, category="dairy")
        NutritionRepository(db).upsert_nutrition_profile(OATS_PROFILE, created_at=NOW - timedelta(days=10))
    return USER_ID


@pytest.fixture
def add_log(db_session):
    """Insert a resolved consumption log directly, bypassing the resolver."""
    repo = NutritionRepository(db_session)

    def _add_log(
        logged_at: datetime,
        item_id: str = OATS_ID,
        user_id: str = USER_ID,
        servings: float = 1.0,
        confidence: float = 0.9,
        source: NutritionSource = NutritionSource.LABEL_SCAN,
        **nutrients,
    ):
        values = {field: None for field in NUTRIENT_FIELDS.values()}
        values.update(nutrients)
        return repo.log_consumption(
            ResolvedConsumptionLog(
                user_id=user_id,
                expense_item_id=item_id,
                consumed_servings=servings,
                log_date=logged_at.date(),
                logged_at=logged_at,
                nutrients=values,
                confidence_score=confidence,
                source=source,
            )
        )

    return _add_log


@pytest.fixture
def add_snapshot(db_session):
    """Store a snapshot with hand-written metrics."""
    repo = AnalyticsRepository(db_session)

    def _add_snapshot(reliability: float, metrics, user_id: str = USER_ID, to_ts: datetime = NOW):
        return repo.save_snapshot(
            user_id=user_id,
            from_ts=to_ts - timedelta(days=56),
            to_ts=to_ts,
            reliability_score=reliability,
            coverage_score=reliability,
            anomaly_count=0,
            metrics=metrics,
            created_at=to_ts,
        )

    return _add_snapshot
