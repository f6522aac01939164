"""
Unit tests for the repositories.
"""

from datetime import timedelta

import pytest

from nutrisense.models.health import ActivityLevel, AlertSeverity, AlertType, BodyMetrics, Gender, HealthGoal
from nutrisense.models.nutrition import NutrientKey, NutrientMetric, NutritionProfileCreate, NutritionSource
from nutrisense.repositories.analytics_repository import AnalyticsRepository
from nutrisense.repositories.expense_repository import ExpenseRepository
from nutrisense.repositories.health_repository import HealthRepository
from nutrisense.repositories.nutrition_repository import NutritionRepository
from nutrisense.repositories.user_repository import UserRepository

from tests.conftest import MILK_ID, NOW, OATS_ID, USER_ID


class TestNutritionRepository:
    """Test profile lookup and the windowed log aggregates."""

    def test_latest_profile_wins(self, db_session, seeded):
        repo = NutritionRepository(db_session)
        repo.upsert_nutrition_profile(
            NutritionProfileCreate(expense_item_id=OATS_ID, source=NutritionSource.MANUAL, calories=180),
            created_at=NOW,
        )

        latest = repo.get_latest_profile(OATS_ID)

        assert latest.source == "manual"
        assert latest.calories == 180

    def test_latest_profiles_omits_items_without_one(self, db_session, seeded):
        profiles = NutritionRepository(db_session).get_latest_profiles([OATS_ID, MILK_ID])

        assert list(profiles) == [OATS_ID]
        assert NutritionRepository(db_session).get_latest_profiles([]) == {}

    def test_daily_series_sums_per_day(self, db_session, seeded, add_log):
        add_log(NOW - timedelta(days=1), calories=300, protein_g=10)
        add_log(NOW - timedelta(hours=1), calories=200)
        add_log(NOW, calories=100, protein_g=5, confidence=0.5)

        series = NutritionRepository(db_session).daily_series(USER_ID, NOW - timedelta(days=7), NOW)

        assert [day.log_date for day in series] == [(NOW - timedelta(days=1)).date(), NOW.date()]
        assert series[1].totals["calories"] == 300
        assert series[1].totals["protein_g"] == 5
        assert series[1].totals["fiber_g"] == 0
        assert series[1].log_count == 2
        assert series[1].avg_confidence == pytest.approx(0.7)

    def test_window_is_inclusive(self, db_session, seeded, add_log):
        start = NOW - timedelta(days=7)
        add_log(start, calories=1)
        add_log(NOW, calories=2)
        add_log(NOW + timedelta(seconds=1), calories=4)

        totals = NutritionRepository(db_session).aggregate_by_range(USER_ID, start, NOW)

        assert totals["calories"] == 3

    def test_log_coverage_counts_macro_logs(self, db_session, seeded, add_log):
        add_log(NOW, calories=100, confidence=0.8)
        add_log(NOW, fiber_g=3, confidence=0.4)

        coverage = NutritionRepository(db_session).log_coverage(USER_ID, NOW - timedelta(days=1), NOW)

        assert coverage.total_logs == 2
        assert coverage.logs_with_macros == 1
        assert coverage.avg_confidence == pytest.approx(0.6)

    def test_empty_window(self, db_session, seeded):
        repo = NutritionRepository(db_session)

        assert repo.daily_series(USER_ID, NOW - timedelta(days=7), NOW) == []
        assert repo.log_coverage(USER_ID, NOW - timedelta(days=7), NOW).total_logs == 0
        assert repo.aggregate_by_range(USER_ID, NOW - timedelta(days=7), NOW)["calories"] == 0

    def test_recent_logs_and_item_ids(self, db_session, seeded, add_log):
        add_log(NOW - timedelta(days=2), item_id=MILK_ID)
        add_log(NOW, item_id=OATS_ID)

        repo = NutritionRepository(db_session)
        logs = repo.recent_logs(USER_ID, NOW - timedelta(days=7), NOW)

        assert [log.expense_item_id for log in logs] == [OATS_ID, MILK_ID]
        assert sorted(repo.logged_item_ids(USER_ID, NOW - timedelta(days=7), NOW)) == [MILK_ID, OATS_ID]


class TestAnalyticsRepository:
    """Test snapshot history and model upserts."""

    def _save(self, repo, to_ts, created_at, reliability=0.5):
        metric = NutrientMetric(
            key=NutrientKey.CALORIES,
            recent_avg=2000,
            median=2000,
            p90=2100,
            z_score=0.0,
            trend_slope=0.0,
            target_gap_ratio=0.0,
        )
        return repo.save_snapshot(USER_ID, to_ts - timedelta(days=56), to_ts, reliability, 0.5, 0, [metric], created_at)

    def test_latest_snapshot_ordering(self, db_session, seeded):
        repo = AnalyticsRepository(db_session)
        self._save(repo, NOW - timedelta(days=1), NOW)
        older_run = self._save(repo, NOW, NOW - timedelta(hours=2))
        newer_run = self._save(repo, NOW, NOW - timedelta(hours=1))

        assert repo.get_latest_snapshot(USER_ID).id == newer_run.id
        assert [s.id for s in repo.list_snapshots(USER_ID, limit=2)] == [newer_run.id, older_run.id]

    def test_metrics_stored_as_json(self, db_session, seeded):
        snapshot = self._save(AnalyticsRepository(db_session), NOW, NOW)

        assert snapshot.metric("calories")["p90"] == 2100
        assert snapshot.metric("sodium") is None

    def test_upsert_consumption_model_overwrites(self, db_session, seeded):
        repo = AnalyticsRepository(db_session)
        first = repo.upsert_consumption_model(USER_ID, OATS_ID, 1.0, 0.0, 0.1, 0.6, NOW, updated_at=NOW)
        second = repo.upsert_consumption_model(USER_ID, OATS_ID, 2.0, 0.1, 0.2, 0.9, None, updated_at=NOW)
        repo.upsert_consumption_model(USER_ID, MILK_ID, 0.5, 0.0, 0.0, 0.3, None, updated_at=NOW)

        assert first.id == second.id
        assert repo.get_consumption_model_for_item(USER_ID, OATS_ID).avg_daily_servings == 2.0
        assert [m.expense_item_id for m in repo.list_top_consumption_models(USER_ID)] == [OATS_ID, MILK_ID]


class TestHealthRepository:
    """Test alert ordering and the read flag."""

    def test_alerts_sorted_by_severity_then_recency(self, db_session, seeded):
        repo = HealthRepository(db_session)
        low = repo.create_alert(USER_ID, AlertType.EXCESS, AlertSeverity.LOW, "low", triggered_at=NOW)
        critical = repo.create_alert(
            USER_ID, AlertType.DEFICIENCY, AlertSeverity.CRITICAL, "critical", triggered_at=NOW - timedelta(days=2)
        )
        old_high = repo.create_alert(
            USER_ID, AlertType.DEFICIENCY, AlertSeverity.HIGH, "old high", triggered_at=NOW - timedelta(days=1)
        )
        new_high = repo.create_alert(USER_ID, AlertType.EXCESS, AlertSeverity.HIGH, "new high", triggered_at=NOW)

        ordered = [alert.id for alert in repo.get_alerts(USER_ID)]

        assert ordered == [critical.id, new_high.id, old_high.id, low.id]

    def test_mark_read(self, db_session, seeded):
        repo = HealthRepository(db_session)
        alert = repo.create_alert(USER_ID, AlertType.DEFICIENCY, AlertSeverity.LOW, "low")

        assert repo.mark_read(alert.id).is_read is True
        assert repo.get_alerts(USER_ID, unread_only=True) == []
        assert repo.mark_read("missing") is None

    def test_mark_all_read(self, db_session, seeded):
        repo = HealthRepository(db_session)
        for severity in (AlertSeverity.LOW, AlertSeverity.HIGH):
            repo.create_alert(USER_ID, AlertType.DEFICIENCY, severity, severity.value)
        repo.create_alert("someone-else", AlertType.DEFICIENCY, AlertSeverity.LOW, "other")

        assert repo.mark_all_read(USER_ID) == 2
        assert repo.get_alerts(USER_ID, unread_only=True) == []
        assert len(repo.get_alerts("someone-else", unread_only=True)) == 1


class TestExpenseRepository:
    def test_list_expiring_items(self, db_session, seeded):
        repo = ExpenseRepository(db_session)
        today = NOW.date()
        soon = repo.add_item(USER_ID, "Milk", expiry_date=today + timedelta(days=2))
        repo.add_item(USER_ID, "Rice", expiry_date=today + timedelta(days=30))
        repo.add_item(USER_ID, "Old bread", expiry_date=today - timedelta(days=20))
        past = repo.add_item(USER_ID, "Bread", expiry_date=today - timedelta(days=1))

        items = repo.list_expiring_items(USER_ID, until=today + timedelta(days=3), since=today - timedelta(days=7))

        assert [item.id for item in items] == [past.id, soon.id]


class TestUserRepository:
    def test_unknown_user_has_empty_metrics(self, db_session):
        metrics = UserRepository(db_session).get_body_metrics("nobody")

        assert metrics.weight_kg is None
        assert metrics.activity_level == ActivityLevel.MODERATE

    def test_upsert_user_round_trip(self, db_session):
        repo = UserRepository(db_session)
        repo.upsert_user(
            "user-2",
            BodyMetrics(
                weight_kg=70,
                height_cm=175,
                age=40,
                gender=Gender.FEMALE,
                activity_level=ActivityLevel.ACTIVE,
                health_goals=[HealthGoal.WEIGHT_LOSS],
            ),
            email="user2@nutrisense.app",
        )

        metrics = repo.get_body_metrics("user-2")

        assert metrics.gender == Gender.FEMALE
        assert metrics.activity_level == ActivityLevel.ACTIVE
        assert metrics.health_goals == [HealthGoal.WEIGHT_LOSS]
        assert repo.get_user("user-2").email == "user2@nutrisense.app"
