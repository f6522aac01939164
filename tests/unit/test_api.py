"""
Unit tests for the HTTP surface.
Runs the real app factory against a file-backed SQLite store.
"""

from datetime import datetime, time, timedelta

import pytest
from fastapi.testclient import TestClient

from nutrisense.core.config import Settings
from nutrisense.db.database import Database
from nutrisense.main import create_app
from nutrisense.models.health import BodyMetrics, Gender
from nutrisense.repositories.expense_repository import ExpenseRepository
from nutrisense.repositories.user_repository import UserRepository

from tests.conftest import MILK_ID, OATS_ID, USER_ID

API = "/api/v1"


@pytest.fixture
def database(tmp_path):
    """File-backed store so background recomputes get their own connections."""
    db = Database(f"sqlite:///{tmp_path / 'api.db'}")
    db.create_all()
    yield db
    db.drop_all()
    db.dispose()


@pytest.fixture
def client(database, dispatcher, seeded):
    settings = Settings(environment="test", log_json=False, log_level="WARNING")
    app = create_app(settings=settings, database=database, dispatcher=dispatcher)
    with TestClient(app) as test_client:
        yield test_client


def drain(client):
    """Wait for recomputes scheduled by earlier requests."""
    client.portal.call(client.app.state.recompute_service.drain)


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestNutritionEndpoints:
    """Test consumption logging and profile upserts."""

    def test_log_consumption(self, client):
        response = client.post(
            f"{API}/users/{USER_ID}/logs",
            json={"expense_item_id": OATS_ID, "consumed_servings": 2},
        )
        drain(client)

        assert response.status_code == 201
        body = response.json()
        assert body["calories"] == pytest.approx(400)
        assert body["confidence_score"] > 0.7
        assert body["source"] == "label_scan"

    def test_negative_servings_rejected(self, client):
        response = client.post(
            f"{API}/users/{USER_ID}/logs",
            json={"expense_item_id": OATS_ID, "consumed_servings": -1},
        )

        assert response.status_code == 422

    def test_upsert_profile(self, client):
        response = client.post(
            f"{API}/items/{MILK_ID}/profiles",
            json={"source": "barcode_api", "calories": 150, "protein_g": 8},
        )
        drain(client)

        assert response.status_code == 201
        assert response.json()["expense_item_id"] == MILK_ID

        logged = client.post(f"{API}/users/{USER_ID}/logs", json={"expense_item_id": MILK_ID})
        drain(client)
        assert logged.json()["calories"] == pytest.approx(150)

    def test_profile_for_unknown_item(self, client):
        response = client.post(f"{API}/items/missing/profiles", json={"source": "manual", "calories": 10})

        assert response.status_code == 404

    def test_log_for_unknown_item(self, client):
        response = client.post(f"{API}/users/{USER_ID}/logs", json={"expense_item_id": "missing"})

        assert response.status_code == 404
        assert client.get(f"{API}/users/{USER_ID}/logs").json() == []

    def test_log_for_another_users_item(self, client, database):
        with database.session_scope() as db:
            UserRepository(db).upsert_user("user-2")
            item = ExpenseRepository(db).add_item("user-2", "Granola")
            item_id = item.id

        response = client.post(f"{API}/users/{USER_ID}/logs", json={"expense_item_id": item_id})

        assert response.status_code == 403
        assert client.get(f"{API}/users/{USER_ID}/logs").json() == []
        assert client.get(f"{API}/users/user-2/logs").json() == []


class TestNutritionReads:
    """Test logged intake and target reads."""

    def log(self, client, logged_at, servings=1):
        response = client.post(
            f"{API}/users/{USER_ID}/logs",
            json={"expense_item_id": OATS_ID, "consumed_servings": servings, "logged_at": logged_at.isoformat()},
        )
        assert response.status_code == 201
        return response.json()

    def test_list_logs_defaults_to_last_week(self, client):
        yesterday = datetime.combine(datetime.utcnow().date() - timedelta(days=1), time(12))
        recent = self.log(client, yesterday)
        old = self.log(client, yesterday - timedelta(days=10))
        drain(client)

        logs = client.get(f"{API}/users/{USER_ID}/logs").json()
        assert [log["id"] for log in logs] == [recent["id"]]

        wide = client.get(
            f"{API}/users/{USER_ID}/logs",
            params={"from_ts": (yesterday - timedelta(days=30)).isoformat()},
        ).json()
        assert [log["id"] for log in wide] == [recent["id"], old["id"]]

    def test_inverted_window_rejected(self, client):
        now = datetime.utcnow()
        response = client.get(
            f"{API}/users/{USER_ID}/logs",
            params={"from_ts": now.isoformat(), "to_ts": (now - timedelta(days=1)).isoformat()},
        )

        assert response.status_code == 400

    def test_daily_summary(self, client):
        day = datetime.utcnow().date() - timedelta(days=1)
        self.log(client, datetime.combine(day, time(8)), servings=1)
        self.log(client, datetime.combine(day, time(19)), servings=2)
        self.log(client, datetime.combine(day - timedelta(days=1), time(12)), servings=5)
        drain(client)

        body = client.get(f"{API}/users/{USER_ID}/nutrition/daily", params={"day": day.isoformat()}).json()

        assert body["log_date"] == day.isoformat()
        assert body["totals"]["calories"] == pytest.approx(600)
        assert body["totals"]["sodium_mg"] == pytest.approx(450)
        assert body["targets"]["calories"] == 2000

    def test_daily_summary_without_logs(self, client):
        body = client.get(f"{API}/users/{USER_ID}/nutrition/daily").json()

        assert body["totals"]["calories"] == 0
        assert body["log_date"] == datetime.utcnow().date().isoformat()

    def test_targets_default_without_body_metrics(self, client):
        body = client.get(f"{API}/users/{USER_ID}/targets").json()

        assert body["targets"]["protein_g"] == 75
        assert body["bmi"] is None

    def test_targets_and_bmi_from_body_metrics(self, client, database):
        with database.session_scope() as db:
            UserRepository(db).upsert_user(
                USER_ID,
                BodyMetrics(weight_kg=80, height_cm=180, age=30, gender=Gender.MALE),
            )

        body = client.get(f"{API}/users/{USER_ID}/targets").json()

        assert body["targets"]["calories"] == 2759
        assert body["bmi"] == pytest.approx(24.7)


class TestAnalyticsEndpoints:
    """Test recompute and the analytics read side."""

    def test_latest_snapshot_missing(self, client):
        assert client.get(f"{API}/users/{USER_ID}/analytics/latest").status_code == 404

    def test_recompute_then_read(self, client):
        for day in range(3):
            logged_at = (datetime.utcnow() - timedelta(days=day)).isoformat()
            client.post(
                f"{API}/users/{USER_ID}/logs",
                json={"expense_item_id": OATS_ID, "consumed_servings": 1, "logged_at": logged_at},
            )
        drain(client)

        response = client.post(f"{API}/users/{USER_ID}/recompute")

        assert response.status_code == 200
        assert response.json()["snapshot_id"] is not None
        assert response.json()["model_count"] == 1

        latest = client.get(f"{API}/users/{USER_ID}/analytics/latest").json()
        assert latest["id"] == response.json()["snapshot_id"]
        assert len(latest["metrics"]) == 7

        snapshots = client.get(f"{API}/users/{USER_ID}/analytics/snapshots", params={"limit": 100}).json()
        assert latest["id"] in [snapshot["id"] for snapshot in snapshots]

        models = client.get(f"{API}/users/{USER_ID}/consumption-models").json()
        assert [model["expense_item_id"] for model in models] == [OATS_ID]

    def test_recompute_without_data(self, client):
        response = client.post(f"{API}/users/nobody/recompute")

        assert response.status_code == 200
        assert response.json()["snapshot_id"] is None
        assert response.json()["alerts_created"] == 0


class TestAlertEndpoints:
    """Test listing and dismissing alerts."""

    @pytest.fixture
    def expiring(self, database, seeded):
        with database.session_scope() as db:
            item = ExpenseRepository(db).add_item(USER_ID, "Yogurt", expiry_date=datetime.utcnow().date())
            return item.id

    def test_alert_lifecycle(self, client, expiring, dispatcher):
        client.post(f"{API}/users/{USER_ID}/recompute")

        alerts = client.get(f"{API}/users/{USER_ID}/alerts").json()
        assert [alert["nutrient_key"] for alert in alerts] == [expiring]
        assert alerts[0]["alert_type"] == "expiry_warning"
        assert alerts[0]["message"] == "Yogurt expires today."
        assert [n.body for n in dispatcher.sent] == ["Yogurt expires today."]

        read = client.post(f"{API}/alerts/{alerts[0]['id']}/read")
        assert read.status_code == 200
        assert read.json()["is_read"] is True
        assert client.get(f"{API}/users/{USER_ID}/alerts", params={"unread_only": True}).json() == []

    def test_mark_unknown_alert(self, client):
        assert client.post(f"{API}/alerts/missing/read").status_code == 404

    def test_mark_all_read(self, client, expiring):
        client.post(f"{API}/users/{USER_ID}/recompute")

        response = client.post(f"{API}/users/{USER_ID}/alerts/read-all")

        assert response.json() == {"updated": 1}
        assert client.get(f"{API}/users/{USER_ID}/alerts", params={"unread_only": True}).json() == []
