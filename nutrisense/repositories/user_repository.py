"""
User repository.
"""

from typing import Optional

from sqlalchemy.orm import Session

from nutrisense.db.models.user import User
from nutrisense.models.health import BodyMetrics


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: str) -> Optional[User]:
        return self.db.get(User, user_id)

    def upsert_user(self, user_id: str, metrics: Optional[BodyMetrics] = None, email: Optional[str] = None) -> User:
        user = self.get_user(user_id)
        if user is None:
            user = User(id=user_id, email=email)
            self.db.add(user)
        elif email is not None:
            user.email = email

        if metrics is not None:
            user.weight_kg = metrics.weight_kg
            user.height_cm = metrics.height_cm
            user.age = metrics.age
            user.gender = metrics.gender.value if metrics.gender else None
            user.activity_level = metrics.activity_level.value
            user.health_goals = [goal.value for goal in metrics.health_goals]

        self.db.flush()
        return user

    def get_body_metrics(self, user_id: str) -> BodyMetrics:
        """Body metrics for target calculation; unknown users get an empty profile."""
        user = self.get_user(user_id)
        if user is None:
            return BodyMetrics()
        return BodyMetrics(
            weight_kg=user.weight_kg,
            height_cm=user.height_cm,
            age=user.age,
            gender=user.gender,
            activity_level=user.activity_level or "moderate",
            health_goals=user.health_goals or [],
        )
