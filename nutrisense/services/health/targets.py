"""
Daily nutrient targets from body metrics and goals.

Mifflin-St Jeor BMR scaled by an activity multiplier, with goal-dependent
protein and a fixed fat share. Users with incomplete metrics get defaults.
"""

from typing import Dict, Iterable, Optional

from nutrisense.models.health import ActivityLevel, BodyMetrics, Gender, HealthGoal
from nutrisense.models.nutrition import DailyTargets

DEFAULT_DAILY_TARGETS = DailyTargets()

ACTIVITY_MULTIPLIER: Dict[ActivityLevel, float] = {
    ActivityLevel.SEDENTARY: 1.2,
    ActivityLevel.LIGHT: 1.375,
    ActivityLevel.MODERATE: 1.55,
    ActivityLevel.ACTIVE: 1.725,
    ActivityLevel.VERY_ACTIVE: 1.9,
}

FAT_CALORIE_SHARE = 0.28


def calculate_bmr(weight_kg: float, height_cm: float, age: int, gender: Gender) -> float:
    base = 10 * weight_kg + 6.25 * height_cm - 5 * age
    if gender == Gender.MALE:
        return base + 5
    if gender == Gender.FEMALE:
        return base - 161
    return base - 78


def calculate_tdee(bmr: float, activity_level: ActivityLevel) -> float:
    return bmr * ACTIVITY_MULTIPLIER[ActivityLevel(activity_level)]


def calculate_bmi(weight_kg: float, height_cm: float) -> float:
    meters = height_cm / 100
    return weight_kg / (meters * meters)


def bmi_for(metrics: BodyMetrics) -> Optional[float]:
    """BMI rounded to one decimal, or None without weight and height."""
    if not (metrics.weight_kg and metrics.height_cm):
        return None
    return round(calculate_bmi(metrics.weight_kg, metrics.height_cm), 1)


def protein_target(weight_kg: float, goals: Iterable[HealthGoal]) -> float:
    goals = set(goals)
    if HealthGoal.MUSCLE_GAIN in goals:
        return weight_kg * 2.0
    if HealthGoal.WEIGHT_LOSS in goals:
        return weight_kg * 1.6
    return weight_kg * 1.2


def build_daily_targets(metrics: BodyMetrics) -> DailyTargets:
    """Targets for a user; calories and macros are rounded to whole units."""
    if not (metrics.weight_kg and metrics.height_cm and metrics.age and metrics.gender):
        return DEFAULT_DAILY_TARGETS.model_copy()

    bmr = calculate_bmr(metrics.weight_kg, metrics.height_cm, metrics.age, metrics.gender)
    calories = calculate_tdee(bmr, metrics.activity_level)
    protein_g = protein_target(metrics.weight_kg, metrics.health_goals)
    fat_g = calories * FAT_CALORIE_SHARE / 9
    carbs_g = max(0.0, (calories - protein_g * 4 - fat_g * 9) / 4)

    return DEFAULT_DAILY_TARGETS.model_copy(
        update={
            "calories": round(calories),
            "protein_g": round(protein_g),
            "carbs_g": round(carbs_g),
            "fat_g": round(fat_g),
        }
    )
