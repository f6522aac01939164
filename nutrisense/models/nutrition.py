"""
Nutrition domain models: tracked nutrients, profile sources, log requests,
daily targets and analytics read models.
"""

from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class NutrientKey(str, Enum):
    """Nutrients tracked by every snapshot."""
    CALORIES = "calories"
    PROTEIN = "protein"
    CARBS = "carbs"
    FAT = "fat"
    FIBER = "fiber"
    SUGAR = "sugar"
    SODIUM = "sodium"


# Nutrient key -> column / field name carrying its quantity
NUTRIENT_FIELDS: Dict[NutrientKey, str] = {
    NutrientKey.CALORIES: "calories",
    NutrientKey.PROTEIN: "protein_g",
    NutrientKey.CARBS: "carbs_g",
    NutrientKey.FAT: "fat_g",
    NutrientKey.FIBER: "fiber_g",
    NutrientKey.SUGAR: "sugar_g",
    NutrientKey.SODIUM: "sodium_mg",
}

TRACKED_NUTRIENTS: List[NutrientKey] = list(NUTRIENT_FIELDS)

MACRO_FIELDS = ("calories", "protein_g", "carbs_g", "fat_g")


class NutritionSource(str, Enum):
    """Where a nutrition profile came from."""
    LABEL_SCAN = "label_scan"
    BARCODE_API = "barcode_api"
    AI_INFERRED = "ai_inferred"
    MANUAL = "manual"


class NutrientValues(BaseModel):
    """Optional quantities for the seven tracked nutrients."""

    calories: Optional[float] = Field(default=None, ge=0)
    protein_g: Optional[float] = Field(default=None, ge=0)
    carbs_g: Optional[float] = Field(default=None, ge=0)
    fat_g: Optional[float] = Field(default=None, ge=0)
    fiber_g: Optional[float] = Field(default=None, ge=0)
    sugar_g: Optional[float] = Field(default=None, ge=0)
    sodium_mg: Optional[float] = Field(default=None, ge=0)

    def nutrient_dict(self) -> Dict[str, Optional[float]]:
        return {field: getattr(self, field) for field in NUTRIENT_FIELDS.values()}


class ConsumptionLogBody(NutrientValues):
    """Request to log N servings of an item, as sent by the UI."""

    expense_item_id: str
    consumed_servings: float = Field(default=1.0, ge=0)
    log_date: Optional[date] = None
    logged_at: Optional[datetime] = None


class ConsumptionLogRequest(ConsumptionLogBody):
    """Consumption log request bound to a user."""

    user_id: str


class NutritionProfileBody(NutrientValues):
    """Per-serving nutrition estimate produced by an upstream extractor."""

    source: NutritionSource
    serving_size_g: Optional[float] = Field(default=None, ge=0)
    ai_confidence_score: Optional[float] = Field(default=None, ge=0, le=1)
    raw_label_text: Optional[str] = None


class NutritionProfileCreate(NutritionProfileBody):
    """Profile bound to the purchased item it describes."""

    expense_item_id: str


class ResolvedConsumptionLog(BaseModel):
    """A consumption event with resolved absolute quantities and a confidence."""

    user_id: str
    expense_item_id: str
    consumed_servings: float
    log_date: date
    logged_at: datetime
    nutrients: Dict[str, Optional[float]]
    confidence_score: float = Field(ge=0, le=1)
    source: NutritionSource


class DailyTargets(BaseModel):
    """Daily nutrient targets supplied by the health-profile calculator."""

    calories: float = 2000
    protein_g: float = 75
    carbs_g: float = 250
    fat_g: float = 70
    fiber_g: float = 28
    sugar_g: float = 50
    sodium_mg: float = 2300

    def for_key(self, key: NutrientKey) -> float:
        return float(getattr(self, NUTRIENT_FIELDS[NutrientKey(key)]))


class NutrientMetric(BaseModel):
    """Per-nutrient statistics stored inside a snapshot."""

    key: NutrientKey
    recent_avg: float
    median: float
    p90: float
    z_score: float
    trend_slope: float
    target_gap_ratio: float


class SnapshotRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    from_ts: datetime
    to_ts: datetime
    reliability_score: float
    coverage_score: float
    anomaly_count: int
    metrics: List[NutrientMetric]
    created_at: datetime


class ConsumptionModelRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    expense_item_id: str
    avg_daily_servings: float
    trend_slope: float
    variability: float
    confidence: float
    last_predicted_depletion: Optional[datetime] = None
    updated_at: datetime


class DailyNutritionLogRead(NutrientValues):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    expense_item_id: str
    log_date: date
    logged_at: datetime
    consumed_servings: float
    confidence_score: float
    source: NutritionSource


class NutritionProfileRead(NutrientValues):
    model_config = ConfigDict(from_attributes=True)

    id: str
    expense_item_id: str
    source: NutritionSource
    serving_size_g: Optional[float] = None
    ai_confidence_score: Optional[float] = None
    created_at: datetime


class DailyNutritionSummary(BaseModel):
    """Nutrient totals logged on one day next to the user's targets."""

    user_id: str
    log_date: date
    totals: NutrientValues
    targets: DailyTargets


class UserTargetsRead(BaseModel):
    user_id: str
    targets: DailyTargets
    bmi: Optional[float] = None
