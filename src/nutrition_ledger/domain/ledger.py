"""Domain models for the daily nutrition ledger."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import StrEnum

DEFAULT_MOOD = "neutral"
DEFAULT_SERVING_SIZE = "1 serving"
DEFAULT_HEALTH_SCORE = 5.0

# Entry nutrient field -> daily record total it feeds.
NUTRIENT_TOTALS: dict[str, str] = {
    "calories": "total_calories",
    "protein": "total_protein",
    "carbs": "total_carbs",
    "fat": "total_fat",
    "fiber": "total_fiber",
}


class AnalysisType(StrEnum):
    """How the nutrient values of an entry were obtained."""

    MANUAL = "manual"
    AI_IMAGE = "ai_image"
    AI_NAME = "ai_name"
    AI_RECIPE = "ai_recipe"


@dataclass(frozen=True)
class DayKey:
    """Partition key for one user's calendar day."""

    user_id: str
    day: date


@dataclass(frozen=True)
class FoodEntryDraft:
    """Normalized entry payload before the store assigns an id."""

    name: str
    calories: float
    protein: float
    carbs: float
    fat: float
    fiber: float
    serving_size: str = DEFAULT_SERVING_SIZE
    analysis_type: AnalysisType = AnalysisType.MANUAL
    health_score: float = DEFAULT_HEALTH_SCORE
    recommendations: str = ""
    image: str | None = None
    metadata: dict[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class FoodEntry:
    """A stored food intake event."""

    id: str
    user_id: str
    day: date
    created_at: datetime
    name: str
    calories: float
    protein: float
    carbs: float
    fat: float
    fiber: float
    serving_size: str = DEFAULT_SERVING_SIZE
    analysis_type: AnalysisType = AnalysisType.MANUAL
    health_score: float = DEFAULT_HEALTH_SCORE
    recommendations: str = ""
    image: str | None = None
    metadata: dict[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class DailyRecord:
    """Running totals and wellness values for one user's day."""

    user_id: str
    day: date
    total_calories: float = 0.0
    total_protein: float = 0.0
    total_carbs: float = 0.0
    total_fat: float = 0.0
    total_fiber: float = 0.0
    water: int = 0
    steps: int = 0
    sleep: float = 0.0
    mood: str = DEFAULT_MOOD
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class DayDetail:
    """A stored daily record together with its entries."""

    record: DailyRecord
    entries: list[FoodEntry]


@dataclass(frozen=True)
class Reconciliation:
    """Outcome of recomputing a day's totals from its entries."""

    record: DailyRecord
    drift: dict[str, float]

    @property
    def repaired(self) -> bool:
        """Return True when stored totals had to be corrected."""
        return bool(self.drift)


def empty_daily_record(
    user_id: str, day: date, created_at: datetime | None = None
) -> DailyRecord:
    """Return a zeroed record for a day."""
    return DailyRecord(
        user_id=user_id,
        day=day,
        created_at=created_at,
        updated_at=created_at,
    )
