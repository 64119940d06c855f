"""Pydantic models for ledger request bodies."""

from typing import Any

from pydantic import BaseModel, Field, JsonValue

# Any JSON value is accepted here; the service coerces nutrients leniently.
LenientNumber = JsonValue


class FoodEntryCreate(BaseModel):
    """Food entry payload from the UI or an analysis collaborator."""

    name: str | None = None
    calories: LenientNumber = None
    protein: LenientNumber = None
    carbs: LenientNumber = None
    fat: LenientNumber = None
    fiber: LenientNumber = None
    serving_size: str | None = None
    analysis_type: str | None = None
    health_score: LenientNumber = None
    recommendations: str | None = None
    image: str | None = None
    metadata: dict[str, Any] | None = None


class WaterUpdate(BaseModel):
    """Glasses of water to add; negative values undo."""

    glasses: int = 1


class StepsUpdate(BaseModel):
    """Absolute step count for the day."""

    steps: int = Field(ge=0)


class SleepUpdate(BaseModel):
    """Absolute sleep hours for the day."""

    hours: float = Field(ge=0, le=24)


class MoodUpdate(BaseModel):
    """Mood label for the day."""

    mood: str = Field(min_length=1, max_length=32)


class CaloriesUpdate(BaseModel):
    """Absolute calorie total for the day."""

    calories: float = Field(ge=0)


class GoalsUpdate(BaseModel):
    """Partial goals update."""

    calorie_goal: float | None = Field(default=None, ge=0)
    protein_goal: float | None = Field(default=None, ge=0)
    carbs_goal: float | None = Field(default=None, ge=0)
    fat_goal: float | None = Field(default=None, ge=0)
    water_goal: int | None = Field(default=None, ge=0)
    steps_goal: int | None = Field(default=None, ge=0)
    sleep_goal: float | None = Field(default=None, ge=0)
