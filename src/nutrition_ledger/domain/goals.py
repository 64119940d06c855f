"""Domain models for daily goals."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Goals:
    """Per-user daily targets."""

    calorie_goal: float = 2000
    protein_goal: float = 150
    carbs_goal: float = 250
    fat_goal: float = 65
    water_goal: int = 8
    steps_goal: int = 10000
    sleep_goal: float = 8


GOAL_FIELDS: tuple[str, ...] = (
    "calorie_goal",
    "protein_goal",
    "carbs_goal",
    "fat_goal",
    "water_goal",
    "steps_goal",
    "sleep_goal",
)

INTEGER_GOAL_FIELDS = frozenset({"water_goal", "steps_goal"})
