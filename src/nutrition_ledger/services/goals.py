"""Goals service."""

import math
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Protocol

from nutrition_ledger.domain.goals import GOAL_FIELDS, INTEGER_GOAL_FIELDS, Goals


class GoalsRepository(Protocol):
    """Persistence interface for user goals."""

    def get_goals(self, user_id: str) -> dict[str, object] | None:
        """Return stored goal values for a user, if any."""

    def upsert_goals(self, user_id: str, values: dict[str, float | int]) -> None:
        """Merge the given goal values into the user's stored goals."""


@dataclass
class GoalsService:
    """Service for reading and updating daily goals."""

    repository: GoalsRepository

    def get_goals(self, user_id: str) -> Goals:
        """Return stored goals merged over the defaults."""
        stored = self.repository.get_goals(user_id) or {}
        overrides = {
            name: _parse_goal_value(name, stored[name])
            for name in GOAL_FIELDS
            if stored.get(name) is not None
        }
        return replace(Goals(), **overrides)

    def upsert_goals(self, user_id: str, partial: Mapping[str, object]) -> Goals:
        """Merge-write the supplied goal fields and return the result."""
        unknown = sorted(set(partial) - set(GOAL_FIELDS))
        if unknown:
            raise ValueError(f"Unknown goal fields: {', '.join(unknown)}")
        values = {name: _parse_goal_value(name, value) for name, value in partial.items()}
        if values:
            self.repository.upsert_goals(user_id, values)
        return self.get_goals(user_id)


def _parse_goal_value(name: str, value: object) -> float | int:
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ValueError(f"Goal {name} must be a number")
    number = float(value)
    if not math.isfinite(number) or number < 0:
        raise ValueError(f"Goal {name} must be a non-negative number")
    if name in INTEGER_GOAL_FIELDS:
        if not number.is_integer():
            raise ValueError(f"Goal {name} must be a whole number")
        return int(number)
    return number
