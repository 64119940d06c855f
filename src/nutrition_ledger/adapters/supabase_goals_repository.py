"""Supabase repository for user goals."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from nutrition_ledger.adapters.supabase_calls import execute
from nutrition_ledger.domain.goals import GOAL_FIELDS
from nutrition_ledger.services.goals import GoalsRepository


@dataclass
class SupabaseGoalsRepository(GoalsRepository):
    """Supabase implementation for goals."""

    client: Client

    def get_goals(self, user_id: str) -> dict[str, object] | None:
        """Return the stored goal row for a user."""
        response = execute(
            self.client.table("goals")
            .select(", ".join(GOAL_FIELDS))
            .eq("user_id", user_id)
            .limit(1),
            "get goals",
        )
        if not response.data:
            return None
        return response.data[0]

    def upsert_goals(self, user_id: str, values: dict[str, float | int]) -> None:
        """Merge goal columns; columns not supplied keep their stored values."""
        execute(
            self.client.table("goals").upsert(
                {
                    "user_id": user_id,
                    **values,
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                },
                on_conflict="user_id",
            ),
            "upsert goals",
        )
