"""Supabase store for daily records and food entries."""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, date, datetime

from supabase import Client

from nutrition_ledger.adapters.supabase_calls import execute
from nutrition_ledger.domain.errors import StorageUnavailableError
from nutrition_ledger.domain.ledger import (
    DEFAULT_HEALTH_SCORE,
    DEFAULT_MOOD,
    AnalysisType,
    DailyRecord,
    DayKey,
    FoodEntry,
    FoodEntryDraft,
)
from nutrition_ledger.services.coercion import to_non_negative_float
from nutrition_ledger.services.ledger import LedgerStore

RECORD_COLUMNS = (
    "user_id, day, total_calories, total_protein, total_carbs, total_fat, "
    "total_fiber, water, steps, sleep, mood, created_at, updated_at"
)
ENTRY_COLUMNS = (
    "id, user_id, day, created_at, name, calories, protein, carbs, fat, fiber, "
    "serving_size, analysis_type, health_score, recommendations, image, metadata"
)


@dataclass
class SupabaseLedgerStore(LedgerStore):
    """Supabase implementation of the ledger store."""

    client: Client

    def create_if_absent(self, key: DayKey, initial: DailyRecord) -> DailyRecord:
        """Insert the record unless the (user_id, day) row already exists."""
        execute(
            self.client.table("daily_records").upsert(
                _record_row(initial),
                on_conflict="user_id,day",
                ignore_duplicates=True,
            ),
            "create daily record",
        )
        record = self.get_record(key)
        if record is None:
            raise StorageUnavailableError("Daily record missing after create")
        return record

    def get_record(self, key: DayKey) -> DailyRecord | None:
        """Return the record for a day."""
        response = execute(
            self.client.table("daily_records")
            .select(RECORD_COLUMNS)
            .eq("user_id", key.user_id)
            .eq("day", key.day.isoformat())
            .limit(1),
            "get daily record",
        )
        if not response.data:
            return None
        return _parse_record(response.data[0])

    def list_records(self, user_id: str, start: date, end: date) -> list[DailyRecord]:
        """Return stored records in the inclusive range."""
        response = execute(
            self.client.table("daily_records")
            .select(RECORD_COLUMNS)
            .eq("user_id", user_id)
            .gte("day", start.isoformat())
            .lte("day", end.isoformat())
            .order("day", desc=False),
            "list daily records",
        )
        return [_parse_record(row) for row in response.data or []]

    def increment(self, key: DayKey, deltas: Mapping[str, float]) -> None:
        """Apply deltas with a single server-side UPDATE."""
        execute(
            self.client.rpc(
                "increment_daily_record",
                {
                    "p_user_id": key.user_id,
                    "p_day": key.day.isoformat(),
                    "p_deltas": dict(deltas),
                },
            ),
            "increment daily record",
        )

    def set_field(self, key: DayKey, field: str, value: object) -> None:
        """Overwrite one column of the day's record."""
        execute(
            self.client.table("daily_records")
            .update({field: value, "updated_at": datetime.now(tz=UTC).isoformat()})
            .eq("user_id", key.user_id)
            .eq("day", key.day.isoformat()),
            f"set {field}",
        )

    def get_child(self, key: DayKey, entry_id: str) -> FoodEntry | None:
        """Return an entry belonging to the day."""
        response = execute(
            self.client.table("food_entries")
            .select(ENTRY_COLUMNS)
            .eq("id", entry_id)
            .eq("user_id", key.user_id)
            .eq("day", key.day.isoformat())
            .limit(1),
            "get food entry",
        )
        if not response.data:
            return None
        return _parse_entry(response.data[0])

    def put_child(self, key: DayKey, draft: FoodEntryDraft) -> FoodEntry:
        """Insert an entry row and return it."""
        response = execute(
            self.client.table("food_entries").insert(
                {
                    "user_id": key.user_id,
                    "day": key.day.isoformat(),
                    "created_at": datetime.now(tz=UTC).isoformat(),
                    "name": draft.name,
                    "calories": draft.calories,
                    "protein": draft.protein,
                    "carbs": draft.carbs,
                    "fat": draft.fat,
                    "fiber": draft.fiber,
                    "serving_size": draft.serving_size,
                    "analysis_type": draft.analysis_type.value,
                    "health_score": draft.health_score,
                    "recommendations": draft.recommendations,
                    "image": draft.image,
                    "metadata": draft.metadata,
                }
            ),
            "insert food entry",
        )
        if not response.data:
            raise StorageUnavailableError("Failed to create food entry")
        return _parse_entry(response.data[0])

    def delete_child(self, key: DayKey, entry_id: str) -> bool:
        """Delete an entry and report whether a row was removed."""
        response = execute(
            self.client.table("food_entries")
            .delete()
            .eq("id", entry_id)
            .eq("user_id", key.user_id)
            .eq("day", key.day.isoformat()),
            "delete food entry",
        )
        return bool(response.data)

    def list_children(self, key: DayKey, newest_first: bool = True) -> list[FoodEntry]:
        """Return the day's entries by creation time."""
        response = execute(
            self.client.table("food_entries")
            .select(ENTRY_COLUMNS)
            .eq("user_id", key.user_id)
            .eq("day", key.day.isoformat())
            .order("created_at", desc=newest_first),
            "list food entries",
        )
        return [_parse_entry(row) for row in response.data or []]


def _record_row(record: DailyRecord) -> dict[str, object]:
    return {
        "user_id": record.user_id,
        "day": record.day.isoformat(),
        "total_calories": record.total_calories,
        "total_protein": record.total_protein,
        "total_carbs": record.total_carbs,
        "total_fat": record.total_fat,
        "total_fiber": record.total_fiber,
        "water": record.water,
        "steps": record.steps,
        "sleep": record.sleep,
        "mood": record.mood,
    }


def _parse_timestamp(raw: object) -> datetime | None:
    if isinstance(raw, str) and raw:
        return datetime.fromisoformat(raw)
    return None


def _parse_record(row: dict[str, object]) -> DailyRecord:
    return DailyRecord(
        user_id=str(row["user_id"]),
        day=date.fromisoformat(str(row["day"])),
        total_calories=float(row.get("total_calories") or 0.0),
        total_protein=float(row.get("total_protein") or 0.0),
        total_carbs=float(row.get("total_carbs") or 0.0),
        total_fat=float(row.get("total_fat") or 0.0),
        total_fiber=float(row.get("total_fiber") or 0.0),
        water=int(row.get("water") or 0),
        steps=int(row.get("steps") or 0),
        sleep=float(row.get("sleep") or 0.0),
        mood=str(row.get("mood") or DEFAULT_MOOD),
        created_at=_parse_timestamp(row.get("created_at")),
        updated_at=_parse_timestamp(row.get("updated_at")),
    )


def _parse_entry(row: dict[str, object]) -> FoodEntry:
    try:
        analysis_type = AnalysisType(str(row.get("analysis_type")))
    except ValueError:
        analysis_type = AnalysisType.MANUAL
    metadata = row.get("metadata")
    return FoodEntry(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        day=date.fromisoformat(str(row["day"])),
        created_at=(
            _parse_timestamp(row.get("created_at")) or datetime.min.replace(tzinfo=UTC)
        ),
        name=str(row.get("name", "")),
        calories=to_non_negative_float(row.get("calories")),
        protein=to_non_negative_float(row.get("protein")),
        carbs=to_non_negative_float(row.get("carbs")),
        fat=to_non_negative_float(row.get("fat")),
        fiber=to_non_negative_float(row.get("fiber")),
        serving_size=str(row.get("serving_size") or ""),
        analysis_type=analysis_type,
        health_score=to_non_negative_float(
            row.get("health_score"), default=DEFAULT_HEALTH_SCORE
        ),
        recommendations=str(row.get("recommendations") or ""),
        image=row.get("image") if isinstance(row.get("image"), str) else None,
        metadata=metadata if isinstance(metadata, dict) else {},
    )
