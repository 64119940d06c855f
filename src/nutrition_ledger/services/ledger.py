"""Ledger service keeping food entries and daily totals consistent."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import Protocol

from nutrition_ledger.app_logging import INCIDENT_LOGGER
from nutrition_ledger.domain.errors import (
    EntryNotFoundError,
    PartialWriteError,
    StorageUnavailableError,
)
from nutrition_ledger.domain.ledger import (
    NUTRIENT_TOTALS,
    DailyRecord,
    DayDetail,
    DayKey,
    FoodEntry,
    FoodEntryDraft,
    Reconciliation,
    empty_daily_record,
)
from nutrition_ledger.services.coercion import coerce_entry_payload, nutrient_deltas

logger = logging.getLogger(__name__)
incident_logger = logging.getLogger(INCIDENT_LOGGER)

# Reconciliation treats drift below this as float noise.
DRIFT_TOLERANCE = 1e-6


class DailyRecordReader(Protocol):
    """Read access to stored daily records."""

    def list_records(self, user_id: str, start: date, end: date) -> list[DailyRecord]:
        """Return stored records in the inclusive range, ascending by day."""


class LedgerStore(DailyRecordReader, Protocol):
    """Persistence interface for daily records and their food entries."""

    def create_if_absent(self, key: DayKey, initial: DailyRecord) -> DailyRecord:
        """Insert the record unless one exists; return the stored record."""

    def get_record(self, key: DayKey) -> DailyRecord | None:
        """Return the record for a day, if present."""

    def increment(self, key: DayKey, deltas: Mapping[str, float]) -> None:
        """Atomically add each delta to its record field."""

    def set_field(self, key: DayKey, field: str, value: object) -> None:
        """Overwrite a single record field."""

    def get_child(self, key: DayKey, entry_id: str) -> FoodEntry | None:
        """Return an entry of the day, if present."""

    def put_child(self, key: DayKey, draft: FoodEntryDraft) -> FoodEntry:
        """Store a new entry under the day and return it with its id."""

    def delete_child(self, key: DayKey, entry_id: str) -> bool:
        """Delete an entry; return False when nothing was deleted."""

    def list_children(self, key: DayKey, newest_first: bool = True) -> list[FoodEntry]:
        """Return the day's entries ordered by creation time."""


@dataclass
class LedgerService:
    """Application service for the daily nutrition ledger."""

    store: LedgerStore

    def get_or_create_daily_record(self, user_id: str, day: date) -> DailyRecord:
        """Return the day's record, creating a zeroed one when absent."""
        key = DayKey(user_id, day)
        initial = empty_daily_record(user_id, day, created_at=datetime.now(tz=UTC))
        return self.store.create_if_absent(key, initial)

    def add_entry(
        self, user_id: str, day: date, payload: Mapping[str, object]
    ) -> FoodEntry:
        """Record a food entry and add its nutrients to the day's totals."""
        draft = coerce_entry_payload(payload)
        key = DayKey(user_id, day)
        self.get_or_create_daily_record(user_id, day)
        entry = self.store.put_child(key, draft)
        self._apply_totals(key, nutrient_deltas(entry), entry.id, "add")
        logger.info(
            "Food entry added",
            extra={"user_id": user_id, "day": day.isoformat(), "entry_id": entry.id},
        )
        return entry

    def remove_entry(self, user_id: str, day: date, entry_id: str) -> None:
        """Delete a food entry and subtract its nutrients from the totals."""
        key = DayKey(user_id, day)
        entry = self.store.get_child(key, entry_id)
        if entry is None:
            raise EntryNotFoundError(entry_id)
        if not self.store.delete_child(key, entry_id):
            # Removed by a concurrent caller, which also owns the decrement.
            raise EntryNotFoundError(entry_id)
        self._apply_totals(key, nutrient_deltas(entry, sign=-1.0), entry_id, "remove")
        logger.info(
            "Food entry removed",
            extra={"user_id": user_id, "day": day.isoformat(), "entry_id": entry_id},
        )

    def list_entries(self, user_id: str, day: date) -> list[FoodEntry]:
        """Return the day's entries, most recent first."""
        return self.store.list_children(DayKey(user_id, day), newest_first=True)

    def get_day(self, user_id: str, day: date) -> DayDetail | None:
        """Return the stored record with its entries, or None if untouched."""
        key = DayKey(user_id, day)
        record = self.store.get_record(key)
        if record is None:
            return None
        return DayDetail(record=record, entries=self.store.list_children(key))

    def set_water_intake(self, user_id: str, day: date, delta_glasses: int) -> None:
        """Add glasses of water to the day's cumulative count."""
        self.get_or_create_daily_record(user_id, day)
        self.store.increment(DayKey(user_id, day), {"water": delta_glasses})

    def set_steps(self, user_id: str, day: date, steps: int) -> None:
        """Overwrite the day's step count."""
        self._set_scalar(user_id, day, "steps", steps)

    def set_sleep_hours(self, user_id: str, day: date, hours: float) -> None:
        """Overwrite the day's sleep hours."""
        self._set_scalar(user_id, day, "sleep", hours)

    def set_mood(self, user_id: str, day: date, mood: str) -> None:
        """Overwrite the day's mood."""
        self._set_scalar(user_id, day, "mood", mood)

    def set_calories_override(self, user_id: str, day: date, calories: float) -> None:
        """Replace the day's calorie total.

        Later entry additions and removals keep incrementing from the
        overridden value.
        """
        self._set_scalar(user_id, day, "total_calories", calories)

    def reconcile_day(self, user_id: str, day: date) -> Reconciliation | None:
        """Recompute nutrient totals from the day's entries and repair drift.

        Entries are treated as the source of truth, so a calorie override is
        discarded. Must not run concurrently with writers for the same day.
        """
        key = DayKey(user_id, day)
        record = self.store.get_record(key)
        if record is None:
            return None
        expected = dict.fromkeys(NUTRIENT_TOTALS.values(), 0.0)
        for entry in self.store.list_children(key):
            for total_field, delta in nutrient_deltas(entry).items():
                expected[total_field] += delta
        drift: dict[str, float] = {}
        for total_field, value in expected.items():
            difference = float(getattr(record, total_field)) - value
            if abs(difference) > DRIFT_TOLERANCE:
                drift[total_field] = difference
                self.store.set_field(key, total_field, value)
        if drift:
            incident_logger.warning(
                "Reconciled daily totals",
                extra={"user_id": user_id, "day": day.isoformat(), "drift": drift},
            )
            record = self.store.get_record(key) or record
        return Reconciliation(record=record, drift=drift)

    def _set_scalar(self, user_id: str, day: date, field: str, value: object) -> None:
        self.get_or_create_daily_record(user_id, day)
        self.store.set_field(DayKey(user_id, day), field, value)

    def _apply_totals(
        self, key: DayKey, deltas: dict[str, float], entry_id: str, operation: str
    ) -> None:
        try:
            self.store.increment(key, deltas)
        except StorageUnavailableError as exc:
            incident_logger.error(
                "Partial write: entry %s succeeded but totals were not updated",
                operation,
                extra={
                    "user_id": key.user_id,
                    "day": key.day.isoformat(),
                    "entry_id": entry_id,
                    "deltas": deltas,
                },
            )
            raise PartialWriteError(
                f"Totals not updated after entry {operation}", entry_id=entry_id
            ) from exc
