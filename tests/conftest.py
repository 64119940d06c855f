"""Shared test fixtures."""

import threading
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from nutrition_ledger.config import Settings
from nutrition_ledger.containers import AppContainer
from nutrition_ledger.domain.errors import StorageUnavailableError
from nutrition_ledger.domain.ledger import (
    DailyRecord,
    DayKey,
    FoodEntry,
    FoodEntryDraft,
)
from nutrition_ledger.services.goals import GoalsRepository, GoalsService
from nutrition_ledger.services.ledger import LedgerService, LedgerStore
from nutrition_ledger.services.rollup import RollupService


def _add_exact(current: float | int, delta: float | int) -> float | int:
    """Add like a `numeric` column: decimal arithmetic on the values as written."""
    total = Decimal(str(current)) + Decimal(str(delta))
    if isinstance(current, int) and isinstance(delta, int):
        return int(total)
    return float(total)


@dataclass
class InMemoryLedgerStore(LedgerStore):
    """In-memory ledger store for tests.

    A lock stands in for the database's row-level atomicity.
    """

    records: dict[DayKey, DailyRecord] = field(default_factory=dict)
    entries: dict[DayKey, dict[str, FoodEntry]] = field(default_factory=dict)
    create_calls: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock)
    _clock: datetime = field(
        default_factory=lambda: datetime(2024, 1, 1, tzinfo=UTC)
    )

    def create_if_absent(self, key: DayKey, initial: DailyRecord) -> DailyRecord:
        with self._lock:
            self.create_calls += 1
            if key not in self.records:
                self.records[key] = initial
            return self.records[key]

    def get_record(self, key: DayKey) -> DailyRecord | None:
        return self.records.get(key)

    def list_records(self, user_id: str, start: date, end: date) -> list[DailyRecord]:
        return sorted(
            (
                record
                for key, record in self.records.items()
                if key.user_id == user_id and start <= key.day <= end
            ),
            key=lambda record: record.day,
        )

    def increment(self, key: DayKey, deltas: Mapping[str, float]) -> None:
        with self._lock:
            record = self.records.get(key)
            if record is None:
                return
            changes = {
                name: _add_exact(getattr(record, name), delta)
                for name, delta in deltas.items()
            }
            self.records[key] = replace(record, **changes)

    def set_field(self, key: DayKey, field: str, value: object) -> None:
        with self._lock:
            record = self.records.get(key)
            if record is None:
                return
            self.records[key] = replace(record, **{field: value})

    def get_child(self, key: DayKey, entry_id: str) -> FoodEntry | None:
        return self.entries.get(key, {}).get(entry_id)

    def put_child(self, key: DayKey, draft: FoodEntryDraft) -> FoodEntry:
        with self._lock:
            self._clock += timedelta(seconds=1)
            entry = FoodEntry(
                id=str(uuid4()),
                user_id=key.user_id,
                day=key.day,
                created_at=self._clock,
                name=draft.name,
                calories=draft.calories,
                protein=draft.protein,
                carbs=draft.carbs,
                fat=draft.fat,
                fiber=draft.fiber,
                serving_size=draft.serving_size,
                analysis_type=draft.analysis_type,
                health_score=draft.health_score,
                recommendations=draft.recommendations,
                image=draft.image,
                metadata=draft.metadata,
            )
            self.entries.setdefault(key, {})[entry.id] = entry
            return entry

    def delete_child(self, key: DayKey, entry_id: str) -> bool:
        with self._lock:
            return self.entries.get(key, {}).pop(entry_id, None) is not None

    def list_children(self, key: DayKey, newest_first: bool = True) -> list[FoodEntry]:
        return sorted(
            self.entries.get(key, {}).values(),
            key=lambda entry: entry.created_at,
            reverse=newest_first,
        )


@dataclass
class FlakyLedgerStore(InMemoryLedgerStore):
    """In-memory store whose selected operations fail as unavailable."""

    failing: set[str] = field(default_factory=set)

    def increment(self, key: DayKey, deltas: Mapping[str, float]) -> None:
        if "increment" in self.failing:
            raise StorageUnavailableError("increment timed out")
        super().increment(key, deltas)

    def put_child(self, key: DayKey, draft: FoodEntryDraft) -> FoodEntry:
        if "put_child" in self.failing:
            raise StorageUnavailableError("insert timed out")
        return super().put_child(key, draft)


@dataclass
class InMemoryGoalsRepository(GoalsRepository):
    """In-memory goals repository for tests."""

    goals: dict[str, dict[str, object]] = field(default_factory=dict)

    def get_goals(self, user_id: str) -> dict[str, object] | None:
        return self.goals.get(user_id)

    def upsert_goals(self, user_id: str, values: dict[str, float | int]) -> None:
        self.goals.setdefault(user_id, {}).update(values)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        service_token="service-token",
        environment="test",
    )


@pytest.fixture
def ledger_store() -> InMemoryLedgerStore:
    return InMemoryLedgerStore()


@pytest.fixture
def goals_repository() -> InMemoryGoalsRepository:
    return InMemoryGoalsRepository()


@pytest.fixture
def container(
    settings: Settings,
    ledger_store: InMemoryLedgerStore,
    goals_repository: InMemoryGoalsRepository,
) -> AppContainer:
    goals_service = GoalsService(goals_repository)
    return AppContainer(
        settings=settings,
        ledger_service=LedgerService(ledger_store),
        goals_service=goals_service,
        rollup_service=RollupService(
            records=ledger_store,
            goals_service=goals_service,
            max_range_days=settings.max_range_days,
        ),
    )
