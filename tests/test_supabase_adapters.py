"""Tests for Supabase adapter implementations."""

from dataclasses import dataclass, field
from datetime import date

import httpx
import pytest

from nutrition_ledger.adapters.supabase_goals_repository import (
    SupabaseGoalsRepository,
)
from nutrition_ledger.adapters.supabase_ledger_store import SupabaseLedgerStore
from nutrition_ledger.domain.errors import StorageUnavailableError
from nutrition_ledger.domain.ledger import (
    AnalysisType,
    DayKey,
    FoodEntryDraft,
    empty_daily_record,
)

KEY = DayKey("user-1", date(2024, 1, 15))


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {
            "select": [],
            "insert": [],
            "update": [],
            "upsert": [],
            "delete": [],
        }
    )
    last_payload: object | None = None
    last_options: dict[str, object] = field(default_factory=dict)
    last_filters: list[tuple[str, object]] = field(default_factory=list)
    last_order: tuple[str, bool] | None = None
    error: Exception | None = None

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def select(self, *_args) -> "FakeTable":
        self._action = "select"
        self.last_filters = []
        return self

    def insert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "insert"
        self.last_payload = payload
        return self

    def upsert(self, payload, **options) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "upsert"
        self.last_payload = payload
        self.last_options = options
        return self

    def update(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "update"
        self.last_payload = payload
        self.last_filters = []
        return self

    def delete(self) -> "FakeTable":
        self._action = "delete"
        self.last_filters = []
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def gte(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((f"{column}>=", value))
        return self

    def lte(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((f"{column}<=", value))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def order(self, column: str, desc: bool = False) -> "FakeTable":
        self.last_order = (column, desc)
        return self

    def execute(self) -> FakeResponse:
        if self.error is not None:
            raise self.error
        action = getattr(self, "_action", "select")
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        return FakeResponse(data=data)


@dataclass
class FakeRpc:
    client: "FakeSupabaseClient"

    def execute(self) -> FakeResponse:
        if self.client.rpc_error is not None:
            raise self.client.rpc_error
        return FakeResponse(data=[])


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)
    rpc_calls: list[tuple[str, dict[str, object]]] = field(default_factory=list)
    rpc_error: Exception | None = None

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]

    def rpc(self, name: str, params: dict[str, object]) -> FakeRpc:
        self.rpc_calls.append((name, params))
        return FakeRpc(self)


def _record_row(**overrides: object) -> dict[str, object]:
    row: dict[str, object] = {
        "user_id": "user-1",
        "day": "2024-01-15",
        "total_calories": 95,
        "total_protein": 0.5,
        "total_carbs": 25,
        "total_fat": 0.3,
        "total_fiber": 4,
        "water": 2,
        "steps": 8000,
        "sleep": 7.5,
        "mood": "happy",
        "created_at": "2024-01-15T08:00:00+00:00",
        "updated_at": "2024-01-15T09:00:00+00:00",
    }
    row.update(overrides)
    return row


def _entry_row(**overrides: object) -> dict[str, object]:
    row: dict[str, object] = {
        "id": "3f1c2b1e-0000-4000-8000-000000000001",
        "user_id": "user-1",
        "day": "2024-01-15",
        "created_at": "2024-01-15T08:30:00+00:00",
        "name": "Apple",
        "calories": 95,
        "protein": 0.5,
        "carbs": 25,
        "fat": 0.3,
        "fiber": None,
        "serving_size": "1 medium",
        "analysis_type": "ai_name",
        "health_score": 9,
        "recommendations": "",
        "image": None,
        "metadata": {"source": "test"},
    }
    row.update(overrides)
    return row


def test_create_if_absent_upserts_ignoring_duplicates() -> None:
    client = FakeSupabaseClient()
    table = client.table("daily_records")
    table.queue("select", [_record_row()])
    store = SupabaseLedgerStore(client)

    record = store.create_if_absent(KEY, empty_daily_record("user-1", KEY.day))

    assert table.last_options == {"on_conflict": "user_id,day", "ignore_duplicates": True}
    assert isinstance(table.last_payload, dict)
    assert table.last_payload["total_calories"] == 0
    assert table.last_payload["mood"] == "neutral"
    assert record.total_calories == 95
    assert record.mood == "happy"
    assert record.day == KEY.day


def test_create_if_absent_fails_when_row_missing() -> None:
    client = FakeSupabaseClient()
    store = SupabaseLedgerStore(client)

    with pytest.raises(StorageUnavailableError):
        store.create_if_absent(KEY, empty_daily_record("user-1", KEY.day))


def test_increment_calls_server_side_function() -> None:
    client = FakeSupabaseClient()
    store = SupabaseLedgerStore(client)

    store.increment(KEY, {"total_calories": -95.0, "water": 1})

    assert client.rpc_calls == [
        (
            "increment_daily_record",
            {
                "p_user_id": "user-1",
                "p_day": "2024-01-15",
                "p_deltas": {"total_calories": -95.0, "water": 1},
            },
        )
    ]


def test_set_field_updates_single_column() -> None:
    client = FakeSupabaseClient()
    table = client.table("daily_records")
    store = SupabaseLedgerStore(client)

    store.set_field(KEY, "steps", 9500)

    assert isinstance(table.last_payload, dict)
    assert table.last_payload["steps"] == 9500
    assert "updated_at" in table.last_payload
    assert table.last_filters == [("user_id", "user-1"), ("day", "2024-01-15")]


def test_list_records_queries_inclusive_range() -> None:
    client = FakeSupabaseClient()
    table = client.table("daily_records")
    table.queue("select", [_record_row(), _record_row(day="2024-01-16", water=None)])
    store = SupabaseLedgerStore(client)

    records = store.list_records("user-1", date(2024, 1, 10), date(2024, 1, 16))

    assert ("day>=", "2024-01-10") in table.last_filters
    assert ("day<=", "2024-01-16") in table.last_filters
    assert table.last_order == ("day", False)
    assert [record.day for record in records] == [date(2024, 1, 15), date(2024, 1, 16)]
    assert records[1].water == 0


def test_put_child_inserts_and_parses_entry() -> None:
    client = FakeSupabaseClient()
    table = client.table("food_entries")
    table.queue("insert", [_entry_row()])
    store = SupabaseLedgerStore(client)
    draft = FoodEntryDraft(
        name="Apple",
        calories=95,
        protein=0.5,
        carbs=25,
        fat=0.3,
        fiber=0,
        analysis_type=AnalysisType.AI_NAME,
    )

    entry = store.put_child(KEY, draft)

    assert isinstance(table.last_payload, dict)
    assert table.last_payload["analysis_type"] == "ai_name"
    assert table.last_payload["day"] == "2024-01-15"
    assert entry.id == "3f1c2b1e-0000-4000-8000-000000000001"
    assert entry.fiber == 0
    assert entry.analysis_type is AnalysisType.AI_NAME
    assert entry.metadata == {"source": "test"}


def test_get_and_delete_child_are_scoped_to_day() -> None:
    client = FakeSupabaseClient()
    table = client.table("food_entries")
    table.queue("select", [_entry_row()])
    table.queue("delete", [_entry_row()])
    store = SupabaseLedgerStore(client)

    entry = store.get_child(KEY, "entry-1")
    deleted = store.delete_child(KEY, "entry-1")
    deleted_again = store.delete_child(KEY, "entry-1")

    assert entry is not None
    assert deleted is True
    assert deleted_again is False
    assert table.last_filters == [
        ("id", "entry-1"),
        ("user_id", "user-1"),
        ("day", "2024-01-15"),
    ]


def test_list_children_orders_newest_first() -> None:
    client = FakeSupabaseClient()
    table = client.table("food_entries")
    table.queue("select", [_entry_row(name="Rice"), _entry_row(name="Apple")])
    store = SupabaseLedgerStore(client)

    entries = store.list_children(KEY)

    assert table.last_order == ("created_at", True)
    assert [entry.name for entry in entries] == ["Rice", "Apple"]


def test_entry_rows_missing_optional_columns_use_defaults() -> None:
    client = FakeSupabaseClient()
    table = client.table("food_entries")
    table.queue("select", [_entry_row(health_score=None, created_at=None)])
    store = SupabaseLedgerStore(client)

    entry = store.get_child(KEY, "entry-1")

    assert entry is not None
    assert entry.health_score == 5
    assert entry.created_at.tzinfo is not None
    assert entry.created_at.year == 1


def test_transport_errors_become_storage_unavailable() -> None:
    client = FakeSupabaseClient()
    client.table("daily_records").error = httpx.ConnectTimeout("timed out")
    client.rpc_error = httpx.ReadTimeout("timed out")
    store = SupabaseLedgerStore(client)

    with pytest.raises(StorageUnavailableError):
        store.get_record(KEY)
    with pytest.raises(StorageUnavailableError):
        store.increment(KEY, {"total_calories": 1.0})


def test_goals_repository_reads_and_merges() -> None:
    client = FakeSupabaseClient()
    table = client.table("goals")
    table.queue("select", [{"calorie_goal": 1800, "water_goal": 10}])
    repository = SupabaseGoalsRepository(client)

    stored = repository.get_goals("user-1")
    repository.upsert_goals("user-1", {"steps_goal": 12000})

    assert stored == {"calorie_goal": 1800, "water_goal": 10}
    assert isinstance(table.last_payload, dict)
    assert table.last_payload["user_id"] == "user-1"
    assert table.last_payload["steps_goal"] == 12000
    assert "calorie_goal" not in table.last_payload
    assert table.last_options == {"on_conflict": "user_id"}


def test_goals_repository_returns_none_when_absent() -> None:
    repository = SupabaseGoalsRepository(FakeSupabaseClient())

    assert repository.get_goals("user-1") is None
