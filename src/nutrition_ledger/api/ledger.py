"""Ledger API endpoints with service token auth."""

from __future__ import annotations

from dataclasses import asdict
from datetime import date  # noqa: TC003
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response, status

from nutrition_ledger.api.models import (  # noqa: TC001
    CaloriesUpdate,
    FoodEntryCreate,
    GoalsUpdate,
    MoodUpdate,
    SleepUpdate,
    StepsUpdate,
    WaterUpdate,
)
from nutrition_ledger.services.rollup import local_today

if TYPE_CHECKING:
    from nutrition_ledger.containers import AppContainer
    from nutrition_ledger.domain.goals import Goals
    from nutrition_ledger.domain.ledger import DailyRecord, FoodEntry
    from nutrition_ledger.services.rollup import PeriodSummary

router = APIRouter(prefix="/users/{user_id}", tags=["ledger"])


def _get_service_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.service_token


async def require_service_token(
    x_service_token: str | None = Header(default=None),
    service_token: str = Depends(_get_service_token),
) -> None:
    """Ensure requests come from the authenticated gateway."""
    if not x_service_token or x_service_token != service_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


def _container(request: Request) -> AppContainer:
    return request.app.state.container


@router.get("/days/{day}", dependencies=[Depends(require_service_token)])
def daily_record(user_id: str, day: date, request: Request) -> dict[str, object]:
    """Return the day's record, creating it when absent."""
    record = _container(request).ledger_service.get_or_create_daily_record(
        user_id, day
    )
    return _serialize_record(record)


@router.get("/days/{day}/detail", dependencies=[Depends(require_service_token)])
def day_detail(user_id: str, day: date, request: Request) -> dict[str, object]:
    """Return the stored record and entries for a day."""
    detail = _container(request).ledger_service.get_day(user_id, day)
    if detail is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return {
        "record": _serialize_record(detail.record),
        "entries": [_serialize_entry(entry) for entry in detail.entries],
    }


@router.get("/days/{day}/entries", dependencies=[Depends(require_service_token)])
def list_entries(user_id: str, day: date, request: Request) -> dict[str, object]:
    """Return the day's entries, most recent first."""
    entries = _container(request).ledger_service.list_entries(user_id, day)
    return {"entries": [_serialize_entry(entry) for entry in entries]}


@router.post(
    "/days/{day}/entries",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_service_token)],
)
def add_entry(
    user_id: str, day: date, body: FoodEntryCreate, request: Request
) -> dict[str, object]:
    """Record a food entry."""
    entry = _container(request).ledger_service.add_entry(
        user_id, day, body.model_dump(exclude_none=True)
    )
    return _serialize_entry(entry)


@router.delete(
    "/days/{day}/entries/{entry_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_service_token)],
)
def remove_entry(user_id: str, day: date, entry_id: str, request: Request) -> Response:
    """Remove a food entry."""
    _container(request).ledger_service.remove_entry(user_id, day, entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/days/{day}/water", dependencies=[Depends(require_service_token)])
def add_water(
    user_id: str, day: date, body: WaterUpdate, request: Request
) -> dict[str, object]:
    """Add glasses of water."""
    service = _container(request).ledger_service
    service.set_water_intake(user_id, day, body.glasses)
    return _serialize_record(service.get_or_create_daily_record(user_id, day))


@router.put("/days/{day}/steps", dependencies=[Depends(require_service_token)])
def set_steps(
    user_id: str, day: date, body: StepsUpdate, request: Request
) -> dict[str, object]:
    """Set the day's step count."""
    service = _container(request).ledger_service
    service.set_steps(user_id, day, body.steps)
    return _serialize_record(service.get_or_create_daily_record(user_id, day))


@router.put("/days/{day}/sleep", dependencies=[Depends(require_service_token)])
def set_sleep(
    user_id: str, day: date, body: SleepUpdate, request: Request
) -> dict[str, object]:
    """Set the day's sleep hours."""
    service = _container(request).ledger_service
    service.set_sleep_hours(user_id, day, body.hours)
    return _serialize_record(service.get_or_create_daily_record(user_id, day))


@router.put("/days/{day}/mood", dependencies=[Depends(require_service_token)])
def set_mood(
    user_id: str, day: date, body: MoodUpdate, request: Request
) -> dict[str, object]:
    """Set the day's mood."""
    service = _container(request).ledger_service
    service.set_mood(user_id, day, body.mood)
    return _serialize_record(service.get_or_create_daily_record(user_id, day))


@router.put("/days/{day}/calories", dependencies=[Depends(require_service_token)])
def override_calories(
    user_id: str, day: date, body: CaloriesUpdate, request: Request
) -> dict[str, object]:
    """Replace the day's calorie total."""
    service = _container(request).ledger_service
    service.set_calories_override(user_id, day, body.calories)
    return _serialize_record(service.get_or_create_daily_record(user_id, day))


@router.post("/days/{day}/reconcile", dependencies=[Depends(require_service_token)])
def reconcile_day(user_id: str, day: date, request: Request) -> dict[str, object]:
    """Recompute the day's totals from its entries."""
    result = _container(request).ledger_service.reconcile_day(user_id, day)
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return {
        "record": _serialize_record(result.record),
        "drift": result.drift,
        "repaired": result.repaired,
    }


@router.get("/today", dependencies=[Depends(require_service_token)])
def today(user_id: str, request: Request, timezone: str = "UTC") -> dict[str, object]:
    """Return today's record in the caller's timezone."""
    record = _container(request).ledger_service.get_or_create_daily_record(
        user_id, local_today(timezone)
    )
    return _serialize_record(record)


@router.get("/range", dependencies=[Depends(require_service_token)])
def date_range(
    user_id: str, start: date, end: date, request: Request
) -> dict[str, object]:
    """Return one record per day in the inclusive range."""
    records = _container(request).rollup_service.get_range(user_id, start, end)
    return {"days": [_serialize_record(record) for record in records]}


@router.get("/week", dependencies=[Depends(require_service_token)])
def week(user_id: str, ending: date, request: Request) -> dict[str, object]:
    """Return the seven days ending on the given date with averages."""
    summary = _container(request).rollup_service.get_week_summary(user_id, ending)
    return _serialize_summary(summary)


@router.get("/month", dependencies=[Depends(require_service_token)])
def month(user_id: str, ending: date, request: Request) -> dict[str, object]:
    """Return the thirty days ending on the given date with averages."""
    summary = _container(request).rollup_service.get_month_summary(user_id, ending)
    return _serialize_summary(summary)


@router.get("/goals", dependencies=[Depends(require_service_token)])
def get_goals(user_id: str, request: Request) -> dict[str, object]:
    """Return the user's goals."""
    return _serialize_goals(_container(request).goals_service.get_goals(user_id))


@router.patch("/goals", dependencies=[Depends(require_service_token)])
def update_goals(
    user_id: str, body: GoalsUpdate, request: Request
) -> dict[str, object]:
    """Merge the supplied goal fields."""
    try:
        goals = _container(request).goals_service.upsert_goals(
            user_id, body.model_dump(exclude_none=True)
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    return _serialize_goals(goals)


def _serialize_record(record: DailyRecord) -> dict[str, object]:
    return {
        "user_id": record.user_id,
        "date": record.day.isoformat(),
        "total_calories": record.total_calories,
        "total_protein": record.total_protein,
        "total_carbs": record.total_carbs,
        "total_fat": record.total_fat,
        "total_fiber": record.total_fiber,
        "water": record.water,
        "steps": record.steps,
        "sleep": record.sleep,
        "mood": record.mood,
        "updated_at": record.updated_at.isoformat() if record.updated_at else None,
    }


def _serialize_entry(entry: FoodEntry) -> dict[str, object]:
    return {
        "id": entry.id,
        "user_id": entry.user_id,
        "date": entry.day.isoformat(),
        "created_at": entry.created_at.isoformat(),
        "name": entry.name,
        "calories": entry.calories,
        "protein": entry.protein,
        "carbs": entry.carbs,
        "fat": entry.fat,
        "fiber": entry.fiber,
        "serving_size": entry.serving_size,
        "analysis_type": entry.analysis_type.value,
        "health_score": entry.health_score,
        "recommendations": entry.recommendations,
        "image": entry.image,
        "metadata": entry.metadata,
    }


def _serialize_goals(goals: Goals) -> dict[str, object]:
    return asdict(goals)


def _serialize_summary(summary: PeriodSummary) -> dict[str, object]:
    return {
        "days": [_serialize_record(record) for record in summary.daily],
        "goals": _serialize_goals(summary.goals),
        "averages": {
            "calories": summary.avg_calories,
            "protein": summary.avg_protein,
            "carbs": summary.avg_carbs,
            "fat": summary.avg_fat,
            "fiber": summary.avg_fiber,
            "water": summary.avg_water,
            "steps": summary.avg_steps,
            "sleep": summary.avg_sleep,
        },
    }
