"""Multi-day rollups over daily records."""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from nutrition_ledger.domain.errors import InvalidRangeError, InvalidTimezoneError
from nutrition_ledger.domain.goals import Goals
from nutrition_ledger.domain.ledger import DailyRecord, empty_daily_record
from nutrition_ledger.services.goals import GoalsService
from nutrition_ledger.services.ledger import DailyRecordReader

WEEK_DAYS = 7
MONTH_DAYS = 30


@dataclass
class PeriodSummary:
    """Daily records for a period with per-day averages."""

    daily: list[DailyRecord]
    goals: Goals
    avg_calories: float
    avg_protein: float
    avg_carbs: float
    avg_fat: float
    avg_fiber: float
    avg_water: float
    avg_steps: float
    avg_sleep: float


@dataclass
class RollupService:
    """Read-only reporting over stored daily records."""

    records: DailyRecordReader
    goals_service: GoalsService
    max_range_days: int = 366

    def get_range(self, user_id: str, start: date, end: date) -> list[DailyRecord]:
        """Return one record per day in the inclusive range, ascending.

        Days without a stored record are filled with zeroed records.
        """
        self._validate_range(start, end)
        stored = {
            record.day: record
            for record in self.records.list_records(user_id, start, end)
        }
        days = (end - start).days + 1
        result = []
        for offset in range(days):
            day = start + timedelta(days=offset)
            result.append(stored.get(day) or empty_daily_record(user_id, day))
        return result

    def get_week(self, user_id: str, ending: date) -> list[DailyRecord]:
        """Return the seven days ending on the given date."""
        return self.get_range(user_id, ending - timedelta(days=WEEK_DAYS - 1), ending)

    def summarize(self, user_id: str, start: date, end: date) -> PeriodSummary:
        """Return range records, averages and the user's goals."""
        return _summarize(
            self.get_range(user_id, start, end), self.goals_service.get_goals(user_id)
        )

    def get_week_summary(self, user_id: str, ending: date) -> PeriodSummary:
        """Return the summary for the seven days ending on the given date."""
        return self.summarize(user_id, ending - timedelta(days=WEEK_DAYS - 1), ending)

    def get_month_summary(self, user_id: str, ending: date) -> PeriodSummary:
        """Return the summary for the thirty days ending on the given date."""
        return self.summarize(user_id, ending - timedelta(days=MONTH_DAYS - 1), ending)

    def _validate_range(self, start: date, end: date) -> None:
        if end < start:
            raise InvalidRangeError(start, end, "end is before start")
        if (end - start).days + 1 > self.max_range_days:
            raise InvalidRangeError(
                start, end, f"longer than {self.max_range_days} days"
            )


def local_today(timezone_name: str) -> date:
    """Return today's date in the given IANA timezone."""
    try:
        zone = ZoneInfo(timezone_name)
    except (ValueError, KeyError, OSError) as exc:
        # Directory names such as "America" surface as IsADirectoryError.
        raise InvalidTimezoneError(timezone_name) from exc
    return datetime.now(tz=zone).date()


def _summarize(daily: list[DailyRecord], goals: Goals) -> PeriodSummary:
    total_days = max(len(daily), 1)

    def average(field: str) -> float:
        return sum(float(getattr(record, field)) for record in daily) / total_days

    return PeriodSummary(
        daily=daily,
        goals=goals,
        avg_calories=average("total_calories"),
        avg_protein=average("total_protein"),
        avg_carbs=average("total_carbs"),
        avg_fat=average("total_fat"),
        avg_fiber=average("total_fiber"),
        avg_water=average("water"),
        avg_steps=average("steps"),
        avg_sleep=average("sleep"),
    )
