"""Lenient normalization of incoming nutrient payloads."""

import logging
import math
import re
from collections.abc import Mapping

from nutrition_ledger.domain.ledger import (
    DEFAULT_HEALTH_SCORE,
    DEFAULT_SERVING_SIZE,
    NUTRIENT_TOTALS,
    AnalysisType,
    FoodEntry,
    FoodEntryDraft,
)

logger = logging.getLogger(__name__)

MAX_HEALTH_SCORE = 10.0
DEFAULT_ENTRY_NAME = "Food item"

_NUMERIC_PREFIX = re.compile(r"^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def to_non_negative_float(value: object, default: float = 0.0) -> float:
    """Coerce a value to a finite, non-negative float or return the default.

    Numeric strings are accepted, including ones with a trailing unit such as
    ``"95 kcal"``. Booleans, negatives and non-finite numbers fall back.
    """
    number: float | None = None
    if isinstance(value, bool):
        number = None
    elif isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        match = _NUMERIC_PREFIX.match(value)
        if match:
            number = float(match.group(0))
    if number is None or not math.isfinite(number) or number < 0:
        if value is not None:
            logger.debug("Replaced invalid numeric value %r with %s", value, default)
        return default
    return number


def coerce_entry_payload(payload: Mapping[str, object]) -> FoodEntryDraft:
    """Normalize a raw entry payload. Never rejects input."""
    name = payload.get("name")
    analysis_raw = payload.get("analysis_type")
    try:
        analysis_type = AnalysisType(str(analysis_raw))
    except ValueError:
        analysis_type = AnalysisType.MANUAL
    metadata = payload.get("metadata")
    image = payload.get("image")
    health_score = min(
        to_non_negative_float(payload.get("health_score"), DEFAULT_HEALTH_SCORE),
        MAX_HEALTH_SCORE,
    )
    return FoodEntryDraft(
        name=(str(name).strip() if name else "") or DEFAULT_ENTRY_NAME,
        calories=to_non_negative_float(payload.get("calories")),
        protein=to_non_negative_float(payload.get("protein")),
        carbs=to_non_negative_float(payload.get("carbs")),
        fat=to_non_negative_float(payload.get("fat")),
        fiber=to_non_negative_float(payload.get("fiber")),
        serving_size=str(payload.get("serving_size") or DEFAULT_SERVING_SIZE),
        analysis_type=analysis_type,
        health_score=health_score,
        recommendations=str(payload.get("recommendations") or ""),
        image=str(image) if image else None,
        metadata=dict(metadata) if isinstance(metadata, Mapping) else {},
    )


def nutrient_deltas(
    entry: FoodEntry | FoodEntryDraft, sign: float = 1.0
) -> dict[str, float]:
    """Return signed daily-total increments for an entry.

    Values are passed through the same coercion used at creation so that a
    removal always reverses exactly what the addition applied.
    """
    return {
        total_field: sign * to_non_negative_float(getattr(entry, nutrient, None))
        for nutrient, total_field in NUTRIENT_TOTALS.items()
    }
