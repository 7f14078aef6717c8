"""Per-athlete physiological metric extraction.

Scans an insight bundle's comparisons and fills five metric slots (resting
heart rate, HRV, sleep, activity, heart-rate recovery) with the latest value,
its percentage difference and a good/caution/atRisk status.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field, replace
from typing import Any

from core.services.insights.models import Comparison, InsightBundle
from core.services.insights.states import (
    MetricSlot,
    MetricStatus,
    classify_metric,
    is_active_minutes,
    is_sleep_duration,
    is_sleep_quality,
    is_step_count,
    parse_state,
    status_for_state,
)

_NON_NUMERIC = re.compile(r"[^0-9.\-]")
_LEADING_NUMBER = re.compile(r"-?(\d+\.?\d*|\.\d+)")


@dataclass(frozen=True)
class MetricReading:
    value: int | None = None
    unit: str = ""
    trend: float = 0.0
    status: MetricStatus = MetricStatus.GOOD


@dataclass(frozen=True)
class SleepReading:
    hours: float | None = None
    quality_score: int | None = None
    trend: float = 0.0
    status: MetricStatus = MetricStatus.GOOD


@dataclass(frozen=True)
class ActivityReading:
    steps: int | None = None
    active_minutes: int | None = None
    trend: float = 0.0
    status: MetricStatus = MetricStatus.GOOD


@dataclass(frozen=True)
class HealthMetrics:
    resting_heart_rate: MetricReading = field(default_factory=lambda: MetricReading(unit="bpm"))
    heart_rate_variability: MetricReading = field(default_factory=lambda: MetricReading(unit="ms"))
    sleep_quality: SleepReading = field(default_factory=SleepReading)
    activity_level: ActivityReading = field(default_factory=ActivityReading)
    heart_rate_recovery: MetricReading = field(default_factory=lambda: MetricReading(unit="bpm"))


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives (Math.round semantics)."""
    return int(math.floor(value + 0.5))


def parse_numeric(raw: Any) -> float | None:
    """Parse a vendor value such as "85.5%" or "62 bpm"; None when unparsable."""
    if raw is None:
        return None
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return float(raw) if math.isfinite(raw) else None
    cleaned = _NON_NUMERIC.sub("", str(raw))
    match = _LEADING_NUMBER.match(cleaned)
    if not match:
        return None
    try:
        return float(match.group(0))
    except ValueError:
        return None


def parse_percentage(raw: Any) -> float:
    value = parse_numeric(raw)
    return value if value is not None else 0.0


_SLOT_FIELDS = {
    MetricSlot.RESTING_HEART_RATE: "resting_heart_rate",
    MetricSlot.HEART_RATE_VARIABILITY: "heart_rate_variability",
    MetricSlot.SLEEP: "sleep_quality",
    MetricSlot.ACTIVITY: "activity_level",
    MetricSlot.HEART_RATE_RECOVERY: "heart_rate_recovery",
}


def _apply(slots: dict[str, Any], slot: MetricSlot, comparison: Comparison, value: float) -> None:
    attr = _SLOT_FIELDS[slot]
    current = slots[attr]
    common = {
        "trend": parse_percentage(comparison.percentage_difference),
        "status": status_for_state(parse_state(comparison.state)),
    }

    if slot is MetricSlot.SLEEP:
        if is_sleep_duration(comparison.name):
            common["hours"] = round(value, 1)
        elif is_sleep_quality(comparison.name):
            common["quality_score"] = round_half_up(value)
    elif slot is MetricSlot.ACTIVITY:
        if is_step_count(comparison.name):
            common["steps"] = round_half_up(value)
        elif is_active_minutes(comparison.name):
            common["active_minutes"] = round_half_up(value)
    else:
        common["value"] = round_half_up(value)

    slots[attr] = replace(current, **common)


def extract_health_metrics(bundle: InsightBundle) -> HealthMetrics:
    """Fill the five metric slots from the bundle's comparisons.

    Later comparisons overwrite earlier ones mapped to the same slot.
    Comparisons with unparsable values or unrecognised names are skipped.
    """
    defaults = HealthMetrics()
    slots: dict[str, Any] = {attr: getattr(defaults, attr) for attr in _SLOT_FIELDS.values()}

    for comparison in bundle.comparisons:
        value = parse_numeric(comparison.value)
        if value is None:
            continue
        slot = classify_metric(comparison.name, comparison.category)
        if slot is None:
            continue
        _apply(slots, slot, comparison, value)

    return HealthMetrics(**slots)
