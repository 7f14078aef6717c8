"""Insight bundle data model.

A bundle is what the Sahha provider returns for one profile: a list of
trends (a metric sampled over successive windows) and a list of comparisons
(a metric's standing against a baseline). Both lists may be empty.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class TrendPoint:
    """One sampling window of a trend."""

    start_time: datetime | None
    end_time: datetime | None
    value: float = 0.0
    percent_change_from_previous: float = 0.0

    @property
    def timestamp(self) -> datetime | None:
        """Start of the window (end as fallback), always UTC-aware."""
        moment = self.start_time or self.end_time
        if moment is not None and moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return moment


@dataclass(frozen=True)
class Trend:
    category: str = ""
    name: str = ""
    state: str = ""
    is_higher_better: bool = True
    value_range: float = 0.0
    unit: str = ""
    window_start: datetime | None = None
    window_end: datetime | None = None
    points: tuple[TrendPoint, ...] = ()


@dataclass(frozen=True)
class ComparisonPoint:
    type: str = ""
    value: str = ""


@dataclass(frozen=True)
class Comparison:
    category: str = ""
    name: str = ""
    value: str = ""
    unit: str = ""
    is_higher_better: bool = True
    window_start: datetime | None = None
    window_end: datetime | None = None
    percentile: float | None = None
    difference: str = ""
    percentage_difference: str = ""
    state: str = ""
    properties: dict[str, Any] = field(default_factory=dict)
    points: tuple[ComparisonPoint, ...] = ()


@dataclass(frozen=True)
class InsightBundle:
    trends: tuple[Trend, ...] = ()
    comparisons: tuple[Comparison, ...] = ()
