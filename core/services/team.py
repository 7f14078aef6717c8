"""Coach-facing team statistics.

Aggregates per-athlete health summaries into roster-wide counts, average
performance and a seven-metric bar chart normalised to 0-100.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable

from core.services.insights.metrics import round_half_up
from core.services.insights.summary import PlayerHealthSummary, PlayerStatus

AT_RISK_SCORE_BELOW = 60


@dataclass(frozen=True)
class MetricBar:
    value: int
    label: str
    metric_name: str


@dataclass(frozen=True)
class StatusDistribution:
    healthy: int = 0
    injured: int = 0
    suspended: int = 0


@dataclass(frozen=True)
class TeamStatistics:
    total_athletes: int = 0
    avg_performance: int = 0
    at_risk_count: int = 0
    team_average: int = 0
    previous_average: int | None = None
    average_change: int = 0
    bar_chart_data: list[MetricBar] = field(default_factory=list)
    status_distribution: StatusDistribution = field(default_factory=StatusDistribution)


def _clamp(value: float) -> float:
    return max(0.0, min(100.0, value))


# ── Per-metric normalisers (0-100 scale) ───────────────────────────

def normalize_resting_heart_rate(bpm: float) -> float:
    """40 bpm → 100, 100 bpm → 0 (lower is better)."""
    return _clamp((100 - bpm) / 60 * 100)


def normalize_hrv(ms: float) -> float:
    """20 ms → 0, 100 ms → 100."""
    return _clamp((ms - 20) / 80 * 100)


def normalize_hr_recovery(bpm: float) -> float:
    """10 bpm → 0, 50 bpm → 100."""
    return _clamp((bpm - 10) / 40 * 100)


def normalize_sleep_quality(score: float) -> float:
    """Already a 0-100 score; used as reported."""
    return float(score)


def normalize_sleep_duration(hours: float) -> float:
    """Ramp 4→7h, flat 100 for 7-9h, minus 20 per hour beyond 9h."""
    if 7 <= hours <= 9:
        normalized = 100.0
    elif hours < 7:
        normalized = (hours - 4) / 3 * 100
    else:
        normalized = 100 - (hours - 9) * 20
    return _clamp(normalized)


def normalize_steps(steps: float) -> float:
    """0 → 0, 10000+ → 100."""
    return _clamp(steps / 10000 * 100)


# (label, display name, value getter, normaliser)
_BARS: list[tuple[str, str, Callable[[PlayerHealthSummary], float | None], Callable[[float], float]]] = [
    ("M1", "Resting\nHeart Rate", lambda p: p.health_metrics.resting_heart_rate.value, normalize_resting_heart_rate),
    ("M2", "Heart Rate\nVariability", lambda p: p.health_metrics.heart_rate_variability.value, normalize_hrv),
    ("M3", "Heart Rate\nRecovery", lambda p: p.health_metrics.heart_rate_recovery.value, normalize_hr_recovery),
    ("M4", "Sleep\nQuality", lambda p: p.health_metrics.sleep_quality.quality_score, normalize_sleep_quality),
    ("M5", "Sleep\nDuration", lambda p: p.health_metrics.sleep_quality.hours, normalize_sleep_duration),
    ("M6", "Activity\nLevel", lambda p: p.health_metrics.activity_level.steps, normalize_steps),
    ("M7", "Overall\nRecovery", lambda p: p.health_score or 0, float),
]


def _mean_or_zero(values: list[float]) -> int:
    if not values:
        return 0
    return round_half_up(sum(values) / len(values))


def build_bar_chart(players: Iterable[PlayerHealthSummary]) -> list[MetricBar]:
    """Average each normalised metric over the athletes that reported it."""
    players = list(players)
    bars = []
    for label, metric_name, getter, normalize in _BARS:
        contributions = []
        for player in players:
            raw = getter(player)
            if raw is not None:
                contributions.append(normalize(raw))
        bars.append(MetricBar(value=_mean_or_zero(contributions), label=label, metric_name=metric_name))
    return bars


def tally_statuses(players: Iterable[PlayerHealthSummary]) -> StatusDistribution:
    counts = {PlayerStatus.HEALTHY: 0, PlayerStatus.INJURED: 0, PlayerStatus.SUSPENDED: 0}
    for player in players:
        try:
            status = PlayerStatus(player.status)
        except ValueError:
            status = PlayerStatus.HEALTHY
        counts[status] += 1
    return StatusDistribution(
        healthy=counts[PlayerStatus.HEALTHY],
        injured=counts[PlayerStatus.INJURED],
        suspended=counts[PlayerStatus.SUSPENDED],
    )


def compute_team_statistics(players: Iterable[PlayerHealthSummary]) -> TeamStatistics:
    """Roster-wide statistics. An empty roster yields all-zero statistics."""
    players = list(players)
    if not players:
        return TeamStatistics()

    scores = [p.health_score or 0 for p in players]
    avg_performance = _mean_or_zero(scores)
    bars = build_bar_chart(players)

    non_zero = [bar.value for bar in bars if bar.value > 0]
    team_average = _mean_or_zero(non_zero) if non_zero else avg_performance

    return TeamStatistics(
        total_athletes=len(players),
        avg_performance=avg_performance,
        at_risk_count=sum(1 for s in scores if s < AT_RISK_SCORE_BELOW),
        team_average=team_average,
        # No historical snapshot is kept, so there is nothing to compare against.
        previous_average=None,
        average_change=0,
        bar_chart_data=bars,
        status_distribution=tally_statuses(players),
    )
