"""Overall 0-100 health score for one athlete."""

from __future__ import annotations

from dataclasses import dataclass

from core.services.insights.metrics import parse_numeric, round_half_up
from core.services.insights.models import Comparison, InsightBundle, Trend
from core.services.insights.states import (
    AT_RISK_STATES,
    CAUTION_STATES,
    READY_STATES,
    is_score_metric,
    parse_state,
)

# Representative contribution for comparisons without a percentile:
# the midpoint of each state's band (80-95, 60-75, 30-50).
GOOD_BAND_SCORE = 87
CAUTION_BAND_SCORE = 67
AT_RISK_BAND_SCORE = 40
NEUTRAL_SCORE = 50


@dataclass(frozen=True)
class HealthScore:
    health_score: int
    health_score_trend: float


def comparison_contribution(comparison: Comparison) -> float:
    """Normalised 0-100 contribution of one comparison."""
    if comparison.percentile is not None:
        return float(comparison.percentile)
    state = parse_state(comparison.state)
    if state in READY_STATES:
        return GOOD_BAND_SCORE
    if state in CAUTION_STATES:
        return CAUTION_BAND_SCORE
    if state in AT_RISK_STATES:
        return AT_RISK_BAND_SCORE
    return NEUTRAL_SCORE


def latest_percent_change(trend: Trend) -> float:
    """Period-over-period change of the newest point; 0 with fewer than two points."""
    if len(trend.points) < 2:
        return 0.0
    dated = [p for p in trend.points if p.timestamp is not None]
    if dated:
        latest = max(dated, key=lambda p: p.timestamp)
    else:
        latest = trend.points[-1]
    return float(latest.percent_change_from_previous or 0.0)


def score_trend(bundle: InsightBundle) -> float:
    for trend in bundle.trends:
        if is_score_metric(trend.name, trend.category):
            return latest_percent_change(trend)
    return 0.0


def calculate_health_score(bundle: InsightBundle) -> HealthScore:
    """Average per-comparison contributions into one clamped integer score."""
    contributions = [
        comparison_contribution(c)
        for c in bundle.comparisons
        if parse_numeric(c.value) is not None
    ]
    score = 0
    if contributions:
        score = round_half_up(sum(contributions) / len(contributions))
    score = max(0, min(100, score))
    return HealthScore(health_score=score, health_score_trend=score_trend(bundle))
