"""Vendor vocabulary adapter.

Sahha labels comparisons with free-text states ("good", "at_risk", ...) and
free-text metric names. Everything that matches on those strings lives here;
the rest of the insight engine only works with the enums below.
"""

from __future__ import annotations

from enum import Enum


class QualitativeState(str, Enum):
    GOOD = "good"
    OPTIMAL = "optimal"
    NORMAL = "normal"
    CAUTION = "caution"
    WARNING = "warning"
    AT_RISK = "at_risk"
    POOR = "poor"
    CRITICAL = "critical"
    UNKNOWN = "unknown"


class MetricStatus(str, Enum):
    GOOD = "good"
    CAUTION = "caution"
    AT_RISK = "atRisk"


class MetricSlot(str, Enum):
    RESTING_HEART_RATE = "restingHeartRate"
    HEART_RATE_VARIABILITY = "heartRateVariability"
    SLEEP = "sleepQuality"
    ACTIVITY = "activityLevel"
    HEART_RATE_RECOVERY = "heartRateRecovery"


class RecommendationTopic(str, Enum):
    HEART_RATE = "heart_rate"
    SLEEP = "sleep"
    ACTIVITY = "activity"
    GENERAL = "general"


_STATE_LOOKUP = {s.value: s for s in QualitativeState if s is not QualitativeState.UNKNOWN}

_STATUS_BY_STATE: dict[QualitativeState, MetricStatus] = {
    QualitativeState.GOOD: MetricStatus.GOOD,
    QualitativeState.OPTIMAL: MetricStatus.GOOD,
    QualitativeState.NORMAL: MetricStatus.GOOD,
    QualitativeState.CAUTION: MetricStatus.CAUTION,
    QualitativeState.WARNING: MetricStatus.CAUTION,
    QualitativeState.AT_RISK: MetricStatus.AT_RISK,
    QualitativeState.POOR: MetricStatus.AT_RISK,
    QualitativeState.CRITICAL: MetricStatus.AT_RISK,
}

# Buckets used by scoring and return-to-play. "normal" and "critical" only
# affect per-metric status.
READY_STATES = frozenset({QualitativeState.GOOD, QualitativeState.OPTIMAL})
CAUTION_STATES = frozenset({QualitativeState.CAUTION, QualitativeState.WARNING})
AT_RISK_STATES = frozenset({QualitativeState.AT_RISK, QualitativeState.POOR})


def parse_state(raw: str | None) -> QualitativeState:
    """Map a vendor state string to a QualitativeState (case-insensitive)."""
    if not raw:
        return QualitativeState.UNKNOWN
    return _STATE_LOOKUP.get(str(raw).strip().lower(), QualitativeState.UNKNOWN)


def status_for_state(state: QualitativeState) -> MetricStatus:
    """Unrecognised states fail open to GOOD."""
    return _STATUS_BY_STATE.get(state, MetricStatus.GOOD)


def classify_metric(name: str, category: str = "") -> MetricSlot | None:
    """Pick the metric slot a comparison feeds, or None if it feeds none."""
    name = (name or "").lower()
    category = (category or "").lower()

    if "resting" in name and "heart" in name and "rate" in name:
        return MetricSlot.RESTING_HEART_RATE
    if "heart" in name and "variability" in name:
        return MetricSlot.HEART_RATE_VARIABILITY
    if "sleep" in category or "sleep" in name:
        return MetricSlot.SLEEP
    if "activity" in category or "steps" in name or "active" in name:
        return MetricSlot.ACTIVITY
    if "recovery" in name and "heart" in name:
        return MetricSlot.HEART_RATE_RECOVERY
    return None


def is_sleep_duration(name: str) -> bool:
    name = (name or "").lower()
    return "duration" in name or "hours" in name


def is_sleep_quality(name: str) -> bool:
    name = (name or "").lower()
    return "quality" in name or "score" in name


def is_step_count(name: str) -> bool:
    return "steps" in (name or "").lower()


def is_active_minutes(name: str) -> bool:
    name = (name or "").lower()
    return "minutes" in name or "active" in name


def is_score_metric(name: str, category: str = "") -> bool:
    return "score" in (name or "").lower() or "score" in (category or "").lower()


def recommendation_topic(name: str) -> RecommendationTopic:
    name = (name or "").lower()
    if "heart" in name and "rate" in name:
        return RecommendationTopic.HEART_RATE
    if "sleep" in name:
        return RecommendationTopic.SLEEP
    if "activity" in name:
        return RecommendationTopic.ACTIVITY
    return RecommendationTopic.GENERAL
