from __future__ import annotations

from dataclasses import dataclass

from core.services.insights.models import Comparison, InsightBundle
from core.services.insights.states import (
    QualitativeState,
    RecommendationTopic,
    parse_state,
    recommendation_topic,
)

_RECOMMENDATIONS: dict[RecommendationTopic, str] = {
    RecommendationTopic.SLEEP: "Maintain consistent sleep schedule and aim for 7-9 hours",
    RecommendationTopic.ACTIVITY: "Gradually increase activity level based on recovery status",
    RecommendationTopic.GENERAL: "Continue monitoring and follow your recovery plan",
}
HEART_RATE_AT_RISK = "Consider reducing activity intensity and consult with a healthcare provider"
HEART_RATE_MONITOR = "Monitor closely and adjust activity as needed"


@dataclass(frozen=True)
class Alert:
    id: int
    type: str  # "warning" | "info"
    message: str
    recommendation: str


def recommendation_for(comparison: Comparison) -> str:
    topic = recommendation_topic(comparison.name)
    if topic is RecommendationTopic.HEART_RATE:
        if parse_state(comparison.state) is QualitativeState.AT_RISK:
            return HEART_RATE_AT_RISK
        return HEART_RATE_MONITOR
    return _RECOMMENDATIONS[topic]


def generate_alerts(bundle: InsightBundle) -> list[Alert]:
    """One alert per at_risk (warning) or warning (info) comparison."""
    alerts: list[Alert] = []
    for comparison in bundle.comparisons:
        state = parse_state(comparison.state)
        if state is QualitativeState.AT_RISK:
            alert_type, phrase = "warning", "is concerning"
        elif state is QualitativeState.WARNING:
            alert_type, phrase = "info", "needs attention"
        else:
            continue
        alerts.append(
            Alert(
                id=len(alerts) + 1,
                type=alert_type,
                message=f"{comparison.name} {phrase}".strip(),
                recommendation=recommendation_for(comparison),
            )
        )
    return alerts
