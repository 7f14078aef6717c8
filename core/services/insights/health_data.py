"""Compose the single-athlete health view.

``build_health_data`` runs the whole insight pipeline (metrics, score,
alerts, return-to-play) over one bundle and returns the read-only
``HealthData`` record served to the athlete dashboard.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from core.services.insights.alerts import Alert, generate_alerts
from core.services.insights.metrics import HealthMetrics, extract_health_metrics
from core.services.insights.models import InsightBundle
from core.services.insights.return_to_play import ReturnToPlay, ReturnToPlayStatus, classify_return_to_play
from core.services.insights.scoring import calculate_health_score
from core.services.insights.states import MetricStatus

GOOD_SCORE_MIN = 80
CAUTION_SCORE_MIN = 60

RECOVERY_DAYS: dict[ReturnToPlay, int] = {
    ReturnToPlay.READY: 0,
    ReturnToPlay.CAUTION: 5,
    ReturnToPlay.NOT_READY: 7,
}


@dataclass(frozen=True)
class HealthData:
    health_score: int
    health_score_trend: float
    recovery_days_estimate: int
    last_updated: str
    health_status: MetricStatus
    health_metrics: HealthMetrics
    alerts: list[Alert]
    return_to_play_status: ReturnToPlayStatus
    raw_bundle: InsightBundle = field(default_factory=InsightBundle)


def health_status_for_score(score: int) -> MetricStatus:
    if score >= GOOD_SCORE_MIN:
        return MetricStatus.GOOD
    if score >= CAUTION_SCORE_MIN:
        return MetricStatus.CAUTION
    return MetricStatus.AT_RISK


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'' if count == 1 else 's'} ago"


def format_time_ago(moment: datetime | None, now: datetime | None = None) -> str:
    """Render a timestamp relative to ``now`` ("5 minutes ago", "Oct 3, 2026")."""
    if moment is None:
        return "Unknown"
    now = now or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    minutes = int((now - moment).total_seconds() // 60)
    hours = minutes // 60
    days = hours // 24

    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return _plural(minutes, "minute")
    if hours < 24:
        return _plural(hours, "hour")
    if days < 7:
        return _plural(days, "day")
    return f"{moment:%b} {moment.day}, {moment.year}"


def latest_point_time(bundle: InsightBundle) -> datetime | None:
    stamps = [p.timestamp for t in bundle.trends for p in t.points if p.timestamp is not None]
    return max(stamps) if stamps else None


def last_updated_label(bundle: InsightBundle, now: datetime | None = None) -> str:
    latest = latest_point_time(bundle)
    if latest is None:
        return "Never"
    return format_time_ago(latest, now)


def build_health_data(bundle: InsightBundle | None, now: datetime | None = None) -> HealthData:
    """Run the insight pipeline over one athlete's bundle.

    A missing or empty bundle is not an error: it yields a zero score,
    caution status and no recovery estimate.
    """
    bundle = bundle or InsightBundle()
    score = calculate_health_score(bundle)
    return_to_play = classify_return_to_play(bundle)

    if bundle.comparisons:
        status = health_status_for_score(score.health_score)
        recovery_days = RECOVERY_DAYS[return_to_play.status]
    else:
        status = MetricStatus.CAUTION
        recovery_days = 0

    return HealthData(
        health_score=score.health_score,
        health_score_trend=score.health_score_trend,
        recovery_days_estimate=recovery_days,
        last_updated=last_updated_label(bundle, now),
        health_status=status,
        health_metrics=extract_health_metrics(bundle),
        alerts=generate_alerts(bundle),
        return_to_play_status=return_to_play,
        raw_bundle=bundle,
    )
