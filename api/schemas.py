from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from core.services.insights.return_to_play import ReturnToPlay
from core.services.insights.states import MetricStatus
from core.services.insights.summary import PlayerStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


# ── Raw bundle (audit copy) ──────────────────────────────────────────────

class TrendPointOut(CamelModel):
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    value: float
    percent_change_from_previous: float


class TrendOut(CamelModel):
    category: str
    name: str
    state: str
    is_higher_better: bool
    value_range: float
    unit: str
    window_start: Optional[datetime] = None
    window_end: Optional[datetime] = None
    points: list[TrendPointOut] = Field(default_factory=list)


class ComparisonPointOut(CamelModel):
    type: str
    value: str


class ComparisonOut(CamelModel):
    category: str
    name: str
    value: str
    unit: str
    is_higher_better: bool
    window_start: Optional[datetime] = None
    window_end: Optional[datetime] = None
    percentile: Optional[float] = None
    difference: str
    percentage_difference: str
    state: str
    properties: dict[str, Any] = Field(default_factory=dict)
    points: list[ComparisonPointOut] = Field(default_factory=list)


# ── Metrics ──────────────────────────────────────────────────────────────

class MetricReadingOut(CamelModel):
    value: Optional[int] = None
    unit: str
    trend: float
    status: MetricStatus


class SleepReadingOut(CamelModel):
    hours: Optional[float] = None
    quality_score: Optional[int] = None
    trend: float
    status: MetricStatus


class ActivityReadingOut(CamelModel):
    steps: Optional[int] = None
    active_minutes: Optional[int] = None
    trend: float
    status: MetricStatus


class HealthMetricsOut(CamelModel):
    resting_heart_rate: MetricReadingOut
    heart_rate_variability: MetricReadingOut
    sleep_quality: SleepReadingOut
    activity_level: ActivityReadingOut
    heart_rate_recovery: MetricReadingOut


class AlertOut(CamelModel):
    id: int
    type: str
    message: str
    recommendation: str


class ReturnToPlayOut(CamelModel):
    status: ReturnToPlay
    message: str
    details: str


class HealthDataOut(CamelModel):
    health_score: int
    health_score_trend: float
    recovery_days_estimate: int
    last_updated: str
    health_status: MetricStatus
    health_metrics: HealthMetricsOut
    alerts: list[AlertOut]
    return_to_play_status: ReturnToPlayOut
    raw_trend_data: list[TrendOut] = Field(default_factory=list)
    raw_comparison_data: list[ComparisonOut] = Field(default_factory=list)

    @classmethod
    def from_health_data(cls, health) -> "HealthDataOut":
        out = cls.model_validate(health, from_attributes=True)
        out.raw_trend_data = [TrendOut.model_validate(t) for t in health.raw_bundle.trends]
        out.raw_comparison_data = [ComparisonOut.model_validate(c) for c in health.raw_bundle.comparisons]
        return out


# ── Roster ───────────────────────────────────────────────────────────────

class PlayerHealthSummaryOut(CamelModel):
    id: str
    name: str
    status: PlayerStatus
    health_score: int
    last_sync: str
    health_status: MetricStatus
    health_metrics: HealthMetricsOut


class MetricBarOut(CamelModel):
    value: int
    label: str
    metric_name: str


class StatusDistributionOut(CamelModel):
    healthy: int
    injured: int
    suspended: int


class TeamStatisticsOut(CamelModel):
    total_athletes: int
    avg_performance: int
    at_risk_count: int
    team_average: int
    previous_average: Optional[int] = None
    average_change: int
    bar_chart_data: list[MetricBarOut]
    status_distribution: StatusDistributionOut


class RosterHealthOut(CamelModel):
    players: list[PlayerHealthSummaryOut]
    team_statistics: TeamStatisticsOut


# ── Requests / misc ──────────────────────────────────────────────────────

class SahhaProfileIn(CamelModel):
    age: Optional[int] = Field(default=None, ge=0, le=120)
    sex_at_birth: Optional[str] = None
    weight_lb: Optional[float] = Field(default=None, gt=0)
    height_in: Optional[float] = Field(default=None, gt=0)


class SahhaProfileOut(CamelModel):
    player_id: int
    sahha_profile_id: str
    trends: int
    comparisons: int


class ScoresOut(CamelModel):
    player_id: int
    sahha_profile_id: str
    scores: list[dict[str, Any]]


class SyncResultOut(CamelModel):
    player_id: int
    refreshed: bool
    synced_at: Optional[datetime] = None
    trends: int
    comparisons: int
    error: Optional[str] = None


class WebhookAck(CamelModel):
    success: bool
    message: str
    sahha_profile_id: Optional[str] = None
    player_updated: bool = False


class SimpleStatusResponse(BaseModel):
    status: str
