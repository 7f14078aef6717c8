from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from core.services.insights.health_data import HealthData
from core.services.insights.metrics import HealthMetrics
from core.services.insights.states import MetricStatus


class PlayerStatus(str, Enum):
    HEALTHY = "Healthy"
    INJURED = "Injured"
    SUSPENDED = "Suspended"


@dataclass(frozen=True)
class PlayerIdentity:
    """Roster-owned identity fields for one athlete."""

    id: str
    first_name: str = ""
    last_name: str = ""
    suspended: bool = False

    @property
    def display_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip() or "Unknown Player"


@dataclass(frozen=True)
class PlayerHealthSummary:
    id: str
    name: str
    status: PlayerStatus | str
    health_score: int
    last_sync: str
    health_status: MetricStatus
    health_metrics: HealthMetrics


def status_for_health(health_status: MetricStatus | str | None) -> PlayerStatus:
    """atRisk maps to Injured; everything else, including unknown values, to Healthy."""
    if health_status == MetricStatus.AT_RISK:
        return PlayerStatus.INJURED
    return PlayerStatus.HEALTHY


def build_player_summary(identity: PlayerIdentity, health: HealthData) -> PlayerHealthSummary:
    status = PlayerStatus.SUSPENDED if identity.suspended else status_for_health(health.health_status)
    return PlayerHealthSummary(
        id=str(identity.id),
        name=identity.display_name,
        status=status,
        health_score=health.health_score or 0,
        last_sync=health.last_updated or "Never",
        health_status=health.health_status,
        health_metrics=health.health_metrics,
    )
