"""Coach roster health view.

Refreshes stale roster bundles, runs the insight pipeline for every athlete
and aggregates the results into team statistics.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from core.services.insights.health_data import HealthData, build_health_data
from core.services.insights.summary import PlayerHealthSummary, PlayerIdentity, build_player_summary
from core.services.team import TeamStatistics, compute_team_statistics
from core.services.wearables.sync import (
    DEFAULT_MAX_AGE,
    DEFAULT_MAX_WORKERS,
    InsightSource,
    RefreshOutcome,
    RosterEntry,
    refresh_roster,
)


@dataclass(frozen=True)
class RosterHealthView:
    players: list[PlayerHealthSummary]
    team_statistics: TeamStatistics
    refresh_outcomes: list[RefreshOutcome] = field(default_factory=list)


def summarize_entry(entry: RosterEntry, health: HealthData) -> PlayerHealthSummary:
    identity = PlayerIdentity(
        id=entry.id,
        first_name=entry.first_name,
        last_name=entry.last_name,
        suspended=entry.suspended,
    )
    return build_player_summary(identity, health)


def build_roster_view(
    entries: list[RosterEntry],
    source: InsightSource | None = None,
    now: datetime | None = None,
    max_age: timedelta = DEFAULT_MAX_AGE,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> RosterHealthView:
    now = now or datetime.now(timezone.utc)
    refresh = refresh_roster(entries, source, now=now, max_age=max_age, max_workers=max_workers)

    players = [
        summarize_entry(entry, build_health_data(outcome.bundle, now=now))
        for entry, outcome in zip(entries, refresh.outcomes)
    ]
    return RosterHealthView(
        players=players,
        team_statistics=compute_team_statistics(players),
        refresh_outcomes=refresh.outcomes,
    )
