"""Roster insight refresh orchestrator.

Decides which athletes' cached insight bundles are stale, refreshes those
from Sahha concurrently, and isolates failures so one athlete's outage never
blocks the rest of the roster.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Protocol

from core.services.insights.models import InsightBundle

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE = timedelta(minutes=5)
DEFAULT_MAX_WORKERS = 8


class InsightSource(Protocol):
    def sync_insights(self, profile_id: str) -> InsightBundle: ...


@dataclass(frozen=True)
class RosterEntry:
    """One roster member as handed over by the persistence layer."""

    id: str
    first_name: str = ""
    last_name: str = ""
    sahha_profile_id: str | None = None
    cached_bundle: InsightBundle | None = None
    last_synced_at: datetime | None = None
    suspended: bool = False


@dataclass
class RefreshOutcome:
    """Result of the refresh step for one roster entry."""

    entry_id: str
    bundle: InsightBundle
    synced_at: datetime | None
    refreshed: bool = False
    error: str | None = None


@dataclass
class RefreshSummary:
    outcomes: list[RefreshOutcome] = field(default_factory=list)

    @property
    def refreshed(self) -> int:
        return sum(1 for o in self.outcomes if o.refreshed)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if o.error)


def _aware(moment: datetime) -> datetime:
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


def is_stale(last_synced_at: datetime | None, now: datetime | None = None, max_age: timedelta = DEFAULT_MAX_AGE) -> bool:
    """A bundle is stale when it was never synced or is older than ``max_age``."""
    if last_synced_at is None:
        return True
    now = _aware(now or datetime.now(timezone.utc))
    return now - _aware(last_synced_at) > max_age


def _fallback(entry: RosterEntry, error: str | None = None) -> RefreshOutcome:
    return RefreshOutcome(
        entry_id=entry.id,
        bundle=entry.cached_bundle or InsightBundle(),
        synced_at=entry.last_synced_at,
        error=error,
    )


def refresh_entry(entry: RosterEntry, source: InsightSource, now: datetime) -> RefreshOutcome:
    """Refresh one entry; any failure falls back to the cached bundle."""
    try:
        bundle = source.sync_insights(entry.sahha_profile_id)
    except Exception as exc:
        logger.warning(
            "Insight refresh failed for athlete %s: %s",
            entry.id,
            exc,
            extra={"athlete_id": entry.id, "profile_id": entry.sahha_profile_id},
        )
        return _fallback(entry, error=str(exc))
    return RefreshOutcome(entry_id=entry.id, bundle=bundle, synced_at=now, refreshed=True)


def refresh_roster(
    entries: list[RosterEntry],
    source: InsightSource | None,
    now: datetime | None = None,
    max_age: timedelta = DEFAULT_MAX_AGE,
    max_workers: int = DEFAULT_MAX_WORKERS,
    force: bool = False,
) -> RefreshSummary:
    """Refresh stale bundles concurrently; outcomes keep roster order."""
    now = now or datetime.now(timezone.utc)
    outcomes: list[RefreshOutcome | None] = [None] * len(entries)
    pending: list[tuple[int, RosterEntry]] = []

    for idx, entry in enumerate(entries):
        due = force or is_stale(entry.last_synced_at, now, max_age)
        if source is None or not entry.sahha_profile_id or not due:
            outcomes[idx] = _fallback(entry)
        else:
            pending.append((idx, entry))

    if pending:
        with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(pending)))) as pool:
            futures = {idx: pool.submit(refresh_entry, entry, source, now) for idx, entry in pending}
            for idx, future in futures.items():
                outcomes[idx] = future.result()

    summary = RefreshSummary(outcomes=[o for o in outcomes if o is not None])
    if pending:
        logger.info(
            "roster_refresh_complete",
            extra={"requested": len(pending), "refreshed": summary.refreshed, "failed": summary.failed},
        )
    return summary
