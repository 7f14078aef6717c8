"""Tests for roster-wide team statistics.

Covers: per-metric normalisers, bar chart averaging over reporting athletes,
status distribution, at-risk count, empty roster.
"""

from __future__ import annotations

import pytest

from core.services.insights.metrics import ActivityReading, HealthMetrics, MetricReading, SleepReading
from core.services.insights.states import MetricStatus
from core.services.insights.summary import PlayerHealthSummary, PlayerStatus
from core.services.team import (
    TeamStatistics,
    build_bar_chart,
    compute_team_statistics,
    normalize_hr_recovery,
    normalize_hrv,
    normalize_resting_heart_rate,
    normalize_sleep_duration,
    normalize_sleep_quality,
    normalize_steps,
    tally_statuses,
)


def _make_summary(**overrides) -> PlayerHealthSummary:
    defaults = {
        "id": "1",
        "name": "Test Athlete",
        "status": PlayerStatus.HEALTHY,
        "health_score": 75,
        "last_sync": "Just now",
        "health_status": MetricStatus.CAUTION,
        "health_metrics": HealthMetrics(),
    }
    defaults.update(overrides)
    return PlayerHealthSummary(**defaults)


def _bars(stats: TeamStatistics) -> dict[str, int]:
    return {bar.label: bar.value for bar in stats.bar_chart_data}


# ── Normalisers ───────────────────────────────────────────────────────────

class TestNormalisers:
    @pytest.mark.parametrize("bpm, expected", [(40, 100), (100, 0), (70, 50), (30, 100), (120, 0)])
    def test_resting_heart_rate(self, bpm, expected):
        assert normalize_resting_heart_rate(bpm) == pytest.approx(expected)

    @pytest.mark.parametrize("ms, expected", [(20, 0), (100, 100), (60, 50), (140, 100)])
    def test_hrv(self, ms, expected):
        assert normalize_hrv(ms) == pytest.approx(expected)

    @pytest.mark.parametrize("bpm, expected", [(10, 0), (50, 100), (30, 50)])
    def test_hr_recovery(self, bpm, expected):
        assert normalize_hr_recovery(bpm) == pytest.approx(expected)

    def test_sleep_quality_used_as_reported(self):
        assert normalize_sleep_quality(83) == 83
        assert normalize_sleep_quality(100) == 100
        assert normalize_sleep_quality(120) == 120

    @pytest.mark.parametrize("hours, expected", [(8, 100), (7, 100), (9, 100), (4, 0), (5.5, 50), (10, 80), (15, 0)])
    def test_sleep_duration(self, hours, expected):
        assert normalize_sleep_duration(hours) == pytest.approx(expected)

    @pytest.mark.parametrize("steps, expected", [(10000, 100), (5000, 50), (20000, 100), (0, 0)])
    def test_steps(self, steps, expected):
        assert normalize_steps(steps) == pytest.approx(expected)


# ── Bar chart ─────────────────────────────────────────────────────────────

class TestBarChart:
    def test_seven_bars_in_order(self):
        bars = build_bar_chart([_make_summary()])
        assert [b.label for b in bars] == ["M1", "M2", "M3", "M4", "M5", "M6", "M7"]
        assert bars[0].metric_name == "Resting\nHeart Rate"
        assert bars[6].metric_name == "Overall\nRecovery"

    def test_only_reporting_athletes_counted(self):
        reporting = _make_summary(
            health_metrics=HealthMetrics(resting_heart_rate=MetricReading(value=70, unit="bpm")),
        )
        silent = _make_summary(id="2")
        bars = {b.label: b.value for b in build_bar_chart([reporting, silent])}
        assert bars["M1"] == 50
        assert bars["M2"] == 0

    def test_sub_field_bars(self):
        player = _make_summary(
            health_metrics=HealthMetrics(
                sleep_quality=SleepReading(hours=10, quality_score=83),
                activity_level=ActivityReading(steps=5000, active_minutes=30),
            )
        )
        bars = {b.label: b.value for b in build_bar_chart([player])}
        assert bars["M4"] == 83
        assert bars["M5"] == 80
        assert bars["M6"] == 50

    def test_overall_recovery_uses_scores(self):
        bars = build_bar_chart([_make_summary(health_score=80), _make_summary(health_score=61)])
        assert bars[6].value == 71


# ── Team statistics ───────────────────────────────────────────────────────

class TestComputeTeamStatistics:
    def test_empty_roster(self):
        stats = compute_team_statistics([])
        assert stats == TeamStatistics()
        assert stats.total_athletes == 0
        assert stats.avg_performance == 0
        assert stats.bar_chart_data == []
        assert stats.previous_average is None

    def test_scores_and_risk(self):
        players = [
            _make_summary(id="1", health_score=90),
            _make_summary(id="2", health_score=55),
            _make_summary(id="3", health_score=40, status=PlayerStatus.INJURED),
        ]
        stats = compute_team_statistics(players)
        assert stats.total_athletes == 3
        assert stats.avg_performance == 62
        assert stats.at_risk_count == 2
        assert _bars(stats)["M7"] == 62
        # only M7 is non-zero
        assert stats.team_average == 62
        assert stats.average_change == 0

    def test_team_average_skips_empty_bars(self):
        player = _make_summary(
            health_score=80,
            health_metrics=HealthMetrics(heart_rate_variability=MetricReading(value=60, unit="ms")),
        )
        stats = compute_team_statistics([player])
        assert stats.team_average == 65

    def test_zero_scores_count_at_risk(self):
        stats = compute_team_statistics([_make_summary(health_score=0)])
        assert stats.at_risk_count == 1
        assert stats.team_average == 0


class TestStatusDistribution:
    def test_counts_sum_to_roster(self):
        players = [
            _make_summary(status=PlayerStatus.HEALTHY),
            _make_summary(status=PlayerStatus.INJURED),
            _make_summary(status=PlayerStatus.SUSPENDED),
            _make_summary(status=PlayerStatus.HEALTHY),
        ]
        dist = tally_statuses(players)
        assert (dist.healthy, dist.injured, dist.suspended) == (2, 1, 1)
        assert dist.healthy + dist.injured + dist.suspended == len(players)

    def test_unknown_status_is_healthy(self):
        dist = tally_statuses([_make_summary(status="Retired"), _make_summary(status="Injured")])
        assert dist.healthy == 1
        assert dist.injured == 1
