"""Tests for the insight vocabulary adapter and metric extraction.

Covers: state parsing, status fail-open, metric slot classification,
numeric parsing of vendor values, sleep/activity sub-fields, last-write-wins.
"""

from __future__ import annotations

import pytest

from core.services.insights.metrics import (
    HealthMetrics,
    extract_health_metrics,
    parse_numeric,
    parse_percentage,
    round_half_up,
)
from core.services.insights.models import Comparison, InsightBundle
from core.services.insights.states import (
    MetricSlot,
    MetricStatus,
    QualitativeState,
    classify_metric,
    parse_state,
    status_for_state,
)


def _cmp(name: str, value: str, state: str = "good", **overrides) -> Comparison:
    fields = {"name": name, "value": value, "state": state}
    fields.update(overrides)
    return Comparison(**fields)


def _bundle(*comparisons: Comparison) -> InsightBundle:
    return InsightBundle(comparisons=tuple(comparisons))


# ── State adapter ─────────────────────────────────────────────────────────

class TestParseState:
    def test_known_states(self):
        assert parse_state("good") is QualitativeState.GOOD
        assert parse_state("at_risk") is QualitativeState.AT_RISK
        assert parse_state("critical") is QualitativeState.CRITICAL

    def test_case_and_whitespace_insensitive(self):
        assert parse_state("  Warning ") is QualitativeState.WARNING
        assert parse_state("OPTIMAL") is QualitativeState.OPTIMAL

    def test_missing_or_unknown(self):
        assert parse_state(None) is QualitativeState.UNKNOWN
        assert parse_state("") is QualitativeState.UNKNOWN
        assert parse_state("meh") is QualitativeState.UNKNOWN
        assert parse_state("unknown") is QualitativeState.UNKNOWN


class TestStatusForState:
    @pytest.mark.parametrize("state", ["good", "optimal", "normal"])
    def test_good_states(self, state):
        assert status_for_state(parse_state(state)) is MetricStatus.GOOD

    @pytest.mark.parametrize("state", ["caution", "warning"])
    def test_caution_states(self, state):
        assert status_for_state(parse_state(state)) is MetricStatus.CAUTION

    @pytest.mark.parametrize("state", ["at_risk", "poor", "critical"])
    def test_at_risk_states(self, state):
        assert status_for_state(parse_state(state)) is MetricStatus.AT_RISK

    def test_unknown_fails_open(self):
        assert status_for_state(QualitativeState.UNKNOWN) is MetricStatus.GOOD


class TestClassifyMetric:
    def test_resting_heart_rate(self):
        assert classify_metric("Resting Heart Rate") is MetricSlot.RESTING_HEART_RATE

    def test_hrv(self):
        assert classify_metric("heart_rate_variability") is MetricSlot.HEART_RATE_VARIABILITY

    def test_sleep_by_name_or_category(self):
        assert classify_metric("sleep_duration") is MetricSlot.SLEEP
        assert classify_metric("duration", category="Sleep") is MetricSlot.SLEEP

    def test_activity(self):
        assert classify_metric("steps") is MetricSlot.ACTIVITY
        assert classify_metric("active_minutes") is MetricSlot.ACTIVITY
        assert classify_metric("energy_burned", category="activity") is MetricSlot.ACTIVITY

    def test_heart_rate_recovery(self):
        assert classify_metric("heart_rate_recovery", category="vitals") is MetricSlot.HEART_RATE_RECOVERY

    def test_unmatched(self):
        assert classify_metric("body_temperature", category="vitals") is None


# ── Numeric parsing ───────────────────────────────────────────────────────

class TestParseNumeric:
    def test_plain_and_decorated(self):
        assert parse_numeric("85.5") == 85.5
        assert parse_numeric("85.5%") == 85.5
        assert parse_numeric("62 bpm") == 62.0
        assert parse_numeric("10,432") == 10432.0
        assert parse_numeric("-3.2") == -3.2

    def test_numbers_pass_through(self):
        assert parse_numeric(7) == 7.0
        assert parse_numeric(7.25) == 7.25

    def test_unparsable(self):
        assert parse_numeric("") is None
        assert parse_numeric("n/a") is None
        assert parse_numeric("-") is None
        assert parse_numeric(None) is None
        assert parse_numeric(float("nan")) is None

    def test_parse_percentage_defaults_to_zero(self):
        assert parse_percentage("") == 0.0
        assert parse_percentage("abc") == 0.0
        assert parse_percentage("12.5") == 12.5

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(61.67) == 62
        assert round_half_up(61.4) == 61


# ── Extraction ────────────────────────────────────────────────────────────

class TestExtractHealthMetrics:
    def test_empty_bundle_defaults(self):
        metrics = extract_health_metrics(InsightBundle())
        assert metrics == HealthMetrics()
        assert metrics.resting_heart_rate.value is None
        assert metrics.resting_heart_rate.unit == "bpm"
        assert metrics.heart_rate_variability.unit == "ms"
        assert metrics.sleep_quality.hours is None
        assert metrics.activity_level.steps is None
        assert metrics.heart_rate_recovery.status is MetricStatus.GOOD
        assert metrics.heart_rate_recovery.trend == 0

    def test_single_valued_slots(self):
        metrics = extract_health_metrics(
            _bundle(
                _cmp("resting_heart_rate", "61.6 bpm", "good", percentage_difference="-3.2"),
                _cmp("heart_rate_variability", "74", "caution"),
                _cmp("heart_rate_recovery", "28", "at_risk", category="vitals"),
            )
        )
        assert metrics.resting_heart_rate.value == 62
        assert metrics.resting_heart_rate.trend == -3.2
        assert metrics.resting_heart_rate.status is MetricStatus.GOOD
        assert metrics.heart_rate_variability.value == 74
        assert metrics.heart_rate_variability.status is MetricStatus.CAUTION
        assert metrics.heart_rate_recovery.value == 28
        assert metrics.heart_rate_recovery.status is MetricStatus.AT_RISK

    def test_sleep_sub_fields_fill_independently(self):
        metrics = extract_health_metrics(
            _bundle(
                _cmp("sleep_duration", "7.46", "good"),
                _cmp("sleep_quality", "83", "warning"),
            )
        )
        assert metrics.sleep_quality.hours == 7.5
        assert metrics.sleep_quality.quality_score == 83
        # status follows the last comparison written to the slot
        assert metrics.sleep_quality.status is MetricStatus.CAUTION

    def test_activity_sub_fields(self):
        metrics = extract_health_metrics(
            _bundle(
                _cmp("steps", "10,432"),
                _cmp("active_minutes", "45"),
            )
        )
        assert metrics.activity_level.steps == 10432
        assert metrics.activity_level.active_minutes == 45

    def test_last_write_wins(self):
        metrics = extract_health_metrics(
            _bundle(
                _cmp("resting_heart_rate", "60", "good"),
                _cmp("resting_heart_rate", "70", "poor"),
            )
        )
        assert metrics.resting_heart_rate.value == 70
        assert metrics.resting_heart_rate.status is MetricStatus.AT_RISK

    def test_unparsable_value_is_skipped(self):
        metrics = extract_health_metrics(
            _bundle(
                _cmp("resting_heart_rate", "58"),
                _cmp("resting_heart_rate", "unavailable", "at_risk"),
            )
        )
        assert metrics.resting_heart_rate.value == 58
        assert metrics.resting_heart_rate.status is MetricStatus.GOOD

    def test_unrecognised_state_is_good(self):
        metrics = extract_health_metrics(_bundle(_cmp("heart_rate_variability", "40", "mystery")))
        assert metrics.heart_rate_variability.status is MetricStatus.GOOD

    def test_unmatched_names_ignored(self):
        metrics = extract_health_metrics(_bundle(_cmp("body_temperature", "36.8")))
        assert metrics == HealthMetrics()
