"""
Unit tests for threshold classification.

These tests verify:
1. Severity cutoffs are inclusive at the emergency and critical levels
2. The emergency check wins over the warning check
3. Blood oxygen has no upper warning bound
4. Invalid threshold configurations are rejected at load time

Usage:
    pytest tests/test_classifier.py -v
"""
import math

import pytest

from vitals_monitor.classifier import classify, classify_reading, worst
from vitals_monitor.config import MonitorSettings
from vitals_monitor.models import (
    Metric,
    MetricThresholds,
    Reading,
    Severity,
    ThresholdConfigError,
)


class TestHeartRateClassification:
    """Heart rate: min 60, max 100, critical 50, emergency 40."""

    @pytest.mark.parametrize("value,expected", [
        (30, Severity.EMERGENCY),
        (40, Severity.EMERGENCY),
        (40.5, Severity.CRITICAL),
        (45, Severity.CRITICAL),
        (50, Severity.CRITICAL),
        (50.1, Severity.WARNING),
        (59.9, Severity.WARNING),
        (60, Severity.NORMAL),
        (75, Severity.NORMAL),
        (100, Severity.NORMAL),
        (100.1, Severity.WARNING),
        (150, Severity.WARNING),
    ])
    def test_heart_rate_cutoffs(self, thresholds, value, expected):
        """Each value maps to the expected severity."""
        assert classify(value, Metric.HEART_RATE, thresholds) is expected

    def test_emergency_wins_over_warning(self, thresholds):
        """A value below min and at the emergency cutoff reports emergency."""
        assert classify(35, Metric.HEART_RATE, thresholds) is Severity.EMERGENCY


class TestBloodOxygenClassification:
    """Blood oxygen: min 95, critical 90, emergency 85, no upper bound."""

    @pytest.mark.parametrize("value,expected", [
        (70, Severity.EMERGENCY),
        (85, Severity.EMERGENCY),
        (88, Severity.CRITICAL),
        (90, Severity.CRITICAL),
        (92, Severity.WARNING),
        (94.9, Severity.WARNING),
        (95, Severity.NORMAL),
        (98, Severity.NORMAL),
        (100, Severity.NORMAL),
    ])
    def test_blood_oxygen_cutoffs(self, thresholds, value, expected):
        assert classify(value, Metric.BLOOD_OXYGEN, thresholds) is expected

    def test_no_upper_warning(self, thresholds):
        """Blood oxygen is never a warning for being high."""
        assert classify(100, Metric.BLOOD_OXYGEN, thresholds) is Severity.NORMAL
        assert classify(101, Metric.BLOOD_OXYGEN, thresholds) is Severity.NORMAL


class TestReadingClassification:
    """Classification of a whole reading."""

    def test_classify_reading_covers_every_metric(self, thresholds):
        severities = classify_reading(Reading(45, 98), thresholds)

        assert severities == {
            Metric.HEART_RATE: Severity.CRITICAL,
            Metric.BLOOD_OXYGEN: Severity.NORMAL,
        }

    def test_worst_severity(self, thresholds):
        """The most severe metric decides."""
        severities = classify_reading(Reading(55, 85), thresholds)
        assert worst(severities) is Severity.EMERGENCY

    def test_worst_of_nothing_is_normal(self):
        assert worst({}) is Severity.NORMAL

    def test_severity_ordering(self):
        assert Severity.NORMAL < Severity.WARNING < Severity.CRITICAL < Severity.EMERGENCY
        assert max([Severity.WARNING, Severity.EMERGENCY, Severity.NORMAL]) is Severity.EMERGENCY


class TestThresholdValidation:
    """Threshold configuration fails fast."""

    def test_valid_band(self):
        band = MetricThresholds(minimum=60, maximum=100, critical=50, emergency=40)
        assert band.has_upper_bound

    def test_critical_above_min_rejected(self):
        with pytest.raises(ThresholdConfigError):
            MetricThresholds(minimum=60, maximum=100, critical=65, emergency=40)

    def test_emergency_above_critical_rejected(self):
        with pytest.raises(ThresholdConfigError):
            MetricThresholds(minimum=60, maximum=100, critical=50, emergency=55)

    def test_max_below_min_rejected(self):
        with pytest.raises(ThresholdConfigError):
            MetricThresholds(minimum=60, maximum=55, critical=50, emergency=40)

    def test_non_finite_rejected(self):
        with pytest.raises(ThresholdConfigError):
            MetricThresholds(minimum=math.nan, maximum=100, critical=50, emergency=40)

    def test_settings_reject_bad_thresholds(self):
        """Settings refuse to load with an inverted band."""
        with pytest.raises(ValueError):
            MonitorSettings(heart_rate_critical=70)

    def test_settings_reject_inverted_trend_tiers(self):
        with pytest.raises(ValueError):
            MonitorSettings(trend_notice_heart_rate=12, trend_warning_heart_rate=10)

    def test_settings_reject_small_window(self):
        with pytest.raises(ValueError):
            MonitorSettings(window_capacity=3, pattern_window=5)

    def test_settings_from_environment(self, monkeypatch):
        """Thresholds can be tuned through VITALS_ variables."""
        monkeypatch.setenv("VITALS_HEART_RATE_MAX", "110")

        band = MonitorSettings().thresholds().heart_rate

        assert band.maximum == 110
        assert band.minimum == 60
