"""Threshold classification of single vital-sign values."""

from typing import Dict

from .models import Metric, Reading, Severity, ThresholdSet


def classify(value: float, metric: Metric, thresholds: ThresholdSet) -> Severity:
    """
    Map a value to a severity, highest severity first.

    Cutoffs are inclusive: a value equal to the emergency or critical
    cutoff breaches it. The emergency check must come first so a value
    that is both below min and below the emergency cutoff reports
    emergency rather than warning.
    """
    band = thresholds.for_metric(metric)

    if value <= band.emergency:
        return Severity.EMERGENCY
    if value <= band.critical:
        return Severity.CRITICAL
    if value < band.minimum:
        return Severity.WARNING
    if band.has_upper_bound and value > band.maximum:
        return Severity.WARNING
    return Severity.NORMAL


def classify_reading(reading: Reading, thresholds: ThresholdSet) -> Dict[Metric, Severity]:
    """Classify every metric of a reading."""
    return {metric: classify(reading.value(metric), metric, thresholds) for metric in Metric}


def worst(severities: Dict[Metric, Severity]) -> Severity:
    return max(severities.values(), default=Severity.NORMAL)
