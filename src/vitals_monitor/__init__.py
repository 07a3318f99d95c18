"""
Vitals Monitor Module.

Simulates a wearable health monitor: synthesizes heart-rate and
blood-oxygen readings, classifies them, escalates alerts and notifies
emergency contacts.
"""

from .alert_engine import AlertEngine, Evaluation
from .classifier import classify, classify_reading
from .config import MonitorSettings, get_settings
from .generator import VitalsGenerator
from .history import HistoryStore
from .models import (
    Alert,
    AlertKind,
    Contact,
    DeviceStatus,
    EscalationState,
    Metric,
    MetricThresholds,
    NotificationStatus,
    Reading,
    Severity,
    ThresholdSet,
)
from .monitor import SCENARIOS, HealthMonitor
from .notifications import NotificationDispatcher
from .pattern_detector import PatternDetector, PatternKind, PatternSignal
from .trend_tracker import TrendTracker

__all__ = [
    "AlertEngine",
    "Evaluation",
    "classify",
    "classify_reading",
    "MonitorSettings",
    "get_settings",
    "VitalsGenerator",
    "HistoryStore",
    "Alert",
    "AlertKind",
    "Contact",
    "DeviceStatus",
    "EscalationState",
    "Metric",
    "MetricThresholds",
    "NotificationStatus",
    "Reading",
    "Severity",
    "ThresholdSet",
    "SCENARIOS",
    "HealthMonitor",
    "NotificationDispatcher",
    "PatternDetector",
    "PatternKind",
    "PatternSignal",
    "TrendTracker",
]
