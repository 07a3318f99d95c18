"""
Alert decision logic.

The engine turns one reading plus the rolling window into at most one
escalation alert (warning or emergency), an independent fainting
prediction, and bookkeeping of sustained abnormality across cycles.

Escalation rules per evaluation:
1. Any metric critical or emergency -> emergency alert, counter + 1
2. Any metric warning, or an escalated trend -> warning alert, counter + 1
3. Otherwise -> if the counter was non-zero, reset it and record recovery

The fainting prediction is evaluated on every cycle regardless of the
branch taken and never touches the counter. Critical readings go through
the same emergency workflow as emergency readings.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Optional

from .classifier import classify_reading, worst
from .models import (
    Alert,
    AlertKind,
    DeviceStatus,
    EscalationState,
    Metric,
    Reading,
    Severity,
    ThresholdSet,
    utc_now,
)
from .pattern_detector import PatternDetector, PatternKind, PatternSignal
from .trend_tracker import TrendTracker

logger = logging.getLogger(__name__)

EMERGENCY_MESSAGE = "⚠️ Critical emergency - immediate medical attention required!"
CRITICAL_MESSAGE = "🚨 Critical vital signs detected - immediate attention required!"
RECOVERY_MESSAGE = "✅ Vital signs returned to normal range"

# Counter value from which the device shows an active alert
ALERT_ACTIVE_THRESHOLD = 3


def warning_message(reading: Reading) -> str:
    return (
        f"⚠️ Abnormal vital signs - monitoring closely | "
        f"Heart: {round(reading.heart_rate)} | Oxygen: {round(reading.blood_oxygen)}%"
    )


@dataclass
class Evaluation:
    """Everything one evaluation cycle decided."""

    reading: Reading
    severities: Dict[Metric, Severity]
    alert: Optional[Alert] = None
    prediction: Optional[Alert] = None
    trend: Optional[PatternSignal] = None
    recovered: bool = False
    consecutive_abnormal: int = 0
    evaluated_at: datetime = field(default_factory=utc_now)

    @property
    def severity(self) -> Severity:
        return worst(self.severities)

    @property
    def trend_notice(self) -> Optional[PatternSignal]:
        """Soft trend signal that did not escalate to a warning alert."""
        if self.trend is not None and self.trend.kind is PatternKind.TREND_NOTICE:
            return self.trend
        return None


class AlertEngine:
    """
    Orchestrates classification, pattern detection and escalation.

    Owns the EscalationState; nothing else mutates it.
    """

    def __init__(
        self,
        thresholds: ThresholdSet,
        detector: Optional[PatternDetector] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.thresholds = thresholds
        self.detector = detector or PatternDetector()
        self.clock = clock
        self.state = EscalationState(last_normal_at=clock())

    def build_alert(self, kind: AlertKind, message: str, reading: Reading) -> Alert:
        return Alert(
            kind=kind,
            message=message,
            occurred_at=self.clock(),
            heart_rate=reading.heart_rate,
            blood_oxygen=reading.blood_oxygen,
        )

    def evaluate(self, reading: Reading, tracker: TrendTracker) -> Evaluation:
        """
        Run one evaluation cycle.

        Args:
            reading: The current reading (already pushed into the tracker)
            tracker: Rolling window used for trend and pattern checks

        Returns:
            Evaluation with the alerts to fan out
        """
        severities = classify_reading(reading, self.thresholds)
        top = worst(severities)
        trend = self.detector.check_trend(tracker)
        evaluation = Evaluation(
            reading=reading, severities=severities, trend=trend, evaluated_at=self.clock()
        )

        if top >= Severity.CRITICAL:
            message = EMERGENCY_MESSAGE if top is Severity.EMERGENCY else CRITICAL_MESSAGE
            evaluation.alert = self.build_alert(AlertKind.EMERGENCY, message, reading)
            self.state.consecutive_abnormal += 1
            logger.warning(
                f"[ENGINE] {top.value.upper()}: HR {reading.heart_rate:.1f}, "
                f"SpO2 {reading.blood_oxygen:.1f} (abnormal x{self.state.consecutive_abnormal})"
            )
        elif top is Severity.WARNING or (trend is not None and trend.escalated):
            if top is Severity.WARNING:
                message = warning_message(reading)
            else:
                message = trend.message
            evaluation.alert = self.build_alert(AlertKind.WARNING, message, reading)
            self.state.consecutive_abnormal += 1
            logger.info(f"[ENGINE] Warning: {message} (abnormal x{self.state.consecutive_abnormal})")
        elif not self.state.quiet:
            self.state.consecutive_abnormal = 0
            self.state.last_normal_at = self.clock()
            evaluation.recovered = True
            logger.info("[ENGINE] Vital signs back to normal, escalation reset")

        signal = self.detector.detect(tracker.recent(self.detector.pattern_window))
        if signal is not None:
            evaluation.prediction = self.build_alert(AlertKind.PREDICTION, signal.message, reading)

        evaluation.consecutive_abnormal = self.state.consecutive_abnormal
        return evaluation

    def device_status(self) -> DeviceStatus:
        if self.state.consecutive_abnormal >= ALERT_ACTIVE_THRESHOLD:
            return DeviceStatus.ALERT_ACTIVE
        if self.state.consecutive_abnormal > 0:
            return DeviceStatus.MONITORING
        return DeviceStatus.CONNECTED

    def reset(self) -> None:
        self.state.consecutive_abnormal = 0
        self.state.last_normal_at = self.clock()
