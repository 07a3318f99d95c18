"""
Pattern Detection Module for Vital-Sign Windows.

Looks at the recent window of readings for multi-sample signals that a
single reading cannot show: a fainting-risk signature (low mean heart
rate together with low mean blood oxygen) and rapid short-term changes
(trend alerts), tiered into a soft notice and an escalated warning.
"""

import logging
import statistics
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Sequence

from .models import Metric, Reading, utc_now
from .trend_tracker import TrendTracker

logger = logging.getLogger(__name__)

FAINTING_MESSAGE = "🔮 Possible fainting predicted - vital signs are dropping"


class PatternKind(str, Enum):
    """Kinds of multi-sample signals."""

    FAINTING_RISK = "fainting_risk"
    TREND_NOTICE = "trend_notice"
    TREND_WARNING = "trend_warning"


@dataclass
class PatternSignal:
    """Result of a pattern check."""

    kind: PatternKind
    message: str
    heart_rate: float  # mean for fainting risk, delta for trends
    blood_oxygen: float
    samples: int
    timestamp: datetime = field(default_factory=utc_now)

    @property
    def escalated(self) -> bool:
        return self.kind is PatternKind.TREND_WARNING

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "heart_rate": self.heart_rate,
            "blood_oxygen": self.blood_oxygen,
            "samples": self.samples,
            "timestamp": self.timestamp.isoformat(),
        }


def _signed(value: float) -> str:
    return f"{value:+.1f}"


class PatternDetector:
    """
    Detects sustained abnormal patterns in the rolling window.

    Configuration:
        pattern_window: Samples averaged for the fainting check (no-op if fewer)
        trend_window: Samples spanned by the trend delta
        fainting_heart_rate / fainting_blood_oxygen: Mean values both must fall below
        notice_* / warning_*: Absolute delta tiers for trend alerts
    """

    def __init__(
        self,
        pattern_window: int = 5,
        trend_window: int = 3,
        fainting_heart_rate: float = 55.0,
        fainting_blood_oxygen: float = 92.0,
        notice_heart_rate: float = 5.0,
        notice_blood_oxygen: float = 2.0,
        warning_heart_rate: float = 10.0,
        warning_blood_oxygen: float = 3.0,
    ):
        self.pattern_window = pattern_window
        self.trend_window = trend_window
        self.fainting_heart_rate = fainting_heart_rate
        self.fainting_blood_oxygen = fainting_blood_oxygen
        self.notice_heart_rate = notice_heart_rate
        self.notice_blood_oxygen = notice_blood_oxygen
        self.warning_heart_rate = warning_heart_rate
        self.warning_blood_oxygen = warning_blood_oxygen

    @classmethod
    def from_settings(cls, settings) -> "PatternDetector":
        return cls(
            pattern_window=settings.pattern_window,
            trend_window=settings.trend_window,
            fainting_heart_rate=settings.fainting_heart_rate,
            fainting_blood_oxygen=settings.fainting_blood_oxygen,
            notice_heart_rate=settings.trend_notice_heart_rate,
            notice_blood_oxygen=settings.trend_notice_blood_oxygen,
            warning_heart_rate=settings.trend_warning_heart_rate,
            warning_blood_oxygen=settings.trend_warning_blood_oxygen,
        )

    def detect(self, window: Sequence[Reading]) -> Optional[PatternSignal]:
        """
        Check the last `pattern_window` readings for the fainting signature.

        Args:
            window: Readings in arrival order (most recent last)

        Returns:
            A FAINTING_RISK signal, or None if the window is too short or
            either mean is at or above its threshold
        """
        if len(window) < self.pattern_window:
            return None

        recent = list(window)[-self.pattern_window:]
        mean_hr = statistics.mean(r.heart_rate for r in recent)
        mean_o2 = statistics.mean(r.blood_oxygen for r in recent)

        if mean_hr < self.fainting_heart_rate and mean_o2 < self.fainting_blood_oxygen:
            logger.info(
                f"[PATTERN] Fainting risk: mean HR {mean_hr:.1f}, mean SpO2 {mean_o2:.1f} "
                f"over {len(recent)} samples"
            )
            return PatternSignal(
                kind=PatternKind.FAINTING_RISK,
                message=FAINTING_MESSAGE,
                heart_rate=mean_hr,
                blood_oxygen=mean_o2,
                samples=len(recent),
            )
        return None

    def check_trend(self, tracker: TrendTracker) -> Optional[PatternSignal]:
        """
        Rate-of-change check over the last `trend_window` samples.

        Returns:
            TREND_WARNING above the warning tier, TREND_NOTICE above the
            notice tier, otherwise None
        """
        if len(tracker) < self.trend_window:
            return None

        hr_delta = tracker.trend(Metric.HEART_RATE, self.trend_window)
        o2_delta = tracker.trend(Metric.BLOOD_OXYGEN, self.trend_window)

        if abs(hr_delta) > self.warning_heart_rate or abs(o2_delta) > self.warning_blood_oxygen:
            kind = PatternKind.TREND_WARNING
        elif abs(hr_delta) > self.notice_heart_rate or abs(o2_delta) > self.notice_blood_oxygen:
            kind = PatternKind.TREND_NOTICE
        else:
            return None

        message = (
            f"Rapid change in vital signs detected - heart rate: {_signed(hr_delta)}, "
            f"oxygen: {_signed(o2_delta)}"
        )
        logger.debug(f"[PATTERN] {kind.value}: {message}")
        return PatternSignal(
            kind=kind,
            message=message,
            heart_rate=hr_delta,
            blood_oxygen=o2_delta,
            samples=self.trend_window,
        )
