"""
Core data model for the vitals monitor.

Readings, severities, thresholds, alerts and the escalation/contact state
shared by the classifier, the alert engine and the notification layer.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

# Simulation clamps for generated and injected readings
HEART_RATE_BOUNDS = (30.0, 150.0)
BLOOD_OXYGEN_BOUNDS = (70.0, 100.0)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def clamp(value: float, bounds: tuple) -> float:
    low, high = bounds
    return max(low, min(high, value))


class ThresholdConfigError(ValueError):
    """Raised when a threshold configuration violates its ordering."""


class HistorySnapshotError(ValueError):
    """Raised when a persisted history snapshot cannot be decoded."""


class Metric(str, Enum):
    """Vital signs tracked by the device."""

    HEART_RATE = "heart_rate"
    BLOOD_OXYGEN = "blood_oxygen"


class Severity(str, Enum):
    """Single-reading classification, ordered normal < warning < critical < emergency."""

    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"
    EMERGENCY = "emergency"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    def __lt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank


_SEVERITY_RANK = {
    Severity.NORMAL: 0,
    Severity.WARNING: 1,
    Severity.CRITICAL: 2,
    Severity.EMERGENCY: 3,
}


class AlertKind(str, Enum):
    """Kinds of records kept in the alert history."""

    WARNING = "warning"
    EMERGENCY = "emergency"
    PREDICTION = "prediction"
    EMERGENCY_CALL = "emergency_call"


class NotificationStatus(str, Enum):
    """Transient delivery status of an emergency contact."""

    IDLE = "idle"
    SENT = "sent"


class DeviceStatus(str, Enum):
    """Device indicator derived from the escalation counter."""

    CONNECTED = "connected"
    MONITORING = "monitoring"
    ALERT_ACTIVE = "alert_active"


@dataclass(frozen=True)
class Reading:
    """One simulated sample of both vital signs."""

    heart_rate: float
    blood_oxygen: float
    captured_at: datetime = field(default_factory=utc_now)

    def value(self, metric: Metric) -> float:
        if metric is Metric.HEART_RATE:
            return self.heart_rate
        return self.blood_oxygen

    def to_dict(self) -> dict:
        return {
            "heart_rate": self.heart_rate,
            "blood_oxygen": self.blood_oxygen,
            "captured_at": self.captured_at.isoformat(),
        }


@dataclass(frozen=True)
class MetricThresholds:
    """
    Threshold band for one metric.

    Values at or below `emergency` / `critical` breach those cutoffs.
    Values outside [minimum, maximum] are warnings; metrics without an
    upper bound only check the floor.
    """

    minimum: float
    maximum: float
    critical: float
    emergency: float
    has_upper_bound: bool = True

    def __post_init__(self):
        values = (self.minimum, self.maximum, self.critical, self.emergency)
        if not all(math.isfinite(v) for v in values):
            raise ThresholdConfigError(f"Thresholds must be finite numbers: {values}")
        if self.maximum < self.minimum:
            raise ThresholdConfigError(
                f"max ({self.maximum}) must not be below min ({self.minimum})"
            )
        if self.critical > self.minimum:
            raise ThresholdConfigError(
                f"critical cutoff ({self.critical}) must not exceed min ({self.minimum})"
            )
        if self.emergency > self.critical:
            raise ThresholdConfigError(
                f"emergency cutoff ({self.emergency}) must not exceed critical ({self.critical})"
            )


@dataclass(frozen=True)
class ThresholdSet:
    """Immutable per-metric thresholds, loaded once at startup."""

    heart_rate: MetricThresholds
    blood_oxygen: MetricThresholds

    def for_metric(self, metric: Metric) -> MetricThresholds:
        if metric is Metric.HEART_RATE:
            return self.heart_rate
        return self.blood_oxygen


@dataclass(frozen=True)
class Alert:
    """An alert record as stored in the history."""

    kind: AlertKind
    message: str
    occurred_at: datetime
    heart_rate: float
    blood_oxygen: float

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "occurred_at": self.occurred_at.isoformat(),
            "heart_rate": self.heart_rate,
            "blood_oxygen": self.blood_oxygen,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Alert":
        if not isinstance(data.get("message"), str):
            raise HistorySnapshotError(f"Alert message must be a string in {data!r}")
        try:
            return cls(
                kind=AlertKind(data["kind"]),
                message=data["message"],
                occurred_at=datetime.fromisoformat(data["occurred_at"]),
                heart_rate=float(data["heart_rate"]),
                blood_oxygen=float(data["blood_oxygen"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise HistorySnapshotError(f"Invalid alert record {data!r}: {e}") from e


@dataclass
class EscalationState:
    """Sustained-abnormality tracking, mutated only by the alert engine."""

    consecutive_abnormal: int = 0
    last_normal_at: datetime = field(default_factory=utc_now)

    @property
    def quiet(self) -> bool:
        return self.consecutive_abnormal == 0


@dataclass
class Contact:
    """Emergency contact with its transient notification status."""

    name: str
    phone: str
    display_ref: str
    status: NotificationStatus = NotificationStatus.IDLE
    last_notified_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "phone": self.phone,
            "display_ref": self.display_ref,
            "status": self.status.value,
            "last_notified_at": (
                self.last_notified_at.isoformat() if self.last_notified_at else None
            ),
        }
