"""Monitor configuration loaded from environment variables."""
import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import model_validator
from pydantic_settings import BaseSettings

from .models import Contact, MetricThresholds, ThresholdSet

load_dotenv()


class MonitorSettings(BaseSettings):
    """Monitor settings loaded from environment."""

    # Scheduling (seconds)
    tick_interval: float = 1.5
    housekeeping_interval: float = 30.0
    notification_stagger: float = 1.5
    notification_revert: float = 15.0
    modal_auto_dismiss: float = 30.0

    # Capacities
    window_capacity: int = 20
    pattern_window: int = 5
    trend_window: int = 3
    history_capacity: int = 50
    history_display_count: int = 15

    # Baseline vitals used at start and on reset
    baseline_heart_rate: float = 75.0
    baseline_blood_oxygen: float = 98.0

    # Heart rate thresholds
    heart_rate_min: float = 60.0
    heart_rate_max: float = 100.0
    heart_rate_critical: float = 50.0
    heart_rate_emergency: float = 40.0

    # Blood oxygen thresholds (floor only, no upper warning bound)
    blood_oxygen_min: float = 95.0
    blood_oxygen_max: float = 100.0
    blood_oxygen_critical: float = 90.0
    blood_oxygen_emergency: float = 85.0

    # Pattern detection
    fainting_heart_rate: float = 55.0
    fainting_blood_oxygen: float = 92.0
    trend_notice_heart_rate: float = 5.0
    trend_notice_blood_oxygen: float = 2.0
    trend_warning_heart_rate: float = 10.0
    trend_warning_blood_oxygen: float = 3.0

    # Persistence and notification
    history_file: str = os.getenv(
        "HEALTH_MONITOR_HISTORY_FILE", "health_monitor_history.json"
    )
    location: str = "Home"
    notification_webhook_url: Optional[str] = None
    notification_retries: int = 0
    random_seed: Optional[int] = None

    class Config:
        env_prefix = "VITALS_"

    @model_validator(mode="after")
    def _check_thresholds(self):
        self.thresholds()
        if self.trend_warning_heart_rate < self.trend_notice_heart_rate:
            raise ValueError("trend_warning_heart_rate must not be below the notice tier")
        if self.trend_warning_blood_oxygen < self.trend_notice_blood_oxygen:
            raise ValueError("trend_warning_blood_oxygen must not be below the notice tier")
        if self.window_capacity < max(self.pattern_window, self.trend_window):
            raise ValueError("window_capacity must hold the pattern and trend windows")
        return self

    def thresholds(self) -> ThresholdSet:
        """Build the immutable threshold set; raises ThresholdConfigError."""
        return ThresholdSet(
            heart_rate=MetricThresholds(
                minimum=self.heart_rate_min,
                maximum=self.heart_rate_max,
                critical=self.heart_rate_critical,
                emergency=self.heart_rate_emergency,
            ),
            blood_oxygen=MetricThresholds(
                minimum=self.blood_oxygen_min,
                maximum=self.blood_oxygen_max,
                critical=self.blood_oxygen_critical,
                emergency=self.blood_oxygen_emergency,
                has_upper_bound=False,
            ),
        )


# Emergency contacts configured on the device
DEFAULT_CONTACTS = [
    ("Dr. Ahmed Mohammed", "+966-555-0123", "contact1"),
    ("Family member", "+966-555-0456", "contact2"),
]


def default_contacts() -> list[Contact]:
    """Fresh contact objects; statuses are mutable, so never share them."""
    return [Contact(name=name, phone=phone, display_ref=ref) for name, phone, ref in DEFAULT_CONTACTS]


@lru_cache
def get_settings() -> MonitorSettings:
    return MonitorSettings()
