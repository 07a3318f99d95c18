"""
Boundary collaborators of the monitor.

The monitor only speaks semantic values (readings, severities, alert
records). Rendering, haptics/audio and storage live behind these
interfaces. The logging implementations drive the headless CLI; the
file persistence stores the history snapshot on disk.
"""

import logging
import os
from pathlib import Path
from typing import Dict, Optional, Protocol, Sequence

from .models import Alert, Metric, Reading, Severity

logger = logging.getLogger(__name__)


class DisplaySink(Protocol):
    """Where the monitor shows vitals, banners, history and the emergency modal."""

    def render(self, reading: Reading, severities: Dict[Metric, Severity]) -> None: ...

    def show_alert_banner(self, message: str, severity_kind: str) -> None: ...

    def show_history(self, alerts: Sequence[Alert]) -> None: ...

    def show_emergency_modal(self, message: str) -> None: ...

    def hide_emergency_modal(self) -> None: ...


class DeviceFeedbackSink(Protocol):
    """Fire-and-forget haptic/audio cues."""

    def signal_emergency(self) -> None: ...

    def signal_warning(self) -> None: ...

    def signal_prediction(self) -> None: ...


class HistoryPersistence(Protocol):
    """External storage of the serialized history snapshot."""

    def load_history(self) -> Optional[str]: ...

    def save_history(self, snapshot: str) -> None: ...


class LoggingDisplaySink:
    """Display that writes everything to the log."""

    def render(self, reading: Reading, severities: Dict[Metric, Severity]) -> None:
        logger.info(
            f"[DISPLAY] HR {round(reading.heart_rate)} bpm "
            f"({severities[Metric.HEART_RATE].value}) | "
            f"SpO2 {round(reading.blood_oxygen)}% ({severities[Metric.BLOOD_OXYGEN].value})"
        )

    def show_alert_banner(self, message: str, severity_kind: str) -> None:
        logger.info(f"[DISPLAY] [{severity_kind.upper()}] {message}")

    def show_history(self, alerts: Sequence[Alert]) -> None:
        logger.debug(f"[DISPLAY] History: {len(alerts)} alerts shown")

    def show_emergency_modal(self, message: str) -> None:
        logger.warning(f"[DISPLAY] Emergency modal: {message}")

    def hide_emergency_modal(self) -> None:
        logger.info("[DISPLAY] Emergency modal closed")


class LoggingDeviceFeedback:
    """Device feedback that logs the cue it would play."""

    def signal_emergency(self) -> None:
        logger.warning("[DEVICE] Band vibrating with emergency pattern and alarm tone")

    def signal_warning(self) -> None:
        logger.info("[DEVICE] Warning tone")

    def signal_prediction(self) -> None:
        logger.info("[DEVICE] Prediction tone")


class FileHistoryPersistence:
    """Stores the history snapshot in a JSON file."""

    def __init__(self, path: str):
        self.path = Path(path)

    def load_history(self) -> Optional[str]:
        """Read the stored snapshot; None if missing or unreadable."""
        if not self.path.exists():
            logger.debug(f"[PERSISTENCE] No history file at {self.path}")
            return None
        try:
            return self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"[PERSISTENCE] Failed to read {self.path}: {e}")
            return None

    def save_history(self, snapshot: str) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            if self.path.parent and not self.path.parent.exists():
                self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(snapshot, encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f"[PERSISTENCE] Failed to write {self.path}: {e}")


class MemoryHistoryPersistence:
    """Keeps the snapshot in memory; used when no file is configured."""

    def __init__(self, snapshot: Optional[str] = None):
        self.snapshot = snapshot
        self.saves = 0

    def load_history(self) -> Optional[str]:
        return self.snapshot

    def save_history(self, snapshot: str) -> None:
        self.snapshot = snapshot
        self.saves += 1
