"""
Pytest fixtures for Smart Health Monitor tests.
"""
import random
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from dotenv import load_dotenv

# Ensure src/ is on sys.path so tests can import vitals_monitor.
ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

# Load environment variables
load_dotenv()

from vitals_monitor.config import MonitorSettings  # noqa: E402
from vitals_monitor.monitor import HealthMonitor  # noqa: E402
from vitals_monitor.sinks import MemoryHistoryPersistence  # noqa: E402


# ============================================================================
# Test doubles
# ============================================================================

class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime = datetime(2025, 1, 15, 8, 30, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now += timedelta(seconds=seconds)
        return self.now


class ScriptedRandom(random.Random):
    """random.Random that returns a fixed sequence from random()."""

    def __init__(self, values):
        super().__init__(0)
        self.values = list(values)

    def random(self):
        return self.values.pop(0)


class RecordingDisplay:
    """Display sink that records every call."""

    def __init__(self):
        self.renders = []
        self.banners = []
        self.histories = []
        self.modals = []
        self.hidden = 0

    def render(self, reading, severities):
        self.renders.append((reading, dict(severities)))

    def show_alert_banner(self, message, severity_kind):
        self.banners.append((message, severity_kind))

    def show_history(self, alerts):
        self.histories.append(list(alerts))

    def show_emergency_modal(self, message):
        self.modals.append(message)

    def hide_emergency_modal(self):
        self.hidden += 1


class RecordingDevice:
    """Device feedback sink that counts cues."""

    def __init__(self):
        self.cues = []

    def signal_emergency(self):
        self.cues.append("emergency")

    def signal_warning(self):
        self.cues.append("warning")

    def signal_prediction(self):
        self.cues.append("prediction")


class RecordingTransport:
    """Notification transport that keeps every payload."""

    def __init__(self, fail_for=()):
        self.sent = []
        self.fail_for = set(fail_for)

    async def send(self, payload):
        if payload.contact_name in self.fail_for:
            raise ConnectionError(f"gateway unreachable for {payload.contact_name}")
        self.sent.append(payload)


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def fast_settings(tmp_path):
    """Settings with millisecond timers and a seeded generator."""
    return MonitorSettings(
        tick_interval=0.01,
        housekeeping_interval=0.05,
        notification_stagger=0.01,
        notification_revert=0.05,
        modal_auto_dismiss=0.05,
        random_seed=42,
        history_file=str(tmp_path / "history.json"),
    )


@pytest.fixture
def thresholds(fast_settings):
    return fast_settings.thresholds()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def display():
    return RecordingDisplay()


@pytest.fixture
def device():
    return RecordingDevice()


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def persistence():
    return MemoryHistoryPersistence()


@pytest.fixture
def monitor(fast_settings, display, device, persistence, transport, clock):
    """Monitor wired to recording sinks."""
    return HealthMonitor(
        settings=fast_settings,
        display=display,
        device=device,
        persistence=persistence,
        transport=transport,
        clock=clock,
    )
