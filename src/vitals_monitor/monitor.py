"""
Health Monitor session.

Owns all mutable monitor state (current vitals, rolling window, escalation,
history, contact statuses, emergency modal) and drives it from a single
asyncio event loop:

- a periodic tick: generate -> track -> evaluate -> fan out -> display
- a slower housekeeping pass: system-health snapshot and window trim
- one-shot timers for the modal auto-dismiss and contact status reverts

Includes the command surface used by the UI: manual emergency, reset,
scenario injection, acknowledgment and the emergency-services call.
"""

import asyncio
import logging
import random
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from .alert_engine import AlertEngine, Evaluation, RECOVERY_MESSAGE
from .classifier import classify_reading
from .config import MonitorSettings, default_contacts, get_settings
from .generator import VitalsGenerator
from .history import HistoryStore
from .models import (
    BLOOD_OXYGEN_BOUNDS,
    HEART_RATE_BOUNDS,
    Alert,
    AlertKind,
    Contact,
    HistorySnapshotError,
    Reading,
    clamp,
    utc_now,
)
from .notifications import (
    HttpNotificationTransport,
    NotificationDispatcher,
    NotificationTransport,
)
from .pattern_detector import PatternDetector
from .sinks import (
    DeviceFeedbackSink,
    DisplaySink,
    FileHistoryPersistence,
    HistoryPersistence,
    LoggingDeviceFeedback,
    LoggingDisplaySink,
)
from .trend_tracker import TrendTracker

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = "🏥 Smart health monitor ready - monitoring vital signs"
MANUAL_EMERGENCY_MESSAGE = "Emergency alert triggered manually - system test"
ACKNOWLEDGED_MESSAGE = "✅ Emergency alert acknowledged by user"
CALLED_MESSAGE = "📞 Emergency services contacted - help is on the way"
CALL_LOG_MESSAGE = "Emergency services contacted"
RESET_MESSAGE = "🔄 System reset - all vital signs normal"

# Named test scenarios: heart rate, blood oxygen, description
SCENARIOS = {
    "normal": (75.0, 98.0, "Normal vital signs"),
    "low_heart_rate": (45.0, 98.0, "Low heart rate"),
    "low_oxygen": (75.0, 88.0, "Low blood oxygen"),
    "critical": (40.0, 85.0, "Critical condition"),
}


class HealthMonitor:
    """
    Single-session wearable monitor.

    Every state change happens on the event loop thread; nothing here is
    safe to call from another thread without external serialization.
    """

    def __init__(
        self,
        settings: Optional[MonitorSettings] = None,
        display: Optional[DisplaySink] = None,
        device: Optional[DeviceFeedbackSink] = None,
        persistence: Optional[HistoryPersistence] = None,
        transport: Optional[NotificationTransport] = None,
        contacts: Optional[List[Contact]] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.settings = settings or get_settings()
        self.clock = clock
        self.thresholds = self.settings.thresholds()

        if rng is None:
            rng = random.Random(self.settings.random_seed)
        self.generator = VitalsGenerator(rng=rng, clock=clock)
        self.tracker = TrendTracker(self.settings.window_capacity)
        self.engine = AlertEngine(
            self.thresholds, PatternDetector.from_settings(self.settings), clock=clock
        )
        self.history = HistoryStore(self.settings.history_capacity)

        self.display = display or LoggingDisplaySink()
        self.device = device or LoggingDeviceFeedback()
        if persistence is None:
            persistence = FileHistoryPersistence(self.settings.history_file)
        self.persistence = persistence

        if transport is None and self.settings.notification_webhook_url:
            transport = HttpNotificationTransport(
                self.settings.notification_webhook_url,
                retries=self.settings.notification_retries,
            )
        self.contacts = contacts if contacts is not None else default_contacts()
        self.dispatcher = NotificationDispatcher(
            transport=transport,
            stagger=self.settings.notification_stagger,
            revert_after=self.settings.notification_revert,
            location=self.settings.location,
            vitals=lambda: self.current,
            clock=clock,
        )

        self.current = self._baseline_reading()
        self.monitoring = True
        self.tick_count = 0
        self.last_evaluation: Optional[Evaluation] = None
        self.modal_message: Optional[str] = None
        self._modal_handle: Optional[asyncio.TimerHandle] = None
        self._tasks: List[asyncio.Task] = []

        logger.info(
            f"[MONITOR] Initialized: tick={self.settings.tick_interval}s, "
            f"window={self.settings.window_capacity}, history={self.settings.history_capacity}"
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _baseline_reading(self) -> Reading:
        return Reading(
            heart_rate=self.settings.baseline_heart_rate,
            blood_oxygen=self.settings.baseline_blood_oxygen,
            captured_at=self.clock(),
        )

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def load_history(self) -> int:
        """
        Restore the persisted history.

        A missing, unreadable or corrupt snapshot leaves the history empty.

        Returns:
            Number of alerts restored
        """
        snapshot = self.persistence.load_history()
        if not snapshot:
            return 0
        try:
            self.history.restore(snapshot)
        except HistorySnapshotError as e:
            logger.error(f"[MONITOR] Ignoring corrupt history snapshot: {e}")
            self.history.clear()
            return 0
        self.display.show_history(self.history.recent(self.settings.history_display_count))
        return len(self.history)

    async def start(self) -> None:
        """Load history, greet, and start the tick and housekeeping loops."""
        if self.running:
            logger.warning("[MONITOR] Already running")
            return

        self.load_history()
        self.display.render(self.current, classify_reading(self.current, self.thresholds))
        self.display.show_alert_banner(WELCOME_MESSAGE, "normal")

        loop = asyncio.get_running_loop()
        self._tasks = [
            loop.create_task(self._tick_loop(), name="vitals-tick"),
            loop.create_task(self._housekeeping_loop(), name="vitals-housekeeping"),
        ]
        logger.info("[MONITOR] Started")

    async def stop(self) -> None:
        """Stop the loops, cancel every pending timer and idle the contacts."""
        for task in self._tasks:
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        self._cancel_modal_timer()
        self.dispatcher.reset(self.contacts)
        logger.info(f"[MONITOR] Stopped after {self.tick_count} ticks")

    async def _tick_loop(self) -> None:
        while True:
            await asyncio.sleep(self.settings.tick_interval)
            if not self.monitoring:
                continue
            try:
                self.tick()
            except Exception:
                logger.exception("[MONITOR] Tick failed")

    async def _housekeeping_loop(self) -> None:
        while True:
            await asyncio.sleep(self.settings.housekeeping_interval)
            try:
                self.housekeeping()
            except Exception:
                logger.exception("[HOUSEKEEPING] Pass failed")

    def pause(self) -> None:
        self.monitoring = False
        logger.info("[MONITOR] Monitoring paused")

    def resume(self) -> None:
        self.monitoring = True
        logger.info("[MONITOR] Monitoring resumed")

    # ------------------------------------------------------------------
    # Evaluation cycle
    # ------------------------------------------------------------------

    def tick(self) -> Evaluation:
        """Generate the next reading and run one evaluation cycle."""
        self.tick_count += 1
        return self._run_cycle(self.generator.next(self.current))

    def _run_cycle(self, reading: Reading) -> Evaluation:
        self.current = reading
        self.tracker.push(reading)
        evaluation = self.engine.evaluate(reading, self.tracker)
        self.last_evaluation = evaluation

        alert = evaluation.alert
        if alert is not None and alert.kind is AlertKind.EMERGENCY:
            self._emergency_workflow(alert)
        elif alert is not None:
            self._warning_workflow(alert)
        elif evaluation.recovered:
            self.display.show_alert_banner(RECOVERY_MESSAGE, "normal")
        elif evaluation.trend_notice is not None:
            logger.info(f"[MONITOR] Trend notice: {evaluation.trend_notice.message}")
            self.display.show_alert_banner(evaluation.trend_notice.message, "warning")

        self.display.render(reading, evaluation.severities)

        if evaluation.prediction is not None:
            self._prediction_workflow(evaluation.prediction)

        logger.debug(
            f"[MONITOR] HR {reading.heart_rate:.1f} SpO2 {reading.blood_oxygen:.1f} "
            f"-> {evaluation.severity.value}, abnormal x{evaluation.consecutive_abnormal}"
        )
        return evaluation

    def _record(self, alert: Alert) -> None:
        self.history.append(alert)
        self.display.show_history(self.history.recent(self.settings.history_display_count))
        self.persistence.save_history(self.history.snapshot())

    def _emergency_workflow(self, alert: Alert) -> None:
        self._record(alert)
        self._show_modal(alert.message)
        self.dispatcher.notify(self.contacts, alert)
        self.display.show_alert_banner(alert.message, "critical")
        self.device.signal_emergency()

    def _warning_workflow(self, alert: Alert) -> None:
        self._record(alert)
        self.display.show_alert_banner(alert.message, "warning")
        self.device.signal_warning()

    def _prediction_workflow(self, alert: Alert) -> None:
        self._record(alert)
        self.display.show_alert_banner(alert.message, "warning")
        self.device.signal_prediction()

    # ------------------------------------------------------------------
    # Emergency modal
    # ------------------------------------------------------------------

    @property
    def modal_active(self) -> bool:
        return self.modal_message is not None

    def _show_modal(self, message: str) -> None:
        self.modal_message = message
        self.display.show_emergency_modal(message)
        self._cancel_modal_timer()
        loop = asyncio.get_running_loop()
        self._modal_handle = loop.call_later(self.settings.modal_auto_dismiss, self._auto_dismiss)

    def _cancel_modal_timer(self) -> None:
        if self._modal_handle is not None:
            self._modal_handle.cancel()
            self._modal_handle = None

    def _auto_dismiss(self) -> None:
        self._modal_handle = None
        if self.modal_active:
            logger.info("[MONITOR] Emergency modal auto-dismissed")
            self.acknowledge_emergency()

    def _hide_modal(self) -> None:
        self._cancel_modal_timer()
        self.modal_message = None
        self.display.hide_emergency_modal()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def trigger_emergency(self, message: str = MANUAL_EMERGENCY_MESSAGE) -> Alert:
        """Run the full emergency workflow on the current vitals."""
        alert = self.engine.build_alert(AlertKind.EMERGENCY, message, self.current)
        logger.warning(f"[MONITOR] Manual emergency: {message}")
        self._emergency_workflow(alert)
        return alert

    def acknowledge_emergency(self) -> None:
        self._hide_modal()
        self.display.show_alert_banner(ACKNOWLEDGED_MESSAGE, "normal")

    def call_emergency_services(self) -> Dict[str, Any]:
        """
        Simulate calling emergency services.

        Returns:
            The emergency information that would be read out to the operator
        """
        called_at = self.clock()
        info = {
            "user": "Smart health monitor",
            "location": self.settings.location,
            "time": called_at.isoformat(),
            "heart_rate": round(self.current.heart_rate),
            "blood_oxygen": round(self.current.blood_oxygen),
        }
        logger.warning(
            f"[MONITOR] Calling emergency services: location={info['location']}, "
            f"HR {info['heart_rate']} bpm, SpO2 {info['blood_oxygen']}%"
        )

        self._hide_modal()
        self.display.show_alert_banner(CALLED_MESSAGE, "normal")
        self._record(self.engine.build_alert(AlertKind.EMERGENCY_CALL, CALL_LOG_MESSAGE, self.current))
        return info

    def inject_scenario(
        self, heart_rate: float, blood_oxygen: float, name: str = "custom"
    ) -> Evaluation:
        """Make a given vitals pair current and evaluate it immediately."""
        reading = Reading(
            heart_rate=clamp(float(heart_rate), HEART_RATE_BOUNDS),
            blood_oxygen=clamp(float(blood_oxygen), BLOOD_OXYGEN_BOUNDS),
            captured_at=self.clock(),
        )
        logger.info(
            f"[MONITOR] Scenario '{name}': HR {reading.heart_rate}, SpO2 {reading.blood_oxygen}%"
        )
        return self._run_cycle(reading)

    def run_scenario(self, name: str) -> Evaluation:
        """Inject one of the named SCENARIOS; raises KeyError for unknown names."""
        heart_rate, blood_oxygen, description = SCENARIOS[name]
        return self.inject_scenario(heart_rate, blood_oxygen, description)

    def reset(self) -> None:
        """Back to baseline vitals with a clean window and idle contacts."""
        self.current = self._baseline_reading()
        self.engine.reset()
        self.tracker.clear()
        self.dispatcher.reset(self.contacts)
        self._hide_modal()

        self.display.render(self.current, classify_reading(self.current, self.thresholds))
        self.display.show_alert_banner(RESET_MESSAGE, "normal")
        logger.info("[MONITOR] System reset: sensors recalibrated")

    # ------------------------------------------------------------------
    # Housekeeping and reporting
    # ------------------------------------------------------------------

    def housekeeping(self) -> Dict[str, Any]:
        """Log a system-health snapshot and trim the window if it overgrew."""
        snapshot = {
            "timestamp": self.clock().isoformat(),
            "monitoring": self.monitoring,
            "history_length": len(self.history),
            "window_length": len(self.tracker),
            "consecutive_abnormal": self.engine.state.consecutive_abnormal,
        }
        logger.info(f"[HOUSEKEEPING] System health: {snapshot}")
        snapshot["trimmed"] = self.tracker.trim()
        return snapshot

    def get_status(self) -> Dict[str, Any]:
        severities = classify_reading(self.current, self.thresholds)
        state = self.engine.state
        return {
            "monitoring": self.monitoring,
            "running": self.running,
            "tick_count": self.tick_count,
            "current": self.current.to_dict(),
            "severities": {metric.value: severity.value for metric, severity in severities.items()},
            "consecutive_abnormal": state.consecutive_abnormal,
            "last_normal_at": state.last_normal_at.isoformat(),
            "device_status": self.engine.device_status().value,
            "modal_active": self.modal_active,
            "modal_message": self.modal_message,
            "contacts": [contact.to_dict() for contact in self.contacts],
            "window_length": len(self.tracker),
            "history_length": len(self.history),
        }

    def export_data(self) -> Dict[str, Any]:
        """Everything the device knows, ready for json.dumps."""
        return {
            "export_time": self.clock().isoformat(),
            "alert_history": [alert.to_dict() for alert in self.history.all()],
            "vitals_history": [
                reading.to_dict() for reading in self.tracker.recent(len(self.tracker))
            ],
            "current_vitals": {
                "heart_rate": self.current.heart_rate,
                "blood_oxygen": self.current.blood_oxygen,
            },
        }
