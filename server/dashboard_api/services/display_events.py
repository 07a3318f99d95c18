"""Thread-safe in-memory display event queue for real-time dashboards.

This module is the server's display sink: everything the monitor would
draw on the device (vitals, banners, history, emergency modal, contact
statuses) is published as an event that connected clients receive via SSE.
"""
import asyncio
import threading
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import AsyncIterator, Dict, Sequence

from vitals_monitor.models import Alert, Contact, Metric, Reading, Severity


class DisplayEventType(str, Enum):
    """Types of display events."""
    VITALS = "vitals"
    BANNER = "banner"
    HISTORY = "history"
    MODAL_SHOWN = "modal_shown"
    MODAL_HIDDEN = "modal_hidden"
    CONTACT_STATUS = "contact_status"


@dataclass
class DisplayEvent:
    """One update of the device display."""

    event_type: DisplayEventType
    data: dict = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "data": self.data,
        }


class DisplayEventQueue:
    """Thread-safe in-memory queue for display events.

    Supports multiple SSE subscribers and maintains a history buffer
    for new connections to catch up on recent events.
    """

    def __init__(self, max_history: int = 100):
        """Initialize the event queue.

        Args:
            max_history: Maximum number of events to keep in history buffer.
        """
        self._history: deque[DisplayEvent] = deque(maxlen=max_history)
        self._subscribers: list[asyncio.Queue] = []
        self._lock = threading.Lock()
        self._stats = {
            "total_published": 0,
            "total_subscribers": 0,
            "events_by_type": {},
        }

    def publish(self, event: DisplayEvent) -> None:
        """Publish an event to all subscribers.

        Args:
            event: The display event to publish.
        """
        with self._lock:
            self._history.append(event)

            self._stats["total_published"] += 1
            event_type = event.event_type.value
            self._stats["events_by_type"][event_type] = \
                self._stats["events_by_type"].get(event_type, 0) + 1

            # Notify all subscribers, dropping those that stopped reading
            dead_subscribers = []
            for queue in self._subscribers:
                try:
                    queue.put_nowait(event)
                except asyncio.QueueFull:
                    dead_subscribers.append(queue)

            for queue in dead_subscribers:
                self._subscribers.remove(queue)

    async def subscribe(
        self,
        include_history: bool = True,
        history_count: int = 10
    ) -> AsyncIterator[DisplayEvent]:
        """Subscribe to real-time display events via async generator.

        Args:
            include_history: Whether to yield recent events first.
            history_count: Number of recent events to include from history.

        Yields:
            DisplayEvent objects as they arrive.
        """
        queue: asyncio.Queue[DisplayEvent] = asyncio.Queue(maxsize=100)

        with self._lock:
            self._subscribers.append(queue)
            self._stats["total_subscribers"] += 1

            if include_history and history_count > 0:
                for event in list(self._history)[-history_count:]:
                    queue.put_nowait(event)

        try:
            while True:
                event = await queue.get()
                yield event
        finally:
            with self._lock:
                if queue in self._subscribers:
                    self._subscribers.remove(queue)

    def get_history(self, count: int = 50) -> list[DisplayEvent]:
        """Get recent events, newest first."""
        with self._lock:
            return list(self._history)[-count:][::-1]

    def get_stats(self) -> dict:
        with self._lock:
            return {
                **self._stats,
                "current_subscribers": len(self._subscribers),
                "history_size": len(self._history),
            }

    def clear_history(self) -> None:
        with self._lock:
            self._history.clear()

    # Display sink interface

    def render(self, reading: Reading, severities: Dict[Metric, Severity]) -> None:
        self.publish(DisplayEvent(
            event_type=DisplayEventType.VITALS,
            data={
                "heart_rate": round(reading.heart_rate),
                "blood_oxygen": round(reading.blood_oxygen),
                "severities": {metric.value: severity.value for metric, severity in severities.items()},
                "captured_at": reading.captured_at.isoformat(),
            },
        ))

    def show_alert_banner(self, message: str, severity_kind: str) -> None:
        self.publish(DisplayEvent(
            event_type=DisplayEventType.BANNER,
            data={"message": message, "severity": severity_kind},
        ))

    def show_history(self, alerts: Sequence[Alert]) -> None:
        self.publish(DisplayEvent(
            event_type=DisplayEventType.HISTORY,
            data={"alerts": [alert.to_dict() for alert in alerts]},
        ))

    def show_emergency_modal(self, message: str) -> None:
        self.publish(DisplayEvent(
            event_type=DisplayEventType.MODAL_SHOWN,
            data={"message": message},
        ))

    def hide_emergency_modal(self) -> None:
        self.publish(DisplayEvent(event_type=DisplayEventType.MODAL_HIDDEN))

    def show_contact_status(self, contact: Contact) -> None:
        self.publish(DisplayEvent(
            event_type=DisplayEventType.CONTACT_STATUS,
            data=contact.to_dict(),
        ))


# Global singleton instance
display_events = DisplayEventQueue()

