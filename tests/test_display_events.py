"""
Tests for the SSE display event queue.

Usage:
    pytest tests/test_display_events.py -v
"""
import asyncio

import pytest

from server.dashboard_api.services.display_events import (
    DisplayEventQueue,
    DisplayEventType,
)
from server.dashboard_api.services.monitor import build_monitor
from vitals_monitor.models import Contact, Metric, NotificationStatus, Reading, Severity


@pytest.fixture
def events():
    return DisplayEventQueue(max_history=10)


class TestDisplaySink:
    """The queue used as the monitor's display."""

    def test_render_publishes_vitals(self, events):
        events.render(
            Reading(74.6, 97.2),
            {Metric.HEART_RATE: Severity.NORMAL, Metric.BLOOD_OXYGEN: Severity.NORMAL},
        )

        event = events.get_history(1)[0]
        assert event.event_type is DisplayEventType.VITALS
        assert event.data["heart_rate"] == 75
        assert event.data["blood_oxygen"] == 97
        assert event.data["severities"] == {"heart_rate": "normal", "blood_oxygen": "normal"}

    def test_banner_modal_and_contact(self, events):
        events.show_alert_banner("Careful", "warning")
        events.show_emergency_modal("Critical")
        events.hide_emergency_modal()
        events.show_contact_status(Contact("Family member", "1", "contact2", NotificationStatus.SENT))

        types = [e.event_type for e in events.get_history(10)]
        assert types == [
            DisplayEventType.CONTACT_STATUS,
            DisplayEventType.MODAL_HIDDEN,
            DisplayEventType.MODAL_SHOWN,
            DisplayEventType.BANNER,
        ]
        assert events.get_history(1)[0].data["status"] == "sent"

    def test_history_is_bounded(self, events):
        for i in range(15):
            events.show_alert_banner(f"banner {i}", "normal")

        stats = events.get_stats()
        assert stats["history_size"] == 10
        assert stats["total_published"] == 15
        assert stats["events_by_type"] == {"banner": 15}

    def test_clear_history(self, events):
        events.show_alert_banner("x", "normal")
        events.clear_history()
        assert events.get_history() == []


class TestSubscribe:
    """Live subscribers."""

    @pytest.mark.asyncio
    async def test_subscriber_gets_history_then_live_events(self, events):
        events.show_alert_banner("before", "normal")
        stream = events.subscribe(include_history=True, history_count=5)

        first = await asyncio.wait_for(stream.__anext__(), timeout=1)
        events.show_alert_banner("after", "normal")
        second = await asyncio.wait_for(stream.__anext__(), timeout=1)

        assert first.data["message"] == "before"
        assert second.data["message"] == "after"
        assert events.get_stats()["current_subscribers"] == 1

        await stream.aclose()
        assert events.get_stats()["current_subscribers"] == 0


class TestMonitorWiring:
    """Monitor built for the API."""

    @pytest.mark.asyncio
    async def test_contact_status_reaches_the_stream(self, events, fast_settings, monkeypatch):
        monkeypatch.setattr(
            "server.dashboard_api.services.monitor.get_monitor_settings", lambda: fast_settings
        )
        monitor = build_monitor(events)

        monitor.trigger_emergency()
        await monitor.dispatcher.wait_delivered()

        types = [e.event_type for e in events.get_history(10)]
        assert DisplayEventType.MODAL_SHOWN in types
        assert DisplayEventType.CONTACT_STATUS in types
        await monitor.stop()
