"""Monitor instance shared by the API routes."""
import logging

from fastapi import Request

from vitals_monitor import HealthMonitor
from vitals_monitor.config import get_settings as get_monitor_settings

from .display_events import DisplayEventQueue, display_events

log = logging.getLogger(__name__)


def build_monitor(events: DisplayEventQueue = display_events) -> HealthMonitor:
    """Create a monitor that draws on the SSE display event queue."""
    monitor = HealthMonitor(settings=get_monitor_settings(), display=events)
    monitor.dispatcher.add_listener(events.show_contact_status)
    log.info("Monitor created with SSE display sink")
    return monitor


def get_monitor(request: Request) -> HealthMonitor:
    """FastAPI dependency returning the app's monitor."""
    return request.app.state.monitor
