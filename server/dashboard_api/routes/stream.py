"""Display event API routes.

Real-time stream of everything the device display shows, via SSE.
"""
import json
from fastapi import APIRouter, Query
from fastapi.responses import StreamingResponse

from ..services.display_events import display_events

router = APIRouter(prefix="/api/monitor", tags=["Display"])


@router.get("/stream")
async def stream_display_events(
    include_history: bool = Query(True, description="Include recent events on connect"),
    history_count: int = Query(10, ge=0, le=50, description="Number of historical events")
):
    """
    Stream display events via Server-Sent Events (SSE).

    Events include:
    - vitals: current readings with per-metric severity
    - banner: alert banner text and severity
    - history: the visible part of the alert history
    - modal_shown / modal_hidden: emergency modal
    - contact_status: emergency contact notified / back to idle

    The stream never closes - clients should handle reconnection.

    Usage with curl:
        curl -N http://localhost:8082/api/monitor/stream
    """
    async def event_generator():
        async for event in display_events.subscribe(
            include_history=include_history,
            history_count=history_count
        ):
            data = json.dumps(event.to_dict(), ensure_ascii=False)
            yield f"event: {event.event_type.value}\ndata: {data}\n\n"

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        }
    )


@router.get("/events")
async def get_display_event_history(
    count: int = Query(50, ge=1, le=100, description="Number of events to return")
):
    """Recent display events, newest first."""
    return [event.to_dict() for event in display_events.get_history(count)]


@router.get("/events/stats")
async def get_display_event_stats():
    """Counts of events by type and current subscribers."""
    return display_events.get_stats()
