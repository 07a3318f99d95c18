"""API route modules."""
from .monitor import router as monitor_router
from .stream import router as stream_router

__all__ = [
    "monitor_router",
    "stream_router",
]
