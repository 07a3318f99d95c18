"""Smart Health Monitor Dashboard API - FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vitals_monitor import HealthMonitor

from .config import get_settings
from .routes import monitor, stream
from .services.monitor import build_monitor

log = logging.getLogger(__name__)

settings = get_settings()


def create_app(
    monitor_instance: Optional[HealthMonitor] = None,
    autostart: Optional[bool] = None,
) -> FastAPI:
    """
    Build the API application.

    Args:
        monitor_instance: Monitor to serve (built with the SSE display sink if omitted)
        autostart: Start the tick loops with the app (defaults to settings)
    """
    if autostart is None:
        autostart = settings.monitor_autostart

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.monitor = monitor_instance or build_monitor()
        if autostart:
            await app.state.monitor.start()
        try:
            yield
        finally:
            await app.state.monitor.stop()
            log.info("Monitor stopped with the API")

    app = FastAPI(
        title="Smart Health Monitor API",
        description="Simulated wearable vitals monitor: status, history, commands and live display stream",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Configure CORS for frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.include_router(monitor.router)
    app.include_router(stream.router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint for the API."""
        return {"status": "healthy", "service": "health-monitor-api"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "server.dashboard_api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True,
    )
