"""Pydantic models for monitor API responses."""
from .alerts import AlertRecord
from .monitor import (
    ContactState,
    EmergencyCall,
    EvaluationResult,
    MonitorStatus,
    ScenarioRequest,
    VitalsReading,
)

__all__ = [
    "AlertRecord",
    "ContactState",
    "EmergencyCall",
    "EvaluationResult",
    "MonitorStatus",
    "ScenarioRequest",
    "VitalsReading",
]
