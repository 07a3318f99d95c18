"""Health alert models."""
from pydantic import BaseModel
from typing import Literal

AlertKindName = Literal["warning", "emergency", "prediction", "emergency_call"]


class AlertRecord(BaseModel):
    """Alert as stored in the device history."""

    kind: AlertKindName
    message: str
    occurred_at: str
    heart_rate: float
    blood_oxygen: float
