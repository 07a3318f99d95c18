"""Monitor status and command models."""
from pydantic import BaseModel, Field
from typing import Literal, Optional

from .alerts import AlertRecord

SeverityName = Literal["normal", "warning", "critical", "emergency"]


class VitalsReading(BaseModel):
    """A single reading of both vital signs."""

    heart_rate: float
    blood_oxygen: float
    captured_at: str


class ContactState(BaseModel):
    """Emergency contact with its notification status."""

    name: str
    phone: str
    display_ref: str
    status: Literal["idle", "sent"]
    last_notified_at: Optional[str] = None


class MonitorStatus(BaseModel):
    """Current state of the monitor."""

    monitoring: bool
    running: bool
    tick_count: int
    current: VitalsReading
    severities: dict[str, SeverityName]
    consecutive_abnormal: int
    last_normal_at: str
    device_status: Literal["connected", "monitoring", "alert_active"]
    modal_active: bool
    modal_message: Optional[str] = None
    contacts: list[ContactState]
    window_length: int
    history_length: int


class ScenarioRequest(BaseModel):
    """Custom vitals pair to inject."""

    heart_rate: float = Field(ge=0, le=300)
    blood_oxygen: float = Field(ge=0, le=100)
    name: str = "custom"


class EvaluationResult(BaseModel):
    """Outcome of one evaluation cycle."""

    reading: VitalsReading
    severities: dict[str, SeverityName]
    severity: SeverityName
    alert: Optional[AlertRecord] = None
    prediction: Optional[AlertRecord] = None
    recovered: bool
    consecutive_abnormal: int


class EmergencyCall(BaseModel):
    """Information read out to emergency services."""

    user: str
    location: str
    time: str
    heart_rate: int
    blood_oxygen: int
