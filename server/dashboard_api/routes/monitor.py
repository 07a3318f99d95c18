"""Monitor API routes.

Status, history and export of the simulated wearable, plus the command
surface of the device UI (manual emergency, reset, scenarios,
acknowledgment, emergency-services call).
"""
from fastapi import APIRouter, Depends, HTTPException, Query

from vitals_monitor import SCENARIOS, Evaluation, HealthMonitor

from ..models import (
    AlertRecord,
    EmergencyCall,
    EvaluationResult,
    MonitorStatus,
    ScenarioRequest,
)
from ..services.monitor import get_monitor

router = APIRouter(prefix="/api/monitor", tags=["Monitor"])


def _evaluation_to_result(evaluation: Evaluation) -> EvaluationResult:
    return EvaluationResult(
        reading=evaluation.reading.to_dict(),
        severities={metric.value: severity.value for metric, severity in evaluation.severities.items()},
        severity=evaluation.severity.value,
        alert=evaluation.alert.to_dict() if evaluation.alert else None,
        prediction=evaluation.prediction.to_dict() if evaluation.prediction else None,
        recovered=evaluation.recovered,
        consecutive_abnormal=evaluation.consecutive_abnormal,
    )


@router.get("/status", response_model=MonitorStatus)
async def get_status(monitor: HealthMonitor = Depends(get_monitor)):
    """Current vitals, severities, escalation and contact statuses."""
    return monitor.get_status()


@router.get("/history", response_model=list[AlertRecord])
async def get_history(
    count: int = Query(50, ge=1, le=100, description="Number of alerts to return"),
    monitor: HealthMonitor = Depends(get_monitor),
):
    """
    Get the alert history.

    Returns alerts ordered from newest to oldest.
    """
    return [alert.to_dict() for alert in monitor.history.recent(count)]


@router.get("/export")
async def export_data(monitor: HealthMonitor = Depends(get_monitor)):
    """Export alert history, the rolling vitals window and current vitals."""
    return monitor.export_data()


@router.get("/scenarios")
async def list_scenarios():
    """Available named scenarios."""
    return {
        name: {"heart_rate": hr, "blood_oxygen": o2, "description": description}
        for name, (hr, o2, description) in SCENARIOS.items()
    }


@router.post("/scenarios/{name}", response_model=EvaluationResult)
async def run_scenario(name: str, monitor: HealthMonitor = Depends(get_monitor)):
    """Inject a named scenario and evaluate it immediately."""
    if name not in SCENARIOS:
        raise HTTPException(status_code=404, detail=f"Unknown scenario: {name}")
    return _evaluation_to_result(monitor.run_scenario(name))


@router.post("/scenarios", response_model=EvaluationResult)
async def inject_scenario(
    request: ScenarioRequest,
    monitor: HealthMonitor = Depends(get_monitor),
):
    """Inject a custom vitals pair (clamped to the simulation bounds)."""
    evaluation = monitor.inject_scenario(request.heart_rate, request.blood_oxygen, request.name)
    return _evaluation_to_result(evaluation)


@router.post("/emergency", response_model=AlertRecord)
async def trigger_emergency(monitor: HealthMonitor = Depends(get_monitor)):
    """Trigger the emergency workflow manually (system test)."""
    return monitor.trigger_emergency().to_dict()


@router.post("/acknowledge")
async def acknowledge_emergency(monitor: HealthMonitor = Depends(get_monitor)):
    """Acknowledge the active emergency and close the modal."""
    was_active = monitor.modal_active
    monitor.acknowledge_emergency()
    return {"status": "acknowledged", "modal_was_active": was_active}


@router.post("/call-emergency", response_model=EmergencyCall)
async def call_emergency_services(monitor: HealthMonitor = Depends(get_monitor)):
    """Simulate a call to emergency services."""
    return monitor.call_emergency_services()


@router.post("/reset")
async def reset_monitor(monitor: HealthMonitor = Depends(get_monitor)):
    """Reset vitals to baseline and clear escalation state."""
    monitor.reset()
    return {"status": "reset"}


@router.post("/pause")
async def pause_monitor(monitor: HealthMonitor = Depends(get_monitor)):
    monitor.pause()
    return {"status": "paused"}


@router.post("/resume")
async def resume_monitor(monitor: HealthMonitor = Depends(get_monitor)):
    monitor.resume()
    return {"status": "monitoring"}
