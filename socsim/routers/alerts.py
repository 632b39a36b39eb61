"""
Alert endpoints - querying, triaging and annotating simulated alerts.
"""

from typing import List, Optional, Union
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi import status as http_status

from socsim import schemas
from socsim.security import verify_api_key
from socsim.services.simulator import RecordNotFound, SimulatorController, get_controller

logger = logging.getLogger(__name__)
router = APIRouter()


# ---------------------------------------------------------------------------
# GET / - list alerts
# ---------------------------------------------------------------------------
@router.get(
    "",
    response_model=List[schemas.Alert],
    summary="List alerts (optionally filtered by a query)",
)
def list_alerts(
    q: Optional[str] = Query(None, description='Query, e.g. severity:high AND source:"Entra ID"'),
    limit: Optional[int] = Query(None, ge=1, le=1000, description="Max results"),
    controller: SimulatorController = Depends(get_controller),
    api_key: str = Depends(verify_api_key),
):
    return controller.list_alerts(q, limit)


# ---------------------------------------------------------------------------
# GET /{alert_id} - alert detail
# ---------------------------------------------------------------------------
@router.get(
    "/{alert_id}",
    response_model=schemas.Alert,
    summary="Get full alert details",
)
def get_alert(
    alert_id: str,
    controller: SimulatorController = Depends(get_controller),
    api_key: str = Depends(verify_api_key),
):
    try:
        return controller.get_alert(alert_id)
    except RecordNotFound as exc:
        raise HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail=str(exc))


# ---------------------------------------------------------------------------
# PATCH /{alert_id} - status / severity / text changes
# ---------------------------------------------------------------------------
@router.patch(
    "/{alert_id}",
    response_model=schemas.Alert,
    summary="Update an alert (status changes are recorded on the timeline)",
)
def update_alert(
    alert_id: str,
    patch: schemas.AlertPatch,
    controller: SimulatorController = Depends(get_controller),
    api_key: str = Depends(verify_api_key),
):
    try:
        return controller.update_alert(alert_id, patch.model_dump(exclude_unset=True, exclude_none=True))
    except RecordNotFound as exc:
        raise HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail=str(exc))


# ---------------------------------------------------------------------------
# POST /{alert_id}/triage - move to triage
# ---------------------------------------------------------------------------
@router.post(
    "/{alert_id}/triage",
    response_model=schemas.Alert,
    summary="Move an alert to triage",
)
def triage_alert(
    alert_id: str,
    controller: SimulatorController = Depends(get_controller),
    api_key: str = Depends(verify_api_key),
):
    try:
        return controller.triage_alert(alert_id)
    except RecordNotFound as exc:
        raise HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail=str(exc))


# ---------------------------------------------------------------------------
# POST /{alert_id}/notes - analyst note
# ---------------------------------------------------------------------------
@router.post(
    "/{alert_id}/notes",
    response_model=Union[schemas.Alert, schemas.ActionResult],
    summary="Add an analyst note (blank body is ignored)",
)
def add_alert_note(
    alert_id: str,
    note: schemas.NoteCreate,
    controller: SimulatorController = Depends(get_controller),
    api_key: str = Depends(verify_api_key),
):
    try:
        alert = controller.add_alert_note(alert_id, note.body)
    except RecordNotFound as exc:
        raise HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail=str(exc))
    if alert is None:
        return schemas.ActionResult(ok=False, abandoned=True, message="Empty note, nothing added")
    return alert


# ---------------------------------------------------------------------------
# POST /{alert_id}/case - open a case from this alert
# ---------------------------------------------------------------------------
@router.post(
    "/{alert_id}/case",
    response_model=schemas.CaseFromAlertResult,
    status_code=http_status.HTTP_201_CREATED,
    summary="Create a case linked to this alert (alert moves to triage)",
)
def create_case_from_alert(
    alert_id: str,
    controller: SimulatorController = Depends(get_controller),
    api_key: str = Depends(verify_api_key),
):
    try:
        case, alert = controller.new_case_from_alert(alert_id)
    except RecordNotFound as exc:
        raise HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail=str(exc))
    logger.info("Case %s opened from alert %s", case.id, alert_id)
    return schemas.CaseFromAlertResult(case=case, alert=alert)
