"""
Case endpoints - investigations grouping one or more alerts.
"""

from typing import List, Optional, Union
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from fastapi import status as http_status

from socsim import schemas
from socsim.security import verify_api_key
from socsim.services.simulator import RecordNotFound, SimulatorController, get_controller

logger = logging.getLogger(__name__)
router = APIRouter()


def _abandoned(message: str) -> schemas.ActionResult:
    return schemas.ActionResult(ok=False, abandoned=True, message=message)


# ---------------------------------------------------------------------------
# GET / - list cases (newest first)
# ---------------------------------------------------------------------------
@router.get(
    "",
    response_model=List[schemas.Case],
    summary="List cases",
)
def list_cases(
    q: Optional[str] = Query(None, description="Optional query, e.g. status:new"),
    controller: SimulatorController = Depends(get_controller),
    api_key: str = Depends(verify_api_key),
):
    return controller.list_cases(q)


# ---------------------------------------------------------------------------
# POST / - manual case
# ---------------------------------------------------------------------------
@router.post(
    "",
    response_model=Union[schemas.Case, schemas.ActionResult],
    status_code=http_status.HTTP_201_CREATED,
    summary="Create a case manually (blank title is ignored)",
)
def create_case(
    payload: schemas.CaseCreate,
    response: Response,
    controller: SimulatorController = Depends(get_controller),
    api_key: str = Depends(verify_api_key),
):
    case = controller.new_case_manual(payload.title, payload.summary)
    if case is None:
        response.status_code = http_status.HTTP_200_OK
        return _abandoned("Empty title, no case created")
    return case


# ---------------------------------------------------------------------------
# GET /{case_id} - case detail with linked alerts
# ---------------------------------------------------------------------------
@router.get(
    "/{case_id}",
    response_model=schemas.CaseDetail,
    summary="Get case details and its linked alerts",
)
def get_case(
    case_id: str,
    controller: SimulatorController = Depends(get_controller),
    api_key: str = Depends(verify_api_key),
):
    try:
        case, alerts = controller.case_detail(case_id)
    except RecordNotFound as exc:
        raise HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail=str(exc))
    return schemas.CaseDetail(**case.model_dump(), linked_alerts=alerts)


# ---------------------------------------------------------------------------
# PATCH /{case_id}
# ---------------------------------------------------------------------------
@router.patch(
    "/{case_id}",
    response_model=schemas.Case,
    summary="Update a case (status changes are recorded on the timeline)",
)
def update_case(
    case_id: str,
    patch: schemas.CasePatch,
    controller: SimulatorController = Depends(get_controller),
    api_key: str = Depends(verify_api_key),
):
    try:
        return controller.update_case(case_id, patch.model_dump(exclude_unset=True, exclude_none=True))
    except RecordNotFound as exc:
        raise HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail=str(exc))


# ---------------------------------------------------------------------------
# POST /{case_id}/notes
# ---------------------------------------------------------------------------
@router.post(
    "/{case_id}/notes",
    response_model=Union[schemas.Case, schemas.ActionResult],
    summary="Add a case note (blank body is ignored)",
)
def add_case_note(
    case_id: str,
    note: schemas.NoteCreate,
    controller: SimulatorController = Depends(get_controller),
    api_key: str = Depends(verify_api_key),
):
    try:
        case = controller.add_case_note(case_id, note.body)
    except RecordNotFound as exc:
        raise HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail=str(exc))
    return case if case is not None else _abandoned("Empty note, nothing added")


# ---------------------------------------------------------------------------
# POST /{case_id}/timeline - manual timeline event
# ---------------------------------------------------------------------------
@router.post(
    "/{case_id}/timeline",
    response_model=Union[schemas.Case, schemas.ActionResult],
    summary="Add a manual timeline event (blank message is ignored)",
)
def add_case_event(
    case_id: str,
    event: schemas.TimelineEventCreate,
    controller: SimulatorController = Depends(get_controller),
    api_key: str = Depends(verify_api_key),
):
    try:
        case = controller.add_case_event(case_id, event.msg)
    except RecordNotFound as exc:
        raise HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail=str(exc))
    return case if case is not None else _abandoned("Empty event, nothing added")
