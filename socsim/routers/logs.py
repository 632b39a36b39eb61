"""
Log endpoints - raw telemetry search and log -> alert pivots.
"""

from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi import status as http_status

from socsim import schemas
from socsim.config import settings
from socsim.security import verify_api_key
from socsim.services.simulator import RecordNotFound, SimulatorController, get_controller

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get(
    "",
    response_model=List[schemas.LogEntry],
    summary="Search logs (newest first)",
)
def list_logs(
    q: Optional[str] = Query(None, description="Query, e.g. user:alex NOT severity:low"),
    limit: int = Query(settings.LOG_VIEW_LIMIT, ge=1, le=1000, description="Max results"),
    controller: SimulatorController = Depends(get_controller),
    api_key: str = Depends(verify_api_key),
):
    return controller.list_logs(q, limit)


@router.post(
    "/{log_id}/pivot",
    response_model=schemas.Alert,
    status_code=http_status.HTTP_201_CREATED,
    summary="Create an alert from a log entry",
)
def pivot_log(
    log_id: str,
    controller: SimulatorController = Depends(get_controller),
    api_key: str = Depends(verify_api_key),
):
    try:
        return controller.pivot_log(log_id)
    except RecordNotFound as exc:
        raise HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail=str(exc))
