"""
Reference data endpoints - static playbooks and the asset inventory.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi import status as http_status

from socsim import schemas
from socsim.security import verify_api_key
from socsim.services.simulator import RecordNotFound, SimulatorController, get_controller

router = APIRouter()
assets_router = APIRouter()


# ---------------------------------------------------------------------------
# Playbooks
# ---------------------------------------------------------------------------
@router.get("", response_model=List[schemas.Playbook], summary="List playbooks")
def list_playbooks(
    controller: SimulatorController = Depends(get_controller),
    api_key: str = Depends(verify_api_key),
):
    return controller.state.playbooks


@router.get("/{playbook_id}", response_model=schemas.Playbook, summary="Get a playbook")
def get_playbook(
    playbook_id: str,
    controller: SimulatorController = Depends(get_controller),
    api_key: str = Depends(verify_api_key),
):
    try:
        return controller.get_playbook(playbook_id)
    except RecordNotFound as exc:
        raise HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail=str(exc))


# ---------------------------------------------------------------------------
# Assets
# ---------------------------------------------------------------------------
@assets_router.get("", response_model=List[schemas.Asset], summary="Search assets by host, owner or dept")
def search_assets(
    q: Optional[str] = Query(None, description="Substring of host, owner or dept"),
    controller: SimulatorController = Depends(get_controller),
    api_key: str = Depends(verify_api_key),
):
    return controller.search_assets(q)
