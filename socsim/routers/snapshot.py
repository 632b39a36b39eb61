"""
Snapshot endpoints - export/import, reset, UI state, preferences and a
manual generator tick.
"""

from typing import Any, Dict
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi import status as http_status
from fastapi.concurrency import run_in_threadpool

from socsim import schemas
from socsim.security import verify_api_key
from socsim.services.generator import get_generator
from socsim.services.simulator import SimulatorController, SnapshotImportError, get_controller

logger = logging.getLogger(__name__)
router = APIRouter()


# ---------------------------------------------------------------------------
# Export / import / reset
# ---------------------------------------------------------------------------
@router.get("", summary="Export {state, prefs} as JSON")
def export_snapshot(
    controller: SimulatorController = Depends(get_controller),
    api_key: str = Depends(verify_api_key),
) -> Dict[str, Any]:
    return controller.export_snapshot()


@router.post(
    "",
    response_model=schemas.ActionResult,
    summary="Import a previously exported snapshot (replaces state)",
)
async def import_snapshot(
    request: Request,
    controller: SimulatorController = Depends(get_controller),
    api_key: str = Depends(verify_api_key),
):
    raw = await request.body()
    try:
        payload = await run_in_threadpool(controller.import_snapshot, raw)
    except SnapshotImportError as exc:
        logger.warning("Snapshot import rejected: %s", exc)
        raise HTTPException(status_code=http_status.HTTP_400_BAD_REQUEST, detail=f"Import failed: {exc}")
    return schemas.ActionResult(
        ok=True,
        message=f"Imported {len(payload.state.alerts)} alerts and {len(payload.state.cases)} cases",
    )


@router.post("/reset", response_model=schemas.AppState, summary="Rebuild the default state")
def reset_state(
    controller: SimulatorController = Depends(get_controller),
    api_key: str = Depends(verify_api_key),
):
    return controller.reset()


# ---------------------------------------------------------------------------
# UI state
# ---------------------------------------------------------------------------
@router.get("/ui", response_model=schemas.UiState, summary="Get persisted UI state")
def get_ui(
    controller: SimulatorController = Depends(get_controller),
    api_key: str = Depends(verify_api_key),
):
    return controller.state.ui


@router.patch("/ui", response_model=schemas.UiState, summary="Update persisted UI state")
def update_ui(
    patch: schemas.UiPatch,
    controller: SimulatorController = Depends(get_controller),
    api_key: str = Depends(verify_api_key),
):
    return controller.set_ui(patch.model_dump(exclude_unset=True))


# ---------------------------------------------------------------------------
# Preferences
# ---------------------------------------------------------------------------
@router.get("/prefs", response_model=schemas.Preferences, summary="Get preferences")
def get_prefs(
    controller: SimulatorController = Depends(get_controller),
    api_key: str = Depends(verify_api_key),
):
    return controller.prefs


@router.post("/prefs/generator", response_model=schemas.Preferences, summary="Toggle the alert generator")
def toggle_generator(
    controller: SimulatorController = Depends(get_controller),
    api_key: str = Depends(verify_api_key),
):
    return controller.toggle_generator()


@router.post("/prefs/demo-seed", response_model=schemas.Preferences, summary="Toggle demo seeding on reset")
def toggle_demo_seed(
    controller: SimulatorController = Depends(get_controller),
    api_key: str = Depends(verify_api_key),
):
    return controller.toggle_demo_seed()


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------
@router.post(
    "/generator/tick",
    response_model=schemas.TickResult,
    summary="Run one generator step now (ignores the generator toggle)",
)
def generator_tick(api_key: str = Depends(verify_api_key)):
    result = get_generator().tick(force=True)
    if result is None:
        return schemas.TickResult(generated=False)
    alert, log = result
    return schemas.TickResult(generated=True, alert=alert, log=log)
