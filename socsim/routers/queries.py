"""
Saved query endpoints.
"""

from typing import List, Union

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi import status as http_status

from socsim import schemas
from socsim.security import verify_api_key
from socsim.services.simulator import RecordNotFound, SimulatorController, get_controller

router = APIRouter()


@router.get("", response_model=List[schemas.SavedQuery], summary="List saved queries")
def list_saved_queries(
    controller: SimulatorController = Depends(get_controller),
    api_key: str = Depends(verify_api_key),
):
    return controller.state.saved_queries


@router.post(
    "",
    response_model=Union[schemas.SavedQuery, schemas.ActionResult],
    status_code=http_status.HTTP_201_CREATED,
    summary="Save a query (no syntax validation)",
)
def save_query(
    payload: schemas.SavedQueryCreate,
    response: Response,
    controller: SimulatorController = Depends(get_controller),
    api_key: str = Depends(verify_api_key),
):
    saved = controller.save_query(payload.name, payload.query)
    if saved is None:
        response.status_code = http_status.HTTP_200_OK
        return schemas.ActionResult(ok=False, abandoned=True, message="Name and query are required")
    return saved


@router.delete(
    "/{query_id}",
    status_code=http_status.HTTP_204_NO_CONTENT,
    summary="Delete a saved query",
)
def delete_saved_query(
    query_id: str,
    controller: SimulatorController = Depends(get_controller),
    api_key: str = Depends(verify_api_key),
):
    try:
        controller.delete_saved_query(query_id)
    except RecordNotFound as exc:
        raise HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail=str(exc))
    return Response(status_code=http_status.HTTP_204_NO_CONTENT)
