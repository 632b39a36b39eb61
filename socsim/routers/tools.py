"""
Analyst tool endpoints. Stateless; nothing here reads or writes the simulator state.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi import status as http_status

from socsim import schemas
from socsim.security import verify_api_key
from socsim.utils import tools

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/headers", response_model=schemas.HeaderAnalysis, summary="Analyze pasted email headers")
def analyze_headers(payload: schemas.ToolText, api_key: str = Depends(verify_api_key)):
    return tools.analyze_headers(payload.text)


@router.post("/defang", response_model=schemas.ToolOutput, summary="Defang URLs")
def defang(payload: schemas.ToolText, api_key: str = Depends(verify_api_key)):
    return schemas.ToolOutput(output=tools.defang(payload.text))


@router.post("/refang", response_model=schemas.ToolOutput, summary="Refang URLs")
def refang(payload: schemas.ToolText, api_key: str = Depends(verify_api_key)):
    return schemas.ToolOutput(output=tools.refang(payload.text))


@router.post("/sha256", response_model=schemas.ToolOutput, summary="SHA-256 of text")
def sha256(payload: schemas.ToolText, api_key: str = Depends(verify_api_key)):
    return schemas.ToolOutput(output=tools.sha256_hex(payload.text))


@router.post("/base64/encode", response_model=schemas.ToolOutput, summary="Base64 encode")
def b64_encode(payload: schemas.ToolText, api_key: str = Depends(verify_api_key)):
    return schemas.ToolOutput(output=tools.b64_encode(payload.text))


@router.post("/base64/decode", response_model=schemas.ToolOutput, summary="Base64 decode")
def b64_decode(payload: schemas.ToolText, api_key: str = Depends(verify_api_key)):
    try:
        return schemas.ToolOutput(output=tools.b64_decode(payload.text))
    except ValueError as exc:
        raise HTTPException(status_code=http_status.HTTP_400_BAD_REQUEST, detail=str(exc))


@router.post("/reputation", response_model=schemas.ReputationResult, summary="Toy reputation lookup")
def check_reputation(payload: schemas.ReputationRequest, api_key: str = Depends(verify_api_key)):
    try:
        return tools.check_reputation(payload.indicator)
    except ValueError as exc:
        raise HTTPException(status_code=http_status.HTTP_400_BAD_REQUEST, detail=str(exc))
