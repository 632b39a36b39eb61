"""
API key check shared by every /api/v1 router.
A demo gate only; the simulator has no user accounts.
"""

import logging

from fastapi import HTTPException, Security
from fastapi import status as http_status
from fastapi.security import APIKeyHeader

from socsim.config import settings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# API Key Security Scheme (shows Authorize button in Swagger)
# ---------------------------------------------------------------------------
api_key_header = APIKeyHeader(name="x-api-key", auto_error=False)


def verify_api_key(x_api_key: str = Security(api_key_header)) -> str:
    if not x_api_key or x_api_key != settings.API_KEY:
        logger.warning("Invalid API key attempt")
        raise HTTPException(
            status_code=http_status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
        )
    return x_api_key
