"""
SOC Ops Simulator: synthetic alerts, cases and logs for SOC training
Main FastAPI application entry point.
"""
import time
import uuid
import logging
import json
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from socsim import schemas
from socsim.config import settings
from socsim.routers import alerts, cases, logs, playbooks, queries, snapshot, tools
from socsim.security import verify_api_key
from socsim.services.generator import get_generator
from socsim.services.simulator import SimulatorController, get_controller


# ============================================================================
# STRUCTURED JSON LOGGING
# ============================================================================

class _JsonFormatter(logging.Formatter):
    """Emit every log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def _setup_logging() -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(_JsonFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, settings.LOG_LEVEL, logging.INFO))


_setup_logging()
logger = logging.getLogger("socsim")


# ============================================================================
# RATE LIMITER (slowapi)
# NOTE: default_limits only take effect when SlowAPIMiddleware is added.
# ============================================================================

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.RATE_LIMIT])


# ============================================================================
# STARTUP / SHUTDOWN
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("SOC simulator starting")
    logger.info("environment=%s generator_interval=%ss", settings.ENVIRONMENT, settings.GENERATOR_INTERVAL_SECONDS)
    controller = get_controller()
    logger.info("State ready alerts=%s logs=%s generator_on=%s",
                len(controller.state.alerts), len(controller.state.logs), controller.prefs.generator_on)
    generator = get_generator()
    generator.start()
    yield
    await generator.stop()
    logger.info("SOC simulator shutting down")


# ============================================================================
# APPLICATION
# ============================================================================

app = FastAPI(
    title="SOC Ops Simulator API",
    description="""
**Synthetic SOC workflow for training and demos**

The simulator provides:
- A live stream of synthetic alerts with correlated log entries
- A small query language (`field:value`, free text, AND / OR / NOT)
- Alert triage, notes and status timelines
- Cases opened from alerts or by hand
- Log -> alert pivots, static playbooks and an asset inventory
- Offline analyst tools (headers, defang, hashing, reputation)

Nothing here is real: evidence and reputations are made up.
""",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Attach limiter + middleware (THIS is what makes rate limiting work)
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS: a browser UI may be served from anywhere during demos
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# MIDDLEWARES
# ============================================================================

@app.middleware("http")
async def request_id_and_timing(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = req_id

    start = time.perf_counter()
    response = await call_next(request)
    elapsed = round((time.perf_counter() - start) * 1000, 2)

    response.headers["X-Request-ID"] = req_id
    response.headers["X-Process-Time-Ms"] = str(elapsed)

    logger.info(
        "request completed method=%s path=%s status=%s duration_ms=%s request_id=%s",
        request.method,
        request.url.path,
        response.status_code,
        elapsed,
        req_id,
    )
    return response


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    req_id = getattr(request.state, "request_id", "unknown")
    logger.warning("Validation error request_id=%s errors=%s", req_id, exc.errors())
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": "Validation Error", "details": exc.errors(), "request_id": req_id},
        headers={"X-Request-ID": req_id},
    )


@app.exception_handler(Exception)
async def general_error_handler(request: Request, exc: Exception):
    req_id = getattr(request.state, "request_id", "unknown")
    logger.error("Unhandled exception request_id=%s: %s", req_id, exc, exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal Server Error", "request_id": req_id},
        headers={"X-Request-ID": req_id},
    )


# ============================================================================
# ROUTERS
# ============================================================================

app.include_router(alerts.router,           prefix="/api/v1/alerts",    tags=["Alerts"])
app.include_router(cases.router,            prefix="/api/v1/cases",     tags=["Cases"])
app.include_router(logs.router,             prefix="/api/v1/logs",      tags=["Logs"])
app.include_router(queries.router,          prefix="/api/v1/queries",   tags=["Saved Queries"])
app.include_router(playbooks.router,        prefix="/api/v1/playbooks", tags=["Playbooks"])
app.include_router(playbooks.assets_router, prefix="/api/v1/assets",    tags=["Assets"])
app.include_router(tools.router,            prefix="/api/v1/tools",     tags=["Tools"])
app.include_router(snapshot.router,         prefix="/api/v1/snapshot",  tags=["Snapshot"])


# ============================================================================
# SYSTEM ENDPOINTS
# ============================================================================

@app.get("/", tags=["System"], summary="Service info")
def root():
    return {
        "service": "SOC Ops Simulator API",
        "version": "0.1.0",
        "status": "running",
        "environment": settings.ENVIRONMENT,
        "docs": "/docs",
    }


@app.get("/health", tags=["System"], summary="Health check")
def health_check():
    return {"status": "healthy", "timestamp": time.time()}


@app.get("/api/v1/stats", tags=["System"], response_model=schemas.DashboardStats, summary="Dashboard KPIs")
def get_stats(
    controller: SimulatorController = Depends(get_controller),
    api_key: str = Depends(verify_api_key),
):
    """Open/new/high alert counts and active cases."""
    return controller.stats()
