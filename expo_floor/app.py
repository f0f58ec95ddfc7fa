"""
Exhibition floor plan service - FastAPI Application
Main entry point for the backend server.

Run with:
    uvicorn expo_floor.app:app --reload --host 0.0.0.0 --port 8002
"""

import logging
import time
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from expo_floor import __version__, config
from expo_floor.api.routes import register_routes
from expo_floor.api.schemas import error_envelope
from expo_floor.core.errors import FloorPlanError
from expo_floor.core.logging import REQUEST_ID_HEADER, configure_logging, log_request, request_id_from
from expo_floor.database import init_db
from expo_floor.metrics import record_error

# ---------------------------------------------------------------------------
# Logging: use the centralised configurator
# ---------------------------------------------------------------------------
configure_logging()
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan (startup / shutdown)
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Runs once on startup, yields for the lifetime of the app, then cleans up."""
    logger.info("Initialising database...")
    init_db()
    logger.info("Database ready.")

    yield  # Application is running


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Exhibition Floor Plan Service",
    version=__version__,
    description="Floor plans, booths, sharing and occupancy analytics for exhibitions",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[REQUEST_ID_HEADER],
)


# ---------------------------------------------------------------------------
# Exception handlers -- every error leaves as the {success: false} envelope
# ---------------------------------------------------------------------------

@app.exception_handler(FloorPlanError)
async def floor_plan_error_handler(request: Request, exc: FloorPlanError):
    if exc.status_code >= 500:
        record_error()
        logger.error("%s on %s %s: %s", exc.error, request.method, request.url.path, exc.message)
    else:
        logger.info("%s on %s %s: %s", exc.error, request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(exc.error, exc.message),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    where = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"Invalid field '{where}': {first.get('msg')}" if where else "Invalid request"
    return JSONResponse(status_code=400, content=error_envelope("Validation Error", message))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope("HTTP Error", str(exc.detail)),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exc()
    record_error()
    logger.error(
        "Unhandled exception on %s %s: %s\n%s",
        request.method, request.url.path, exc, tb,
    )
    extra = {"traceback": tb} if config.DEBUG else {}
    return JSONResponse(
        status_code=500,
        content=error_envelope("Internal Server Error", "An unexpected error occurred", **extra),
    )


# ---------------------------------------------------------------------------
# Request logging -- one structured line per request
# ---------------------------------------------------------------------------

async def request_logging_middleware(request: Request, call_next):
    request_id = request_id_from(request.headers)
    started = time.perf_counter()
    status = 500
    try:
        response = await call_next(request)
        status = response.status_code
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
    finally:
        log_request(
            method=request.method,
            path=request.url.path,
            status=status,
            duration_ms=(time.perf_counter() - started) * 1000,
            request_id=request_id,
            caller=getattr(request.state, "caller", None),
        )


app.middleware("http")(request_logging_middleware)

register_routes(app)


# ---------------------------------------------------------------------------
# Development entry-point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "expo_floor.app:app",
        host="0.0.0.0",
        port=config.PORT,
        reload=True,
    )
