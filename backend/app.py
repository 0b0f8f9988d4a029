"""
FastAPI application for the Hot Potato PR Dashboard.

Every error leaves the API as ``{"error": ..., "details"?: ...}`` so the
React frontend can show the message as-is.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from utils.errors import DashboardError
from utils.logger import setup_logger

setup_logger()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Hot Potato PR Dashboard API",
    description="Open pull requests across GitHub repositories, with SLA status and quick actions",
    version="1.0.0"
)

# Allow the Vite dev server to call the API during local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _field_name(loc) -> str:
    name = ".".join(str(part) for part in loc if part not in ("body", "query", "header"))
    return name or "body"


@app.exception_handler(DashboardError)
async def dashboard_error_handler(request: Request, exc: DashboardError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed ({exc.kind}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    missing = [_field_name(e["loc"]) for e in errors if e.get("type") == "missing"]
    details = [{"field": _field_name(e["loc"]), "message": e["msg"]} for e in errors]

    if missing:
        message = f"Missing required field(s): {', '.join(missing)}"
    else:
        message = "Invalid request: " + "; ".join(f"{d['field']}: {d['message']}" for d in details)

    logger.warning(f"{request.method} {request.url.path} rejected: {message}")
    return JSONResponse(status_code=400, content={"error": message, "details": details})


from backend.routes import router
from backend.auth_routes import router as auth_router
app.include_router(router)
app.include_router(auth_router)

logger.info("FastAPI app initialized")
