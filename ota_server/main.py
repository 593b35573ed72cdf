import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict

import structlog
import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from .auth import bearer_gate
from .config import settings
from .db import SETTINGS_ROW_ID, dispose_engine, get_db, init_db
from .logging_config import setup_logging
from .models import HotUpdaterSettings
from .routers.bundles import router as bundles_router

logger = structlog.get_logger(__name__)

SERVER_NAME = "Hot Updater Server"
SERVER_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    # uptime in /health counts from here, i.e. from server start
    app.state.started_at = time.monotonic()
    setup_logging(settings.LOG_LEVEL)
    init_db()
    if not settings.API_KEY:
        logger.warning("api_key_not_set", admin_prefix=settings.admin_prefix)

    base_url = f"http://localhost:{settings.PORT}"
    logger.info(
        "server_started",
        port=settings.PORT,
        health_check=f"{base_url}/health",
        api_endpoint=f"{base_url}{settings.BASE_PATH}",
        environment=settings.ENV,
    )
    yield
    dispose_engine()
    logger.info("server_stopped")


app = FastAPI(title=SERVER_NAME, version=SERVER_VERSION, lifespan=lifespan)

# Starlette wraps the last added middleware outermost: CORS answers preflights before the gate runs
app.add_middleware(BaseHTTPMiddleware, dispatch=bearer_gate)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()] or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(bundles_router)


def _format_validation_errors(exc: RequestValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=422, content={"error": _format_validation_errors(exc)})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("unhandled_error", method=request.method, path=request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.get("/health")
async def health(request: Request) -> Dict[str, Any]:
    started_at = getattr(request.app.state, "started_at", time.monotonic())
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - started_at, 3),
        "environment": settings.ENV,
    }


@app.get("/")
async def root() -> Dict[str, str]:
    return {"name": SERVER_NAME, "version": SERVER_VERSION, "status": "running"}


@app.get(f"{settings.BASE_PATH}/version")
def schema_version(db: Session = Depends(get_db)) -> Dict[str, str]:
    row = db.get(HotUpdaterSettings, SETTINGS_ROW_ID)
    if not row:
        raise HTTPException(status_code=503, detail="Settings not initialized")
    return {"version": row.version}


def run() -> None:
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    run()
