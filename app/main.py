"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from temporalio.client import Client as TemporalClient

from app.core.config import settings
from app.core.errors import (
    AuthorizationError,
    GenerationError,
    NotFoundError,
    ValidationError,
)
from app.core.logging import setup_logging
from app.db import init_db
from app.routes import contracts_router, documents_router, health_router
from app.storage.factory import build_client

logger = logging.getLogger(__name__)

_STATUS_CODES = {
    ValidationError: 400,
    AuthorizationError: 403,
    NotFoundError: 404,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize resources on startup, cleanup on shutdown."""
    setup_logging()

    await init_db()

    if settings.S3_ENDPOINT and settings.S3_ACCESS_KEY and settings.S3_SECRET_KEY:
        app.state.minio = build_client(settings)
    else:
        app.state.minio = None

    # Temporal client - tolerate failure, only the async path needs it
    try:
        app.state.temporal = await TemporalClient.connect(
            settings.TEMPORAL_ADDRESS,
            namespace=settings.TEMPORAL_NAMESPACE,
        )
        logger.info("Connected to Temporal at %s", settings.TEMPORAL_ADDRESS)
    except Exception as e:
        logger.warning("Failed to connect to Temporal: %s", e)
        app.state.temporal = None

    yield


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)


@app.exception_handler(GenerationError)
async def generation_error_handler(request: Request, exc: GenerationError) -> JSONResponse:
    """Translate pipeline errors into HTTP responses shaped like HTTPException."""
    status_code = _STATUS_CODES.get(type(exc), 500)
    if status_code == 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


# Register routers
app.include_router(health_router)
app.include_router(contracts_router)
app.include_router(documents_router)
