"""Health check endpoints.

Readiness fails (503) when a dependency of synchronous generation is down:
the database or the generated-documents bucket. Temporal only backs the
async endpoints, so without it the service reports ``degraded`` but stays
ready.
"""

import asyncio
import logging
from typing import Any, Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from app.core.config import settings
from app.db.session import AsyncSessionLocal

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def _check_database() -> Optional[str]:
    try:
        async with AsyncSessionLocal() as db:
            await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning("Readiness: database check failed: %s", e)
        return f"error: {e}"
    return None


async def _check_storage(minio: Any) -> Optional[str]:
    if minio is None:
        return "not configured"
    bucket = settings.S3_BUCKET_GENERATED
    try:
        exists = await asyncio.to_thread(minio.bucket_exists, bucket)
    except Exception as e:
        logger.warning("Readiness: storage check failed: %s", e)
        return f"error: {e}"
    return None if exists else f"bucket {bucket} missing"


@router.get("/health")
def health_check():
    """Liveness probe."""
    return {"status": "ok"}


@router.get("/health/ready")
async def readiness_check(request: Request):
    """Readiness probe for the database, document storage and Temporal."""
    database_error = await _check_database()
    storage_error = await _check_storage(getattr(request.app.state, "minio", None))
    temporal_ok = getattr(request.app.state, "temporal", None) is not None

    checks = {
        "database": database_error or "ok",
        "storage": storage_error or "ok",
        "temporal": "ok" if temporal_ok else "not connected",
    }
    ready = database_error is None and storage_error is None

    if not ready:
        status = "unavailable"
    elif not temporal_ok:
        status = "degraded"
    else:
        status = "ok"
    return JSONResponse(status_code=200 if ready else 503, content={"status": status, "checks": checks})
