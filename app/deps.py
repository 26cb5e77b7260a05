"""Shared dependencies for FastAPI routes and workers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from fastapi import Header, HTTPException, Request

if TYPE_CHECKING:
    from app.services.jobs import GenerationJobs
    from app.services.orchestrator import GenerationOrchestrator
    from app.storage.minio_impl import MinioStorage

_storage: "MinioStorage | None" = None
_orchestrator: "GenerationOrchestrator | None" = None


def get_storage() -> "MinioStorage":
    """Get or lazily initialize the storage singleton.

    Lazy initialization avoids failures at import time when MinIO is unavailable.
    """
    global _storage
    if _storage is None:
        from app.storage.factory import build_storage

        _storage = build_storage()
    return _storage


def get_orchestrator() -> "GenerationOrchestrator":
    """Get or lazily build the generation orchestrator singleton.

    Shared by the API routes and the worker activities so that both use one
    render semaphore per process.
    """
    global _orchestrator
    if _orchestrator is None:
        from app.core.config import GenerationConfig, settings
        from app.db.session import AsyncSessionLocal
        from app.services.drafting import ContractDrafter
        from app.services.orchestrator import GenerationOrchestrator
        from app.services.persistence import ArtifactStore
        from app.services.renderer import DocumentRenderer

        config = GenerationConfig.from_settings(settings)
        _orchestrator = GenerationOrchestrator(
            config,
            AsyncSessionLocal,
            ContractDrafter(config),
            DocumentRenderer(config),
            ArtifactStore(
                get_storage(),
                AsyncSessionLocal,
                bucket=config.generated_bucket,
                url_ttl_s=config.download_url_ttl_s,
            ),
        )
    return _orchestrator


def get_current_user(x_user_id: Optional[str] = Header(default=None)) -> str:
    """Caller identity set by the upstream gateway."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Authentication required")
    return x_user_id.strip()


def get_jobs(request: Request) -> "GenerationJobs":
    """Async job client; unavailable while Temporal is unreachable."""
    temporal = getattr(request.app.state, "temporal", None)
    if temporal is None:
        raise HTTPException(status_code=503, detail="Async generation service unavailable")

    from app.core.config import settings
    from app.services.jobs import GenerationJobs

    return GenerationJobs(temporal, settings.WORKER_TASK_QUEUE)


__all__ = ["get_current_user", "get_jobs", "get_orchestrator", "get_storage"]
