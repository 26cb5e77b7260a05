"""Generated document metadata endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.deps import get_current_user, get_orchestrator
from app.schemas.api import StoredDocumentResponse
from app.services.orchestrator import GenerationOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["documents"])


@router.get("/documents", response_model=list[StoredDocumentResponse])
async def list_documents(
    tag: Optional[str] = Query(None, description="Only documents carrying this tag, e.g. 'nda'"),
    user_id: str = Depends(get_current_user),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    """Stored documents of the caller, newest first."""
    documents = await orchestrator.list_documents(user_id, tag)
    return [StoredDocumentResponse.model_validate(doc) for doc in documents]
