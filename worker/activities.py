"""Temporal activities for the generation workflow.

Each activity runs one orchestrator stage:
- begin_generation: validate the request and create the record
- draft_contract: grounded drafting call, markup stored on the record
- render_and_store: render, upload, record metadata, complete the record

Stage failures are recorded on the generation by the orchestrator before
the exception propagates to the workflow.
"""

from __future__ import annotations

import logging
from typing import Any

from temporalio import activity

from app.deps import get_orchestrator
from app.schemas.domain import GenerationRequest

logger = logging.getLogger(__name__)


@activity.defn
async def begin_generation(generation_id: str, request: dict[str, Any]) -> str:
    """Validate the request and create the generation record.

    Idempotent for a given generation_id, so the workflow may retry it.

    Raises:
        ValidationError: Request rejected (non-retryable).
    """
    logger.info("Beginning generation %s (attempt %d)", generation_id, activity.info().attempt)
    return await get_orchestrator().start(GenerationRequest.model_validate(request), generation_id)


@activity.defn
async def draft_contract(generation_id: str) -> None:
    """Draft the contract markup for a started generation."""
    await get_orchestrator().draft(generation_id)


@activity.defn
async def render_and_store(generation_id: str) -> dict[str, Any]:
    """Render and store the drafted contract.

    Returns:
        Dict representation of GenerationResult (download_url, document_id).
    """
    result = await get_orchestrator().finish(generation_id)
    return result.model_dump()


__all__ = ["begin_generation", "draft_contract", "render_and_store"]
