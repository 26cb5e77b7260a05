"""Contract generation endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from app.db.models import Generation
from app.deps import get_current_user, get_jobs, get_orchestrator
from app.schemas.api import (
    ContractTypeResponse,
    ContractTypesResponse,
    DownloadResponse,
    GenerateRequest,
    GenerateResponse,
    GenerationDetail,
    GenerationSummary,
    JobCreatedResponse,
    JobResponse,
    RenderRequest,
    RenderResponse,
)
from app.schemas.domain import GenerationRequest, OutputFormat
from app.services import registry
from app.services.jobs import GenerationJobs
from app.services.orchestrator import GenerationOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/contracts", tags=["contracts"])


def _summary(generation: Generation) -> GenerationSummary:
    return GenerationSummary(
        id=generation.id,
        contract_type=generation.contract_type,
        parameters=generation.parameters,
        status=generation.status.value,
        created_at=generation.created_at,
        error=generation.error,
    )


def _detail(generation: Generation) -> GenerationDetail:
    return GenerationDetail(
        **_summary(generation).model_dump(),
        output_format=generation.output_format,
        content=generation.content,
        updated_at=generation.updated_at,
    )


def _request(body: GenerateRequest, user_id: str) -> GenerationRequest:
    return GenerationRequest(
        contract_type=body.contract_type,
        parameters=body.parameters,
        user_id=user_id,
        output_format=body.format,
    )


@router.get("/types", response_model=ContractTypesResponse)
async def list_contract_types():
    """Catalog of contract types with their parameter schemas."""
    return ContractTypesResponse(
        contract_types=[ContractTypeResponse.from_definition(d) for d in registry.list_types()]
    )


@router.post("/generate", response_model=GenerateResponse)
async def generate(
    body: GenerateRequest,
    user_id: str = Depends(get_current_user),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    """Generate a contract and wait for the stored document."""
    result = await orchestrator.generate(_request(body, user_id))
    return GenerateResponse(
        download_url=result.download_url,
        document_id=result.document_id,
        contract_type=body.contract_type,
    )


@router.post("/generate-async", response_model=JobCreatedResponse)
async def generate_async(
    body: GenerateRequest,
    user_id: str = Depends(get_current_user),
    jobs: GenerationJobs = Depends(get_jobs),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    """Queue a generation and return a pollable job id."""
    request = _request(body, user_id)
    # Invalid requests are rejected before a workflow is started
    orchestrator.validate(request)
    job_id = await jobs.submit(request)
    return JobCreatedResponse(job_id=job_id)


@router.get("/jobs/{job_id}", response_model=JobResponse)
async def get_job(
    job_id: str,
    user_id: str = Depends(get_current_user),
    jobs: GenerationJobs = Depends(get_jobs),
):
    """Status of an async generation job."""
    job = await jobs.status(job_id, user_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return JobResponse(
        job_id=job.id,
        status=job.status,
        progress=job.progress,
        progress_message=job.progress_message,
        result=job.result,
        error=job.error,
        created_at=job.created_at,
        completed_at=job.completed_at,
    )


@router.get("/generations", response_model=list[GenerationSummary])
async def list_generations(
    limit: int = Query(20, ge=1, le=100),
    user_id: str = Depends(get_current_user),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    """The caller's generations, newest first."""
    return [_summary(g) for g in await orchestrator.list_generations(user_id, limit)]


@router.get("/generations/{generation_id}", response_model=GenerationDetail)
async def get_generation(
    generation_id: str,
    user_id: str = Depends(get_current_user),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    return _detail(await orchestrator.get_generation(generation_id, user_id))


@router.delete("/generations/{generation_id}", status_code=204)
async def delete_generation(
    generation_id: str,
    user_id: str = Depends(get_current_user),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    await orchestrator.delete_generation(generation_id, user_id)
    return Response(status_code=204)


@router.get("/generations/{generation_id}/download", response_model=DownloadResponse)
async def download_generation(
    generation_id: str,
    format: Optional[OutputFormat] = None,
    user_id: str = Depends(get_current_user),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    """Fresh presigned URL for a stored document of a generation."""
    url = await orchestrator.download_url(generation_id, user_id, format)
    return DownloadResponse(download_url=url)


@router.post("/generations/{generation_id}/render", response_model=RenderResponse)
async def render_generation(
    generation_id: str,
    body: RenderRequest,
    user_id: str = Depends(get_current_user),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    """Render a completed generation again in another format."""
    result = await orchestrator.rerender(generation_id, user_id, body.format)
    return RenderResponse(
        download_url=result.download_url,
        document_id=result.document_id,
        format=body.format,
    )
