"""API request and response models for the contract endpoints.

JSON bodies use camelCase; models accept snake_case too when built in code.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.schemas.domain import ContractTypeDefinition, JobStatus, OutputFormat


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ContractParameterResponse(CamelModel):
    id: str
    name: str
    type: str
    required: bool
    description: str
    options: Optional[list[str]] = None
    default_value: Any = None


class ContractTypeResponse(CamelModel):
    id: str
    name: str
    description: str
    parameters: list[ContractParameterResponse]

    @classmethod
    def from_definition(cls, definition: ContractTypeDefinition) -> "ContractTypeResponse":
        return cls.model_validate(definition.model_dump(mode="json"))


class ContractTypesResponse(CamelModel):
    contract_types: list[ContractTypeResponse]


class GenerateRequest(CamelModel):
    """Body of the generate endpoints."""

    contract_type: str
    parameters: dict[str, Any] = Field(default_factory=dict)
    format: Optional[OutputFormat] = None


class GenerateResponse(CamelModel):
    download_url: str
    document_id: str
    contract_type: str
    status: str = "completed"


class JobCreatedResponse(CamelModel):
    job_id: str
    status: JobStatus = JobStatus.queued


class JobResult(CamelModel):
    download_url: str
    document_id: str
    contract_type: Optional[str] = None


class JobResponse(CamelModel):
    job_id: str
    status: JobStatus
    progress: int
    progress_message: Optional[str] = None
    result: Optional[JobResult] = None
    error: Optional[str] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class GenerationSummary(CamelModel):
    """Generation listing entry."""

    id: str
    contract_type: str
    parameters: dict[str, Any]
    status: str
    created_at: datetime
    error: Optional[str] = None


class GenerationDetail(GenerationSummary):
    output_format: str
    content: Optional[str] = None
    updated_at: datetime


class DownloadResponse(CamelModel):
    download_url: str


class RenderRequest(CamelModel):
    format: OutputFormat


class RenderResponse(CamelModel):
    download_url: str
    document_id: str
    format: OutputFormat


class StoredDocumentResponse(CamelModel):
    id: str
    generation_id: str
    file_name: str
    content_type: str
    size: int
    category: str
    description: str
    tags: list[str]
    download_url: str
    uploaded_at: datetime
