"""Domain models for contract generation."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ParameterType(str, enum.Enum):
    text = "text"
    number = "number"
    date = "date"
    select = "select"
    boolean = "boolean"


class OutputFormat(str, enum.Enum):
    pdf = "pdf"
    word = "word"

    @property
    def extension(self) -> str:
        return "pdf" if self is OutputFormat.pdf else "docx"

    @property
    def content_type(self) -> str:
        if self is OutputFormat.pdf:
            return "application/pdf"
        return "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class ContractParameterSpec(BaseModel):
    """One input field of a contract type."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    type: ParameterType
    required: bool
    description: str
    options: Optional[tuple[str, ...]] = None
    default_value: Any = None

    @model_validator(mode="after")
    def _select_needs_options(self) -> "ContractParameterSpec":
        if self.type is ParameterType.select and not self.options:
            raise ValueError(f"select parameter '{self.id}' requires options")
        return self


class ContractTypeDefinition(BaseModel):
    """A document type offered by the generator."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    parameters: tuple[ContractParameterSpec, ...]


class GenerationRequest(BaseModel):
    """Ephemeral input of one generation run."""

    contract_type: str
    parameters: dict[str, Any]
    user_id: str
    output_format: Optional[OutputFormat] = None


class GenerationResult(BaseModel):
    """Outcome of a successful generation, shared by sync and async paths."""

    download_url: str
    document_id: str


class ComposedPrompt(BaseModel):
    """Grounded drafting request produced by the composer."""

    system_instructions: str
    user_instructions: str
    grounding_store_ids: list[str]


@dataclass(frozen=True, slots=True)
class FooterFields:
    """Per-page footer content of a rendered document."""

    name: str = ""
    address: str = ""
    contact: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class RenderedArtifact:
    """Transient rendered binary - only its storage location survives."""

    data: bytes
    file_name: str
    content_type: str

    @property
    def size(self) -> int:
        return len(self.data)


class JobStatus(str, enum.Enum):
    queued = "queued"
    processing = "processing"
    completed = "completed"
    failed = "failed"


class AsyncJob(BaseModel):
    """Pollable view of an asynchronous generation."""

    id: str
    status: JobStatus
    progress: int = Field(default=0, ge=0, le=100)
    progress_message: Optional[str] = None
    result: Optional[dict[str, Any]] = None
    error: Optional[str] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
