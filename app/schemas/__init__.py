"""Domain schemas for contract generation."""

from app.schemas.domain import (
    AsyncJob,
    ContractParameterSpec,
    ContractTypeDefinition,
    GenerationRequest,
    GenerationResult,
    JobStatus,
    OutputFormat,
    ParameterType,
)

__all__ = [
    "AsyncJob",
    "ContractParameterSpec",
    "ContractTypeDefinition",
    "GenerationRequest",
    "GenerationResult",
    "JobStatus",
    "OutputFormat",
    "ParameterType",
]
