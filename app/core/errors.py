"""Error taxonomy of the generation pipeline."""

from __future__ import annotations


class GenerationError(Exception):
    """Base class for generation pipeline errors."""

    pass


class ValidationError(GenerationError):
    """Request rejected before any external call.

    Raised for: unknown contract type, missing or malformed parameter,
    contract type without a configured drafting template.
    """

    pass


class NotFoundError(GenerationError):
    """Referenced generation record does not exist."""

    pass


class AuthorizationError(GenerationError):
    """Caller does not own the referenced generation record."""

    pass


class UpstreamGenerationError(GenerationError):
    """Drafting service failed or returned no text - terminal for the generation."""

    pass


class RenderingError(GenerationError):
    """Browser or document conversion failure - terminal for the generation."""

    pass


class PersistenceError(GenerationError):
    """Upload or metadata write failed - no rollback of a completed upload."""

    pass


__all__ = [
    "AuthorizationError",
    "GenerationError",
    "NotFoundError",
    "PersistenceError",
    "RenderingError",
    "UpstreamGenerationError",
    "ValidationError",
]
