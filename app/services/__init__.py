"""Business logic services."""

from app.services.registry import list_types, require_type, resolve_type, validate_parameters

__all__ = [
    "list_types",
    "require_type",
    "resolve_type",
    "validate_parameters",
]
