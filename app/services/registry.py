"""Catalog of contract types and their parameter schemas.

The catalog is static: it is built at import time and never persisted.
Validation happens here so that an invalid request is rejected before any
drafting cost is incurred.
"""

from __future__ import annotations

import logging
import math
import re
from datetime import date
from typing import Any, Mapping, Optional

from app.core.errors import ValidationError
from app.schemas.domain import ContractParameterSpec, ContractTypeDefinition, ParameterType

logger = logging.getLogger(__name__)

# YYYY-MM-DD, optionally followed by a time part
_ISO_DATE = re.compile(r"(\d{4}-\d{2}-\d{2})(?:[T ][0-9:.]+(?:Z|[+-]\d{2}:?\d{2})?)?")


def _param(
    id: str,
    name: str,
    type: ParameterType,
    description: str,
    *,
    required: bool = True,
    options: tuple[str, ...] | None = None,
    default_value: Any = None,
) -> ContractParameterSpec:
    return ContractParameterSpec(
        id=id,
        name=name,
        type=type,
        required=required,
        description=description,
        options=options,
        default_value=default_value,
    )


T = ParameterType

CONTRACT_TYPES: tuple[ContractTypeDefinition, ...] = (
    ContractTypeDefinition(
        id="nda",
        name="Non-Disclosure Agreement",
        description="Confidentiality agreement under Swiss law",
        parameters=(
            _param("disclosingParty", "Disclosing party", T.text, "Name of the party disclosing information"),
            _param(
                "disclosingPartyAddress",
                "Address of the disclosing party",
                T.text,
                "Full postal address of the disclosing party",
                required=False,
            ),
            _param("receivingParty", "Receiving party", T.text, "Name of the party receiving information"),
            _param(
                "receivingPartyAddress",
                "Address of the receiving party",
                T.text,
                "Full postal address of the receiving party",
                required=False,
            ),
            _param("purpose", "Purpose of disclosure", T.text, "Purpose for which the information is shared"),
            _param("duration", "Confidentiality period (years)", T.number, "How long the obligation lasts"),
            _param(
                "mutualNDA",
                "Mutual agreement",
                T.boolean,
                "Both parties disclose and protect information",
                required=False,
                default_value=False,
            ),
            _param(
                "penalty",
                "Contractual penalty",
                T.text,
                "Penalty payable for a breach of confidentiality",
                required=False,
            ),
            _param(
                "effectiveDate",
                "Effective date",
                T.date,
                "Date from which the agreement applies",
                required=False,
            ),
            _param(
                "jurisdiction",
                "Place of jurisdiction",
                T.text,
                "Competent court",
                default_value="Zürich",
            ),
        ),
    ),
    ContractTypeDefinition(
        id="employment",
        name="Employment Contract",
        description="Standard employment contract under Swiss law",
        parameters=(
            _param("employerName", "Employer", T.text, "Full name or company name of the employer"),
            _param(
                "employerAddress",
                "Address of the employer",
                T.text,
                "Full postal address of the employer",
                required=False,
            ),
            _param("employerPhone", "Employer phone", T.text, "Shown in the page footer", required=False),
            _param("employerWebsite", "Employer website", T.text, "Shown in the page footer", required=False),
            _param("employeeName", "Employee", T.text, "Full name of the employee"),
            _param(
                "employeeAddress",
                "Address of the employee",
                T.text,
                "Full postal address of the employee",
                required=False,
            ),
            _param("position", "Position", T.text, "Job title"),
            _param("salary", "Annual gross salary (CHF)", T.number, "Annual salary in Swiss francs"),
            _param("startDate", "Start date", T.date, "First working day"),
            _param(
                "workingHours",
                "Workload (%)",
                T.number,
                "Workload in percent (100 for full time)",
                default_value=100,
            ),
            _param(
                "probationPeriod",
                "Probation period (months)",
                T.number,
                "Length of the probation period",
                required=False,
                default_value=3,
            ),
            _param(
                "vacationDays",
                "Vacation days",
                T.number,
                "Paid vacation days per year",
                required=False,
                default_value=25,
            ),
        ),
    ),
    ContractTypeDefinition(
        id="terms",
        name="General Terms and Conditions",
        description="Terms and conditions for businesses under Swiss law",
        parameters=(
            _param("companyName", "Company name", T.text, "Full legal name of the company"),
            _param("companyAddress", "Company address", T.text, "Full postal address of the company"),
            _param("companyPhone", "Company phone", T.text, "Shown in the page footer", required=False),
            _param("companyWebsite", "Company website", T.text, "Shown in the page footer", required=False),
            _param(
                "businessType",
                "Type of business",
                T.select,
                "Business activity the terms apply to",
                options=("Online shop", "Services", "Software/SaaS", "Consulting", "Other"),
                default_value="Services",
            ),
            _param(
                "paymentTerms",
                "Payment terms",
                T.select,
                "Default payment period",
                options=("Immediate", "7 days", "14 days", "30 days", "60 days"),
                default_value="30 days",
            ),
            _param(
                "warrantyPeriod",
                "Warranty period (months)",
                T.number,
                "Statutory or agreed warranty period",
                required=False,
                default_value=12,
            ),
            _param(
                "jurisdiction",
                "Place of jurisdiction",
                T.text,
                "Competent court (e.g. Zürich, Bern)",
                default_value="Zürich",
            ),
            _param(
                "dataProtection",
                "Include data protection",
                T.boolean,
                "Add a data protection section",
                required=False,
                default_value=True,
            ),
        ),
    ),
)

_BY_ID = {definition.id: definition for definition in CONTRACT_TYPES}


def list_types() -> list[ContractTypeDefinition]:
    """Return every contract type in catalog order."""
    return list(CONTRACT_TYPES)


def resolve_type(type_id: str) -> Optional[ContractTypeDefinition]:
    return _BY_ID.get(type_id)


def require_type(type_id: str) -> ContractTypeDefinition:
    """Resolve a contract type or fail fast with ValidationError."""
    definition = resolve_type(type_id)
    if definition is None:
        raise ValidationError(f"unknown contract type: {type_id!r}")
    return definition


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _coerce(spec: ContractParameterSpec, value: Any) -> Any:
    """Check a supplied value against its declared type, returning the normalized value."""
    if spec.type is ParameterType.text:
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            raise ValidationError(f"parameter '{spec.id}' must be text")
        return str(value).strip()

    if spec.type is ParameterType.number:
        if isinstance(value, bool):
            raise ValidationError(f"parameter '{spec.id}' must be a number")
        if isinstance(value, (int, float)):
            if isinstance(value, float) and not math.isfinite(value):
                raise ValidationError(f"parameter '{spec.id}' must be a number")
            return value
        if isinstance(value, str):
            try:
                number = float(value.strip())
            except ValueError:
                raise ValidationError(f"parameter '{spec.id}' must be a number") from None
            if not math.isfinite(number):
                raise ValidationError(f"parameter '{spec.id}' must be a number")
            return int(number) if number.is_integer() else number
        raise ValidationError(f"parameter '{spec.id}' must be a number")

    if spec.type is ParameterType.date:
        if not isinstance(value, str):
            raise ValidationError(f"parameter '{spec.id}' must be an ISO date (YYYY-MM-DD)")
        match = _ISO_DATE.fullmatch(value.strip())
        if match is None:
            raise ValidationError(f"parameter '{spec.id}' must be an ISO date (YYYY-MM-DD)")
        try:
            return date.fromisoformat(match.group(1)).isoformat()
        except ValueError:
            raise ValidationError(f"parameter '{spec.id}' must be an ISO date (YYYY-MM-DD)") from None

    if spec.type is ParameterType.select:
        if value not in (spec.options or ()):
            raise ValidationError(
                f"parameter '{spec.id}' must be one of: {', '.join(spec.options or ())}"
            )
        return value

    # boolean
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValidationError(f"parameter '{spec.id}' must be a boolean")


def validate_parameters(
    definition: ContractTypeDefinition,
    parameters: Mapping[str, Any],
) -> dict[str, Any]:
    """Validate request parameters against a contract type.

    Absent values take the declared default. Required parameters without a
    default must be supplied. Undeclared keys are dropped.

    Returns:
        Normalized parameter snapshot in declaration order.

    Raises:
        ValidationError: Missing required parameters or wrongly typed values.
    """
    missing: list[str] = []
    validated: dict[str, Any] = {}

    for spec in definition.parameters:
        value = parameters.get(spec.id)
        if _is_missing(value):
            if spec.default_value is not None:
                validated[spec.id] = spec.default_value
            elif spec.required:
                missing.append(spec.id)
            continue
        validated[spec.id] = _coerce(spec, value)

    if missing:
        raise ValidationError(
            f"missing required parameters for {definition.id}: {', '.join(missing)}"
        )

    unknown = set(parameters) - {spec.id for spec in definition.parameters}
    if unknown:
        logger.debug("Dropping undeclared parameters for %s: %s", definition.id, sorted(unknown))

    return validated


__all__ = [
    "CONTRACT_TYPES",
    "list_types",
    "require_type",
    "resolve_type",
    "validate_parameters",
]
