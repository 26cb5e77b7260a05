"""Prompt composition for grounded contract drafting.

Turns a validated parameter set and its contract type into the system and
user instructions of a drafting request. Everything that differs between
contract types lives in the STRATEGIES table, selected once by type id.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Mapping, Sequence

from app.core.errors import ValidationError
from app.schemas.domain import (
    ComposedPrompt,
    ContractTypeDefinition,
    FooterFields,
    ParameterType,
)

# Fixed stylesheet of every drafted document. Page-break rules are layout
# constraints on the markup; the renderer does no post-processing.
DOCUMENT_CSS = """body {
  font-family: 'Inter', 'Segoe UI', Roboto, Helvetica, Arial, sans-serif;
  line-height: 1.7;
  margin: 35mm 20mm;
  color: #222;
  background: none;
}

h1 {
  font-size: 1.8em;
  font-weight: 600;
  letter-spacing: -0.5px;
  margin: 0 0 15mm 0;
  text-align: center;
}

h2 {
  font-size: 1.2em;
  font-weight: 600;
  margin: 0 0 5mm 0;
  border-bottom: 0.3mm solid #aaa;
  padding-bottom: 2mm;
  page-break-after: avoid;
  break-after: avoid;
}

.section {
  margin: 15mm 0;
  page-break-inside: avoid;
  break-inside: avoid;
}

p, li, dd {
  margin: 0 0 5mm 0;
  font-size: 0.95em;
}

dl { margin: 0; }
dt { font-weight: 600; margin-top: 4mm; }
dd { margin-left: 0; }

.signature-row {
  display: flex;
  justify-content: space-between;
  gap: 10mm;
  margin-top: 25mm;
}

.signature {
  width: 45%;
  text-align: center;
  border-top: 0.2mm solid #444;
  padding-top: 4mm;
  font-size: 0.9em;
  page-break-inside: avoid;
  break-inside: avoid;
}

@page {
  size: A4;
  margin: 20mm;
}

@media print {
  body { margin: 0; }
  * { background: none !important; box-shadow: none !important; }
  h2 { page-break-after: avoid; }
  .section { page-break-inside: avoid; }
}"""

FORMATTING_CONTRACT = f"""Output format (mandatory):
- Return the result as one complete HTML document.
- Use <!DOCTYPE html>, <html>, <head>, <meta charset="UTF-8">, <style> and <body>.
- Use a modern but sober, PLAIN layout: no coloured backgrounds, no boxes, no shadows.
- No Markdown, only valid HTML.
- Never mention the contract templates or statute articles in the contract text.
- Only use sections from the attached template that can be filled with the contract data below. Do not invent sections that are not in the template.
- Number the sections.
- Structure: every section is a <section class="section"> containing an <h2> and its content (paragraphs, lists, dl/dt/dd).
- Sections must NOT be split across pages. If a section is longer than one page, at least the heading must stay with its first paragraph.
- Close with a <div class="signature-row"> holding one <div class="signature"> per party.
- Use exactly this CSS in the <style> block (do not change it):

{DOCUMENT_CSS}

Use legally precise wording and no placeholder text. Use exactly the contract data below and no other data.
Output ONLY the finished document: no recommendations, notes, explanations or commentary before or after it."""


@dataclass(frozen=True)
class GroundingStores:
    """Vector store ids available for retrieval grounding."""

    templates: Mapping[str, str]
    statutes: str

    def for_type(self, type_id: str) -> list[str]:
        template = self.templates.get(type_id, "")
        if not template:
            raise ValidationError(f"no drafting template configured for contract type: {type_id!r}")
        return [template, self.statutes] if self.statutes else [template]

    def configured_types(self) -> list[str]:
        return sorted(type_id for type_id, store in self.templates.items() if store)


def _no_derived_fields(parameters: Mapping[str, Any]) -> Sequence[tuple[str, str]]:
    return ()


@dataclass(frozen=True)
class DraftingStrategy:
    """Everything that varies between contract types."""

    system_instructions: str
    task: str
    closing: str
    footer_fields: Callable[[Mapping[str, Any]], FooterFields]
    derived_fields: Callable[[Mapping[str, Any]], Sequence[tuple[str, str]]] = _no_derived_fields


def format_local_date(value: Any) -> str:
    """Reformat an ISO date (YYYY-MM-DD) as DD.MM.YYYY; other values pass through."""
    if not isinstance(value, str):
        return "" if value is None else str(value)
    try:
        parsed = date.fromisoformat(value[:10])
    except ValueError:
        return value
    return parsed.strftime("%d.%m.%Y")


def monthly_amount(annual: Any) -> int:
    """Monthly share of an annual amount, rounded half up to a whole unit."""
    monthly = Decimal(str(annual)) / Decimal(12)
    return int(monthly.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _format_number(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _format_value(kind: ParameterType, value: Any) -> str:
    if kind is ParameterType.date:
        return format_local_date(value)
    if kind is ParameterType.boolean:
        return "yes" if value else "no"
    if kind is ParameterType.number:
        return _format_number(value)
    return str(value)


def _text(parameters: Mapping[str, Any], key: str) -> str:
    value = parameters.get(key)
    return "" if value is None else str(value)


# --------------------
# Per-type strategies
# --------------------

_NDA_SYSTEM = """You are an experienced contract drafter for confidentiality agreements under Swiss law.
Draft ONLY the agreement itself, based on the attached template.
Do not include recommendations, notes, legal assessments or commentary in the document."""

_EMPLOYMENT_SYSTEM = """You are a Swiss employment lawyer specialised in the Code of Obligations, Art. 319-362.
Draft EXCLUSIVELY legally valid employment contracts under Swiss law.

LEGAL VALIDATION:
- Check EVERY section for conformity with the Code of Obligations (Art. 319-362)
- Ensure minimum wage, working time and notice periods are correct
- Respect the mandatory provisions (Art. 361/362)
- Probation period at most 3 months (Art. 335b)
- Vacation entitlement at least 4 weeks (Art. 329a)

MANDATORY CLAUSES:
- Contracting parties with full addresses
- Place of work and start date clearly defined
- Salary and workload legally correct
- Notice periods according to Art. 335 ff.
- Working hours according to the Labour Act

OUTPUT:
- Produce a clean, professional employment contract
- NO recommendations, notes or comments in the document
- NO visible legal assessments
- ONLY the finished contract
- Use only clauses that comply with the Code of Obligations"""

_TERMS_SYSTEM = """You are a Swiss commercial lawyer drafting general terms and conditions for businesses.
Draft clear, enforceable terms under the Swiss Code of Obligations and, where requested, the Federal Act on Data Protection.
Do not include recommendations, notes, legal assessments or commentary in the document."""


def _nda_footer(parameters: Mapping[str, Any]) -> FooterFields:
    return FooterFields(
        name=_text(parameters, "disclosingParty"),
        address=_text(parameters, "disclosingPartyAddress"),
    )


def _nda_derived(parameters: Mapping[str, Any]) -> list[tuple[str, str]]:
    if parameters.get("mutualNDA"):
        return [("Obligations", "mutual - both parties disclose and protect confidential information")]
    return [("Obligations", "one-way - only the receiving party is bound")]


def _employment_footer(parameters: Mapping[str, Any]) -> FooterFields:
    contact = tuple(
        value for value in (_text(parameters, "employerPhone"), _text(parameters, "employerWebsite")) if value
    )
    return FooterFields(
        name=_text(parameters, "employerName"),
        address=_text(parameters, "employerAddress"),
        contact=contact,
    )


def _employment_derived(parameters: Mapping[str, Any]) -> list[tuple[str, str]]:
    salary = parameters.get("salary")
    if salary is None:
        return []
    return [("Monthly gross salary (CHF)", str(monthly_amount(salary)))]


def _terms_footer(parameters: Mapping[str, Any]) -> FooterFields:
    contact = tuple(
        value for value in (_text(parameters, "companyPhone"), _text(parameters, "companyWebsite")) if value
    )
    return FooterFields(
        name=_text(parameters, "companyName"),
        address=_text(parameters, "companyAddress"),
        contact=contact,
    )


STRATEGIES: dict[str, DraftingStrategy] = {
    "nda": DraftingStrategy(
        system_instructions=_NDA_SYSTEM,
        task=(
            "Draft a confidentiality agreement (NDA) under Swiss law. The Code of Obligations is "
            "known from the vector store. Use the standard template from the vector store and fill "
            "it with the following data."
        ),
        closing="Produce a clean, professional confidentiality agreement without additional comments or recommendations.",
        footer_fields=_nda_footer,
        derived_fields=_nda_derived,
    ),
    "employment": DraftingStrategy(
        system_instructions=_EMPLOYMENT_SYSTEM,
        task=(
            "Draft a legally valid Swiss employment contract under the Code of Obligations, "
            "Art. 319-362, using the attached contract template and the following data."
        ),
        closing="Produce a clean, professional employment contract without additional comments or recommendations.",
        footer_fields=_employment_footer,
        derived_fields=_employment_derived,
    ),
    "terms": DraftingStrategy(
        system_instructions=_TERMS_SYSTEM,
        task=(
            "Draft general terms and conditions under Swiss law using the attached template "
            "and the following company data."
        ),
        closing="Produce clean, professional terms and conditions without additional comments or recommendations.",
        footer_fields=_terms_footer,
    ),
}


def strategy_for(type_id: str) -> DraftingStrategy:
    try:
        return STRATEGIES[type_id]
    except KeyError:
        raise ValidationError(f"unknown contract type: {type_id!r}") from None


def contract_data_lines(
    definition: ContractTypeDefinition,
    parameters: Mapping[str, Any],
) -> list[str]:
    """Render the parameter snapshot as '- Name: value' lines.

    Absent optional values fall back to the declared default; parameters
    without value or default are left out instead of rendering blank.
    """
    lines = []
    for spec in definition.parameters:
        value = parameters.get(spec.id)
        if value is None or value == "":
            value = spec.default_value
        if value is None:
            continue
        lines.append(f"- {spec.name}: {_format_value(spec.type, value)}")
    filled = {**{s.id: s.default_value for s in definition.parameters}, **parameters}
    for label, value in strategy_for(definition.id).derived_fields(filled):
        lines.append(f"- {label}: {value}")
    return lines


def compose(
    definition: ContractTypeDefinition,
    parameters: Mapping[str, Any],
    stores: GroundingStores,
) -> ComposedPrompt:
    """Build the grounded drafting request for a validated parameter set."""
    strategy = strategy_for(definition.id)
    data = "\n".join(contract_data_lines(definition, parameters))
    user_instructions = (
        f"{strategy.task}\n\n"
        f"Contract data:\n{data}\n\n"
        "IMPORTANT:\n"
        "- Output ONLY the finished document - no recommendations, notes or comments!\n"
        "- Do not invent additional sections, only use those from the template.\n\n"
        f"{FORMATTING_CONTRACT}\n\n"
        f"{strategy.closing}"
    )
    return ComposedPrompt(
        system_instructions=strategy.system_instructions,
        user_instructions=user_instructions,
        grounding_store_ids=stores.for_type(definition.id),
    )


def footer_fields(type_id: str, parameters: Mapping[str, Any]) -> FooterFields:
    return strategy_for(type_id).footer_fields(parameters)


__all__ = [
    "DOCUMENT_CSS",
    "FORMATTING_CONTRACT",
    "STRATEGIES",
    "DraftingStrategy",
    "GroundingStores",
    "compose",
    "contract_data_lines",
    "footer_fields",
    "format_local_date",
    "monthly_amount",
]
