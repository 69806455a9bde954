"""Configuration-load boundary for concept catalogs and payroll inputs.

Everything structurally invalid (negative values, unknown tags, rates out
of range) is rejected here so the engine only ever sees well-formed data.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from payroll_concepts.calculators.rounding import MAX_ROUND_DECIMALS, decimal_places
from payroll_concepts.calculators.types import (
    CalcBase,
    Concept,
    ConceptMode,
    ConceptType,
    PayrollInput,
    Phase,
    RoundMode,
)

logger = logging.getLogger(__name__)

# Same precision as the Numeric(18, 4) columns
MAX_DIGITS = 18
STORED_DECIMALS = 4

Amount = Annotated[Decimal, Field(ge=0, max_digits=MAX_DIGITS, decimal_places=STORED_DECIMALS)]
Rate = Annotated[
    Decimal, Field(ge=0, le=100, max_digits=MAX_DIGITS, decimal_places=STORED_DECIMALS)
]


class CatalogValidationError(Exception):
    """Raised when a concept catalog or payroll input fails validation."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("; ".join(errors))


class ConceptSpec(BaseModel):
    """Validated concept definition as it arrives from configuration."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    type: ConceptType
    mode: ConceptMode
    value: Amount
    base: CalcBase = CalcBase.TAXABLE_BASE
    custom_base: Amount | None = None
    phase: Phase = Phase.PRE_TAX
    min_amount: Amount | None = None
    max_amount: Amount | None = None
    round_mode: RoundMode = RoundMode.NEAREST
    round_decimals: int = Field(default=2, ge=0, le=MAX_ROUND_DECIMALS)
    priority: int = Field(default=100, ge=0)
    enabled: bool = True

    def to_concept(self) -> Concept:
        return Concept(
            id=self.id,
            name=self.name,
            type=self.type,
            mode=self.mode,
            value=self.value,
            base=self.base,
            custom_base=self.custom_base,
            phase=self.phase,
            min_amount=self.min_amount,
            max_amount=self.max_amount,
            round_mode=self.round_mode,
            round_decimals=self.round_decimals,
            priority=self.priority,
            enabled=self.enabled,
        )


class PayrollInputSpec(BaseModel):
    """Validated payroll input."""

    model_config = ConfigDict(from_attributes=True)

    base_salary: Amount
    bonuses: Amount = Decimal("0")
    overtime_hours: Amount = Decimal("0")
    overtime_rate: Amount = Decimal("0")
    manual_deductions: Amount = Decimal("0")
    tax_rate_pct: Rate = Decimal("0")
    contributions_rate_pct: Rate = Decimal("0")

    def to_payroll_input(self) -> PayrollInput:
        return PayrollInput(
            base_salary=self.base_salary,
            bonuses=self.bonuses,
            overtime_hours=self.overtime_hours,
            overtime_rate=self.overtime_rate,
            manual_deductions=self.manual_deductions,
            tax_rate_pct=self.tax_rate_pct,
            contributions_rate_pct=self.contributions_rate_pct,
        )


def _format_errors(exc: ValidationError, prefix: str = "") -> list[str]:
    messages = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err["loc"])
        messages.append(f"{prefix}{location}: {err['msg']}")
    return messages


def warn_on_hazards(concept: Concept) -> None:
    """Log configurations that are valid but almost certainly unintended."""
    if concept.has_inverted_bounds:
        logger.warning(
            "Concept %s has min_amount %s above max_amount %s; it will always resolve to %s",
            concept.id,
            concept.min_amount,
            concept.max_amount,
            concept.max_amount,
        )
    if (
        concept.mode is ConceptMode.PERCENTAGE
        and concept.base is CalcBase.CUSTOM
        and concept.custom_base is None
    ):
        logger.warning("Concept %s uses a custom base without custom_base; base is 0", concept.id)
    if concept.round_mode is not RoundMode.NONE:
        for bound in (concept.min_amount, concept.max_amount):
            if bound is not None and decimal_places(bound) > concept.round_decimals:
                logger.warning(
                    "Concept %s bound %s is finer than round_decimals=%d; "
                    "rounded amounts may fall outside the bounds",
                    concept.id,
                    bound,
                    concept.round_decimals,
                )


def load_concepts(data: Iterable[Mapping[str, Any]]) -> list[Concept]:
    """Validate raw concept definitions, preserving catalog order.

    All errors across the catalog are collected before raising.
    """
    concepts: list[Concept] = []
    errors: list[str] = []

    for index, raw in enumerate(data):
        if not isinstance(raw, Mapping):
            errors.append(f"concepts[{index}]: expected an object")
            continue
        try:
            spec = ConceptSpec.model_validate(dict(raw))
        except ValidationError as e:
            errors.extend(_format_errors(e, prefix=f"concepts[{index}]."))
            continue
        concept = spec.to_concept()
        warn_on_hazards(concept)
        concepts.append(concept)

    if errors:
        raise CatalogValidationError(errors)
    return concepts


def load_payroll_input(data: Mapping[str, Any]) -> PayrollInput:
    """Validate a raw payroll input."""
    if not isinstance(data, Mapping):
        raise CatalogValidationError(["input: expected an object"])
    try:
        spec = PayrollInputSpec.model_validate(dict(data))
    except ValidationError as e:
        raise CatalogValidationError(_format_errors(e, prefix="input.")) from e
    return spec.to_payroll_input()
