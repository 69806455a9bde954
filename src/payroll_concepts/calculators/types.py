"""Type definitions for the concept-application pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any


class ConceptType(str, Enum):
    """Pay concept kinds."""

    EARNING_REMUNERATIVE = "earning_remunerative"
    EARNING_NONREMUNERATIVE = "earning_nonremunerative"
    DEDUCTION = "deduction"

    @property
    def is_earning(self) -> bool:
        return self is not ConceptType.DEDUCTION


class ConceptMode(str, Enum):
    """How a concept turns its value into an amount."""

    FIXED_AMOUNT = "fixed_amount"
    PERCENTAGE = "percentage"


class CalcBase(str, Enum):
    """Base a percentage deduction is computed against."""

    TAXABLE_BASE = "taxable_base"
    GROSS_BEFORE_DEDUCTIONS = "gross_before_deductions"
    NET_BEFORE_THIS = "net_before_this"
    CUSTOM = "custom"


class Phase(str, Enum):
    """Whether a deduction runs before or after withholding."""

    PRE_TAX = "pre_tax"
    POST_TAX = "post_tax"


class RoundMode(str, Enum):
    """Concept-level rounding modes."""

    NONE = "none"
    NEAREST = "nearest"
    DOWN = "down"
    UP = "up"


def to_decimal(value: Any) -> Decimal:
    """Coerce an int, float, str or Decimal into a Decimal.

    Floats go through ``str`` so that ``0.1`` becomes ``Decimal("0.1")``
    rather than its binary expansion.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("Boolean is not a monetary value")
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, str):
        return Decimal(value.strip())
    raise TypeError(f"Cannot convert {type(value).__name__} to Decimal")


def canonical_decimal(value: Decimal) -> str:
    """Scale-independent text form: 1000, 1000.00 and 1E+3 all give "1000"."""
    return f"{value.normalize():f}"


def _optional_decimal(value: Any) -> Decimal | None:
    return None if value is None else to_decimal(value)


@dataclass(frozen=True)
class PayrollInput:
    """One computation request. Owned by the caller, never mutated."""

    base_salary: Decimal
    bonuses: Decimal = Decimal("0")
    overtime_hours: Decimal = Decimal("0")
    overtime_rate: Decimal = Decimal("0")
    manual_deductions: Decimal = Decimal("0")
    tax_rate_pct: Decimal = Decimal("0")
    contributions_rate_pct: Decimal = Decimal("0")

    def __post_init__(self) -> None:
        for name in (
            "base_salary",
            "bonuses",
            "overtime_hours",
            "overtime_rate",
            "manual_deductions",
            "tax_rate_pct",
            "contributions_rate_pct",
        ):
            object.__setattr__(self, name, to_decimal(getattr(self, name)))

    def to_canonical_dict(self) -> dict[str, str]:
        """Return canonical dict for hashing (deterministic ordering)."""
        return {
            "base_salary": canonical_decimal(self.base_salary),
            "bonuses": canonical_decimal(self.bonuses),
            "overtime_hours": canonical_decimal(self.overtime_hours),
            "overtime_rate": canonical_decimal(self.overtime_rate),
            "manual_deductions": canonical_decimal(self.manual_deductions),
            "tax_rate_pct": canonical_decimal(self.tax_rate_pct),
            "contributions_rate_pct": canonical_decimal(self.contributions_rate_pct),
        }


@dataclass(frozen=True)
class Concept:
    """A configured pay rule, read-only to the engine.

    Every optional field carries its default here so the engine never has
    to fall back on missing values. String tags are accepted for the enum
    fields and numbers of any kind for the money fields; both are
    normalized on construction.

    ``base``, ``custom_base`` and ``phase`` only matter for deductions.
    ``custom_base`` is only consulted when ``base`` is ``custom`` and
    ``mode`` is ``percentage``.
    """

    id: str
    name: str
    type: ConceptType
    mode: ConceptMode
    value: Decimal
    base: CalcBase = CalcBase.TAXABLE_BASE
    custom_base: Decimal | None = None
    phase: Phase = Phase.PRE_TAX
    min_amount: Decimal | None = None
    max_amount: Decimal | None = None
    round_mode: RoundMode = RoundMode.NEAREST
    round_decimals: int = 2
    priority: int = 100
    enabled: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "id", str(self.id))
        object.__setattr__(self, "type", ConceptType(self.type))
        object.__setattr__(self, "mode", ConceptMode(self.mode))
        object.__setattr__(self, "base", CalcBase(self.base))
        object.__setattr__(self, "phase", Phase(self.phase))
        object.__setattr__(self, "round_mode", RoundMode(self.round_mode))
        object.__setattr__(self, "value", to_decimal(self.value))
        object.__setattr__(self, "custom_base", _optional_decimal(self.custom_base))
        object.__setattr__(self, "min_amount", _optional_decimal(self.min_amount))
        object.__setattr__(self, "max_amount", _optional_decimal(self.max_amount))
        object.__setattr__(self, "round_decimals", int(self.round_decimals))
        object.__setattr__(self, "priority", int(self.priority))

    @property
    def has_inverted_bounds(self) -> bool:
        """True when min_amount > max_amount; the clamp then always yields max_amount."""
        return (
            self.min_amount is not None
            and self.max_amount is not None
            and self.min_amount > self.max_amount
        )

    def to_canonical_dict(self) -> dict[str, Any]:
        """Return canonical dict for hashing (deterministic ordering)."""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "mode": self.mode.value,
            "value": canonical_decimal(self.value),
            "base": self.base.value,
            "custom_base": canonical_decimal(self.custom_base) if self.custom_base is not None else None,
            "phase": self.phase.value,
            "min_amount": canonical_decimal(self.min_amount) if self.min_amount is not None else None,
            "max_amount": canonical_decimal(self.max_amount) if self.max_amount is not None else None,
            "round_mode": self.round_mode.value,
            "round_decimals": self.round_decimals,
            "priority": self.priority,
            "enabled": self.enabled,
        }


@dataclass(frozen=True)
class AppliedConcept:
    """One ledger line: a signed amount actually applied during a computation."""

    concept_id: str
    name: str
    type: ConceptType
    amount: Decimal  # Earnings positive, deductions negative
    phase: Phase | None = None  # Deductions only

    def to_canonical_dict(self) -> dict[str, Any]:
        """Return canonical dict for hashing (deterministic ordering)."""
        return {
            "concept_id": self.concept_id,
            "name": self.name,
            "type": self.type.value,
            "phase": self.phase.value if self.phase else None,
            "amount": str(self.amount),
        }


@dataclass(frozen=True)
class PayrollCalc:
    """Aggregate result of one computation."""

    taxable_base: Decimal
    non_remunerative_total: Decimal
    concepts_deductions_total: Decimal
    gross: Decimal
    taxes: Decimal
    contributions: Decimal
    net: Decimal
    overtime_amount: Decimal
    applied: tuple[AppliedConcept, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        """Plain dict with string amounts, suitable for JSON."""
        return {
            "taxable_base": str(self.taxable_base),
            "non_remunerative_total": str(self.non_remunerative_total),
            "concepts_deductions_total": str(self.concepts_deductions_total),
            "gross": str(self.gross),
            "taxes": str(self.taxes),
            "contributions": str(self.contributions),
            "net": str(self.net),
            "overtime_amount": str(self.overtime_amount),
            "applied": [line.to_canonical_dict() for line in self.applied],
        }
