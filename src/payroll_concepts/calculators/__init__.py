"""Payroll concept engine."""

from payroll_concepts.calculators.engine import compute_batch, compute_payroll
from payroll_concepts.calculators.ledger import LedgerBuilder
from payroll_concepts.calculators.rounding import clamp_and_round, round2, round_to
from payroll_concepts.calculators.types import (
    AppliedConcept,
    CalcBase,
    Concept,
    ConceptMode,
    ConceptType,
    PayrollCalc,
    PayrollInput,
    Phase,
    RoundMode,
)

__all__ = [
    "AppliedConcept",
    "CalcBase",
    "Concept",
    "ConceptMode",
    "ConceptType",
    "LedgerBuilder",
    "PayrollCalc",
    "PayrollInput",
    "Phase",
    "RoundMode",
    "clamp_and_round",
    "compute_batch",
    "compute_payroll",
    "round2",
    "round_to",
]
