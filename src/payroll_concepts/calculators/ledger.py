"""Applied-concept ledger builder with deterministic hashing."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Sequence
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from payroll_concepts.calculators.rounding import round2
from payroll_concepts.calculators.types import AppliedConcept, ConceptType, Phase

if TYPE_CHECKING:
    from payroll_concepts.calculators.types import Concept, PayrollCalc, PayrollInput


class LedgerBuilder:
    """Builds ledger lines and audit fingerprints.

    Sign conventions:
    - EARNING (remunerative or not): positive
    - DEDUCTION: negative, tagged with its phase

    Rounding:
    - Concept amounts are rounded by their own rule before reaching here
    - Ledger lines are stored at 2 decimals
    """

    CENT = Decimal("0.01")

    @staticmethod
    def earning_line(concept: Concept, amount: Decimal) -> AppliedConcept:
        """Create an earning line (positive amount)."""
        return AppliedConcept(
            concept_id=concept.id,
            name=concept.name,
            type=concept.type,
            amount=round2(amount),
        )

    @staticmethod
    def deduction_line(concept: Concept, amount: Decimal, phase: Phase) -> AppliedConcept:
        """Create a deduction line (negative amount)."""
        return AppliedConcept(
            concept_id=concept.id,
            name=concept.name,
            type=concept.type,
            amount=round2(-amount),
            phase=phase,
        )

    @staticmethod
    def compute_line_hash(line: AppliedConcept) -> str:
        """Compute deterministic hash for a ledger line."""
        json_str = json.dumps(line.to_canonical_dict(), sort_keys=True)
        return hashlib.sha256(json_str.encode()).hexdigest()[:32]

    @staticmethod
    def inputs_fingerprint(payroll_input: PayrollInput) -> str:
        """Compute fingerprint of the payroll input."""
        json_str = json.dumps(payroll_input.to_canonical_dict(), sort_keys=True)
        return hashlib.sha256(json_str.encode()).hexdigest()[:32]

    @staticmethod
    def concepts_fingerprint(concepts: Sequence[Concept]) -> str:
        """Compute fingerprint of a concept catalog.

        Catalog order is part of the fingerprint since earnings are applied
        in list order.
        """
        json_str = json.dumps([c.to_canonical_dict() for c in concepts], sort_keys=True)
        return hashlib.sha256(json_str.encode()).hexdigest()[:32]

    @staticmethod
    def calculation_id(
        payroll_input: PayrollInput,
        concepts: Sequence[Concept],
        engine_version: str,
    ) -> UUID:
        """Generate deterministic calculation ID."""
        data = {
            "engine_version": engine_version,
            "inputs_fingerprint": LedgerBuilder.inputs_fingerprint(payroll_input),
            "concepts_fingerprint": LedgerBuilder.concepts_fingerprint(concepts),
        }
        json_str = json.dumps(data, sort_keys=True)
        hash_bytes = hashlib.sha256(json_str.encode()).digest()
        return UUID(bytes=hash_bytes[:16])

    @staticmethod
    def sum_by_type(applied: Sequence[AppliedConcept]) -> dict[ConceptType, Decimal]:
        """Sum line amounts by concept type."""
        totals: dict[ConceptType, Decimal] = {ct: Decimal("0") for ct in ConceptType}
        for line in applied:
            totals[line.type] += line.amount
        return totals

    @staticmethod
    def sum_by_phase(applied: Sequence[AppliedConcept]) -> dict[Phase, Decimal]:
        """Sum deduction line amounts by phase."""
        totals: dict[Phase, Decimal] = {p: Decimal("0") for p in Phase}
        for line in applied:
            if line.phase is not None:
                totals[line.phase] += line.amount
        return totals

    @staticmethod
    def validate_line_signs(applied: Sequence[AppliedConcept]) -> list[str]:
        """Validate that all ledger lines carry the expected sign.

        Returns list of error messages (empty if all valid). A wrong sign is
        not an engine failure: a percentage of a negative base legitimately
        flips it, so callers decide what to do with these.
        """
        errors: list[str] = []

        for i, line in enumerate(applied):
            if line.type.is_earning and line.amount < 0:
                errors.append(
                    f"Line {i} ({line.concept_id}) has negative amount {line.amount}, expected positive"
                )
            elif line.type is ConceptType.DEDUCTION and line.amount > 0:
                errors.append(
                    f"Line {i} ({line.concept_id}) has positive amount {line.amount}, expected negative"
                )

        return errors

    @staticmethod
    def check_totals(calc: PayrollCalc, payroll_input: PayrollInput) -> list[str]:
        """Reconcile the ledger against the computed totals.

        Ledger lines are stored at 2 decimals while totals accumulate the
        concept-rounded amounts, so each line may drift by under a cent.
        """
        errors: list[str] = []
        tolerance = LedgerBuilder.CENT * max(1, len(calc.applied))
        by_phase = LedgerBuilder.sum_by_phase(calc.applied)

        expected_gross = (
            calc.taxable_base
            + calc.non_remunerative_total
            - payroll_input.manual_deductions
            + by_phase[Phase.PRE_TAX]
        )
        if abs(expected_gross - calc.gross) > tolerance:
            errors.append(f"Gross {calc.gross} does not reconcile with ledger ({expected_gross})")

        expected_net = calc.gross - calc.taxes - calc.contributions + by_phase[Phase.POST_TAX]
        if abs(expected_net - calc.net) > tolerance:
            errors.append(f"Net {calc.net} does not reconcile with ledger ({expected_net})")

        expected_deductions = -(by_phase[Phase.PRE_TAX] + by_phase[Phase.POST_TAX])
        if abs(expected_deductions - calc.concepts_deductions_total) > tolerance:
            errors.append(
                f"Deductions total {calc.concepts_deductions_total} does not reconcile "
                f"with ledger ({expected_deductions})"
            )

        return errors
