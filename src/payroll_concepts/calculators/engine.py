"""Payroll concept engine - main orchestrator."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from decimal import Decimal
from functools import reduce

from payroll_concepts.calculators.base_resolver import HUNDRED, raw_amount, resolve_base
from payroll_concepts.calculators.ledger import LedgerBuilder
from payroll_concepts.calculators.rounding import clamp_and_round, round2
from payroll_concepts.calculators.types import (
    AppliedConcept,
    Concept,
    ConceptType,
    PayrollCalc,
    PayrollInput,
    Phase,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class RunningTotals:
    """Accumulator threaded through the concept fold.

    Every step returns a new instance; nothing is mutated in place.
    """

    payroll_input: PayrollInput
    taxable_base: Decimal
    non_remunerative: Decimal = ZERO
    pre_tax_deductions: Decimal = ZERO
    post_tax_deductions: Decimal = ZERO
    taxes: Decimal = ZERO
    contributions: Decimal = ZERO
    applied: tuple[AppliedConcept, ...] = ()

    @property
    def gross_before(self) -> Decimal:
        """Gross so far: taxable + non-remunerative - manual - pre-tax deductions."""
        return (
            self.taxable_base
            + self.non_remunerative
            - self.payroll_input.manual_deductions
            - self.pre_tax_deductions
        )

    @property
    def hypothetical_withholding(self) -> Decimal:
        """Unrounded taxes plus contributions on the current taxable base."""
        taxes = self.taxable_base * self.payroll_input.tax_rate_pct / HUNDRED
        contributions = self.taxable_base * self.payroll_input.contributions_rate_pct / HUNDRED
        return taxes + contributions

    @property
    def running_net(self) -> Decimal:
        """Net after withholding and the post-tax deductions applied so far."""
        return self.gross_before - self.taxes - self.contributions - self.post_tax_deductions


def _seed(payroll_input: PayrollInput) -> tuple[RunningTotals, Decimal]:
    overtime = payroll_input.overtime_hours * payroll_input.overtime_rate
    taxable = payroll_input.base_salary + payroll_input.bonuses + overtime
    return RunningTotals(payroll_input=payroll_input, taxable_base=taxable), overtime


def _apply_earning(state: RunningTotals, concept: Concept) -> RunningTotals:
    """Earnings always compute from the current taxable base."""
    amount = clamp_and_round(raw_amount(concept, state.taxable_base), concept)
    line = LedgerBuilder.earning_line(concept, amount)

    if concept.type is ConceptType.EARNING_REMUNERATIVE:
        return replace(
            state,
            taxable_base=state.taxable_base + amount,
            applied=state.applied + (line,),
        )
    return replace(
        state,
        non_remunerative=state.non_remunerative + amount,
        applied=state.applied + (line,),
    )


def _apply_pre_tax(state: RunningTotals, concept: Concept) -> RunningTotals:
    gross_before = state.gross_before
    base = resolve_base(
        concept,
        taxable_base=state.taxable_base,
        gross_before=gross_before,
        net_before=gross_before - state.hypothetical_withholding,
    )
    amount = clamp_and_round(raw_amount(concept, base), concept)
    return replace(
        state,
        pre_tax_deductions=state.pre_tax_deductions + amount,
        applied=state.applied + (LedgerBuilder.deduction_line(concept, amount, Phase.PRE_TAX),),
    )


def _apply_post_tax(state: RunningTotals, concept: Concept) -> RunningTotals:
    base = resolve_base(
        concept,
        taxable_base=state.taxable_base,
        gross_before=state.gross_before,
        net_before=state.running_net,
    )
    amount = clamp_and_round(raw_amount(concept, base), concept)
    return replace(
        state,
        post_tax_deductions=state.post_tax_deductions + amount,
        applied=state.applied + (LedgerBuilder.deduction_line(concept, amount, Phase.POST_TAX),),
    )


def _withhold(state: RunningTotals) -> RunningTotals:
    """Taxes and contributions come off the taxable base only.

    Pre-tax deductions do not reduce the withholding base.
    """
    payroll_input = state.payroll_input
    return replace(
        state,
        taxes=round2(state.taxable_base * payroll_input.tax_rate_pct / HUNDRED),
        contributions=round2(state.taxable_base * payroll_input.contributions_rate_pct / HUNDRED),
    )


def deductions_in_phase(concepts: Iterable[Concept], phase: Phase) -> list[Concept]:
    """Deductions of one phase in ascending priority; ties keep catalog order."""
    return sorted(
        (c for c in concepts if c.type is ConceptType.DEDUCTION and c.phase is phase),
        key=lambda c: c.priority,
    )


def compute_payroll(payroll_input: PayrollInput, concepts: Sequence[Concept] = ()) -> PayrollCalc:
    """Apply a concept catalog to one payroll input.

    Pipeline (stable order):
    1) Drop disabled concepts
    2) Seed taxable base with salary, bonuses and overtime
    3) Earnings in catalog order (priority is ignored here)
    4) Pre-tax deductions by ascending priority
    5) Taxes and contributions on the taxable base
    6) Post-tax deductions by ascending priority
    7) Round totals to currency precision

    Pure and deterministic: the same input and catalog always produce an
    identical result.
    """
    active = [c for c in concepts if c.enabled]
    state, overtime = _seed(payroll_input)

    state = reduce(_apply_earning, (c for c in active if c.type.is_earning), state)
    state = reduce(_apply_pre_tax, deductions_in_phase(active, Phase.PRE_TAX), state)
    state = _withhold(state)
    state = reduce(_apply_post_tax, deductions_in_phase(active, Phase.POST_TAX), state)

    gross_before = state.gross_before
    calc = PayrollCalc(
        taxable_base=round2(state.taxable_base),
        non_remunerative_total=round2(state.non_remunerative),
        concepts_deductions_total=round2(state.pre_tax_deductions + state.post_tax_deductions),
        gross=round2(gross_before),
        taxes=state.taxes,
        contributions=state.contributions,
        net=round2(gross_before - state.taxes - state.contributions - state.post_tax_deductions),
        overtime_amount=round2(overtime),
        applied=state.applied,
    )

    logger.debug(
        "Computed payroll: %d of %d concepts applied, gross=%s net=%s",
        len(calc.applied),
        len(concepts),
        calc.gross,
        calc.net,
    )
    return calc


def compute_batch(
    requests: Iterable[tuple[PayrollInput, Sequence[Concept]]],
    max_workers: int | None = None,
) -> list[PayrollCalc]:
    """Compute many independent payrolls concurrently.

    Results come back in request order. No state is shared between calls,
    so no locking is needed.
    """
    items = list(requests)
    if not items:
        return []

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        results = list(pool.map(lambda item: compute_payroll(item[0], item[1]), items))

    logger.info("Computed payroll batch of %d", len(results))
    return results
