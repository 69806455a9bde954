"""Concept base resolution and raw amount computation."""

from __future__ import annotations

from decimal import Decimal

from payroll_concepts.calculators.types import CalcBase, Concept, ConceptMode

HUNDRED = Decimal("100")


def resolve_base(
    concept: Concept,
    *,
    taxable_base: Decimal,
    gross_before: Decimal,
    net_before: Decimal,
) -> Decimal:
    """Map the concept's ``base`` onto a value from the running totals.

    ``gross_before`` and ``net_before`` must only reflect deductions that
    were applied before this one, so resolution never recurses.
    A ``custom`` base without ``custom_base`` resolves to zero.
    """
    if concept.base is CalcBase.TAXABLE_BASE:
        return taxable_base
    if concept.base is CalcBase.GROSS_BEFORE_DEDUCTIONS:
        return gross_before
    if concept.base is CalcBase.NET_BEFORE_THIS:
        return net_before
    if concept.base is CalcBase.CUSTOM:
        return concept.custom_base if concept.custom_base is not None else Decimal("0")
    raise ValueError(f"Unsupported base: {concept.base}")


def raw_amount(concept: Concept, base: Decimal) -> Decimal:
    """Amount before clamping and rounding.

    Fixed amounts ignore the base entirely.
    """
    if concept.mode is ConceptMode.FIXED_AMOUNT:
        return concept.value
    if concept.mode is ConceptMode.PERCENTAGE:
        return base * concept.value / HUNDRED
    raise ValueError(f"Unsupported mode: {concept.mode}")
