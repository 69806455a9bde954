"""Rounding and clamping helpers shared by every concept amount.

Rounding modes map onto :mod:`decimal` rounding constants:

- nearest: half away from zero (``ROUND_HALF_UP``)
- down: toward negative infinity (``ROUND_FLOOR``)
- up: toward positive infinity (``ROUND_CEILING``)
- none: value returned unchanged
"""

from __future__ import annotations

from decimal import ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_UP, Decimal, localcontext

from payroll_concepts.calculators.types import Concept, RoundMode, to_decimal

__all__ = [
    "CURRENCY_DECIMALS",
    "MAX_ROUND_DECIMALS",
    "clamp",
    "clamp_and_round",
    "decimal_places",
    "round2",
    "round_to",
    "to_decimal",
]

CURRENCY_DECIMALS = 2
MAX_ROUND_DECIMALS = 4


def decimal_places(amount: Decimal) -> int:
    """Significant digits after the point: 10.50 has 1, 100 has 0."""
    return max(0, -amount.normalize().as_tuple().exponent)


def round_to(amount: Decimal, decimals: int, mode: RoundMode | str = RoundMode.NEAREST) -> Decimal:
    """Round amount to ``decimals`` places using the given mode."""
    mode = RoundMode(mode)
    if mode is RoundMode.NONE:
        return amount
    if mode is RoundMode.NEAREST:
        rounding = ROUND_HALF_UP
    elif mode is RoundMode.DOWN:
        rounding = ROUND_FLOOR
    elif mode is RoundMode.UP:
        rounding = ROUND_CEILING
    else:
        raise ValueError(f"Unsupported round mode: {mode}")

    quantum = Decimal(1).scaleb(-decimals)
    with localcontext() as ctx:
        # quantize must fit every integer digit plus the requested places
        ctx.prec = max(ctx.prec, amount.adjusted() + decimals + 2)
        return amount.quantize(quantum, rounding=rounding)


def round2(amount: Decimal) -> Decimal:
    """Round amount to currency precision (2 decimals, half away from zero)."""
    return round_to(amount, CURRENCY_DECIMALS, RoundMode.NEAREST)


def clamp(
    amount: Decimal,
    min_amount: Decimal | None = None,
    max_amount: Decimal | None = None,
) -> Decimal:
    """Apply the lower bound, then the upper bound.

    With ``min_amount > max_amount`` the result is always ``max_amount``.
    """
    if min_amount is not None:
        amount = max(amount, min_amount)
    if max_amount is not None:
        amount = min(amount, max_amount)
    return amount


def clamp_and_round(amount: Decimal, concept: Concept) -> Decimal:
    """Clamp to the concept's bounds, then round with its rounding rule.

    A bound finer than ``round_decimals`` can be rounded past; the catalog
    loader warns about such concepts.
    """
    clamped = clamp(amount, concept.min_amount, concept.max_amount)
    return round_to(clamped, concept.round_decimals, concept.round_mode)
