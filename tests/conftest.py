"""Pytest fixtures for payroll concept engine tests."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Callable

import pytest

from payroll_concepts.calculators.types import Concept, PayrollInput


@pytest.fixture
def baseline_input() -> PayrollInput:
    """Salary 1000, taxes 10%, contributions 5%, nothing else."""
    return PayrollInput(
        base_salary=Decimal("1000"),
        tax_rate_pct=Decimal("10"),
        contributions_rate_pct=Decimal("5"),
    )


@pytest.fixture
def make_concept() -> Callable[..., Concept]:
    """Factory for concepts; unspecified fields keep the concept defaults."""
    counter = iter(range(1, 10_000))

    def _make(type: str = "deduction", mode: str = "fixed_amount", value: Any = "0", **kwargs: Any) -> Concept:
        n = next(counter)
        kwargs.setdefault("id", f"C{n:03d}")
        kwargs.setdefault("name", f"Concept {n}")
        return Concept(type=type, mode=mode, value=value, **kwargs)

    return _make
