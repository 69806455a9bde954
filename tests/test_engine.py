"""Unit tests for the concept engine."""

from decimal import Decimal

import pytest

from payroll_concepts.calculators.engine import (
    RunningTotals,
    compute_batch,
    compute_payroll,
    deductions_in_phase,
)
from payroll_concepts.calculators.types import ConceptType, PayrollInput, Phase


class TestBaseline:
    """Computation without concepts."""

    def test_zero_concepts(self, baseline_input):
        calc = compute_payroll(baseline_input, [])

        assert calc.taxable_base == Decimal("1000")
        assert calc.taxes == Decimal("100")
        assert calc.contributions == Decimal("50")
        assert calc.gross == Decimal("1000")
        assert calc.net == Decimal("850")
        assert calc.non_remunerative_total == Decimal("0")
        assert calc.concepts_deductions_total == Decimal("0")
        assert calc.applied == ()

    def test_overtime_and_bonuses_seed_taxable_base(self):
        payroll_input = PayrollInput(
            base_salary="1000",
            bonuses="200",
            overtime_hours="10",
            overtime_rate="15.5",
            tax_rate_pct="10",
        )
        calc = compute_payroll(payroll_input)

        assert calc.overtime_amount == Decimal("155.00")
        assert calc.taxable_base == Decimal("1355.00")
        assert calc.taxes == Decimal("135.50")

    def test_manual_deductions_reduce_gross_not_taxes(self):
        payroll_input = PayrollInput(
            base_salary="1000", manual_deductions="100", tax_rate_pct="10", contributions_rate_pct="5"
        )
        calc = compute_payroll(payroll_input)

        assert calc.gross == Decimal("900")
        assert calc.taxes == Decimal("100")
        assert calc.net == Decimal("750")

    def test_totals_are_rounded_to_cents(self):
        payroll_input = PayrollInput(base_salary="1000.005", tax_rate_pct="3.333")
        calc = compute_payroll(payroll_input)

        assert calc.taxable_base == Decimal("1000.01")
        assert calc.taxes == Decimal("33.33")

    def test_largest_storable_overtime_computes(self):
        payroll_input = PayrollInput(
            base_salary="0", overtime_hours="99999999999999", overtime_rate="99999999999999"
        )
        calc = compute_payroll(payroll_input)

        assert calc.overtime_amount == Decimal("99999999999999") * Decimal("99999999999999")
        assert calc.gross.as_tuple().exponent == -2


class TestEarnings:
    """Remunerative and non-remunerative earnings."""

    def test_percentage_earning(self, baseline_input, make_concept):
        bonus = make_concept(type="earning_remunerative", mode="percentage", value="10")
        calc = compute_payroll(baseline_input, [bonus])

        assert calc.applied[0].amount == Decimal("100")
        assert calc.taxable_base == Decimal("1100")
        assert calc.taxes == Decimal("110")
        assert calc.contributions == Decimal("55")
        assert calc.gross == Decimal("1100")
        assert calc.net == Decimal("935")

    def test_non_remunerative_earning_skips_withholding(self, baseline_input, make_concept):
        allowance = make_concept(type="earning_nonremunerative", value="200")
        calc = compute_payroll(baseline_input, [allowance])

        assert calc.taxable_base == Decimal("1000")
        assert calc.non_remunerative_total == Decimal("200")
        assert calc.taxes == Decimal("100")
        assert calc.gross == Decimal("1200")
        assert calc.net == Decimal("1050")

    def test_earnings_follow_catalog_order_not_priority(self, baseline_input, make_concept):
        """A percentage earning sees the remunerative earnings listed before it."""
        fixed = make_concept(type="earning_remunerative", value="100", priority=50)
        pct = make_concept(type="earning_remunerative", mode="percentage", value="10", priority=1)

        fixed_first = compute_payroll(baseline_input, [fixed, pct])
        pct_first = compute_payroll(baseline_input, [pct, fixed])

        assert fixed_first.applied[1].amount == Decimal("110")
        assert pct_first.applied[0].amount == Decimal("100")
        assert fixed_first.taxable_base == Decimal("1210")
        assert pct_first.taxable_base == Decimal("1200")

    def test_earning_lines_are_positive(self, baseline_input, make_concept):
        calc = compute_payroll(
            baseline_input,
            [make_concept(type="earning_remunerative", value="10")],
        )
        line = calc.applied[0]

        assert line.amount > 0
        assert line.phase is None
        assert line.type is ConceptType.EARNING_REMUNERATIVE

    def test_earning_respects_bounds(self, baseline_input, make_concept):
        capped = make_concept(
            type="earning_remunerative", mode="percentage", value="50", max_amount="75"
        )
        calc = compute_payroll(baseline_input, [capped])

        assert calc.applied[0].amount == Decimal("75")
        assert calc.taxable_base == Decimal("1075")


class TestPreTaxDeductions:
    """Deductions applied before withholding."""

    def test_clamped_percentage_deduction(self, baseline_input, make_concept):
        deduction = make_concept(mode="percentage", value="50", max_amount="50")
        calc = compute_payroll(baseline_input, [deduction])

        assert calc.applied[0].amount == Decimal("-50")
        assert calc.applied[0].phase is Phase.PRE_TAX
        assert calc.gross == Decimal("950")
        assert calc.concepts_deductions_total == Decimal("50")

    def test_fixed_deduction_ignores_custom_base(self, baseline_input, make_concept):
        deduction = make_concept(value="30", base="custom", custom_base="999")
        calc = compute_payroll(baseline_input, [deduction])

        assert calc.applied[0].amount == Decimal("-30")
        assert calc.gross == Decimal("970")

    def test_withholding_ignores_pre_tax_deductions(self, baseline_input, make_concept):
        calc = compute_payroll(baseline_input, [make_concept(value="300")])

        assert calc.taxes == Decimal("100")
        assert calc.contributions == Decimal("50")
        assert calc.gross == Decimal("700")
        assert calc.net == Decimal("550")

    def test_priority_governs_order(self, baseline_input, make_concept):
        """Swapping declaration order does not change the result."""
        first = make_concept(mode="percentage", value="10", base="gross_before_deductions", priority=1)
        second = make_concept(mode="percentage", value="10", base="gross_before_deductions", priority=2)

        a = compute_payroll(baseline_input, [first, second])
        b = compute_payroll(baseline_input, [second, first])

        assert a == b
        assert [line.concept_id for line in a.applied] == [first.id, second.id]
        assert a.applied[0].amount == Decimal("-100")
        assert a.applied[1].amount == Decimal("-90")

    def test_equal_priorities_keep_catalog_order(self, baseline_input, make_concept):
        a = make_concept(value="1", priority=5)
        b = make_concept(value="2", priority=5)

        calc = compute_payroll(baseline_input, [b, a])

        assert [line.concept_id for line in calc.applied] == [b.id, a.id]

    def test_net_before_this_uses_hypothetical_withholding(self, baseline_input, make_concept):
        deduction = make_concept(mode="percentage", value="10", base="net_before_this")
        calc = compute_payroll(baseline_input, [deduction])

        # 10% of (1000 - 100 - 50)
        assert calc.applied[0].amount == Decimal("-85")
        assert calc.gross == Decimal("915")

    def test_custom_base_without_value_is_zero(self, baseline_input, make_concept):
        deduction = make_concept(mode="percentage", value="10", base="custom")
        calc = compute_payroll(baseline_input, [deduction])

        assert calc.applied[0].amount == Decimal("0")
        assert calc.gross == Decimal("1000")

    def test_custom_percentage_base(self, baseline_input, make_concept):
        deduction = make_concept(mode="percentage", value="10", base="custom", custom_base="400")
        calc = compute_payroll(baseline_input, [deduction])

        assert calc.applied[0].amount == Decimal("-40")


class TestPostTaxDeductions:
    """Deductions applied after withholding."""

    def test_post_tax_reduces_net_only(self, baseline_input, make_concept):
        calc = compute_payroll(baseline_input, [make_concept(value="100", phase="post_tax")])

        assert calc.gross == Decimal("1000")
        assert calc.net == Decimal("750")
        assert calc.applied[0].phase is Phase.POST_TAX

    def test_net_before_this_sees_earlier_post_tax(self, baseline_input, make_concept):
        first = make_concept(value="50", phase="post_tax", priority=1)
        second = make_concept(
            mode="percentage", value="10", base="net_before_this", phase="post_tax", priority=2
        )
        calc = compute_payroll(baseline_input, [second, first])

        # 10% of (850 - 50)
        assert calc.applied[1].amount == Decimal("-80")
        assert calc.net == Decimal("720")

    def test_pre_tax_runs_before_post_tax_regardless_of_priority(self, baseline_input, make_concept):
        post = make_concept(value="10", phase="post_tax", priority=1)
        pre = make_concept(value="20", phase="pre_tax", priority=99)
        calc = compute_payroll(baseline_input, [post, pre])

        assert [line.concept_id for line in calc.applied] == [pre.id, post.id]

    def test_negative_net_is_allowed(self, baseline_input, make_concept):
        calc = compute_payroll(baseline_input, [make_concept(value="5000", phase="post_tax")])

        assert calc.net == Decimal("-4150")


class TestFiltering:
    def test_disabled_concepts_are_ignored(self, baseline_input, make_concept):
        disabled = make_concept(value="500", enabled=False)
        calc = compute_payroll(baseline_input, [disabled])

        assert calc.applied == ()
        assert calc == compute_payroll(baseline_input, [])


class TestLedgerConsistency:
    def test_deduction_total_matches_ledger(self, baseline_input, make_concept):
        concepts = [
            make_concept(type="earning_remunerative", value="100"),
            make_concept(value="30", priority=2),
            make_concept(mode="percentage", value="5", phase="post_tax"),
        ]
        calc = compute_payroll(baseline_input, concepts)
        deductions = [line.amount for line in calc.applied if line.type is ConceptType.DEDUCTION]

        post_tax = sum(line.amount for line in calc.applied if line.phase is Phase.POST_TAX)

        assert -sum(deductions) == calc.concepts_deductions_total
        assert calc.net == calc.gross - calc.taxes - calc.contributions + post_tax


class TestRunningTotals:
    def test_gross_before(self, baseline_input):
        state = RunningTotals(
            payroll_input=baseline_input,
            taxable_base=Decimal("1000"),
            non_remunerative=Decimal("50"),
            pre_tax_deductions=Decimal("30"),
        )
        assert state.gross_before == Decimal("1020")

    def test_hypothetical_withholding_is_unrounded(self):
        payroll_input = PayrollInput(base_salary="0", tax_rate_pct="3.333")
        state = RunningTotals(payroll_input=payroll_input, taxable_base=Decimal("100"))

        assert state.hypothetical_withholding == Decimal("3.333")

    def test_deductions_in_phase_filters_and_sorts(self, make_concept):
        concepts = [
            make_concept(priority=3),
            make_concept(type="earning_remunerative", priority=0),
            make_concept(priority=1, phase="post_tax"),
            make_concept(priority=1),
        ]
        pre = deductions_in_phase(concepts, Phase.PRE_TAX)

        assert [c.priority for c in pre] == [1, 3]


class TestDeterminism:
    def test_same_inputs_identical_results(self, baseline_input, make_concept):
        concepts = [
            make_concept(type="earning_remunerative", mode="percentage", value="7.5"),
            make_concept(mode="percentage", value="3", base="net_before_this"),
        ]
        assert compute_payroll(baseline_input, concepts) == compute_payroll(baseline_input, concepts)

    def test_input_is_not_mutated(self, baseline_input, make_concept):
        concepts = [make_concept(value="10")]
        before = (baseline_input, tuple(concepts))
        compute_payroll(baseline_input, concepts)

        assert (baseline_input, tuple(concepts)) == before


class TestBatch:
    def test_batch_preserves_order(self, make_concept):
        requests = [
            (PayrollInput(base_salary=str(1000 + i), tax_rate_pct="10"), [make_concept(value="1")])
            for i in range(20)
        ]
        results = compute_batch(requests, max_workers=4)

        assert len(results) == 20
        assert results == [compute_payroll(i, c) for i, c in requests]

    def test_empty_batch(self):
        assert compute_batch([]) == []


@pytest.mark.parametrize(
    "round_mode,expected",
    [
        ("nearest", Decimal("-33.34")),
        ("down", Decimal("-33.33")),
        ("up", Decimal("-33.34")),
    ],
)
def test_concept_rounding_mode(baseline_input, make_concept, round_mode, expected):
    """Deduction of 3.3335% on 1000 rounds per concept, then the line is stored in cents."""
    deduction = make_concept(mode="percentage", value="3.3335", round_mode=round_mode)
    calc = compute_payroll(baseline_input, [deduction])

    assert calc.applied[0].amount == expected
