"""Service-level tests against an in-memory database."""

from decimal import Decimal
from uuid import uuid4

import pytest

from payroll_concepts.catalog import CatalogValidationError
from payroll_concepts.services import (
    ConceptService,
    DuplicateError,
    InvalidTransitionError,
    NotFoundError,
    PayrollService,
    RecordLockedError,
)

from .conftest import STANDARD_CONCEPTS

pytestmark = pytest.mark.asyncio

INPUT = {"base_salary": "1000", "tax_rate_pct": "10", "contributions_rate_pct": "5"}


class TestConceptService:
    """Concept templates and ordered concepts."""

    async def test_create_and_load_catalog(self, db_session, tenant_id):
        service = ConceptService(db_session)
        template = await service.create_template(tenant_id, "Standard", concepts=STANDARD_CONCEPTS)

        catalog = await service.load_catalog(tenant_id, template.template_id)

        assert [c.id for c in catalog] == ["PRES", "VIAT", "SIND"]
        assert catalog[2].priority == 10

    async def test_duplicate_template_name(self, db_session, tenant_id):
        service = ConceptService(db_session)
        await service.create_template(tenant_id, "Standard")

        with pytest.raises(DuplicateError):
            await service.create_template(tenant_id, "Standard")

    async def test_same_name_other_tenant(self, db_session, tenant_id):
        service = ConceptService(db_session)
        await service.create_template(tenant_id, "Standard")
        await service.create_template(uuid4(), "Standard")

    async def test_duplicate_codes_rejected(self, db_session, tenant_id):
        service = ConceptService(db_session)
        with pytest.raises(DuplicateError):
            await service.create_template(
                tenant_id, "Dup", concepts=[STANDARD_CONCEPTS[0], STANDARD_CONCEPTS[0]]
            )

    async def test_other_tenant_cannot_see_template(self, db_session, tenant_id):
        service = ConceptService(db_session)
        template = await service.create_template(tenant_id, "Standard")

        with pytest.raises(NotFoundError):
            await service.get_template(uuid4(), template.template_id)

    async def test_add_update_delete_concept(self, db_session, tenant_id):
        service = ConceptService(db_session)
        template = await service.create_template(tenant_id, "Standard", concepts=STANDARD_CONCEPTS)

        row = await service.add_concept(
            tenant_id,
            template.template_id,
            {"id": "OS", "name": "Health plan", "type": "deduction", "mode": "percentage", "value": "3"},
        )
        assert row.position == 3

        updated = await service.update_concept(
            tenant_id, template.template_id, "OS", {"value": Decimal("4"), "max_amount": Decimal("30")}
        )
        assert updated.value == Decimal("4")
        assert updated.max_amount == Decimal("30")
        assert updated.name == "Health plan"

        await service.delete_concept(tenant_id, template.template_id, "VIAT")
        rows = await service.list_concepts(tenant_id, template.template_id)

        assert [r.code for r in rows] == ["PRES", "SIND", "OS"]
        assert [r.position for r in rows] == [0, 1, 2]

    async def test_update_concept_revalidates(self, db_session, tenant_id):
        service = ConceptService(db_session)
        template = await service.create_template(tenant_id, "Standard", concepts=STANDARD_CONCEPTS)

        with pytest.raises(CatalogValidationError):
            await service.update_concept(tenant_id, template.template_id, "SIND", {"phase": "mid_tax"})

    async def test_add_duplicate_code(self, db_session, tenant_id):
        service = ConceptService(db_session)
        template = await service.create_template(tenant_id, "Standard", concepts=STANDARD_CONCEPTS)

        with pytest.raises(DuplicateError):
            await service.add_concept(tenant_id, template.template_id, STANDARD_CONCEPTS[0])

    async def test_reorder(self, db_session, tenant_id):
        service = ConceptService(db_session)
        template = await service.create_template(tenant_id, "Standard", concepts=STANDARD_CONCEPTS)

        await service.reorder_concepts(tenant_id, template.template_id, ["SIND", "PRES", "VIAT"])
        catalog = await service.load_catalog(tenant_id, template.template_id)

        assert [c.id for c in catalog] == ["SIND", "PRES", "VIAT"]

    async def test_reorder_requires_permutation(self, db_session, tenant_id):
        service = ConceptService(db_session)
        template = await service.create_template(tenant_id, "Standard", concepts=STANDARD_CONCEPTS)

        with pytest.raises(CatalogValidationError):
            await service.reorder_concepts(tenant_id, template.template_id, ["SIND", "PRES"])


class TestPayrollService:
    """Payroll records: computation, status and history."""

    async def test_preview_does_not_persist(self, db_session, tenant_id):
        service = PayrollService(db_session)
        preview = service.preview(INPUT, STANDARD_CONCEPTS)

        assert preview.calc.net == Decimal("963")
        assert preview.warnings == []
        assert (await service.list_payrolls(tenant_id)).total == 0

    async def test_create_from_template_snapshots_concepts(self, db_session, tenant_id):
        concepts = ConceptService(db_session)
        template = await concepts.create_template(tenant_id, "Standard", concepts=STANDARD_CONCEPTS)
        service = PayrollService(db_session)

        record = await service.create(
            tenant_id,
            employee_id="E-1",
            employee_name="Ana",
            period="2026-03",
            raw_input=INPUT,
            template_id=template.template_id,
        )

        assert record.status == "pending"
        assert record.net == Decimal("963")
        assert record.gross == Decimal("1150")
        assert record.currency == "ARS"
        assert [c["id"] for c in record.concepts_snapshot] == ["PRES", "VIAT", "SIND"]
        assert [line["amount"] for line in record.applied] == ["100.00", "50.00", "-22.00"]

        # Later catalog changes do not touch the stored payroll
        await concepts.delete_concept(tenant_id, template.template_id, "VIAT")
        updated = await service.update(tenant_id, record.payroll_id, raw_input={"bonuses": "100"})

        assert updated.taxable_base == Decimal("1210")
        assert updated.non_remunerative_total == Decimal("50")

    async def test_invalid_period(self, db_session, tenant_id):
        with pytest.raises(CatalogValidationError):
            await PayrollService(db_session).create(
                tenant_id, employee_id="E-1", employee_name="Ana", period="2026-13", raw_input=INPUT
            )

    async def test_lifecycle_and_history(self, db_session, tenant_id):
        service = PayrollService(db_session)
        record = await service.create(
            tenant_id, employee_id="E-1", employee_name="Ana", period="2026-03", raw_input=INPUT
        )
        payroll_id = record.payroll_id

        await service.transition(tenant_id, payroll_id, "approved", actor="hr")
        with pytest.raises(RecordLockedError):
            await service.update(tenant_id, payroll_id, raw_input={"bonuses": "5"})

        await service.transition(tenant_id, payroll_id, "pending", actor="hr", notes="fix bonus")
        await service.update(tenant_id, payroll_id, raw_input={"bonuses": "5"})
        await service.transition(tenant_id, payroll_id, "approved", actor="hr")
        record = await service.transition(tenant_id, payroll_id, "paid", actor="treasury")

        assert record.status == "paid"
        with pytest.raises(RecordLockedError):
            await service.delete(tenant_id, payroll_id)

        actions = [entry.action for entry in await service.history(tenant_id, payroll_id)]
        assert actions == ["created", "approved", "reopened", "updated", "approved", "paid"]

    async def test_invalid_transition(self, db_session, tenant_id):
        service = PayrollService(db_session)
        record = await service.create(
            tenant_id, employee_id="E-1", employee_name="Ana", period="2026-03", raw_input=INPUT
        )

        with pytest.raises(InvalidTransitionError):
            await service.transition(tenant_id, record.payroll_id, "paid")

    async def test_void_requires_reason(self, db_session, tenant_id):
        service = PayrollService(db_session)
        record = await service.create(
            tenant_id, employee_id="E-1", employee_name="Ana", period="2026-03", raw_input=INPUT
        )

        with pytest.raises(InvalidTransitionError):
            await service.transition(tenant_id, record.payroll_id, "voided")

        voided = await service.transition(
            tenant_id, record.payroll_id, "voided", notes="duplicate entry"
        )
        assert voided.status == "voided"

        await service.delete(tenant_id, record.payroll_id)
        with pytest.raises(NotFoundError):
            await service.get(tenant_id, record.payroll_id)

    async def test_list_filters_and_pagination(self, db_session, tenant_id):
        service = PayrollService(db_session)
        for i in range(5):
            await service.create(
                tenant_id,
                employee_id=f"E-{i % 2}",
                employee_name="Someone",
                period="2026-03" if i < 3 else "2026-04",
                raw_input=INPUT,
            )

        assert (await service.list_payrolls(tenant_id)).total == 5
        assert (await service.list_payrolls(tenant_id, period="2026-04")).total == 2
        assert (await service.list_payrolls(tenant_id, employee_id="E-0")).total == 3

        page = await service.list_payrolls(tenant_id, limit=2, skip=4)
        assert page.total == 5
        assert len(page.items) == 1

        assert (await service.list_payrolls(uuid4())).total == 0

    async def test_negative_net_produces_warning(self, db_session, tenant_id):
        preview = PayrollService(db_session).preview(
            INPUT,
            [{"id": "LOAN", "name": "Loan", "type": "deduction", "mode": "fixed_amount", "value": "5000", "phase": "post_tax"}],
        )

        assert preview.calc.net == Decimal("-4150")
        assert any("Negative net" in w for w in preview.warnings)
