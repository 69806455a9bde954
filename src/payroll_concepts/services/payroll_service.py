"""Payroll record service - computes with the engine and keeps the history."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_concepts.calculators.engine import compute_batch, compute_payroll
from payroll_concepts.calculators.ledger import LedgerBuilder
from payroll_concepts.calculators.types import Concept, PayrollCalc, PayrollInput
from payroll_concepts.catalog import CatalogValidationError, load_concepts, load_payroll_input
from payroll_concepts.config import get_settings
from payroll_concepts.models import PayrollHistoryEntry, PayrollRecord
from payroll_concepts.services.concept_service import ConceptService
from payroll_concepts.services.errors import NotFoundError, RecordLockedError
from payroll_concepts.services.state_machine import (
    InvalidTransitionError,
    PayrollStateMachine,
    PayrollStatus,
)

logger = logging.getLogger(__name__)

PERIOD_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")

INPUT_FIELDS = (
    "base_salary",
    "bonuses",
    "overtime_hours",
    "overtime_rate",
    "manual_deductions",
    "tax_rate_pct",
    "contributions_rate_pct",
)


@dataclass
class PayrollPreview:
    """Result of computing a payroll without persisting it."""

    payroll_input: PayrollInput
    concepts: list[Concept]
    calc: PayrollCalc
    calculation_id: UUID
    warnings: list[str]


@dataclass
class PayrollPage:
    items: list[PayrollRecord]
    total: int
    limit: int
    skip: int


def validate_period(period: str) -> str:
    if not PERIOD_PATTERN.match(period):
        raise CatalogValidationError([f"period: expected YYYY-MM, got '{period}'"])
    return period


def preview_payroll(
    payroll_input: PayrollInput,
    concepts: list[Concept],
    engine_version: str | None = None,
) -> PayrollPreview:
    """Compute a payroll and collect reconciliation warnings.

    Warnings never block the computation: a negative net or a flipped sign
    is a legitimate outcome of the configured concepts.
    """
    return _reconcile(payroll_input, concepts, compute_payroll(payroll_input, concepts), engine_version)


def preview_batch(
    requests: Sequence[tuple[PayrollInput, list[Concept]]],
    engine_version: str | None = None,
) -> list[PayrollPreview]:
    """Compute independent payrolls concurrently, in request order."""
    settings = get_settings()
    calcs = compute_batch(requests, max_workers=settings.batch_max_workers)
    return [
        _reconcile(payroll_input, concepts, calc, engine_version)
        for (payroll_input, concepts), calc in zip(requests, calcs)
    ]


def _reconcile(
    payroll_input: PayrollInput,
    concepts: list[Concept],
    calc: PayrollCalc,
    engine_version: str | None,
) -> PayrollPreview:
    calculation_id = LedgerBuilder.calculation_id(
        payroll_input, concepts, engine_version or get_settings().engine_version
    )
    warnings = LedgerBuilder.validate_line_signs(calc.applied)
    warnings.extend(LedgerBuilder.check_totals(calc, payroll_input))
    if calc.net < 0:
        warnings.append(f"Negative net pay: {calc.net}")
    for warning in warnings:
        logger.warning("Calculation %s: %s", calculation_id, warning)

    logger.debug("Calculation %s computed net=%s", calculation_id, calc.net)
    return PayrollPreview(
        payroll_input=payroll_input,
        concepts=concepts,
        calc=calc,
        calculation_id=calculation_id,
        warnings=warnings,
    )


class PayrollService:
    """Service for payroll records.

    Operations:
    - preview: compute a payroll from raw input and concepts, no persistence
    - create: compute and store a pending record with its ledger
    - update: change inputs/concepts of a pending record and recompute
    - transition: move a record through the status state machine
    - list/get/delete
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.concept_service = ConceptService(session)
        self.settings = get_settings()

    # === Computation ===

    def preview(
        self,
        raw_input: Mapping[str, Any],
        raw_concepts: Sequence[Mapping[str, Any]] = (),
    ) -> PayrollPreview:
        """Validate and compute without touching the database."""
        payroll_input = load_payroll_input(raw_input)
        concepts = load_concepts(raw_concepts)
        return self._compute(payroll_input, concepts)

    def _compute(self, payroll_input: PayrollInput, concepts: list[Concept]) -> PayrollPreview:
        return preview_payroll(payroll_input, concepts, self.settings.engine_version)

    async def _resolve_concepts(
        self,
        tenant_id: UUID,
        template_id: UUID | None,
        raw_concepts: Sequence[Mapping[str, Any]] | None,
    ) -> list[Concept]:
        """Explicit concepts win; otherwise snapshot the template; otherwise none."""
        if raw_concepts is not None:
            return load_concepts(raw_concepts)
        if template_id is not None:
            return await self.concept_service.load_catalog(tenant_id, template_id)
        return []

    @staticmethod
    def _store_result(record: PayrollRecord, preview: PayrollPreview) -> None:
        payroll_input = preview.payroll_input
        for name in INPUT_FIELDS:
            setattr(record, name, getattr(payroll_input, name))
        record.concepts_snapshot = [c.to_canonical_dict() for c in preview.concepts]

        calc = preview.calc
        record.taxable_base = calc.taxable_base
        record.non_remunerative_total = calc.non_remunerative_total
        record.concepts_deductions_total = calc.concepts_deductions_total
        record.overtime_amount = calc.overtime_amount
        record.gross = calc.gross
        record.taxes = calc.taxes
        record.contributions = calc.contributions
        record.net = calc.net
        record.applied = [line.to_canonical_dict() for line in calc.applied]
        record.calculation_id = preview.calculation_id

    def _add_history(
        self, record: PayrollRecord, action: str, actor: str, notes: str | None = None
    ) -> None:
        self.session.add(
            PayrollHistoryEntry(
                payroll_id=record.payroll_id,
                action=action,
                actor=actor,
                notes=notes,
            )
        )

    # === Records ===

    async def create(
        self,
        tenant_id: UUID,
        *,
        employee_id: str,
        employee_name: str,
        period: str,
        raw_input: Mapping[str, Any],
        raw_concepts: Sequence[Mapping[str, Any]] | None = None,
        template_id: UUID | None = None,
        currency: str | None = None,
        notes: str | None = None,
        actor: str = "system",
    ) -> PayrollRecord:
        """Compute and store a new pending payroll."""
        validate_period(period)
        concepts = await self._resolve_concepts(tenant_id, template_id, raw_concepts)
        preview = self._compute(load_payroll_input(raw_input), concepts)

        record = PayrollRecord(
            tenant_id=tenant_id,
            employee_id=employee_id,
            employee_name=employee_name,
            period=period,
            currency=currency or self.settings.default_currency,
            template_id=template_id,
            status=PayrollStatus.PENDING.value,
            notes=notes,
        )
        self._store_result(record, preview)
        self.session.add(record)
        await self.session.flush()

        self._add_history(record, "created", actor)
        await self.session.flush()

        logger.info(
            "Created payroll %s for employee %s period %s (net=%s)",
            record.payroll_id,
            employee_id,
            period,
            record.net,
        )
        return record

    async def get(self, tenant_id: UUID, payroll_id: UUID) -> PayrollRecord:
        record = await self.session.get(PayrollRecord, payroll_id)
        if record is None or record.tenant_id != tenant_id:
            raise NotFoundError("Payroll", payroll_id)
        return record

    async def list_payrolls(
        self,
        tenant_id: UUID,
        *,
        period: str | None = None,
        employee_id: str | None = None,
        status: str | None = None,
        limit: int = 20,
        skip: int = 0,
    ) -> PayrollPage:
        """List payrolls newest first, with optional filters."""
        query = select(PayrollRecord).where(PayrollRecord.tenant_id == tenant_id)

        if period:
            query = query.where(PayrollRecord.period == period)
        if employee_id:
            query = query.where(PayrollRecord.employee_id == employee_id)
        if status:
            query = query.where(PayrollRecord.status == status)

        count_query = select(func.count()).select_from(query.subquery())
        total = await self.session.scalar(count_query) or 0

        limit = min(limit, 100)
        query = query.order_by(PayrollRecord.created_at.desc()).offset(skip).limit(limit)
        result = await self.session.execute(query)

        return PayrollPage(items=list(result.scalars().all()), total=total, limit=limit, skip=skip)

    async def update(
        self,
        tenant_id: UUID,
        payroll_id: UUID,
        *,
        employee_name: str | None = None,
        period: str | None = None,
        raw_input: Mapping[str, Any] | None = None,
        raw_concepts: Sequence[Mapping[str, Any]] | None = None,
        notes: str | None = None,
        actor: str = "system",
    ) -> PayrollRecord:
        """Update a pending payroll and recompute it from its concept snapshot.

        Partial input changes are merged over the stored input.
        """
        record = await self.get(tenant_id, payroll_id)
        if not PayrollStateMachine.can_modify_inputs(record.status):
            raise RecordLockedError(payroll_id, record.status)

        if employee_name is not None:
            record.employee_name = employee_name
        if period is not None:
            record.period = validate_period(period)
        if notes is not None:
            record.notes = notes

        merged_input = {**record.input_dict(), **(raw_input or {})}
        concepts = load_concepts(
            raw_concepts if raw_concepts is not None else record.concepts_snapshot
        )
        preview = self._compute(load_payroll_input(merged_input), concepts)
        self._store_result(record, preview)

        self._add_history(record, "updated", actor)
        await self.session.flush()
        logger.info("Updated payroll %s (net=%s)", payroll_id, record.net)
        return record

    async def transition(
        self,
        tenant_id: UUID,
        payroll_id: UUID,
        to_status: str,
        *,
        actor: str = "system",
        notes: str | None = None,
    ) -> PayrollRecord:
        """Move a payroll to a new status.

        Raises InvalidTransitionError if transition is not allowed. Voiding
        requires a note explaining why.
        """
        record = await self.get(tenant_id, payroll_id)
        from_status = record.status

        PayrollStateMachine.validate_transition(from_status, to_status)
        if to_status == PayrollStatus.VOIDED and not notes:
            raise InvalidTransitionError(from_status, to_status, "a reason is required to void")

        record.status = PayrollStatus(to_status).value
        self._add_history(record, PayrollStateMachine.action_for(to_status), actor, notes)
        await self.session.flush()

        logger.info("Payroll %s: %s -> %s by %s", payroll_id, from_status, to_status, actor)
        return record

    async def history(self, tenant_id: UUID, payroll_id: UUID) -> list[PayrollHistoryEntry]:
        await self.get(tenant_id, payroll_id)
        result = await self.session.execute(
            select(PayrollHistoryEntry)
            .where(PayrollHistoryEntry.payroll_id == payroll_id)
            .order_by(PayrollHistoryEntry.history_id)
        )
        return list(result.scalars().all())

    async def delete(self, tenant_id: UUID, payroll_id: UUID) -> None:
        record = await self.get(tenant_id, payroll_id)
        if not PayrollStateMachine.can_delete(record.status):
            raise RecordLockedError(payroll_id, record.status)

        for entry in await self.history(tenant_id, payroll_id):
            await self.session.delete(entry)
        await self.session.delete(record)
        await self.session.flush()
        logger.info("Deleted payroll %s", payroll_id)
