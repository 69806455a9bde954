"""Pydantic schemas for API request/response models."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, computed_field

from payroll_concepts.calculators.types import (
    CalcBase,
    ConceptMode,
    ConceptType,
    Phase,
    RoundMode,
)
from payroll_concepts.catalog import Amount, ConceptSpec, PayrollInputSpec, Rate
from payroll_concepts.services.state_machine import PayrollStateMachine, PayrollStatus

PERIOD_REGEX = r"^\d{4}-(0[1-9]|1[0-2])$"


class ErrorResponse(BaseModel):
    """Error body returned by all endpoints."""

    detail: str
    code: str


# ============================================================================
# Computation schemas
# ============================================================================


class ComputeRequest(BaseModel):
    """Stateless computation request."""

    input: PayrollInputSpec
    concepts: list[ConceptSpec] = Field(default_factory=list)


class AppliedConceptResponse(BaseModel):
    """One ledger line."""

    model_config = ConfigDict(from_attributes=True)

    concept_id: str
    name: str
    type: ConceptType
    phase: Phase | None = None
    amount: Decimal


class PayrollCalcResponse(BaseModel):
    """Computed totals plus the applied ledger."""

    model_config = ConfigDict(from_attributes=True)

    taxable_base: Decimal
    non_remunerative_total: Decimal
    concepts_deductions_total: Decimal
    gross: Decimal
    taxes: Decimal
    contributions: Decimal
    net: Decimal
    overtime_amount: Decimal
    applied: list[AppliedConceptResponse]


class ComputeResponse(BaseModel):
    """Result of a stateless computation."""

    calculation_id: UUID
    result: PayrollCalcResponse
    warnings: list[str]


class ComputeBatchRequest(BaseModel):
    """Independent computations evaluated concurrently."""

    items: list[ComputeRequest] = Field(min_length=1, max_length=1000)


# ============================================================================
# Concept catalog schemas
# ============================================================================


class TemplateCreate(BaseModel):
    """Schema for creating a concept template."""

    name: str = Field(min_length=1)
    description: str | None = None
    concepts: list[ConceptSpec] = Field(default_factory=list)


class TemplateUpdate(BaseModel):
    """Schema for renaming or describing a template."""

    name: str | None = Field(default=None, min_length=1)
    description: str | None = None


class TemplateResponse(BaseModel):
    """Schema for template response."""

    model_config = ConfigDict(from_attributes=True)

    template_id: UUID
    tenant_id: UUID
    name: str
    description: str | None = None
    created_at: datetime
    updated_at: datetime


class TemplateDetailResponse(TemplateResponse):
    """Template with its concepts in catalog order."""

    concepts: list[ConceptSpec]


class ConceptUpdate(BaseModel):
    """Partial concept update; unset fields keep their stored value."""

    id: str | None = Field(default=None, min_length=1)
    name: str | None = Field(default=None, min_length=1)
    type: ConceptType | None = None
    mode: ConceptMode | None = None
    value: Amount | None = None
    base: CalcBase | None = None
    custom_base: Amount | None = None
    phase: Phase | None = None
    min_amount: Amount | None = None
    max_amount: Amount | None = None
    round_mode: RoundMode | None = None
    round_decimals: int | None = Field(default=None, ge=0, le=4)
    priority: int | None = Field(default=None, ge=0)
    enabled: bool | None = None


class ReorderRequest(BaseModel):
    """New catalog order as a list of concept codes."""

    codes: list[str]


# ============================================================================
# Payroll record schemas
# ============================================================================


class PayrollInputPatch(BaseModel):
    """Partial payroll input; unset fields keep their stored value."""

    base_salary: Amount | None = None
    bonuses: Amount | None = None
    overtime_hours: Amount | None = None
    overtime_rate: Amount | None = None
    manual_deductions: Amount | None = None
    tax_rate_pct: Rate | None = None
    contributions_rate_pct: Rate | None = None


class PayrollCreate(BaseModel):
    """Schema for creating a payroll record.

    When ``concepts`` is omitted the concepts of ``template_id`` are
    snapshotted at creation time.
    """

    employee_id: str = Field(min_length=1)
    employee_name: str = Field(min_length=1)
    period: str = Field(pattern=PERIOD_REGEX)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    template_id: UUID | None = None
    input: PayrollInputSpec
    concepts: list[ConceptSpec] | None = None
    notes: str | None = None
    actor: str = "system"


class PayrollUpdate(BaseModel):
    """Schema for updating a pending payroll record."""

    employee_name: str | None = Field(default=None, min_length=1)
    period: str | None = Field(default=None, pattern=PERIOD_REGEX)
    input: PayrollInputPatch | None = None
    concepts: list[ConceptSpec] | None = None
    notes: str | None = None
    actor: str = "system"


class StatusChangeRequest(BaseModel):
    """Schema for a status transition."""

    status: PayrollStatus
    actor: str = "system"
    notes: str | None = None


class PayrollResponse(BaseModel):
    """Schema for payroll record response."""

    model_config = ConfigDict(from_attributes=True)

    payroll_id: UUID
    tenant_id: UUID
    employee_id: str
    employee_name: str
    period: str
    currency: str
    template_id: UUID | None = None
    status: PayrollStatus
    notes: str | None = None

    base_salary: Decimal
    bonuses: Decimal
    overtime_hours: Decimal
    overtime_rate: Decimal
    manual_deductions: Decimal
    tax_rate_pct: Decimal
    contributions_rate_pct: Decimal
    concepts_snapshot: list[ConceptSpec]

    taxable_base: Decimal
    non_remunerative_total: Decimal
    concepts_deductions_total: Decimal
    overtime_amount: Decimal
    gross: Decimal
    taxes: Decimal
    contributions: Decimal
    net: Decimal
    applied: list[AppliedConceptResponse]
    calculation_id: UUID

    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def allowed_transitions(self) -> list[PayrollStatus]:
        """Statuses this payroll can move to next."""
        return [PayrollStatus(s) for s in PayrollStateMachine.get_next_statuses(self.status)]


class PayrollListResponse(BaseModel):
    """Schema for listing payroll records."""

    items: list[PayrollResponse]
    total: int
    limit: int
    skip: int


class HistoryEntryResponse(BaseModel):
    """Schema for one history entry."""

    model_config = ConfigDict(from_attributes=True)

    action: str
    actor: str
    notes: str | None = None
    created_at: datetime
