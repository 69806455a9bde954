"""Payroll record and history models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, CheckConstraint, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payroll_concepts.models.base import Base, TimestampMixin, utcnow


class PayrollRecord(Base, TimestampMixin):
    """A stored payroll: the input, the concept snapshot and the computed result.

    Totals and the applied ledger are written only by the payroll service
    from an engine result; they are never edited directly.
    """

    __tablename__ = "payroll_record"

    payroll_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    tenant_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    employee_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    employee_name: Mapped[str] = mapped_column(String, nullable=False)
    period: Mapped[str] = mapped_column(String(7), nullable=False, index=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="ARS")
    template_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("concept_template.template_id", ondelete="SET NULL"),
    )
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending", index=True)
    notes: Mapped[str | None] = mapped_column(Text)

    # Inputs
    base_salary: Mapped[Decimal] = mapped_column(nullable=False)
    bonuses: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    overtime_hours: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    overtime_rate: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    manual_deductions: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    tax_rate_pct: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    contributions_rate_pct: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    concepts_snapshot: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    # Results
    taxable_base: Mapped[Decimal] = mapped_column(nullable=False)
    non_remunerative_total: Mapped[Decimal] = mapped_column(nullable=False)
    concepts_deductions_total: Mapped[Decimal] = mapped_column(nullable=False)
    overtime_amount: Mapped[Decimal] = mapped_column(nullable=False)
    gross: Mapped[Decimal] = mapped_column(nullable=False)
    taxes: Mapped[Decimal] = mapped_column(nullable=False)
    contributions: Mapped[Decimal] = mapped_column(nullable=False)
    net: Mapped[Decimal] = mapped_column(nullable=False)
    applied: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    calculation_id: Mapped[UUID] = mapped_column(nullable=False)

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'approved', 'paid', 'voided')",
            name="payroll_record_status_check",
        ),
        CheckConstraint("base_salary >= 0", name="payroll_record_base_salary_check"),
    )

    history: Mapped[list[PayrollHistoryEntry]] = relationship(
        back_populates="payroll",
        cascade="all, delete-orphan",
        order_by="PayrollHistoryEntry.history_id",
    )

    def input_dict(self) -> dict[str, Any]:
        """Raw payroll input mapping for the loader."""
        return {
            "base_salary": self.base_salary,
            "bonuses": self.bonuses,
            "overtime_hours": self.overtime_hours,
            "overtime_rate": self.overtime_rate,
            "manual_deductions": self.manual_deductions,
            "tax_rate_pct": self.tax_rate_pct,
            "contributions_rate_pct": self.contributions_rate_pct,
        }


class PayrollHistoryEntry(Base):
    """Append-only audit trail of payroll record changes."""

    __tablename__ = "payroll_history"

    history_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    payroll_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_record.payroll_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    action: Mapped[str] = mapped_column(String, nullable=False)
    actor: Mapped[str] = mapped_column(String, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "action IN ('created', 'updated', 'approved', 'paid', 'voided', 'reopened')",
            name="payroll_history_action_check",
        ),
    )

    payroll: Mapped[PayrollRecord] = relationship(back_populates="history")
