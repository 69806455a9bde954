"""Concept catalog models: named templates holding ordered concept definitions."""

from __future__ import annotations

from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payroll_concepts.models.base import Base, TimestampMixin


class ConceptTemplate(Base, TimestampMixin):
    """A named, tenant-scoped concept catalog."""

    __tablename__ = "concept_template"

    template_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    tenant_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)

    __table_args__ = (
        UniqueConstraint("tenant_id", "name", name="concept_template_tenant_name_unique"),
    )

    concepts: Mapped[list[ConceptDefinition]] = relationship(
        back_populates="template",
        cascade="all, delete-orphan",
        order_by="ConceptDefinition.position",
    )


class ConceptDefinition(Base, TimestampMixin):
    """One configured pay rule inside a template.

    ``position`` is the catalog order; earnings are applied in this order.
    """

    __tablename__ = "concept_definition"

    concept_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    template_id: Mapped[UUID] = mapped_column(
        ForeignKey("concept_template.template_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    code: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    concept_type: Mapped[str] = mapped_column(String, nullable=False)
    mode: Mapped[str] = mapped_column(String, nullable=False)
    value: Mapped[Decimal] = mapped_column(nullable=False)
    base: Mapped[str] = mapped_column(String, nullable=False, default="taxable_base")
    custom_base: Mapped[Decimal | None] = mapped_column()
    phase: Mapped[str] = mapped_column(String, nullable=False, default="pre_tax")
    min_amount: Mapped[Decimal | None] = mapped_column()
    max_amount: Mapped[Decimal | None] = mapped_column()
    round_mode: Mapped[str] = mapped_column(String, nullable=False, default="nearest")
    round_decimals: Mapped[int] = mapped_column(Integer, nullable=False, default=2)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint("template_id", "code", name="concept_definition_template_code_unique"),
        CheckConstraint(
            "concept_type IN ('earning_remunerative', 'earning_nonremunerative', 'deduction')",
            name="concept_definition_type_check",
        ),
        CheckConstraint("mode IN ('fixed_amount', 'percentage')", name="concept_definition_mode_check"),
        CheckConstraint(
            "base IN ('taxable_base', 'gross_before_deductions', 'net_before_this', 'custom')",
            name="concept_definition_base_check",
        ),
        CheckConstraint("phase IN ('pre_tax', 'post_tax')", name="concept_definition_phase_check"),
        CheckConstraint(
            "round_mode IN ('none', 'nearest', 'down', 'up')",
            name="concept_definition_round_mode_check",
        ),
        CheckConstraint(
            "round_decimals >= 0 AND round_decimals <= 4",
            name="concept_definition_round_decimals_check",
        ),
        CheckConstraint("value >= 0", name="concept_definition_value_check"),
        CheckConstraint("priority >= 0", name="concept_definition_priority_check"),
    )

    template: Mapped[ConceptTemplate] = relationship(back_populates="concepts")

    def to_concept_dict(self) -> dict[str, Any]:
        """Raw concept mapping for the catalog loader."""
        return {
            "id": self.code,
            "name": self.name,
            "type": self.concept_type,
            "mode": self.mode,
            "value": self.value,
            "base": self.base,
            "custom_base": self.custom_base,
            "phase": self.phase,
            "min_amount": self.min_amount,
            "max_amount": self.max_amount,
            "round_mode": self.round_mode,
            "round_decimals": self.round_decimals,
            "priority": self.priority,
            "enabled": self.enabled,
        }
