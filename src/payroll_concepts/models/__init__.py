"""SQLAlchemy models for concept catalogs and payroll records."""

from payroll_concepts.models.base import Base, TimestampMixin
from payroll_concepts.models.concept import ConceptDefinition, ConceptTemplate
from payroll_concepts.models.payroll import PayrollHistoryEntry, PayrollRecord

__all__ = [
    "Base",
    "TimestampMixin",
    "ConceptDefinition",
    "ConceptTemplate",
    "PayrollHistoryEntry",
    "PayrollRecord",
]
