"""Services for concept catalogs and payroll records."""

from payroll_concepts.services.concept_service import ConceptService
from payroll_concepts.services.errors import (
    DuplicateError,
    NotFoundError,
    PayrollServiceError,
    RecordLockedError,
)
from payroll_concepts.services.payroll_service import PayrollService
from payroll_concepts.services.state_machine import (
    InvalidTransitionError,
    PayrollStateMachine,
    PayrollStatus,
)

__all__ = [
    "ConceptService",
    "DuplicateError",
    "InvalidTransitionError",
    "NotFoundError",
    "PayrollService",
    "PayrollServiceError",
    "PayrollStateMachine",
    "PayrollStatus",
    "RecordLockedError",
]
