"""Service-layer exceptions."""

from __future__ import annotations

from uuid import UUID


class PayrollServiceError(Exception):
    """Base class for service errors."""


class NotFoundError(PayrollServiceError):
    """Raised when a tenant-scoped entity does not exist."""

    def __init__(self, entity: str, entity_id: UUID | str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class RecordLockedError(PayrollServiceError):
    """Raised when modifying a payroll whose status no longer allows it."""

    def __init__(self, payroll_id: UUID, status: str):
        self.payroll_id = payroll_id
        self.status = status
        super().__init__(f"Payroll {payroll_id} is '{status}' and cannot be modified")


class DuplicateError(PayrollServiceError):
    """Raised when a unique name or code is already taken."""
