"""Payroll record state machine with transition validation."""

from __future__ import annotations

from enum import Enum

from payroll_concepts.services.errors import PayrollServiceError


class PayrollStatus(str, Enum):
    """Payroll record status values."""

    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"
    VOIDED = "voided"


class InvalidTransitionError(PayrollServiceError):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class PayrollStateMachine:
    """State machine for payroll record status transitions.

    Allowed transitions:
    - pending → approved
    - pending → voided
    - approved → pending (reopen)
    - approved → paid
    - approved → voided
    - paid → voided
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        PayrollStatus.PENDING: [PayrollStatus.APPROVED, PayrollStatus.VOIDED],
        PayrollStatus.APPROVED: [PayrollStatus.PENDING, PayrollStatus.PAID, PayrollStatus.VOIDED],
        PayrollStatus.PAID: [PayrollStatus.VOIDED],
        PayrollStatus.VOIDED: [],  # Terminal state
    }

    # History action recorded for each target status
    TRANSITION_ACTIONS: dict[str, str] = {
        PayrollStatus.APPROVED: "approved",
        PayrollStatus.PAID: "paid",
        PayrollStatus.VOIDED: "voided",
        PayrollStatus.PENDING: "reopened",
    }

    # Statuses where inputs and concepts can be modified (and recomputed)
    INPUTS_MUTABLE = {PayrollStatus.PENDING}

    # Statuses where the record can be deleted outright
    DELETABLE = {PayrollStatus.PENDING, PayrollStatus.VOIDED}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            allowed = ", ".join(PayrollStatus(s).value for s in cls.get_next_statuses(from_status))
            raise InvalidTransitionError(from_status, to_status, f"allowed: {allowed or 'none'}")

    @classmethod
    def can_modify_inputs(cls, status: str) -> bool:
        return status in cls.INPUTS_MUTABLE

    @classmethod
    def can_delete(cls, status: str) -> bool:
        return status in cls.DELETABLE

    @classmethod
    def action_for(cls, to_status: str) -> str:
        return cls.TRANSITION_ACTIONS[to_status]

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(current_status, [])
