from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Optional


class AppointmentStatus(IntEnum):
    SCHEDULED = 0
    COMPLETED = 1
    CANCELLED = 2


# Forward-only lifecycle; re-applying the current status is handled by callers as a no-op
ALLOWED_TRANSITIONS = {
    AppointmentStatus.SCHEDULED: {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED},
    AppointmentStatus.COMPLETED: set(),
    AppointmentStatus.CANCELLED: set(),
}


def can_transition(current: AppointmentStatus, new: AppointmentStatus) -> bool:
    return new in ALLOWED_TRANSITIONS[AppointmentStatus(current)]


# Patient-facing filter names for appointment history
CONDITION_STATUSES = {
    "past": AppointmentStatus.COMPLETED,
    "future": AppointmentStatus.SCHEDULED,
    "cancel": AppointmentStatus.CANCELLED,
}


class PaymentMethod(str, Enum):
    CASH = "cash"
    CREDIT = "credit"
    INSURANCE = "insurance"


class PaymentStatus(str, Enum):
    PAID = "Paid"
    PENDING = "Pending"
    FAILED = "Failed"


class BookingOutcome(str, Enum):
    DOCTOR_NOT_FOUND = "doctor_not_found"
    SLOT_UNAVAILABLE = "slot_unavailable"
    OK = "ok"


class Outcome(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    DOCTOR_NOT_FOUND = "doctor_not_found"
    SLOT_UNAVAILABLE = "slot_unavailable"
    FORBIDDEN = "forbidden"
    UNAUTHORIZED = "unauthorized"
    INVALID = "invalid"
    INVALID_STATE = "invalid_state"
    INTERNAL = "internal"


@dataclass
class OperationResult:
    outcome: Outcome
    message: str
    value: Any = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.OK

    @classmethod
    def success(cls, message: str, value: Any = None) -> "OperationResult":
        return cls(Outcome.OK, message, value)

    @classmethod
    def failure(cls, outcome: Outcome, message: str) -> "OperationResult":
        return cls(outcome, message)


BOOKING_FAILURES = {
    BookingOutcome.DOCTOR_NOT_FOUND: OperationResult(Outcome.DOCTOR_NOT_FOUND, "Doctor not found"),
    BookingOutcome.SLOT_UNAVAILABLE: OperationResult(Outcome.SLOT_UNAVAILABLE, "The doctor is not available at the requested time"),
}


def booking_failure(outcome: BookingOutcome) -> Optional[OperationResult]:
    failure = BOOKING_FAILURES.get(outcome)
    if failure is None:
        return None
    # Fresh copy so callers can attach values without sharing state
    return OperationResult(failure.outcome, failure.message)
