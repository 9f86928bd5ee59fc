import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from ...domain.appointments import (
    AppointmentStatus,
    OperationResult,
    Outcome,
    booking_failure,
    can_transition,
)
from ..ports.appointments_repo import (
    AppointmentDto,
    AppointmentsRepository,
    PaymentDto,
    SlotConflictError,
    StorageError,
)
from ..ports.audit_logger import AuditLogger
from ..ports.booking_lock import BookingLock, BookingLockTimeout
from ..ports.identity_resolver import IdentityResolver
from .booking_validator import BookingValidator

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "An internal error occurred"


@dataclass
class AppointmentsService:
    """Owns every write to an appointment: booking, rescheduling, cancellation and status changes."""

    repo: AppointmentsRepository
    validator: BookingValidator
    lock: BookingLock
    audit: AuditLogger
    identity: Optional[IdentityResolver] = None
    clock: Callable[[], datetime] = datetime.now

    def _check_time(self, appointment_time: datetime) -> Optional[OperationResult]:
        # Appointment times are wall-clock times of the clinic and carry no offset
        if appointment_time.tzinfo is not None:
            return OperationResult.failure(Outcome.INVALID, "Appointment time must not include a timezone")
        if appointment_time <= self.clock():
            return OperationResult.failure(Outcome.INVALID, "Appointment time must be in the future")
        return None

    def create(self, appointment: AppointmentDto) -> OperationResult:
        """Persist an already validated appointment, payment included, in one write."""
        try:
            saved = self.repo.save(appointment)
        except SlotConflictError:
            logger.warning(
                "Doctor %s already has an active appointment at %s",
                appointment.doctor_id, appointment.appointment_time,
            )
            return OperationResult.failure(Outcome.SLOT_UNAVAILABLE, "This time slot is already booked")
        except StorageError:
            logger.exception("Error saving appointment for patient %s", appointment.patient_id)
            return OperationResult.failure(Outcome.INTERNAL, INTERNAL_ERROR_MESSAGE)

        self.audit.log("appointment.created", appointment_id=saved.id, actor_id=saved.patient_id,
                       details={"doctor_id": saved.doctor_id, "appointment_time": saved.appointment_time.isoformat()})
        return OperationResult.success("Appointment booked", saved)

    def book(self, patient_id: int, doctor_id: int, appointment_time: datetime, payment: Optional[PaymentDto] = None) -> OperationResult:
        invalid = self._check_time(appointment_time)
        if invalid:
            return invalid

        try:
            with self.lock.hold(doctor_id):
                failure = booking_failure(self.validator.validate(doctor_id, appointment_time))
                if failure:
                    self.audit.log("appointment.rejected", actor_id=patient_id, success=False,
                                   details={"doctor_id": doctor_id, "reason": failure.outcome.value})
                    return failure
                return self.create(AppointmentDto(
                    doctor_id=doctor_id,
                    patient_id=patient_id,
                    appointment_time=appointment_time,
                    status=AppointmentStatus.SCHEDULED,
                    payment=payment,
                ))
        except BookingLockTimeout:
            logger.warning("Timed out waiting for the booking lock of doctor %s", doctor_id)
            return OperationResult.failure(Outcome.INTERNAL, "The schedule is busy, please retry")
        except StorageError:
            logger.exception("Error validating booking for doctor %s", doctor_id)
            return OperationResult.failure(Outcome.INTERNAL, INTERNAL_ERROR_MESSAGE)

    def update(self, appointment_id: int, requester_id: int, doctor_id: int, appointment_time: datetime) -> OperationResult:
        try:
            existing = self.repo.get_by_id(appointment_id)
            if not existing:
                return OperationResult.failure(Outcome.NOT_FOUND, "Appointment not found")
            if existing.patient_id != requester_id:
                return OperationResult.failure(Outcome.FORBIDDEN, "You are not allowed to update this appointment")
            if existing.status != AppointmentStatus.SCHEDULED:
                return OperationResult.failure(Outcome.INVALID_STATE, "Only scheduled appointments can be changed")
            invalid = self._check_time(appointment_time)
            if invalid:
                return invalid

            with self.lock.hold(doctor_id):
                outcome = self.validator.validate(doctor_id, appointment_time, exclude_appointment_id=appointment_id)
                failure = booking_failure(outcome)
                if failure:
                    return failure
                updated = self.repo.update_schedule(appointment_id, doctor_id, appointment_time)
        except SlotConflictError:
            return OperationResult.failure(Outcome.SLOT_UNAVAILABLE, "This time slot is already booked")
        except BookingLockTimeout:
            logger.warning("Timed out waiting for the booking lock of doctor %s", doctor_id)
            return OperationResult.failure(Outcome.INTERNAL, "The schedule is busy, please retry")
        except StorageError:
            logger.exception("Error updating appointment %s", appointment_id)
            return OperationResult.failure(Outcome.INTERNAL, INTERNAL_ERROR_MESSAGE)

        if not updated:
            # Deleted between the read and the write
            return OperationResult.failure(Outcome.NOT_FOUND, "Appointment not found")

        self.audit.log("appointment.updated", appointment_id=appointment_id, actor_id=requester_id,
                       details={"doctor_id": doctor_id, "appointment_time": appointment_time.isoformat()})
        return OperationResult.success("Appointment updated", updated)

    def cancel(self, appointment_id: int, requester_id: int) -> OperationResult:
        try:
            existing = self.repo.get_by_id(appointment_id)
            if not existing:
                return OperationResult.failure(Outcome.NOT_FOUND, "Appointment not found")
            if existing.patient_id != requester_id:
                return OperationResult.failure(Outcome.FORBIDDEN, "You are not allowed to cancel this appointment")
            if existing.status == AppointmentStatus.CANCELLED:
                return OperationResult.success("Appointment cancelled", existing)
            if existing.status == AppointmentStatus.COMPLETED:
                return OperationResult.failure(Outcome.INVALID_STATE, "Cannot cancel completed appointment")

            self.repo.update_status(appointment_id, AppointmentStatus.CANCELLED)
        except StorageError:
            logger.exception("Error cancelling appointment %s", appointment_id)
            return OperationResult.failure(Outcome.INTERNAL, INTERNAL_ERROR_MESSAGE)

        existing.status = AppointmentStatus.CANCELLED
        self.audit.log("appointment.cancelled", appointment_id=appointment_id, actor_id=requester_id)
        return OperationResult.success("Appointment cancelled", existing)

    def cancel_with_credential(self, appointment_id: int, credential: Optional[str]) -> OperationResult:
        identity = self.identity.resolve(credential) if (self.identity and credential) else None
        if identity is None:
            return OperationResult.failure(Outcome.UNAUTHORIZED, "Invalid or expired token")
        return self.cancel(appointment_id, identity.user_id)

    def change_status(self, appointment_id: int, new_status: int) -> bool:
        """Best-effort status update for secondary callers such as prescription issuance.

        Never raises. Returns False, after logging a warning, when the appointment
        does not exist, the transition is not allowed or the write fails.
        """
        try:
            status = AppointmentStatus(new_status)
        except ValueError:
            logger.warning("change_status: unknown status %r for appointment %s", new_status, appointment_id)
            return False

        try:
            existing = self.repo.get_by_id(appointment_id)
            if not existing:
                logger.warning("change_status: appointment %s does not exist", appointment_id)
                return False
            if existing.status == status:
                return True
            if not can_transition(existing.status, status):
                logger.warning(
                    "change_status: transition %s -> %s not allowed for appointment %s",
                    AppointmentStatus(existing.status).name, status.name, appointment_id,
                )
                return False
            updated = self.repo.update_status(appointment_id, status)
        except StorageError as e:
            logger.warning("change_status: failed to update appointment %s to %s: %s", appointment_id, status.name, e)
            return False

        if updated:
            logger.info("Appointment %s status changed to %s", appointment_id, status.name)
            self.audit.log("appointment.status_changed", appointment_id=appointment_id, details={"status": status.name})
        return updated

    def purge_doctor(self, doctor_id: int) -> OperationResult:
        """Remove every appointment of a doctor ahead of the doctor record itself."""
        try:
            removed = self.repo.delete_for_doctor(doctor_id)
        except StorageError:
            logger.exception("Error deleting appointments of doctor %s", doctor_id)
            return OperationResult.failure(Outcome.INTERNAL, INTERNAL_ERROR_MESSAGE)

        self.audit.log("doctor.appointments_deleted", details={"doctor_id": doctor_id, "count": removed})
        return OperationResult.success("Doctor appointments deleted", removed)
