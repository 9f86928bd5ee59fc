from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ...domain.appointments import BookingOutcome
from ...domain.slots import parse_slots
from ..ports.appointments_repo import AppointmentsRepository
from ..ports.doctors_repo import DoctorsRepository
from .availability_service import day_bounds


@dataclass
class BookingValidator:
    """Checks a requested doctor/instant against declared slots and existing bookings.

    The check is read-only. Callers must hold the doctor's booking lock around
    validate + write, otherwise two requests can both see the slot as free.
    """

    doctors: DoctorsRepository
    appointments: AppointmentsRepository

    def validate(self, doctor_id: int, appointment_time: datetime, exclude_appointment_id: Optional[int] = None) -> BookingOutcome:
        doctor = self.doctors.get_doctor(doctor_id)
        if not doctor:
            return BookingOutcome.DOCTOR_NOT_FOUND

        # Exact start match only, a time inside a slot's range is not bookable
        declared = {slot.start_instant() for slot in parse_slots(doctor.available_times)}
        if appointment_time not in declared:
            return BookingOutcome.SLOT_UNAVAILABLE

        start, end = day_bounds(appointment_time.date())
        for existing in self.appointments.find_for_doctor_between(doctor_id, start, end):
            if exclude_appointment_id is not None and existing.id == exclude_appointment_id:
                continue
            if existing.appointment_time == appointment_time:
                return BookingOutcome.SLOT_UNAVAILABLE
        return BookingOutcome.OK
