import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import List, Set, Tuple

from ...domain.slots import DatedSlot, parse_slot
from ..ports.appointments_repo import AppointmentsRepository
from ..ports.doctors_repo import DoctorsRepository

logger = logging.getLogger(__name__)


def day_bounds(day: date) -> Tuple[datetime, datetime]:
    return datetime.combine(day, time.min), datetime.combine(day, time.max)


def to_minute(value: datetime) -> datetime:
    return value.replace(second=0, microsecond=0)


@dataclass
class AvailabilityService:
    doctors: DoctorsRepository
    appointments: AppointmentsRepository

    def booked_instants(self, doctor_id: int, day: date) -> Set[datetime]:
        start, end = day_bounds(day)
        booked = self.appointments.find_for_doctor_between(doctor_id, start, end)
        return {to_minute(a.appointment_time) for a in booked}

    def free_slots(self, doctor_id: int, day: date) -> List[str]:
        doctor = self.doctors.get_doctor(doctor_id)
        if not doctor:
            logger.info("free_slots: doctor %s not found, returning no slots", doctor_id)
            return []

        booked = self.booked_instants(doctor_id, day)

        # Declared order, duplicates included
        free = []
        for raw in doctor.available_times:
            slot = parse_slot(raw)
            if not isinstance(slot, DatedSlot) or slot.day != day:
                continue
            if slot.start_instant() in booked:
                continue
            free.append(slot.label())
        return free
