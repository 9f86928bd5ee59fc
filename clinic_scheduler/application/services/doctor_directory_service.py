from dataclasses import dataclass, replace
from typing import Iterable, List, Optional

from ...domain.slots import Period, matches_period, parse_period
from ..ports.doctors_repo import DoctorDto, DoctorsRepository


def clean_filter(value: Optional[str]) -> Optional[str]:
    """Treat None, blank and the literal "null" sent by clients as no constraint."""
    if value is None:
        return None
    value = value.strip()
    if value == "" or value.lower() == "null":
        return None
    return value


def filter_doctors_by_period(doctors: Iterable[DoctorDto], period: Optional[Period]) -> List[DoctorDto]:
    """Return new doctor views holding only the slots in ``period``.

    Doctors without a matching slot are dropped. The given doctors are left untouched.
    """
    doctors = list(doctors)
    if period is None:
        return doctors

    result = []
    for doctor in doctors:
        slots = [slot for slot in doctor.available_times if matches_period(slot, period)]
        if slots:
            result.append(replace(doctor, available_times=slots))
    return result


@dataclass
class DoctorDirectoryService:
    doctors: DoctorsRepository

    def filter_doctors(self, name: Optional[str] = None, specialty: Optional[str] = None, period: Optional[str] = None) -> List[DoctorDto]:
        found = self.doctors.search(name=clean_filter(name), specialty=clean_filter(specialty))
        return filter_doctors_by_period(found, parse_period(period))
