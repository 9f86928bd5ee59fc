import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from ...domain.appointments import CONDITION_STATUSES, OperationResult, Outcome
from ..ports.appointments_repo import AppointmentsRepository, StorageError
from .availability_service import day_bounds
from .doctor_directory_service import clean_filter

logger = logging.getLogger(__name__)


@dataclass
class AppointmentQueriesService:
    repo: AppointmentsRepository

    def for_patient(self, patient_id: int, condition: Optional[str] = None, doctor_name: Optional[str] = None) -> OperationResult:
        condition = clean_filter(condition)
        status = None
        if condition is not None:
            status = CONDITION_STATUSES.get(condition.lower())
            if status is None:
                return OperationResult.failure(
                    Outcome.INVALID,
                    f"Invalid condition. Must be one of: {sorted(CONDITION_STATUSES)}",
                )

        try:
            appointments = self.repo.list_for_patient(patient_id, status=status, doctor_name=clean_filter(doctor_name))
        except StorageError:
            logger.exception("Error filtering appointments of patient %s", patient_id)
            return OperationResult.failure(Outcome.INTERNAL, "Failed to retrieve appointments")
        return OperationResult.success("Appointments retrieved", appointments)

    def for_doctor_on(self, doctor_id: int, day: date, patient_name: Optional[str] = None) -> OperationResult:
        start, end = day_bounds(day)
        try:
            appointments = self.repo.list_for_doctor_between(doctor_id, start, end, patient_name=clean_filter(patient_name))
        except StorageError:
            logger.exception("Error retrieving appointments of doctor %s on %s", doctor_id, day)
            return OperationResult.failure(Outcome.INTERNAL, "Failed to retrieve appointments")
        return OperationResult.success("Appointments retrieved", appointments)
