from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import List, Optional, Protocol

from ...domain.appointments import AppointmentStatus, PaymentMethod, PaymentStatus


class StorageError(Exception):
    """Unexpected failure in the persistence layer."""


class SlotConflictError(StorageError):
    """Raised by a repository when the storage-level double-booking guard fires."""


@dataclass
class PaymentDto:
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    amount: Optional[Decimal] = None
    paid_at: Optional[datetime] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass
class AppointmentDto:
    doctor_id: int
    patient_id: int
    appointment_time: datetime
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    id: Optional[int] = None
    patient_name: Optional[str] = None
    doctor_name: Optional[str] = None
    payment: Optional[PaymentDto] = None
    duration_minutes: int = field(default=60, compare=False)

    @property
    def end_time(self) -> datetime:
        return self.appointment_time + timedelta(minutes=self.duration_minutes)

    @property
    def appointment_date(self) -> date:
        return self.appointment_time.date()


class AppointmentsRepository(Protocol):
    def find_for_doctor_between(self, doctor_id: int, start: datetime, end: datetime) -> List[AppointmentDto]:
        """Non-cancelled appointments of a doctor with start <= time <= end."""
        ...

    def get_by_id(self, appointment_id: int) -> Optional[AppointmentDto]:
        ...

    def save(self, appointment: AppointmentDto) -> AppointmentDto:
        ...

    def update_schedule(self, appointment_id: int, doctor_id: int, appointment_time: datetime) -> Optional[AppointmentDto]:
        ...

    def update_status(self, appointment_id: int, status: AppointmentStatus) -> bool:
        ...

    def delete_for_doctor(self, doctor_id: int) -> int:
        ...

    def list_for_patient(self, patient_id: int, status: Optional[AppointmentStatus] = None, doctor_name: Optional[str] = None) -> List[AppointmentDto]:
        ...

    def list_for_doctor_between(self, doctor_id: int, start: datetime, end: datetime, patient_name: Optional[str] = None) -> List[AppointmentDto]:
        """Every appointment of a doctor in the range, cancelled ones included."""
        ...
