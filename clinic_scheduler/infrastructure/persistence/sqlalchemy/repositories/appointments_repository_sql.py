from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from .....core.config import settings
from .....db.models import Appointment, Doctor, Patient, Payment
from .....domain.appointments import AppointmentStatus, PaymentMethod, PaymentStatus
from .....application.ports.appointments_repo import (
    AppointmentsRepository,
    AppointmentDto,
    PaymentDto,
    SlotConflictError,
    StorageError,
)
from ..filters import LIKE_ESCAPE, contains_pattern


class SqlAppointmentsRepository(AppointmentsRepository):
    def __init__(self, session: Session, duration_minutes: Optional[int] = None):
        self.session = session
        self.duration_minutes = duration_minutes or settings.APPOINTMENT_DURATION_MINUTES

    @contextmanager
    def _guard(self, action: str):
        # Every database round trip, lazy relationship loads included, goes through here
        try:
            yield
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StorageError(f"{action} failed") from exc

    @contextmanager
    def _write(self, action: str):
        try:
            yield
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            if "unique" in str(exc.orig).lower():
                raise SlotConflictError(f"{action}: doctor already booked at that time") from exc
            raise StorageError(f"{action} failed") from exc
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StorageError(f"{action} failed") from exc

    def _read(self, query) -> List[AppointmentDto]:
        with self._guard("appointment query"):
            return [self._appt_to_dto(r) for r in self.session.exec(query).all()]

    def _payment_to_dto(self, p: Optional[Payment]) -> Optional[PaymentDto]:
        if p is None:
            return None
        return PaymentDto(
            id=p.id,
            amount=Decimal(p.amount) if p.amount is not None else None,
            payment_method=PaymentMethod(p.payment_method),
            payment_status=PaymentStatus(p.payment_status),
            paid_at=p.paid_at,
            created_at=p.created_at,
        )

    def _appt_to_dto(self, a: Appointment) -> AppointmentDto:
        return AppointmentDto(
            id=a.id,
            doctor_id=a.doctor_id,
            patient_id=a.patient_id,
            appointment_time=a.appointment_time,
            status=AppointmentStatus(a.status),
            patient_name=a.patient.full_name if a.patient else None,
            doctor_name=a.doctor.full_name if a.doctor else None,
            payment=self._payment_to_dto(a.payment),
            duration_minutes=self.duration_minutes,
        )

    def _get(self, appointment_id: int) -> Optional[Appointment]:
        with self._guard("appointment lookup"):
            return self.session.exec(select(Appointment).where(Appointment.id == appointment_id)).first()

    def _reload(self, appt: Appointment, action: str) -> AppointmentDto:
        with self._guard(action):
            self.session.refresh(appt)
            return self._appt_to_dto(appt)

    def find_for_doctor_between(self, doctor_id: int, start: datetime, end: datetime) -> List[AppointmentDto]:
        return self._read(
            select(Appointment)
            .where(Appointment.doctor_id == doctor_id)
            .where(Appointment.appointment_time >= start)
            .where(Appointment.appointment_time <= end)
            .where(Appointment.status != AppointmentStatus.CANCELLED.value)
            .order_by(Appointment.appointment_time)
        )

    def get_by_id(self, appointment_id: int) -> Optional[AppointmentDto]:
        rows = self._read(select(Appointment).where(Appointment.id == appointment_id))
        return rows[0] if rows else None

    def save(self, appointment: AppointmentDto) -> AppointmentDto:
        appt = Appointment(
            doctor_id=appointment.doctor_id,
            patient_id=appointment.patient_id,
            appointment_time=appointment.appointment_time,
            status=int(appointment.status),
        )
        if appointment.payment is not None:
            p = appointment.payment
            appt.payment = Payment(
                amount=p.amount,
                payment_method=PaymentMethod(p.payment_method).value,
                payment_status=PaymentStatus(p.payment_status).value,
                paid_at=p.paid_at,
            )
        # Appointment and payment go out in a single commit
        with self._write("save appointment"):
            self.session.add(appt)
        return self._reload(appt, "load saved appointment")

    def update_schedule(self, appointment_id: int, doctor_id: int, appointment_time: datetime) -> Optional[AppointmentDto]:
        a = self._get(appointment_id)
        if not a:
            return None
        with self._write("update appointment schedule"):
            a.doctor_id = doctor_id
            a.appointment_time = appointment_time
            self.session.add(a)
        return self._reload(a, "load updated appointment")

    def update_status(self, appointment_id: int, status: AppointmentStatus) -> bool:
        a = self._get(appointment_id)
        if not a:
            return False
        with self._write("update appointment status"):
            a.status = int(status)
            self.session.add(a)
        return True

    def delete_for_doctor(self, doctor_id: int) -> int:
        with self._guard("load doctor appointments"):
            rows = self.session.exec(select(Appointment).where(Appointment.doctor_id == doctor_id)).all()
        with self._write("delete doctor appointments"):
            for a in rows:
                self.session.delete(a)
        return len(rows)

    def list_for_patient(self, patient_id: int, status: Optional[AppointmentStatus] = None, doctor_name: Optional[str] = None) -> List[AppointmentDto]:
        query = select(Appointment).where(Appointment.patient_id == patient_id)
        if status is not None:
            query = query.where(Appointment.status == int(status))
        if doctor_name:
            query = (
                query.join(Doctor, Doctor.id == Appointment.doctor_id)
                .where(Doctor.full_name.ilike(contains_pattern(doctor_name), escape=LIKE_ESCAPE))
            )
        return self._read(query.order_by(Appointment.appointment_time.asc()))

    def list_for_doctor_between(self, doctor_id: int, start: datetime, end: datetime, patient_name: Optional[str] = None) -> List[AppointmentDto]:
        query = (
            select(Appointment)
            .where(Appointment.doctor_id == doctor_id)
            .where(Appointment.appointment_time >= start)
            .where(Appointment.appointment_time <= end)
        )
        if patient_name:
            query = (
                query.join(Patient, Patient.id == Appointment.patient_id)
                .where(Patient.full_name.ilike(contains_pattern(patient_name), escape=LIKE_ESCAPE))
            )
        return self._read(query.order_by(Appointment.appointment_time.asc()))
