from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime

import pytest

from clinic_scheduler.application.ports.appointments_repo import SlotConflictError, StorageError
from clinic_scheduler.application.ports.doctors_repo import DoctorDto
from clinic_scheduler.application.ports.identity_resolver import Identity
from clinic_scheduler.application.services.appointments_service import AppointmentsService
from clinic_scheduler.application.services.booking_validator import BookingValidator
from clinic_scheduler.domain.appointments import AppointmentStatus

NOW = datetime(2025, 9, 1, 8, 0)


class FakeDoctorsRepo:
    def __init__(self, *doctors: DoctorDto):
        self.doctors = {d.id: d for d in doctors}

    def add(self, doctor: DoctorDto):
        self.doctors[doctor.id] = doctor

    def get_doctor(self, doctor_id: int):
        return self.doctors.get(doctor_id)

    def search(self, name=None, specialty=None):
        found = list(self.doctors.values())
        if name:
            found = [d for d in found if name.lower() in d.name.lower()]
        if specialty:
            found = [d for d in found if d.specialty.lower() == specialty.lower()]
        return found


class FakeApptRepo:
    def __init__(self):
        self._id = 1
        self.appts = {}
        self.fail_reads = False
        self.fail_writes = False

    def _check_read(self):
        if self.fail_reads:
            raise StorageError("database unavailable")

    def _check_write(self):
        if self.fail_writes:
            raise StorageError("database unavailable")

    def find_for_doctor_between(self, doctor_id, start, end):
        self._check_read()
        return [
            a for a in self.appts.values()
            if a.doctor_id == doctor_id
            and start <= a.appointment_time <= end
            and a.status != AppointmentStatus.CANCELLED
        ]

    def get_by_id(self, appointment_id):
        self._check_read()
        a = self.appts.get(appointment_id)
        return replace(a) if a else None

    def save(self, appointment):
        self._check_write()
        for a in self.appts.values():
            if (a.doctor_id == appointment.doctor_id
                    and a.appointment_time == appointment.appointment_time
                    and a.status != AppointmentStatus.CANCELLED):
                raise SlotConflictError("duplicate")
        saved = replace(appointment, id=self._id)
        self.appts[saved.id] = saved
        self._id += 1
        return replace(saved)

    def update_schedule(self, appointment_id, doctor_id, appointment_time):
        self._check_write()
        a = self.appts.get(appointment_id)
        if not a:
            return None
        a.doctor_id = doctor_id
        a.appointment_time = appointment_time
        return replace(a)

    def update_status(self, appointment_id, status):
        self._check_write()
        a = self.appts.get(appointment_id)
        if not a:
            return False
        a.status = status
        return True

    def delete_for_doctor(self, doctor_id):
        self._check_write()
        doomed = [i for i, a in self.appts.items() if a.doctor_id == doctor_id]
        for i in doomed:
            del self.appts[i]
        return len(doomed)

    def list_for_patient(self, patient_id, status=None, doctor_name=None):
        self._check_read()
        found = [a for a in self.appts.values() if a.patient_id == patient_id]
        if status is not None:
            found = [a for a in found if a.status == status]
        if doctor_name:
            found = [a for a in found if doctor_name.lower() in (a.doctor_name or "").lower()]
        return sorted(found, key=lambda a: a.appointment_time)

    def list_for_doctor_between(self, doctor_id, start, end, patient_name=None):
        self._check_read()
        found = [
            a for a in self.appts.values()
            if a.doctor_id == doctor_id and start <= a.appointment_time <= end
        ]
        if patient_name:
            found = [a for a in found if patient_name.lower() in (a.patient_name or "").lower()]
        return sorted(found, key=lambda a: a.appointment_time)


class FakeAudit:
    def __init__(self):
        self.entries = []

    def log(self, action, appointment_id=None, actor_id=None, success=True, details=None):
        self.entries.append((action, appointment_id, actor_id, success))

    @property
    def actions(self):
        return [e[0] for e in self.entries]


class FakeLock:
    def __init__(self):
        self.held = []

    @contextmanager
    def hold(self, doctor_id):
        self.held.append(doctor_id)
        yield


class FakeIdentity:
    def __init__(self, tokens):
        self.tokens = tokens

    def resolve(self, credential):
        user_id = self.tokens.get(credential)
        return Identity(user_id=user_id, role="patient") if user_id is not None else None


@pytest.fixture
def doctor():
    return DoctorDto(
        id=1,
        name="Taro Yamada",
        specialty="Cardiology",
        available_times=["2025-09-11 09:00-10:00", "2025-09-11 13:00-14:00", "2025-09-12 09:00-10:00"],
    )


@pytest.fixture
def doctors(doctor):
    return FakeDoctorsRepo(doctor)


@pytest.fixture
def appts():
    return FakeApptRepo()


@pytest.fixture
def audit():
    return FakeAudit()


@pytest.fixture
def lock():
    return FakeLock()


@pytest.fixture
def service(doctors, appts, audit, lock):
    return AppointmentsService(
        repo=appts,
        validator=BookingValidator(doctors=doctors, appointments=appts),
        lock=lock,
        audit=audit,
        identity=FakeIdentity({"token-10": 10, "token-20": 20}),
        clock=lambda: NOW,
    )
