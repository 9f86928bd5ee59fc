from datetime import datetime

import pytest

from clinic_scheduler.application.ports.appointments_repo import AppointmentDto
from clinic_scheduler.application.ports.doctors_repo import DoctorDto
from clinic_scheduler.application.services.booking_validator import BookingValidator
from clinic_scheduler.domain.appointments import AppointmentStatus, BookingOutcome


@pytest.fixture
def validator(doctors, appts):
    return BookingValidator(doctors=doctors, appointments=appts)


def test_unknown_doctor(validator):
    assert validator.validate(42, datetime(2025, 9, 11, 9, 0)) is BookingOutcome.DOCTOR_NOT_FOUND


def test_declared_free_start_is_ok(validator):
    assert validator.validate(1, datetime(2025, 9, 11, 9, 0)) is BookingOutcome.OK


@pytest.mark.parametrize("when", [
    datetime(2025, 9, 11, 9, 30),   # inside the slot but not its start
    datetime(2025, 9, 11, 11, 0),   # not declared at all
    datetime(2025, 9, 13, 9, 0),    # declared time on an undeclared day
    datetime(2025, 9, 11, 9, 0, 1),
])
def test_only_exact_declared_starts_are_bookable(validator, when):
    assert validator.validate(1, when) is BookingOutcome.SLOT_UNAVAILABLE


def test_bare_time_entries_never_match_an_instant(doctors, appts):
    doctors.add(DoctorDto(id=2, name="Bare", specialty="ENT", available_times=["09:00-10:00"]))
    validator = BookingValidator(doctors=doctors, appointments=appts)
    assert validator.validate(2, datetime(2025, 9, 11, 9, 0)) is BookingOutcome.SLOT_UNAVAILABLE


def test_taken_instant_is_unavailable(validator, appts):
    appts.save(AppointmentDto(doctor_id=1, patient_id=10, appointment_time=datetime(2025, 9, 11, 9, 0)))
    assert validator.validate(1, datetime(2025, 9, 11, 9, 0)) is BookingOutcome.SLOT_UNAVAILABLE
    assert validator.validate(1, datetime(2025, 9, 11, 13, 0)) is BookingOutcome.OK


def test_cancelled_booking_does_not_block(validator, appts):
    appts.save(AppointmentDto(
        doctor_id=1, patient_id=10, appointment_time=datetime(2025, 9, 11, 9, 0),
        status=AppointmentStatus.CANCELLED,
    ))
    assert validator.validate(1, datetime(2025, 9, 11, 9, 0)) is BookingOutcome.OK


def test_excluded_appointment_does_not_conflict_with_itself(validator, appts):
    saved = appts.save(AppointmentDto(doctor_id=1, patient_id=10, appointment_time=datetime(2025, 9, 11, 9, 0)))
    assert validator.validate(1, datetime(2025, 9, 11, 9, 0), exclude_appointment_id=saved.id) is BookingOutcome.OK
    assert validator.validate(1, datetime(2025, 9, 11, 9, 0), exclude_appointment_id=saved.id + 1) is BookingOutcome.SLOT_UNAVAILABLE


def test_booking_for_another_doctor_does_not_block(validator, appts):
    appts.save(AppointmentDto(doctor_id=2, patient_id=10, appointment_time=datetime(2025, 9, 11, 9, 0)))
    assert validator.validate(1, datetime(2025, 9, 11, 9, 0)) is BookingOutcome.OK
