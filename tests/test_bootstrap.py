import json
import logging
from datetime import date, datetime

import pytest
from sqlmodel import Session

from clinic_scheduler.application.ports.identity_resolver import Identity
from clinic_scheduler.bootstrap import build_scheduling_services
from clinic_scheduler.database import build_engine, create_db_and_tables
from clinic_scheduler.db.models import Doctor, Patient
from clinic_scheduler.domain.appointments import AppointmentStatus, Outcome
from clinic_scheduler.infrastructure.locking.memory_booking_lock import InMemoryBookingLock

DAY = date(2099, 6, 20)
NINE = datetime(2099, 6, 20, 9, 0)
ELEVEN = datetime(2099, 6, 20, 11, 0)


class TokenIdentity:
    def resolve(self, credential):
        if credential and credential.startswith("patient-"):
            return Identity(user_id=int(credential.split("-", 1)[1]), role="patient")
        return None


@pytest.fixture
def services():
    engine = build_engine("sqlite://")
    create_db_and_tables(engine)
    with Session(engine) as session:
        session.add(Doctor(id=1, full_name="Taro Yamada", specialty="Internal Medicine",
                           available_times=json.dumps([
                               "2099-06-20 09:00-10:00",
                               "2099-06-20 11:00-12:00",
                               "2099-06-21 14:00-15:00",
                               "09:00-10:00",
                           ])))
        session.add(Patient(id=10, full_name="Alice Tanaka"))
        session.add(Patient(id=20, full_name="Bob Suzuki"))
        session.commit()
        yield build_scheduling_services(session, identity=TokenIdentity(), lock=InMemoryBookingLock(timeout_seconds=1))
    engine.dispose()


def test_declared_slots_are_free_until_booked(services):
    assert services.availability.free_slots(1, DAY) == ["2099-06-20 09:00-10:00", "2099-06-20 11:00-12:00"]
    assert services.availability.free_slots(99, DAY) == []

    booked = services.appointments.book(10, 1, NINE)
    assert booked.ok
    assert services.availability.free_slots(1, DAY) == ["2099-06-20 11:00-12:00"]


def test_double_booking_is_refused(services):
    assert services.appointments.book(10, 1, NINE).ok
    second = services.appointments.book(20, 1, NINE)
    assert second.outcome is Outcome.SLOT_UNAVAILABLE
    assert len(services.queries.for_doctor_on(1, DAY).value) == 1


def test_cancel_reopens_the_slot(services):
    appt = services.appointments.book(10, 1, NINE).value
    assert services.appointments.cancel_with_credential(appt.id, "patient-20").outcome is Outcome.FORBIDDEN
    assert services.appointments.cancel_with_credential(appt.id, "patient-10").ok
    assert "2099-06-20 09:00-10:00" in services.availability.free_slots(1, DAY)
    assert services.appointments.book(20, 1, NINE).ok


def test_reschedule_moves_the_booking(services):
    appt = services.appointments.book(10, 1, NINE).value
    moved = services.appointments.update(appt.id, 10, 1, ELEVEN)
    assert moved.ok
    assert moved.value.appointment_time == ELEVEN
    assert services.availability.free_slots(1, DAY) == ["2099-06-20 09:00-10:00"]


def test_status_changes_and_history_queries(services, caplog):
    appt = services.appointments.book(10, 1, NINE).value
    assert services.appointments.change_status(appt.id, AppointmentStatus.COMPLETED) is True
    assert [a.id for a in services.queries.for_patient(10, condition="past").value] == [appt.id]
    assert services.queries.for_patient(10, condition="future").value == []

    with caplog.at_level(logging.WARNING):
        assert services.appointments.change_status(4242, AppointmentStatus.COMPLETED) is False
    assert any("4242" in r.getMessage() for r in caplog.records if r.levelno == logging.WARNING)


def test_directory_period_filter(services):
    am = services.directory.filter_doctors(specialty="internal medicine", period="AM")
    assert [d.id for d in am] == [1]
    assert am[0].available_times == ["2099-06-20 09:00-10:00", "2099-06-20 11:00-12:00", "09:00-10:00"]
    pm = services.directory.filter_doctors(period="PM")
    assert pm[0].available_times == ["2099-06-21 14:00-15:00"]


def test_purge_doctor(services):
    services.appointments.book(10, 1, NINE)
    services.appointments.book(20, 1, ELEVEN)
    result = services.appointments.purge_doctor(1)
    assert result.value == 2
    assert services.queries.for_doctor_on(1, DAY).value == []


def test_startup_creates_the_schema():
    from sqlalchemy import inspect

    from clinic_scheduler.bootstrap import startup

    engine = build_engine("sqlite://")
    startup(engine)
    assert {"doctors", "patients", "appointments", "payments"} <= set(inspect(engine).get_table_names())
    engine.dispose()
