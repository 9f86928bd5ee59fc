"""Wire the scheduling services onto a database session."""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlmodel import Session

from .core.config import settings, configure_logging
from .database import create_db_and_tables
from .application.ports.booking_lock import BookingLock
from .application.ports.identity_resolver import IdentityResolver
from .application.services.appointment_queries_service import AppointmentQueriesService
from .application.services.appointments_service import AppointmentsService
from .application.services.availability_service import AvailabilityService
from .application.services.booking_validator import BookingValidator
from .application.services.doctor_directory_service import DoctorDirectoryService
from .infrastructure.audit.std_logger import StdAuditLogger
from .infrastructure.locking.memory_booking_lock import InMemoryBookingLock
from .infrastructure.persistence.sqlalchemy.repositories.appointments_repository_sql import SqlAppointmentsRepository
from .infrastructure.persistence.sqlalchemy.repositories.doctors_repository_sql import SqlDoctorsRepository

logger = logging.getLogger(__name__)

# Shared by every request in this process
booking_lock = InMemoryBookingLock(timeout_seconds=settings.BOOKING_LOCK_TIMEOUT_SECONDS)


def startup(bind=None) -> None:
    configure_logging()
    logger.info(f"Starting {settings.APP_NAME} {settings.APP_VERSION}...")
    create_db_and_tables(bind)
    logger.info("Database initialized successfully")


@dataclass
class SchedulingServices:
    availability: AvailabilityService
    validator: BookingValidator
    appointments: AppointmentsService
    directory: DoctorDirectoryService
    queries: AppointmentQueriesService


def build_scheduling_services(session: Session, identity: Optional[IdentityResolver] = None, lock: Optional[BookingLock] = None) -> SchedulingServices:
    doctors = SqlDoctorsRepository(session)
    appointments = SqlAppointmentsRepository(session)
    validator = BookingValidator(doctors=doctors, appointments=appointments)
    return SchedulingServices(
        availability=AvailabilityService(doctors=doctors, appointments=appointments),
        validator=validator,
        appointments=AppointmentsService(
            repo=appointments,
            validator=validator,
            lock=lock or booking_lock,
            audit=StdAuditLogger(),
            identity=identity,
        ),
        directory=DoctorDirectoryService(doctors=doctors),
        queries=AppointmentQueriesService(repo=appointments),
    )
