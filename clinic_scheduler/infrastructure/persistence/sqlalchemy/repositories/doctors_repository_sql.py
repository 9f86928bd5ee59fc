import json
import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from .....db.models import Doctor
from ..filters import LIKE_ESCAPE, contains_pattern
from .....application.ports.appointments_repo import StorageError
from .....application.ports.doctors_repo import DoctorsRepository, DoctorDto

logger = logging.getLogger(__name__)


def load_available_times(raw: Optional[str]) -> Optional[List[str]]:
    """Decode the stored JSON list. None means the column holds something else."""
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(value, list):
        return None
    return [str(item) for item in value]


def decode_available_times(raw: Optional[str]) -> List[str]:
    value = load_available_times(raw)
    if value is None:
        logger.warning("Doctor availability is not a JSON list: %r", raw)
        return []
    return value


class SqlDoctorsRepository(DoctorsRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, d: Doctor) -> DoctorDto:
        return DoctorDto(
            id=d.id,
            name=d.full_name,
            specialty=d.specialty,
            available_times=decode_available_times(d.available_times),
        )

    def get_doctor(self, doctor_id: int) -> Optional[DoctorDto]:
        try:
            d = self.session.exec(select(Doctor).where(Doctor.id == doctor_id)).first()
            return self._to_dto(d) if d else None
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StorageError(f"failed to load doctor {doctor_id}") from exc

    def search(self, name: Optional[str] = None, specialty: Optional[str] = None) -> List[DoctorDto]:
        query = select(Doctor)
        if name:
            query = query.where(Doctor.full_name.ilike(contains_pattern(name), escape=LIKE_ESCAPE))
        if specialty:
            query = query.where(func.lower(Doctor.specialty) == specialty.lower())
        try:
            rows = self.session.exec(query.order_by(Doctor.id)).all()
            return [self._to_dto(r) for r in rows]
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StorageError("failed to search doctors") from exc
