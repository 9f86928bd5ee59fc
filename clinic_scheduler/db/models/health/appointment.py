# clinic_scheduler/db/models/health/appointment.py
from typing import Optional
from sqlalchemy import Index, text
from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime

class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    __table_args__ = (
        # At most one active (non-cancelled) appointment per doctor and instant
        Index(
            "uq_appointments_doctor_time_active",
            "doctor_id",
            "appointment_time",
            unique=True,
            sqlite_where=text("status != 2"),
            postgresql_where=text("status != 2"),
        ),
        Index("idx_appointments_patient_status", "patient_id", "status"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    doctor_id: int = Field(foreign_key="doctors.id")
    patient_id: int = Field(foreign_key="patients.id")
    appointment_time: datetime
    status: int = Field(default=0)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    doctor: Optional["Doctor"] = Relationship(back_populates="appointments")
    patient: Optional["Patient"] = Relationship(back_populates="appointments")
    payment: Optional["Payment"] = Relationship(
        back_populates="appointment",
        sa_relationship_kwargs={"uselist": False, "cascade": "all, delete-orphan"},
    )
