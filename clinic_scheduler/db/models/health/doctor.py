# clinic_scheduler/db/models/health/doctor.py
from typing import Optional, List
from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime

class Doctor(SQLModel, table=True):
    __tablename__ = "doctors"
    id: Optional[int] = Field(default=None, primary_key=True)
    full_name: str = Field(max_length=100, index=True)
    specialty: str = Field(max_length=50, index=True)
    phone: Optional[str] = Field(default=None, max_length=13)
    # JSON encoded list of availability entries, e.g. ["2025-06-20 09:00-10:00"]
    available_times: str = Field(default="[]")
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    appointments: List["Appointment"] = Relationship(back_populates="doctor")
