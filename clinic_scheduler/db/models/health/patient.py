# clinic_scheduler/db/models/health/patient.py
from typing import Optional, List
from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime

class Patient(SQLModel, table=True):
    __tablename__ = "patients"
    id: Optional[int] = Field(default=None, primary_key=True)
    full_name: str = Field(max_length=100, index=True)
    phone: Optional[str] = Field(default=None, max_length=13)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    appointments: List["Appointment"] = Relationship(back_populates="patient")
