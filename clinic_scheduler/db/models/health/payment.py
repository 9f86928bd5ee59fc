# clinic_scheduler/db/models/health/payment.py
from typing import Optional
from decimal import Decimal
from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime

class Payment(SQLModel, table=True):
    __tablename__ = "payments"
    id: Optional[int] = Field(default=None, primary_key=True)
    appointment_id: int = Field(foreign_key="appointments.id", unique=True)
    amount: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=0)
    payment_method: str = Field(max_length=20)  # cash/credit/insurance
    payment_status: str = Field(max_length=20)  # Paid/Pending/Failed
    paid_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    appointment: Optional["Appointment"] = Relationship(back_populates="payment")
