# Models package (re-export feature modules for stable imports)
from .health.doctor import Doctor
from .health.patient import Patient
from .health.appointment import Appointment
from .health.payment import Payment

__all__ = [
    "Doctor",
    "Patient",
    "Appointment",
    "Payment",
]
