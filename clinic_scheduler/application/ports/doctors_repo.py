from dataclasses import dataclass, field
from typing import List, Optional, Protocol


@dataclass(frozen=True)
class DoctorDto:
    id: int
    name: str
    specialty: str
    available_times: List[str] = field(default_factory=list)


class DoctorsRepository(Protocol):
    def get_doctor(self, doctor_id: int) -> Optional[DoctorDto]:
        ...

    def search(self, name: Optional[str] = None, specialty: Optional[str] = None) -> List[DoctorDto]:
        """Name is a case-insensitive substring, specialty a case-insensitive exact match."""
        ...
