from typing import ContextManager, Protocol


class BookingLockTimeout(Exception):
    pass


class BookingLock(Protocol):
    def hold(self, doctor_id: int) -> ContextManager[None]:
        """Exclusive section for one doctor's schedule. Raises BookingLockTimeout."""
        ...
