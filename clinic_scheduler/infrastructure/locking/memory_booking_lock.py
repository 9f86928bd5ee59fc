import threading
from contextlib import contextmanager
from typing import Dict, Iterator

from ...application.ports.booking_lock import BookingLock, BookingLockTimeout


class InMemoryBookingLock(BookingLock):
    """Per-doctor mutex for a single process.

    Several workers still need the unique index on appointments to stay consistent.
    """

    def __init__(self, timeout_seconds: float = 5.0) -> None:
        self.timeout_seconds = timeout_seconds
        self._guard = threading.Lock()
        self._locks: Dict[int, threading.Lock] = {}

    def _lock_for(self, doctor_id: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(doctor_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[doctor_id] = lock
            return lock

    @contextmanager
    def hold(self, doctor_id: int) -> Iterator[None]:
        lock = self._lock_for(doctor_id)
        if not lock.acquire(timeout=self.timeout_seconds):
            raise BookingLockTimeout(f"doctor {doctor_id} schedule is locked")
        try:
            yield
        finally:
            lock.release()
