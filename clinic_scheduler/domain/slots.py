"""Doctor availability entries.

A doctor declares availability as plain strings. Two shapes have been stored
over time and both are accepted:

    "09:00-10:00"             bare time range, no calendar date
    "2025-06-20 09:00-10:00"  date-qualified range

Entries are parsed once into a ``Slot`` value. Anything that does not parse is
logged and treated as a slot that never matches.
"""
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum
from typing import Iterable, List, Optional, Union

logger = logging.getLogger(__name__)

_SLOT_PATTERN = re.compile(
    r"^(?:(?P<date>\d{4}-\d{2}-\d{2})\s+)?(?P<start>\d{2}:\d{2})-(?P<end>\d{2}:\d{2})$"
)

NOON = time(12, 0)


@dataclass(frozen=True)
class BareTimeSlot:
    start: time
    end: time

    @property
    def day(self) -> Optional[date]:
        return None

    def start_instant(self) -> Optional[datetime]:
        return None

    def label(self) -> str:
        return f"{self.start:%H:%M}-{self.end:%H:%M}"


@dataclass(frozen=True)
class DatedSlot:
    day: date
    start: time
    end: time

    def start_instant(self) -> Optional[datetime]:
        return datetime.combine(self.day, self.start)

    def label(self) -> str:
        return f"{self.day.isoformat()} {self.start:%H:%M}-{self.end:%H:%M}"


Slot = Union[BareTimeSlot, DatedSlot]


class Period(str, Enum):
    AM = "AM"
    PM = "PM"


def _parse_hhmm(value: str) -> time:
    return datetime.strptime(value, "%H:%M").time()


def parse_slot(raw: Optional[str]) -> Optional[Slot]:
    """Parse a raw availability entry, returning None when it is malformed."""
    if not isinstance(raw, str):
        logger.warning("Ignoring availability entry that is not a string: %r", raw)
        return None

    match = _SLOT_PATTERN.match(raw.strip())
    if not match:
        logger.warning("Ignoring malformed availability entry: %r", raw)
        return None

    try:
        start = _parse_hhmm(match.group("start"))
        end = _parse_hhmm(match.group("end"))
        slot_day = date.fromisoformat(match.group("date")) if match.group("date") else None
    except ValueError:
        logger.warning("Ignoring availability entry with invalid date or time: %r", raw)
        return None

    if end <= start:
        logger.warning("Ignoring availability entry that ends before it starts: %r", raw)
        return None

    if slot_day is None:
        return BareTimeSlot(start=start, end=end)
    return DatedSlot(day=slot_day, start=start, end=end)


def parse_slots(entries: Optional[Iterable[str]]) -> List[Slot]:
    """Parse entries in declared order, skipping the malformed ones."""
    slots = []
    for raw in entries or []:
        slot = parse_slot(raw)
        if slot is not None:
            slots.append(slot)
    return slots


def normalize_available_times(entries: Optional[Iterable[str]]) -> List[str]:
    """Canonical labels for the well-formed entries. Order and duplicates are kept."""
    return [slot.label() for slot in parse_slots(entries)]


def classify_time(value: time) -> Period:
    # Noon belongs to the afternoon
    return Period.AM if value < NOON else Period.PM


def parse_period(value: Optional[str]) -> Optional[Period]:
    """Map a user supplied period to AM/PM. Unknown values mean "no filtering"."""
    if value is None:
        return None
    normalized = value.strip().upper()
    if normalized == Period.AM.value:
        return Period.AM
    if normalized == Period.PM.value:
        return Period.PM
    return None


def matches_period(raw: str, period: Optional[Period]) -> bool:
    if period is None:
        return True
    slot = parse_slot(raw)
    if slot is None:
        return False
    return classify_time(slot.start) == period
