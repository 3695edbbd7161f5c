"""
Shift definition model.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple


def minutes_of_day(t: time) -> int:
    """Minutes elapsed since midnight."""
    return t.hour * 60 + t.minute


def parse_time(value) -> Optional[time]:
    """
    Parse an "HH:MM" string (or pass a time through).

    Returns None for empty or unparseable input.
    """
    if value is None:
        return None
    if isinstance(value, time):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        hours, minutes = text.split(":")[:2]
        return time(int(hours), int(minutes))
    except (ValueError, TypeError):
        return None


@dataclass(frozen=True)
class ShiftDefinition:
    """
    A venue-scoped template for a recurring work slot.

    Attributes:
        id: Unique shift definition identifier
        venue_id: Venue the shift belongs to
        name: Display name (e.g. "Sera")
        code: Short code (e.g. "S")
        start_time: Start time of day
        end_time: End time of day (earlier than start for overnight shifts)
        break_minutes: Unpaid break
        min_staff: Staff needed for the shift to be covered
        max_staff: Upper staffing bound (None = min_staff + headroom)
        required_skills: Skills every assignee must hold
        rate_multiplier: Pay multiplier applied to the base rate
        position: Fill priority, higher positions are filled first
    """
    id: str
    venue_id: str
    name: str
    code: str
    start_time: time
    end_time: time
    break_minutes: int = 0
    min_staff: int = 1
    max_staff: Optional[int] = None
    required_skills: Tuple[str, ...] = field(default_factory=tuple)
    rate_multiplier: float = 1.0
    position: int = 0
    color: Optional[str] = None
    is_active: bool = True

    @property
    def is_overnight(self) -> bool:
        return self.end_time < self.start_time

    def effective_max_staff(self, headroom: int = 2) -> int:
        """Upper staffing bound, defaulting to min_staff + headroom."""
        if self.max_staff is None:
            return self.min_staff + headroom
        return self.max_staff

    def start_datetime(self, shift_date: date) -> datetime:
        return datetime.combine(shift_date, self.start_time)

    def end_datetime(self, shift_date: date) -> datetime:
        """End of the shift, rolled into the next day for overnight shifts."""
        end = datetime.combine(shift_date, self.end_time)
        if self.is_overnight:
            end += timedelta(days=1)
        return end

    def __str__(self) -> str:
        return (
            f"{self.name} ({self.code}) "
            f"{self.start_time.strftime('%H:%M')}-{self.end_time.strftime('%H:%M')}"
        )
