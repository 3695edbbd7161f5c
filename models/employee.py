"""
Employee and leave request models.
"""
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import FrozenSet, Optional


class ContractType(Enum):
    """Employment contract types."""
    FIXED_TERM = "TEMPO_DETERMINATO"
    PERMANENT = "TEMPO_INDETERMINATO"
    INTERMITTENT = "LAVORO_INTERMITTENTE"
    OCCASIONAL = "LAVORATORE_OCCASIONALE"
    FREELANCE = "LIBERO_PROFESSIONISTA"

    @classmethod
    def from_string(cls, value: Optional[str]) -> Optional["ContractType"]:
        """Convert a stored contract code to ContractType (None if unknown)."""
        if not value:
            return None
        key = value.strip().upper()
        for member in cls:
            if member.value == key or member.name == key:
                return member
        return None


class DefaultShift(Enum):
    """An employee's habitual part of the day."""
    MORNING = "MORNING"
    EVENING = "EVENING"

    @classmethod
    def from_string(cls, value: Optional[str]) -> Optional["DefaultShift"]:
        if not value:
            return None
        mapping = {
            "morning": cls.MORNING,
            "mattina": cls.MORNING,
            "evening": cls.EVENING,
            "sera": cls.EVENING,
        }
        return mapping.get(value.lower().strip())


class LeaveStatus(Enum):
    """Lifecycle of a leave request."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


@dataclass(frozen=True)
class Employee:
    """
    Employee snapshot used for one generation run.

    Attributes:
        id: Unique employee identifier
        is_fixed_staff: Fixed staff vs. extra staff called in to fill gaps
        contract_hours_week: Contracted weekly hours (None = unknown)
        venue_id: Venue the employee belongs to (None = can work anywhere)
        skills: Skills the employee holds
        available_days: Weekdays (0 = Monday) an extra staffer can be called;
            empty means no restriction
        work_days_per_week: Minimum days for fixed staff, maximum for extras
    """
    id: str
    first_name: str = ""
    last_name: str = ""
    is_fixed_staff: bool = False
    contract_type: Optional[ContractType] = None
    contract_hours_week: Optional[float] = None
    venue_id: Optional[str] = None
    skills: FrozenSet[str] = field(default_factory=frozenset)
    can_work_alone: bool = False
    can_handle_cash: bool = False
    hourly_rate_base: Optional[float] = None
    hourly_rate_extra: Optional[float] = None
    hourly_rate_holiday: Optional[float] = None
    hourly_rate_night: Optional[float] = None
    default_shift: Optional[DefaultShift] = None
    available_days: FrozenSet[int] = field(default_factory=frozenset)
    work_days_per_week: Optional[int] = None

    @property
    def name(self) -> str:
        full = f"{self.first_name} {self.last_name}".strip()
        return full or self.id

    def has_skills(self, required) -> bool:
        """Check if the employee holds every skill in `required`."""
        return all(skill in self.skills for skill in required)

    def is_available_on_weekday(self, weekday: int) -> bool:
        """Extra staff may restrict the weekdays they can be called on."""
        if self.is_fixed_staff or not self.available_days:
            return True
        return weekday in self.available_days

    def __str__(self) -> str:
        kind = "fixed" if self.is_fixed_staff else "extra"
        return f"{self.name} ({kind})"


@dataclass(frozen=True)
class LeaveRequest:
    """A leave request spanning an inclusive date range."""
    id: str
    user_id: str
    start_date: date
    end_date: date
    status: LeaveStatus = LeaveStatus.PENDING

    def covers(self, target_date: date) -> bool:
        """True if this is approved leave that includes `target_date`."""
        return (
            self.status == LeaveStatus.APPROVED
            and self.start_date <= target_date <= self.end_date
        )

    def overlaps(self, start: date, end: date) -> bool:
        return self.start_date <= end and self.end_date >= start
