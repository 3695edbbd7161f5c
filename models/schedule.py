"""
Shift assignment and roster models.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple
from collections import defaultdict


@dataclass(frozen=True)
class ShiftAssignment:
    """
    One employee placed on one shift definition on one date.

    Attributes:
        schedule_id: Owning schedule
        user_id: Assigned employee
        shift_definition_id: Shift template
        date: Calendar date of the shift
        start_time: Concrete start
        end_time: Concrete end (next day for overnight shifts)
        hours_scheduled: Paid hours (break excluded)
        cost_estimated: hours x base rate x shift multiplier
    """
    schedule_id: str
    user_id: str
    shift_definition_id: str
    date: date
    start_time: datetime
    end_time: datetime
    break_minutes: int
    venue_id: str
    hours_scheduled: float
    cost_estimated: float
    work_station: Optional[str] = None
    id: Optional[str] = None

    @property
    def slot(self) -> Tuple[date, str]:
        return (self.date, self.shift_definition_id)

    def __str__(self) -> str:
        return (
            f"{self.user_id} -> {self.shift_definition_id} "
            f"on {self.date.strftime('%a %d/%m')} ({self.hours_scheduled}h)"
        )


class ScheduleStatus(Enum):
    """Lifecycle of a schedule owned by the storage collaborator."""
    DRAFT = "DRAFT"
    GENERATED = "GENERATED"
    PUBLISHED = "PUBLISHED"


@dataclass
class Schedule:
    """
    A schedule header: the period and venue a roster is generated for.
    """
    id: str
    venue_id: str
    start_date: date
    end_date: date
    status: ScheduleStatus = ScheduleStatus.DRAFT
    generation_log: Dict = field(default_factory=dict)

    def get_dates_in_range(self) -> List[date]:
        return date_range(self.start_date, self.end_date)

    def __str__(self) -> str:
        return f"Schedule {self.id}: {self.venue_id} {self.start_date} to {self.end_date} ({self.status.value})"


def date_range(start: date, end: date) -> List[date]:
    """All dates from start to end inclusive."""
    dates = []
    current = start
    while current <= end:
        dates.append(current)
        current += timedelta(days=1)
    return dates


class Roster:
    """
    Indexed collection of assignments.

    Assignments live in one list; the indexes map employee, date and
    (date, shift) slots to positions in it so lookups stay cheap while
    the greedy builder and the optimizer add or swap placements.
    """

    def __init__(self, assignments: Iterable[ShiftAssignment] = ()):
        self._assignments: List[ShiftAssignment] = []
        self._by_employee: Dict[str, Set[int]] = defaultdict(set)
        self._by_date: Dict[date, Set[int]] = defaultdict(set)
        self._by_slot: Dict[Tuple[date, str], Set[int]] = defaultdict(set)
        self._by_employee_date: Dict[Tuple[str, date], Set[int]] = defaultdict(set)
        for assignment in assignments:
            self.add(assignment)

    @classmethod
    def coerce(cls, assignments) -> "Roster":
        """Accept either a Roster or any iterable of assignments."""
        if isinstance(assignments, Roster):
            return assignments
        return cls(assignments or ())

    # ==================== Mutation ====================

    def add(self, assignment: ShiftAssignment) -> int:
        index = len(self._assignments)
        self._assignments.append(assignment)
        self._index(index, assignment)
        return index

    def replace(self, index: int, assignment: ShiftAssignment) -> None:
        """Swap the assignment stored at `index` for another one."""
        self._unindex(index, self._assignments[index])
        self._assignments[index] = assignment
        self._index(index, assignment)

    def _index(self, index: int, assignment: ShiftAssignment) -> None:
        self._by_employee[assignment.user_id].add(index)
        self._by_date[assignment.date].add(index)
        self._by_slot[assignment.slot].add(index)
        self._by_employee_date[(assignment.user_id, assignment.date)].add(index)

    def _unindex(self, index: int, assignment: ShiftAssignment) -> None:
        self._by_employee[assignment.user_id].discard(index)
        self._by_date[assignment.date].discard(index)
        self._by_slot[assignment.slot].discard(index)
        self._by_employee_date[(assignment.user_id, assignment.date)].discard(index)

    # ==================== Lookups ====================

    def _collect(self, indexes: Iterable[int], exclude: Iterable[int] = ()) -> List[ShiftAssignment]:
        skip = set(exclude)
        return [self._assignments[i] for i in sorted(indexes) if i not in skip]

    def get(self, index: int) -> ShiftAssignment:
        return self._assignments[index]

    def for_employee(self, employee_id: str, exclude: Iterable[int] = ()) -> List[ShiftAssignment]:
        return self._collect(self._by_employee.get(employee_id, ()), exclude)

    def for_date(self, target_date: date, exclude: Iterable[int] = ()) -> List[ShiftAssignment]:
        return self._collect(self._by_date.get(target_date, ()), exclude)

    def for_slot(self, target_date: date, shift_definition_id: str,
                 exclude: Iterable[int] = ()) -> List[ShiftAssignment]:
        return self._collect(self._by_slot.get((target_date, shift_definition_id), ()), exclude)

    def on_date(self, employee_id: str, target_date: date,
                exclude: Iterable[int] = ()) -> List[ShiftAssignment]:
        return self._collect(self._by_employee_date.get((employee_id, target_date), ()), exclude)

    def is_employee_assigned(self, employee_id: str, target_date: date,
                             exclude: Iterable[int] = ()) -> bool:
        return bool(self.on_date(employee_id, target_date, exclude))

    def hours_between(self, employee_id: str, start: date, end: date,
                      exclude: Iterable[int] = ()) -> float:
        """Hours scheduled for an employee on dates within [start, end]."""
        return sum(
            a.hours_scheduled for a in self.for_employee(employee_id, exclude)
            if start <= a.date <= end
        )

    def days_worked_between(self, employee_id: str, start: date, end: date,
                            exclude: Iterable[int] = ()) -> int:
        return len({
            a.date for a in self.for_employee(employee_id, exclude)
            if start <= a.date <= end
        })

    def dates(self) -> List[date]:
        return sorted(d for d, idx in self._by_date.items() if idx)

    def to_list(self) -> List[ShiftAssignment]:
        return list(self._assignments)

    def __iter__(self) -> Iterator[ShiftAssignment]:
        return iter(self.to_list())

    def __len__(self) -> int:
        return len(self._assignments)

    def summary(self) -> dict:
        assignments = self.to_list()
        return {
            "total_assignments": len(assignments),
            "unique_employees": len({a.user_id for a in assignments}),
            "total_hours": sum(a.hours_scheduled for a in assignments),
            "total_cost": sum(a.cost_estimated for a in assignments),
        }

    def __str__(self) -> str:
        summary = self.summary()
        return (
            f"Roster: {summary['total_assignments']} assignments | "
            f"{summary['unique_employees']} employees | "
            f"{summary['total_hours']:.1f} hours"
        )
