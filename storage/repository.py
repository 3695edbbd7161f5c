"""
In-memory repository holding everything a generation run reads and writes.

Reference data (employees, shift definitions, constraints, leave) is loaded
once, typically by the DataLoaderAgent, and read back scoped to a venue.
Generated assignments replace whatever a schedule held before.
"""
import logging
from dataclasses import replace
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from models.constraints import EmployeeConstraint, RelationshipConstraint
from models.employee import Employee, LeaveRequest, LeaveStatus
from models.schedule import Schedule, ScheduleStatus, ShiftAssignment
from models.shift import ShiftDefinition

logger = logging.getLogger("ShiftScheduler.storage")


class ScheduleNotFoundError(LookupError):
    """Raised when a schedule id is not in the repository."""

    def __init__(self, schedule_id: str):
        super().__init__(f"Schedule not found: {schedule_id}")
        self.schedule_id = schedule_id


class ScheduleRepository:
    """
    Storage collaborator of the coordinator and validator agents.

    Venue-scoped loaders return records that belong to the venue plus the
    venue-agnostic ones (venue_id None).
    """

    def __init__(self):
        self._schedules: Dict[str, Schedule] = {}
        self._employees: Dict[str, Employee] = {}
        self._shift_definitions: Dict[str, ShiftDefinition] = {}
        self._employee_constraints: List[EmployeeConstraint] = []
        self._relationship_constraints: List[RelationshipConstraint] = []
        self._leave_requests: List[LeaveRequest] = []
        self._assignments: Dict[str, List[ShiftAssignment]] = {}
        self._staffing: Dict[str, Dict[Tuple[date, str], int]] = {}

    # ==================== Schedules ====================

    def add_schedule(self, schedule: Schedule) -> Schedule:
        self._schedules[schedule.id] = schedule
        return schedule

    def get_schedule(self, schedule_id: str) -> Schedule:
        try:
            return self._schedules[schedule_id]
        except KeyError:
            raise ScheduleNotFoundError(schedule_id) from None

    def list_schedules(self) -> List[Schedule]:
        return sorted(self._schedules.values(), key=lambda s: (s.start_date, s.id))

    def mark_generated(self, schedule_id: str, generation_log: Optional[dict] = None) -> Schedule:
        """Flag a schedule as generated and keep the run summary with it."""
        schedule = self.get_schedule(schedule_id)
        schedule.status = ScheduleStatus.GENERATED
        if generation_log is not None:
            schedule.generation_log = generation_log
        return schedule

    # ==================== Reference data ====================

    def add_employees(self, employees: Iterable[Employee]) -> None:
        for employee in employees:
            self._employees[employee.id] = employee

    def add_shift_definitions(self, shifts: Iterable[ShiftDefinition]) -> None:
        for shift in shifts:
            self._shift_definitions[shift.id] = shift

    def add_employee_constraints(self, constraints: Iterable[EmployeeConstraint]) -> None:
        self._employee_constraints.extend(constraints)

    def add_relationship_constraints(self, constraints: Iterable[RelationshipConstraint]) -> None:
        self._relationship_constraints.extend(constraints)

    def add_leave_requests(self, requests: Iterable[LeaveRequest]) -> None:
        self._leave_requests.extend(requests)

    def get_employee(self, employee_id: str) -> Optional[Employee]:
        return self._employees.get(employee_id)

    def employees_for_venue(self, venue_id: str) -> List[Employee]:
        return [
            e for e in self._employees.values()
            if e.venue_id in (venue_id, None)
        ]

    def shift_definitions_for_venue(self, venue_id: str) -> List[ShiftDefinition]:
        return [
            s for s in self._shift_definitions.values()
            if s.venue_id == venue_id and s.is_active
        ]

    def employee_constraints_for_venue(self, venue_id: str) -> List[EmployeeConstraint]:
        return [c for c in self._employee_constraints if c.venue_id in (venue_id, None)]

    def relationship_constraints_for_venue(self, venue_id: str) -> List[RelationshipConstraint]:
        return [c for c in self._relationship_constraints if c.venue_id in (venue_id, None)]

    def approved_leave_overlapping(self, start: date, end: date,
                                   user_ids: Optional[Sequence[str]] = None) -> List[LeaveRequest]:
        """Approved leave touching [start, end], optionally limited to some employees."""
        wanted = set(user_ids) if user_ids is not None else None
        return [
            r for r in self._leave_requests
            if r.status == LeaveStatus.APPROVED
            and r.overlaps(start, end)
            and (wanted is None or r.user_id in wanted)
        ]

    def set_staffing_requirements(self, schedule_id: str,
                                  requirements: Dict[Tuple[date, str], int]) -> None:
        """Exact staff counts per (date, shift id) for one schedule."""
        self.get_schedule(schedule_id)
        self._staffing[schedule_id] = dict(requirements)

    def staffing_requirements(self, schedule_id: str) -> Dict[Tuple[date, str], int]:
        return dict(self._staffing.get(schedule_id, {}))

    # ==================== Assignments ====================

    def replace_assignments(self, schedule_id: str,
                            assignments: Iterable[ShiftAssignment]) -> int:
        """Delete the schedule's assignments, then store the new ones with fresh ids."""
        self.get_schedule(schedule_id)
        previous = len(self._assignments.get(schedule_id, []))
        stored = [
            replace(a, schedule_id=schedule_id, id=f"{schedule_id}-{n:05d}")
            for n, a in enumerate(assignments, start=1)
        ]
        self._assignments[schedule_id] = stored
        logger.info(f"Schedule {schedule_id}: replaced {previous} assignments with {len(stored)}")
        return len(stored)

    def load_assignments(self, schedule_id: str) -> List[ShiftAssignment]:
        self.get_schedule(schedule_id)
        return sorted(
            self._assignments.get(schedule_id, []),
            key=lambda a: (a.date, a.start_time, a.user_id),
        )

    def __str__(self) -> str:
        return (
            f"ScheduleRepository({len(self._schedules)} schedules, "
            f"{len(self._employees)} employees, {len(self._shift_definitions)} shifts)"
        )
