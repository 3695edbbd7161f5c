"""
Constraint evaluation for shift generation.

Pure functions deciding whether a hard rule vetoes placing an employee on a
shift, and whether a soft rule should penalize it.
"""
from dataclasses import dataclass
from datetime import date, time, timedelta
from typing import Iterable, Optional, Sequence, Tuple

from models.constraints import (
    EmployeeConstraint,
    EmployeeConstraintType,
    Preference,
)
from models.employee import Employee, LeaveRequest
from models.schedule import Roster
from models.shift import ShiftDefinition, minutes_of_day


@dataclass(frozen=True)
class Availability:
    """Availability of one employee on one date."""
    user_id: str
    date: date
    is_available: bool = True
    available_from: Optional[time] = None
    available_to: Optional[time] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class ShiftEligibility:
    """Outcome of the hard-gate pipeline for one candidate."""
    can_work: bool
    reason: Optional[str] = None
    is_penalized: bool = False

    def __bool__(self) -> bool:
        return self.can_work


def is_constraint_active(constraint, target_date: date) -> bool:
    """True iff target_date falls in [valid_from, valid_to]; open bounds are unbounded."""
    if constraint.valid_from and target_date < constraint.valid_from:
        return False
    if constraint.valid_to and target_date > constraint.valid_to:
        return False
    return True


def week_bounds(target_date: date, week_start_day: int = 0) -> Tuple[date, date]:
    """First and last day of the business week containing target_date."""
    offset = (target_date.weekday() - week_start_day) % 7
    start = target_date - timedelta(days=offset)
    return start, start + timedelta(days=6)


def matches_shift_type(preferred: str, shift: ShiftDefinition) -> bool:
    """
    Fuzzy match between a preferred shift type and a shift definition.

    Case-insensitive substring containment in either direction against the
    shift's name or code. An empty preference matches nothing.
    """
    wanted = (preferred or "").strip().lower()
    if not wanted:
        return False
    for label in (shift.name.lower(), shift.code.lower()):
        if label and (wanted in label or label in wanted):
            return True
    return False


def calculate_shift_hours(shift: ShiftDefinition) -> float:
    """Paid hours of a shift: handles overnight shifts and deducts the break."""
    start = minutes_of_day(shift.start_time)
    end = minutes_of_day(shift.end_time)
    if end < start:
        end += 24 * 60
    work_minutes = end - start - shift.break_minutes
    return round(work_minutes / 60, 2)


def format_hours(value: float) -> str:
    """43.0 -> '43', 7.5 -> '7.5'."""
    return f"{round(value, 2):g}"


def _active(constraints: Iterable[EmployeeConstraint], target_date: date,
            constraint_type: EmployeeConstraintType):
    return [
        c for c in constraints
        if c.constraint_type == constraint_type and is_constraint_active(c, target_date)
    ]


def check_employee_availability(employee: Employee,
                                target_date: date,
                                constraints: Sequence[EmployeeConstraint],
                                existing_assignments,
                                exclude: Iterable[int] = ()) -> Availability:
    """
    Narrow an employee's availability for a date from their constraints.

    The first hard veto short-circuits. AVAILABILITY constraints that do not
    veto accumulate into a time-of-day window. Roster positions in
    `exclude` are ignored.
    """
    roster = Roster.coerce(existing_assignments)
    exclude = tuple(exclude)
    weekday = target_date.weekday()

    if not employee.is_available_on_weekday(weekday):
        return Availability(employee.id, target_date, False,
                            reason="Not available on this weekday")

    available_from = None
    available_to = None

    for constraint in constraints:
        if not is_constraint_active(constraint, target_date):
            continue
        config = constraint.config

        if constraint.constraint_type == EmployeeConstraintType.BLOCKED_DAY:
            if config.weekday == weekday and constraint.is_hard_constraint:
                return Availability(employee.id, target_date, False, reason=config.reason)

        elif constraint.constraint_type == EmployeeConstraintType.AVAILABILITY:
            if config.weekday != weekday:
                continue
            if not config.available:
                if constraint.is_hard_constraint:
                    return Availability(employee.id, target_date, False,
                                        reason="Not available on this day")
            else:
                if config.start_time:
                    available_from = config.start_time
                if config.end_time:
                    available_to = config.end_time

        elif constraint.constraint_type == EmployeeConstraintType.CONSECUTIVE_DAYS:
            max_days = config.max_days
            run = 0
            for offset in range(1, max_days + 1):
                if roster.is_employee_assigned(employee.id, target_date - timedelta(days=offset), exclude):
                    run += 1
                else:
                    break
            if run >= max_days and constraint.is_hard_constraint:
                return Availability(employee.id, target_date, False,
                                    reason=f"Max {max_days} consecutive days reached")

    return Availability(employee.id, target_date, True,
                        available_from=available_from, available_to=available_to)


def can_employee_work_shift(employee: Employee,
                            shift: ShiftDefinition,
                            target_date: date,
                            constraints: Sequence[EmployeeConstraint],
                            existing_assignments,
                            leave_requests: Iterable[LeaveRequest] = (),
                            week_start_day: int = 0,
                            exclude: Iterable[int] = ()) -> ShiftEligibility:
    """
    Run the full hard-gate pipeline for one employee/shift/date.

    Args:
        employee: Candidate
        shift: Shift definition to fill
        target_date: Date of the shift
        constraints: The employee's constraints
        existing_assignments: Roster or list of assignments already placed
        leave_requests: Leave records; approved leave covering the date vetoes
        week_start_day: First weekday of the business week (0 = Monday)
        exclude: Roster positions to ignore (used by the optimizer)

    Returns:
        ShiftEligibility; MIN_REST and MAX_HOURS may return a soft penalty
        instead of a veto. A soft rest breach returns at once, before the
        weekly hours check.
    """
    roster = Roster.coerce(existing_assignments)
    exclude = tuple(exclude)

    for leave in leave_requests:
        if leave.user_id == employee.id and leave.covers(target_date):
            return ShiftEligibility(False, "On approved leave")

    availability = check_employee_availability(employee, target_date, constraints, roster, exclude)
    if not availability.is_available:
        return ShiftEligibility(False, availability.reason)

    if roster.is_employee_assigned(employee.id, target_date, exclude):
        return ShiftEligibility(False, "Already assigned on this day")

    if shift.required_skills and not employee.has_skills(shift.required_skills):
        return ShiftEligibility(False, "Missing required skills")

    if employee.venue_id and employee.venue_id != shift.venue_id:
        return ShiftEligibility(False, "Different venue")

    for pref in _active(constraints, target_date, EmployeeConstraintType.PREFERRED_SHIFT):
        if not pref.is_hard_constraint:
            continue
        matches = matches_shift_type(pref.config.shift_type, shift)
        if pref.config.preference == Preference.PREFER and not matches:
            return ShiftEligibility(False, f"Only {pref.config.shift_type} shifts")
        if pref.config.preference == Preference.AVOID and matches:
            return ShiftEligibility(False, f"Cannot work {pref.config.shift_type} shifts")

    if availability.available_from and \
            minutes_of_day(shift.start_time) < minutes_of_day(availability.available_from):
        return ShiftEligibility(False, "Shift starts before availability window")
    if availability.available_to and \
            minutes_of_day(shift.end_time) > minutes_of_day(availability.available_to):
        return ShiftEligibility(False, "Shift ends after availability window")

    penalized = False

    rest_rules = _active(constraints, target_date, EmployeeConstraintType.MIN_REST)
    if rest_rules:
        rule = rest_rules[0]
        required = rule.config.min_rest_hours
        previous = roster.on_date(employee.id, target_date - timedelta(days=1), exclude)
        if previous:
            last_end = max(a.end_time for a in previous)
            rest = (shift.start_datetime(target_date) - last_end).total_seconds() / 3600
            if rest < required:
                if rule.is_hard_constraint:
                    return ShiftEligibility(
                        False,
                        f"Insufficient rest ({format_hours(rest)}h vs "
                        f"{format_hours(required)}h required)",
                    )
                return ShiftEligibility(True, is_penalized=True)

    hour_rules = _active(constraints, target_date, EmployeeConstraintType.MAX_HOURS)
    if hour_rules:
        rule = hour_rules[0]
        max_hours = rule.config.max_hours
        week_start, week_end = week_bounds(target_date, week_start_day)
        projected = roster.hours_between(employee.id, week_start, week_end, exclude) \
            + calculate_shift_hours(shift)
        if projected > max_hours:
            if rule.is_hard_constraint:
                return ShiftEligibility(
                    False,
                    f"Would exceed weekly max hours ({format_hours(projected)}h vs "
                    f"{format_hours(max_hours)}h)",
                )
            penalized = True

    return ShiftEligibility(True, is_penalized=penalized)

