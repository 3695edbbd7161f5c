"""
Small builders for the test suite.

Everything defaults to venue "v1" and the week of Monday 2024-12-16.
"""
from dataclasses import replace
from datetime import date, timedelta
from typing import Optional

from config import SchedulingConfig
from models.constraints import EmployeeConstraint, RelationshipConstraint
from models.employee import Employee
from models.generation import GenerationParams
from models.shift import ShiftDefinition, parse_time
from scheduling import build_assignment, generate_shifts

VENUE = "v1"
MONDAY = date(2024, 12, 16)


def day(offset: int) -> date:
    return MONDAY + timedelta(days=offset)


def make_employee(employee_id: str, **kwargs) -> Employee:
    kwargs.setdefault("first_name", employee_id.upper())
    kwargs.setdefault("venue_id", VENUE)
    kwargs.setdefault("hourly_rate_base", 10.0)
    return Employee(id=employee_id, **kwargs)


def make_shift(shift_id: str = "mattina", start: str = "08:00", end: str = "16:00",
               **kwargs) -> ShiftDefinition:
    kwargs.setdefault("venue_id", VENUE)
    kwargs.setdefault("name", shift_id.title())
    kwargs.setdefault("code", shift_id[0].upper())
    return ShiftDefinition(
        id=shift_id,
        start_time=parse_time(start),
        end_time=parse_time(end),
        **kwargs,
    )


def make_params(start: date = MONDAY, end: Optional[date] = None, **kwargs) -> GenerationParams:
    return GenerationParams(venue_id=VENUE, start_date=start, end_date=end or start, **kwargs)


_ids = {"n": 0}


def _next_id(prefix: str) -> str:
    _ids["n"] += 1
    return f"{prefix}{_ids['n']}"


def make_constraint(user_id, constraint_type: str, payload=None, hard: bool = True,
                    **kwargs) -> EmployeeConstraint:
    return EmployeeConstraint.from_payload(
        _next_id("c"), constraint_type, payload,
        user_id=user_id, is_hard_constraint=hard, **kwargs,
    )


def make_relationship(constraint_type: str, user_ids, payload=None, hard: bool = True,
                      **kwargs) -> RelationshipConstraint:
    return RelationshipConstraint.from_payload(
        _next_id("r"), constraint_type, user_ids, payload,
        is_hard_constraint=hard, **kwargs,
    )


def make_assignment(employee: Employee, shift: ShiftDefinition, target_date: date,
                    hours: Optional[float] = None, schedule_id: str = "s1"):
    assignment = build_assignment(schedule_id, employee, shift, target_date)
    if hours is not None:
        assignment = replace(assignment, hours_scheduled=hours)
    return assignment


def run(employees, shifts, constraints=(), relationships=(), leave=(),
        params: Optional[GenerationParams] = None, config: Optional[SchedulingConfig] = None):
    return generate_shifts(
        "s1", employees, shifts, list(constraints), list(relationships), list(leave),
        params or make_params(), config,
    )
