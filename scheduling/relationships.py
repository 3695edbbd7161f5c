"""
Relationship constraint checks.

NEVER_TOGETHER and ALWAYS_TOGETHER are decided pair by pair while the greedy
builder places people. SAME_DAY_OFF, MIN_OVERLAP and MAX_TOGETHER need the
whole roster and are checked once it is complete, together with a final
pairwise sweep that catches soft violations the builder let through.
"""
from collections import defaultdict
from datetime import date
from itertools import combinations
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from models.constraints import RelationshipConstraint, RelationshipConstraintType, Violation
from models.schedule import Roster, ShiftAssignment
from models.shift import ShiftDefinition

from .constraints import format_hours, is_constraint_active, week_bounds


_PAIRWISE_TYPES = (
    RelationshipConstraintType.NEVER_TOGETHER,
    RelationshipConstraintType.ALWAYS_TOGETHER,
)


def _severity(constraint: RelationshipConstraint) -> str:
    return "hard" if constraint.is_hard_constraint else "soft"


def check_relationship_constraints(a1: ShiftAssignment,
                                   a2: ShiftAssignment,
                                   constraints: Sequence[RelationshipConstraint]) -> List[Violation]:
    """
    Check two assignments against the pairwise relationship constraints.

    Only constraints active on a1's date that list both employees are
    considered.
    """
    violations = []
    if a1.user_id == a2.user_id:
        return violations

    for constraint in constraints:
        if not is_constraint_active(constraint, a1.date):
            continue
        if not constraint.involves(a1.user_id, a2.user_id):
            continue

        same_date = a1.date == a2.date
        same_shift = a1.shift_definition_id == a2.shift_definition_id

        if constraint.constraint_type == RelationshipConstraintType.NEVER_TOGETHER:
            if same_date and same_shift:
                violations.append(Violation(
                    constraint_id=constraint.id,
                    constraint_type=constraint.constraint_type,
                    message="Employees cannot work together",
                    employee_ids=(a1.user_id, a2.user_id),
                    date=a1.date,
                    severity=_severity(constraint),
                ))

        elif constraint.constraint_type == RelationshipConstraintType.ALWAYS_TOGETHER:
            if same_date and not same_shift:
                violations.append(Violation(
                    constraint_id=constraint.id,
                    constraint_type=constraint.constraint_type,
                    message="Employees must work together",
                    employee_ids=(a1.user_id, a2.user_id),
                    date=a1.date,
                    severity=_severity(constraint),
                ))

    return violations


def has_hard_conflict(candidate: ShiftAssignment,
                      placed: Sequence[ShiftAssignment],
                      constraints: Sequence[RelationshipConstraint]) -> bool:
    """True if `candidate` breaks a hard pairwise rule against anyone in `placed`."""
    for other in placed:
        for violation in check_relationship_constraints(candidate, other, constraints):
            if violation.is_hard:
                return True
    return False


def _overlap_minutes(a1: ShiftAssignment, a2: ShiftAssignment) -> float:
    """Signed overlap of two concrete windows; negative when they are apart."""
    start = max(a1.start_time, a2.start_time)
    end = min(a1.end_time, a2.end_time)
    return (end - start).total_seconds() / 60


def _shift_label(shift_id: str, shifts: Optional[Mapping[str, ShiftDefinition]]) -> str:
    if shifts and shift_id in shifts:
        return shifts[shift_id].name
    return shift_id


def _check_same_day_off(roster: Roster, constraint: RelationshipConstraint) -> List[Violation]:
    violations = []
    members = constraint.user_ids
    for day in roster.dates():
        if not is_constraint_active(constraint, day):
            continue
        working = {a.user_id for a in roster.for_date(day) if a.user_id in members}
        if working and len(working) < len(members):
            off = sorted(members - working)
            violations.append(Violation(
                constraint_id=constraint.id,
                constraint_type=constraint.constraint_type,
                message=f"Same day off required: {', '.join(sorted(working))} working "
                        f"while {', '.join(off)} off",
                employee_ids=tuple(sorted(members)),
                date=day,
                severity=_severity(constraint),
            ))
    return violations


def _check_min_overlap(roster: Roster, constraint: RelationshipConstraint,
                       shifts: Optional[Mapping[str, ShiftDefinition]]) -> List[Violation]:
    violations = []
    required = constraint.config.min_overlap_minutes
    for day in roster.dates():
        if not is_constraint_active(constraint, day):
            continue
        placed = [a for a in roster.for_date(day) if a.user_id in constraint.user_ids]
        for a1, a2 in combinations(placed, 2):
            if a1.user_id == a2.user_id or a1.shift_definition_id == a2.shift_definition_id:
                continue
            overlap = _overlap_minutes(a1, a2)
            if overlap < 0:
                # Disjoint windows: no handover between these two
                continue
            if overlap < required:
                violations.append(Violation(
                    constraint_id=constraint.id,
                    constraint_type=constraint.constraint_type,
                    message=(
                        f"Overlap between {_shift_label(a1.shift_definition_id, shifts)} and "
                        f"{_shift_label(a2.shift_definition_id, shifts)} is {overlap:g} min "
                        f"(min {required} min)"
                    ),
                    employee_ids=tuple(sorted((a1.user_id, a2.user_id))),
                    date=day,
                    severity=_severity(constraint),
                ))
    return violations


def _check_max_together(roster: Roster, constraint: RelationshipConstraint,
                        week_start_day: int) -> List[Violation]:
    together: Dict[Tuple[Tuple[str, str], date], float] = defaultdict(float)
    for day in roster.dates():
        if not is_constraint_active(constraint, day):
            continue
        by_slot: Dict[str, List[ShiftAssignment]] = defaultdict(list)
        for a in roster.for_date(day):
            if a.user_id in constraint.user_ids:
                by_slot[a.shift_definition_id].append(a)
        week_start, _ = week_bounds(day, week_start_day)
        for slot_assignments in by_slot.values():
            for a1, a2 in combinations(slot_assignments, 2):
                if a1.user_id == a2.user_id:
                    continue
                pair = tuple(sorted((a1.user_id, a2.user_id)))
                together[(pair, week_start)] += min(a1.hours_scheduled, a2.hours_scheduled)

    violations = []
    limit = constraint.config.max_hours
    for (pair, week_start), hours in sorted(together.items()):
        if hours > limit:
            violations.append(Violation(
                constraint_id=constraint.id,
                constraint_type=constraint.constraint_type,
                message=(
                    f"Worked together {format_hours(hours)}h in week of {week_start} "
                    f"(max {format_hours(limit)}h)"
                ),
                employee_ids=pair,
                date=week_start,
                severity=_severity(constraint),
            ))
    return violations


def check_roster_relationships(assignments,
                               constraints: Sequence[RelationshipConstraint],
                               shifts: Optional[Mapping[str, ShiftDefinition]] = None,
                               week_start_day: int = 0) -> List[Violation]:
    """
    Check the relationship constraints that can only be judged on a full roster.

    Args:
        assignments: Roster or list of assignments
        constraints: All relationship constraints of the venue
        shifts: Shift definitions by id, used to name shifts in messages
        week_start_day: First weekday of the business week (0 = Monday)

    Returns:
        Every violation found, pairwise rules included
    """
    roster = Roster.coerce(assignments)
    violations = []

    pairwise = [c for c in constraints if c.constraint_type in _PAIRWISE_TYPES]
    if pairwise:
        for day in roster.dates():
            for a1, a2 in combinations(roster.for_date(day), 2):
                violations.extend(check_relationship_constraints(a1, a2, pairwise))

    for constraint in constraints:
        if constraint.constraint_type == RelationshipConstraintType.SAME_DAY_OFF:
            violations.extend(_check_same_day_off(roster, constraint))
        elif constraint.constraint_type == RelationshipConstraintType.MIN_OVERLAP:
            violations.extend(_check_min_overlap(roster, constraint, shifts))
        elif constraint.constraint_type == RelationshipConstraintType.MAX_TOGETHER:
            violations.extend(_check_max_together(roster, constraint, week_start_day))
    return violations
