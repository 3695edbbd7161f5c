"""
Greedy shift builder.

Walks the period day by day and, within each day, the venue's shift
definitions by descending position. Each slot is filled from the candidates
that pass the hard gates, best score first, until the staffing maximum is
reached. Anything the builder cannot satisfy becomes a warning.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from benchmark import profile_function
from config import SchedulingConfig
from models.constraints import EmployeeConstraint, RelationshipConstraint
from models.employee import Employee, LeaveRequest
from models.generation import GenerationParams, GenerationWarning, Severity, WarningType
from models.schedule import Roster, ShiftAssignment, date_range
from models.shift import ShiftDefinition

from .constraints import calculate_shift_hours, can_employee_work_shift, week_bounds
from .relationships import check_roster_relationships, has_hard_conflict
from .scoring import ScoredCandidate, ScoringPolicy, calculate_employee_score, rank_candidates

logger = logging.getLogger("ShiftScheduler.greedy")


@dataclass
class SolverContext:
    """
    Everything one generation run reads.

    Employee constraints are grouped by user; constraints without a user
    apply to every employee of the venue.
    """
    schedule_id: str
    employees: List[Employee]
    shifts: List[ShiftDefinition]
    constraints_by_user: Dict[Optional[str], List[EmployeeConstraint]]
    relationship_constraints: List[RelationshipConstraint]
    leave_requests: List[LeaveRequest]
    params: GenerationParams
    config: SchedulingConfig = field(default_factory=SchedulingConfig)

    @classmethod
    def build(cls, schedule_id: str,
              employees: Sequence[Employee],
              shifts: Sequence[ShiftDefinition],
              employee_constraints: Sequence[EmployeeConstraint],
              relationship_constraints: Sequence[RelationshipConstraint],
              leave_requests: Sequence[LeaveRequest],
              params: GenerationParams,
              config: Optional[SchedulingConfig] = None) -> "SolverContext":
        grouped: Dict[Optional[str], List[EmployeeConstraint]] = defaultdict(list)
        for constraint in employee_constraints:
            grouped[constraint.user_id].append(constraint)
        return cls(
            schedule_id=schedule_id,
            employees=list(employees),
            shifts=list(shifts),
            constraints_by_user=dict(grouped),
            relationship_constraints=list(relationship_constraints),
            leave_requests=list(leave_requests),
            params=params,
            config=config or SchedulingConfig(),
        )

    def constraints_for(self, employee_id: str) -> List[EmployeeConstraint]:
        return self.constraints_by_user.get(employee_id, []) + self.constraints_by_user.get(None, [])

    @property
    def policy(self) -> ScoringPolicy:
        return ScoringPolicy.from_params(self.params)

    @property
    def effective_leave(self) -> List[LeaveRequest]:
        return self.leave_requests if self.config.respect_leave_requests else []

    @property
    def employees_by_id(self) -> Dict[str, Employee]:
        return {e.id: e for e in self.employees}

    @property
    def shifts_by_id(self) -> Dict[str, ShiftDefinition]:
        return {s.id: s for s in self.shifts}

    def venue_shifts(self) -> List[ShiftDefinition]:
        """Active shifts of the run's venue in fill order."""
        shifts = [
            s for s in self.shifts
            if s.is_active and s.venue_id == self.params.venue_id
        ]
        return sorted(shifts, key=lambda s: (-s.position, s.id))

    def score(self, employee: Employee, shift: ShiftDefinition, target_date: date,
              roster: Roster) -> float:
        return calculate_employee_score(
            employee, shift, target_date,
            self.constraints_for(employee.id),
            roster,
            self.policy,
            week_start_day=self.config.week_start_day,
            default_contract_hours=self.config.default_contract_hours,
            fallback_rate=self.config.fallback_hourly_rate,
        )


@dataclass
class GreedyOutcome:
    roster: Roster
    warnings: List[GenerationWarning] = field(default_factory=list)


def required_staff(shift: ShiftDefinition, target_date: date,
                   overrides: Optional[Mapping[Tuple[date, str], int]] = None,
                   headroom: int = 2) -> Tuple[int, int]:
    """
    Staffing bounds (minimum, maximum) for a shift on a date.

    An override for the (date, shift) pair is an exact target: it replaces
    both bounds, and 0 means the slot is not staffed at all.
    """
    if overrides:
        override = overrides.get((target_date, shift.id))
        if override is not None:
            return override, override
    return shift.min_staff, shift.effective_max_staff(headroom)


def build_assignment(schedule_id: str, employee: Employee, shift: ShiftDefinition,
                     target_date: date, fallback_rate: float = 10.0) -> ShiftAssignment:
    """Place `employee` on `shift` for `target_date`, pricing the hours."""
    hours = calculate_shift_hours(shift)
    rate = employee.hourly_rate_base or fallback_rate
    return ShiftAssignment(
        schedule_id=schedule_id,
        user_id=employee.id,
        shift_definition_id=shift.id,
        date=target_date,
        start_time=shift.start_datetime(target_date),
        end_time=shift.end_datetime(target_date),
        break_minutes=shift.break_minutes,
        venue_id=shift.venue_id,
        hours_scheduled=hours,
        cost_estimated=round(hours * rate * shift.rate_multiplier, 2),
    )


def _work_days_adjustment(employee: Employee, target_date: date, roster: Roster,
                          config: SchedulingConfig) -> Optional[float]:
    """
    Score adjustment from the employee's days-per-week target.

    Returns None when the employee has already worked their days this week.
    Fixed staff still short of their days jump ahead of everyone else.
    """
    if not employee.work_days_per_week:
        return 0.0
    week_start, week_end = week_bounds(target_date, config.week_start_day)
    worked = roster.days_worked_between(employee.id, week_start, week_end)
    remaining = employee.work_days_per_week - worked
    if remaining <= 0:
        return None
    if employee.is_fixed_staff:
        return config.fixed_staff_priority_bonus + config.fixed_staff_day_bonus * remaining
    return 0.0


def _collect_candidates(context: SolverContext, shift: ShiftDefinition, target_date: date,
                        roster: Roster) -> List[ScoredCandidate]:
    candidates = []
    for employee in context.employees:
        adjustment = _work_days_adjustment(employee, target_date, roster, context.config)
        if adjustment is None:
            logger.debug(f"{employee.id} skipped for {shift.code} on {target_date}: weekly days reached")
            continue

        eligibility = can_employee_work_shift(
            employee, shift, target_date,
            context.constraints_for(employee.id),
            roster,
            leave_requests=context.effective_leave,
            week_start_day=context.config.week_start_day,
        )
        if not eligibility:
            logger.debug(f"{employee.id} vetoed for {shift.code} on {target_date}: {eligibility.reason}")
            continue

        score = context.score(employee, shift, target_date, roster) + adjustment
        if eligibility.is_penalized:
            score -= context.config.penalty_points
        candidates.append(ScoredCandidate(employee, score, eligibility.is_penalized))
    return candidates


def _fill_slot(context: SolverContext, shift: ShiftDefinition, target_date: date,
               roster: Roster, warnings: List[GenerationWarning]) -> int:
    minimum, maximum = required_staff(
        shift, target_date,
        context.params.staffing_requirements,
        context.config.max_staff_headroom,
    )
    if maximum <= 0:
        return 0

    ranked = rank_candidates(_collect_candidates(context, shift, target_date, roster))
    placed: List[ShiftAssignment] = []

    for candidate in ranked:
        if len(placed) >= maximum:
            break
        assignment = build_assignment(
            context.schedule_id, candidate.employee, shift, target_date,
            context.config.fallback_hourly_rate,
        )
        if has_hard_conflict(assignment, placed, context.relationship_constraints):
            logger.debug(f"{candidate.employee.id} skipped for {shift.code} on {target_date}: relationship")
            continue

        roster.add(assignment)
        placed.append(assignment)

        if candidate.is_penalized:
            warnings.append(GenerationWarning(
                type=WarningType.SOFT_CONSTRAINT_VIOLATED,
                message=f"{candidate.employee.name} assigned to {shift.name} despite a soft constraint",
                date=target_date,
                severity=Severity.LOW,
                shift_definition_id=shift.id,
                employee_id=candidate.employee.id,
            ))

    if len(placed) < minimum:
        logger.warning(f"{shift.name} on {target_date} understaffed: {len(placed)}/{minimum}")
        warnings.append(GenerationWarning(
            type=WarningType.UNDERSTAFFED,
            message=f"{shift.name}: {len(placed)}/{minimum} staff assigned",
            date=target_date,
            severity=Severity.HIGH,
            shift_definition_id=shift.id,
        ))
    return len(placed)


def relationship_warnings(assignments, context: SolverContext) -> List[GenerationWarning]:
    """Whole-roster relationship violations as warnings; hard ones are high severity."""
    warnings = []
    for violation in check_roster_relationships(
            assignments, context.relationship_constraints,
            context.shifts_by_id, context.config.week_start_day):
        warnings.append(GenerationWarning(
            type=WarningType.RELATIONSHIP_VIOLATED,
            message=f"{violation.constraint_type.value}: {violation.message} "
                    f"({', '.join(violation.employee_ids)})",
            date=violation.date,
            severity=Severity.HIGH if violation.is_hard else Severity.LOW,
        ))
    return warnings


@profile_function
def generate_shifts_greedy(context: SolverContext) -> GreedyOutcome:
    """
    Build a roster for the run described by `context`.

    Returns:
        GreedyOutcome with the roster and the warnings raised while building it
    """
    roster = Roster()
    warnings: List[GenerationWarning] = []
    shifts = context.venue_shifts()
    dates = date_range(context.params.start_date, context.params.end_date)

    logger.info(
        f"Greedy build: {len(dates)} days x {len(shifts)} shifts, "
        f"{len(context.employees)} employees"
    )

    for target_date in dates:
        for shift in shifts:
            _fill_slot(context, shift, target_date, roster, warnings)

    warnings.extend(relationship_warnings(roster, context))

    logger.info(f"Greedy build done: {len(roster)} assignments, {len(warnings)} warnings")
    return GreedyOutcome(roster=roster, warnings=warnings)
