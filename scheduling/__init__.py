"""
Shift generation engine.

`generate_shifts` is the entry point: greedy build, local-search swaps,
then statistics over the final roster. Everything here is pure and works on
in-memory collections; loading and persisting belong to the storage layer.
"""
import logging
from typing import Optional, Sequence

from config import SchedulingConfig
from models.constraints import EmployeeConstraint, RelationshipConstraint
from models.employee import Employee, LeaveRequest
from models.generation import GenerationParams, GenerationResult, WarningType, has_high_severity
from models.shift import ShiftDefinition

from .constraints import (
    Availability,
    ShiftEligibility,
    calculate_shift_hours,
    can_employee_work_shift,
    check_employee_availability,
    is_constraint_active,
    matches_shift_type,
    week_bounds,
)
from .scoring import ScoredCandidate, ScoringPolicy, calculate_employee_score, rank_candidates
from .relationships import check_relationship_constraints, check_roster_relationships
from .greedy import (
    GreedyOutcome,
    SolverContext,
    build_assignment,
    generate_shifts_greedy,
    relationship_warnings,
    required_staff,
)
from .optimizer import OptimizationResult, SwapScope, optimize_schedule
from .stats import calculate_stats, validate_schedule

logger = logging.getLogger("ShiftScheduler.engine")


def generate_shifts(schedule_id: str,
                    employees: Sequence[Employee],
                    shift_definitions: Sequence[ShiftDefinition],
                    employee_constraints: Sequence[EmployeeConstraint],
                    relationship_constraints: Sequence[RelationshipConstraint],
                    leave_requests: Sequence[LeaveRequest],
                    params: GenerationParams,
                    config: Optional[SchedulingConfig] = None) -> GenerationResult:
    """
    Generate a roster for one schedule.

    Args:
        schedule_id: Schedule the assignments belong to
        employees: Candidate employees
        shift_definitions: Shift templates; only the venue's active ones are filled
        employee_constraints: Per-employee rules (user_id None = venue-wide)
        relationship_constraints: Rules spanning several employees
        leave_requests: Leave records; approved ones block their dates
        params: Period, venue, scoring switches and staffing overrides
        config: Engine settings (defaults when omitted)

    Returns:
        GenerationResult; `success` is False when any warning is high severity
    """
    config = config or SchedulingConfig()
    context = SolverContext.build(
        schedule_id, employees, shift_definitions, employee_constraints,
        relationship_constraints, leave_requests, params, config,
    )

    outcome = generate_shifts_greedy(context)
    assignments = outcome.roster.to_list()
    optimized = False

    if config.optimizer_max_passes > 0 and assignments:
        optimization = optimize_schedule(
            outcome.roster, context,
            scope=SwapScope.from_string(config.optimizer_scope),
            max_passes=config.optimizer_max_passes,
        )
        assignments = optimization.assignments
        optimized = optimization.improved

    warnings = outcome.warnings
    if optimized:
        # Roster-level relationships follow the swapped assignments
        warnings = [w for w in warnings if w.type != WarningType.RELATIONSHIP_VIOLATED]
        warnings.extend(relationship_warnings(assignments, context))

    stats = calculate_stats(
        assignments, context.employees, params, context.shifts, warnings,
        headroom=config.max_staff_headroom,
        default_contract_hours=config.default_contract_hours,
    )
    result = GenerationResult(
        success=not has_high_severity(warnings),
        assignments=assignments,
        warnings=warnings,
        stats=stats,
        optimized=optimized,
    )
    logger.info(f"Schedule {schedule_id}: {result}")
    return result


__all__ = [
    "generate_shifts",
    "Availability", "ShiftEligibility", "calculate_shift_hours", "can_employee_work_shift",
    "check_employee_availability", "is_constraint_active", "matches_shift_type", "week_bounds",
    "ScoredCandidate", "ScoringPolicy", "calculate_employee_score", "rank_candidates",
    "check_relationship_constraints", "check_roster_relationships",
    "GreedyOutcome", "SolverContext", "build_assignment", "generate_shifts_greedy",
    "relationship_warnings", "required_staff",
    "OptimizationResult", "SwapScope", "optimize_schedule",
    "calculate_stats", "validate_schedule",
]
