"""
Local-search improvement over a greedy roster.

Tries swapping the employees of two assignments and keeps the swap when
both new placements are still legal, the moved employees' next-day shifts
still get their rest, and the pair scores higher than before.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from itertools import combinations
from typing import Dict, List, Optional, Sequence, Tuple

from benchmark import profile_function
from models.employee import Employee
from models.schedule import Roster, ShiftAssignment
from models.shift import ShiftDefinition

from .constraints import can_employee_work_shift
from .greedy import SolverContext, build_assignment
from .relationships import has_hard_conflict

logger = logging.getLogger("ShiftScheduler.optimizer")


class SwapScope(Enum):
    """Which assignment pairs are considered for a swap."""
    SAME_SHIFT = "same_shift"
    SAME_DATE = "same_date"

    @classmethod
    def from_string(cls, value) -> "SwapScope":
        if isinstance(value, SwapScope):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            logger.warning(f"Unknown optimizer scope {value!r}, using same_shift")
            return cls.SAME_SHIFT


@dataclass
class OptimizationResult:
    assignments: List[ShiftAssignment] = field(default_factory=list)
    improved: bool = False
    swaps: int = 0


def _swap_groups(roster: Roster, scope: SwapScope) -> List[List[int]]:
    groups: Dict[Tuple, List[int]] = defaultdict(list)
    for index, assignment in enumerate(roster.to_list()):
        key = assignment.slot if scope == SwapScope.SAME_SHIFT else (assignment.date,)
        groups[key].append(index)
    return [groups[key] for key in sorted(groups)]


class _SwapEvaluator:
    """Scores placements of one context against a roster with two positions held out."""

    def __init__(self, context: SolverContext, roster: Roster):
        self.context = context
        self.roster = roster
        self.employees = context.employees_by_id
        self.shifts = context.shifts_by_id

    def placement_score(self, employee: Employee, shift: ShiftDefinition,
                        assignment: ShiftAssignment, exclude: Tuple[int, int]) -> Optional[float]:
        """Score of `employee` on the slot of `assignment`, or None if not allowed."""
        context = self.context
        eligibility = can_employee_work_shift(
            employee, shift, assignment.date,
            context.constraints_for(employee.id),
            self.roster,
            leave_requests=context.effective_leave,
            week_start_day=context.config.week_start_day,
            exclude=exclude,
        )
        if not eligibility:
            return None
        score = context.score(employee, shift, assignment.date, self._without(exclude))
        if eligibility.is_penalized:
            score -= context.config.penalty_points
        return score

    def _without(self, exclude: Sequence[int]) -> Roster:
        skip = set(exclude)
        return Roster(a for i, a in enumerate(self.roster.to_list()) if i not in skip)

    def _next_day_still_allowed(self, trial: Roster, placed: ShiftAssignment) -> bool:
        """Re-check the moved employee's next-day shifts, whose rest depends on the new end time."""
        context = self.context
        employee = self.employees[placed.user_id]
        next_day = placed.date + timedelta(days=1)
        for index, assignment in enumerate(trial.to_list()):
            if assignment.user_id != employee.id or assignment.date != next_day:
                continue
            shift = self.shifts.get(assignment.shift_definition_id)
            if shift is None:
                continue
            eligibility = can_employee_work_shift(
                employee, shift, next_day,
                context.constraints_for(employee.id),
                trial,
                leave_requests=context.effective_leave,
                week_start_day=context.config.week_start_day,
                exclude=(index,),
            )
            if not eligibility:
                logger.debug(f"Swap rejected: {employee.id} on {next_day}: {eligibility.reason}")
                return False
        return True

    def try_swap(self, i: int, j: int) -> bool:
        roster = self.roster
        ai, aj = roster.get(i), roster.get(j)
        if ai.user_id == aj.user_id:
            return False

        emp_i = self.employees.get(ai.user_id)
        emp_j = self.employees.get(aj.user_id)
        shift_i = self.shifts.get(ai.shift_definition_id)
        shift_j = self.shifts.get(aj.shift_definition_id)
        if not (emp_i and emp_j and shift_i and shift_j):
            return False

        exclude = (i, j)
        old_i = self.placement_score(emp_i, shift_i, ai, exclude)
        old_j = self.placement_score(emp_j, shift_j, aj, exclude)
        if old_i is None or old_j is None:
            return False

        new_i = self.placement_score(emp_j, shift_i, ai, exclude)
        if new_i is None:
            return False
        new_j = self.placement_score(emp_i, shift_j, aj, exclude)
        if new_j is None:
            return False

        if new_i + new_j <= old_i + old_j:
            return False

        fallback_rate = self.context.config.fallback_hourly_rate
        swapped_i = build_assignment(ai.schedule_id, emp_j, shift_i, ai.date, fallback_rate)
        swapped_j = build_assignment(aj.schedule_id, emp_i, shift_j, aj.date, fallback_rate)

        relationships = self.context.relationship_constraints
        for placed, other in ((swapped_i, swapped_j), (swapped_j, swapped_i)):
            neighbours = roster.for_slot(placed.date, placed.shift_definition_id, exclude)
            if other.slot == placed.slot:
                neighbours.append(other)
            if has_hard_conflict(placed, neighbours, relationships):
                return False

        trial = Roster(roster.to_list())
        trial.replace(i, swapped_i)
        trial.replace(j, swapped_j)
        for placed in (swapped_i, swapped_j):
            if not self._next_day_still_allowed(trial, placed):
                return False

        roster.replace(i, swapped_i)
        roster.replace(j, swapped_j)
        logger.debug(
            f"Swapped {emp_i.id} <-> {emp_j.id} on {ai.date} "
            f"({old_i + old_j:.1f} -> {new_i + new_j:.1f})"
        )
        return True


@profile_function
def optimize_schedule(assignments,
                      context: SolverContext,
                      scope: SwapScope = SwapScope.SAME_SHIFT,
                      max_passes: int = 1) -> OptimizationResult:
    """
    Improve a roster with pairwise employee swaps.

    Args:
        assignments: Roster or list of assignments from the greedy builder
        context: Solver context of the run that produced them
        scope: SAME_SHIFT swaps within a slot, SAME_DATE across a day's shifts
        max_passes: Passes over all pairs; stops early after a pass with no swap

    Returns:
        OptimizationResult with the (possibly) swapped assignments
    """
    roster = Roster(list(assignments))
    scope = SwapScope.from_string(scope)
    evaluator = _SwapEvaluator(context, roster)
    groups = _swap_groups(roster, scope)
    swaps = 0

    for pass_number in range(1, max_passes + 1):
        pass_swaps = 0
        for group in groups:
            for i, j in combinations(group, 2):
                if evaluator.try_swap(i, j):
                    pass_swaps += 1
        swaps += pass_swaps
        logger.info(f"Optimizer pass {pass_number} ({scope.value}): {pass_swaps} swaps")
        if pass_swaps == 0:
            break

    return OptimizationResult(assignments=roster.to_list(), improved=swaps > 0, swaps=swaps)
