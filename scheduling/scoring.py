"""
Candidate scoring for the greedy builder and the swap optimizer.

Every candidate that survives the hard gates starts from a base score and
collects additive bonuses and maluses. Higher is better.
"""
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Sequence

from models.constraints import EmployeeConstraint, EmployeeConstraintType, Preference
from models.employee import Employee
from models.schedule import Roster
from models.shift import ShiftDefinition

from .constraints import is_constraint_active, matches_shift_type, week_bounds


BASE_SCORE = 100.0
FIXED_STAFF_BONUS = 20.0
PREFERRED_MATCH_BONUS = 30.0
PREFERRED_MISS_MALUS = 20.0
AVOIDED_MATCH_MALUS = 40.0
BALANCE_CEILING = 30.0
BALANCE_SLOPE = 0.3
COST_CAP = 30.0
SKILL_BONUS = 10.0


@dataclass(frozen=True)
class ScoringPolicy:
    """Which optional scoring terms a run switches on."""
    prefer_fixed_staff: bool = True
    balance_hours: bool = True
    minimize_cost: bool = False

    @classmethod
    def from_params(cls, params) -> "ScoringPolicy":
        return cls(
            prefer_fixed_staff=params.prefer_fixed_staff,
            balance_hours=params.balance_hours,
            minimize_cost=params.minimize_cost,
        )


@dataclass(frozen=True)
class ScoredCandidate:
    employee: Employee
    score: float
    is_penalized: bool = False

    def __str__(self) -> str:
        flag = " (penalized)" if self.is_penalized else ""
        return f"{self.employee.id}: {self.score:.1f}{flag}"


def calculate_employee_score(employee: Employee,
                             shift: ShiftDefinition,
                             target_date: date,
                             constraints: Sequence[EmployeeConstraint],
                             existing_assignments,
                             policy: ScoringPolicy = ScoringPolicy(),
                             week_start_day: int = 0,
                             default_contract_hours: float = 40.0,
                             fallback_rate: float = 10.0) -> float:
    """
    Score an eligible employee for a shift.

    Components:
    - Fixed staff bonus (when the policy prefers fixed staff)
    - Shift preferences, hard or soft: PREFER match/miss, AVOID match
    - Hour balancing: employees far below their contract score higher
    - Cost: cheaper employees score higher when minimizing cost
    - Skill coverage of the shift's required skills
    """
    score = BASE_SCORE

    if policy.prefer_fixed_staff and employee.is_fixed_staff:
        score += FIXED_STAFF_BONUS

    for constraint in constraints:
        if constraint.constraint_type != EmployeeConstraintType.PREFERRED_SHIFT:
            continue
        if not is_constraint_active(constraint, target_date):
            continue
        matches = matches_shift_type(constraint.config.shift_type, shift)
        if constraint.config.preference == Preference.PREFER:
            score += PREFERRED_MATCH_BONUS if matches else -PREFERRED_MISS_MALUS
        elif matches:
            score -= AVOIDED_MATCH_MALUS

    if policy.balance_hours:
        roster = Roster.coerce(existing_assignments)
        week_start, week_end = week_bounds(target_date, week_start_day)
        week_hours = roster.hours_between(employee.id, week_start, week_end)
        contract_hours = employee.contract_hours_week or default_contract_hours
        utilization = week_hours / contract_hours * 100
        score += max(0.0, BALANCE_CEILING - utilization * BALANCE_SLOPE)

    if policy.minimize_cost:
        score -= min(COST_CAP, employee.hourly_rate_base or fallback_rate)

    if shift.required_skills:
        matching = sum(1 for skill in shift.required_skills if skill in employee.skills)
        score += SKILL_BONUS * matching / len(shift.required_skills)

    return score


def rank_candidates(candidates: Iterable[ScoredCandidate]) -> List[ScoredCandidate]:
    """Best first; equal scores fall back to employee id so runs are repeatable."""
    return sorted(candidates, key=lambda c: (-c.score, c.employee.id))
