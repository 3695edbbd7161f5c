"""
Roster statistics and read-back validation.
"""
import logging
import math
from collections import defaultdict
from datetime import date
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from models.employee import Employee
from models.generation import (
    EmployeeStats,
    GenerationParams,
    GenerationStats,
    GenerationWarning,
    Severity,
    ValidationResult,
    WarningType,
)
from models.schedule import Roster, date_range
from models.shift import ShiftDefinition

from .greedy import required_staff

logger = logging.getLogger("ShiftScheduler.stats")


def calculate_stats(assignments,
                    employees: Sequence[Employee],
                    params: GenerationParams,
                    shifts: Sequence[ShiftDefinition],
                    warnings: Sequence[GenerationWarning] = (),
                    headroom: int = 2,
                    default_contract_hours: float = 40.0) -> GenerationStats:
    """
    Summarize a roster.

    Utilization compares scheduled hours with contract hours over the number
    of (started) weeks in the period. Coverage counts, for each (date, shift)
    pair, at most the required number of staff.
    """
    roster = Roster.coerce(assignments)
    weeks = max(1, math.ceil(params.days / 7))

    employee_stats = []
    for employee in employees:
        placed = roster.for_employee(employee.id)
        if not placed:
            continue
        hours = sum(a.hours_scheduled for a in placed)
        contract = employee.contract_hours_week or default_contract_hours
        employee_stats.append(EmployeeStats(
            user_id=employee.id,
            name=employee.name,
            shifts_assigned=len(placed),
            hours_assigned=round(hours, 2),
            cost_estimated=round(sum(a.cost_estimated for a in placed), 2),
            contract_hours_week=employee.contract_hours_week,
            utilization_percentage=round(hours / (contract * weeks) * 100, 1),
        ))
    employee_stats.sort(key=lambda s: (-s.hours_assigned, s.user_id))

    required_total = 0
    covered_total = 0
    venue_shifts = [s for s in shifts if s.is_active and s.venue_id == params.venue_id]
    for target_date in date_range(params.start_date, params.end_date):
        for shift in venue_shifts:
            minimum, _ = required_staff(shift, target_date, params.staffing_requirements, headroom)
            if minimum <= 0:
                continue
            required_total += minimum
            covered_total += min(len(roster.for_slot(target_date, shift.id)), minimum)

    coverage = covered_total / required_total * 100 if required_total else 100.0
    summary = roster.summary()

    return GenerationStats(
        total_shifts=summary["total_assignments"],
        total_hours=round(summary["total_hours"], 2),
        total_cost=round(summary["total_cost"], 2),
        employee_stats=employee_stats,
        coverage_percentage=round(coverage, 1),
        soft_constraints_violated=sum(
            1 for w in warnings if w.type == WarningType.SOFT_CONSTRAINT_VIOLATED
        ),
    )


def validate_schedule(assignments,
                      shifts: Sequence[ShiftDefinition],
                      start_date: date,
                      end_date: date,
                      staffing_requirements: Optional[Mapping[Tuple[date, str], int]] = None,
                      headroom: int = 2) -> ValidationResult:
    """
    Re-derive understaffing from a stored roster without regenerating it.

    Every active shift in `shifts` is checked on every date of the period.
    """
    roster = Roster.coerce(assignments)
    warnings: List[GenerationWarning] = []

    counts: Dict[Tuple[date, str], int] = defaultdict(int)
    for assignment in roster:
        counts[assignment.slot] += 1

    active = sorted((s for s in shifts if s.is_active), key=lambda s: (-s.position, s.id))
    for target_date in date_range(start_date, end_date):
        for shift in active:
            minimum, _ = required_staff(shift, target_date, staffing_requirements, headroom)
            assigned = counts[(target_date, shift.id)]
            if assigned < minimum:
                warnings.append(GenerationWarning(
                    type=WarningType.UNDERSTAFFED,
                    message=f"{shift.name}: {assigned}/{minimum} staff assigned",
                    date=target_date,
                    severity=Severity.HIGH,
                    shift_definition_id=shift.id,
                ))

    if warnings:
        logger.info(f"Validation found {len(warnings)} understaffed slots")
    return ValidationResult(is_valid=not warnings, warnings=warnings)
