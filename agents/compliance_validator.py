"""
Compliance Validator Agent - Re-checks a stored roster against the scheduling rules.
"""
from typing import List, Optional

from .base_agent import BaseAgent
from config import SchedulingConfig
from models.generation import (
    GenerationParams,
    GenerationWarning,
    Severity,
    ValidationResult,
    WarningType,
    has_high_severity,
)
from models.schedule import Roster, Schedule
from scheduling import SolverContext, can_employee_work_shift, relationship_warnings, validate_schedule
from storage import ScheduleRepository


class ComplianceValidatorAgent(BaseAgent):
    """
    Agent responsible for validating a persisted schedule.

    Responsibilities:
    - Report understaffed shifts
    - Re-run the hard gates on every stored assignment
    - Check relationship constraints across the roster

    Nothing is regenerated; the roster is read back as stored.
    """

    def __init__(self, repository: ScheduleRepository,
                 config: Optional[SchedulingConfig] = None, verbose: bool = True):
        super().__init__("ComplianceValidator", verbose)
        self.repository = repository
        self.config = config or SchedulingConfig()

    def execute(self, schedule_id: str, **kwargs) -> ValidationResult:
        """
        Validate a stored schedule.

        Args:
            schedule_id: Schedule to validate

        Returns:
            ValidationResult; invalid when any warning is high severity

        Raises:
            ScheduleNotFoundError: Unknown schedule id
        """
        schedule = self.repository.get_schedule(schedule_id)
        assignments = self.repository.load_assignments(schedule_id)
        context = self._build_context(schedule)

        self.log(f"Validating schedule {schedule_id}: {len(assignments)} assignments")

        coverage = validate_schedule(
            assignments, context.shifts, schedule.start_date, schedule.end_date,
            context.params.staffing_requirements, self.config.max_staff_headroom,
        )
        warnings: List[GenerationWarning] = list(coverage.warnings)
        warnings.extend(self._check_assignment_rules(Roster(assignments), context))
        warnings.extend(relationship_warnings(assignments, context))

        result = ValidationResult(is_valid=not has_high_severity(warnings), warnings=warnings)

        if result.is_valid:
            self.log(f"Schedule is valid ({len(warnings)} low-severity warnings)", "success")
        else:
            high = sum(1 for w in warnings if w.severity == Severity.HIGH)
            self.log(f"Found {high} blocking issues, {len(warnings) - high} minor warnings", "warning")
        return result

    def _build_context(self, schedule: Schedule) -> SolverContext:
        venue_id = schedule.venue_id
        employees = self.repository.employees_for_venue(venue_id)
        leave = self.repository.approved_leave_overlapping(
            schedule.start_date, schedule.end_date, [e.id for e in employees],
        )
        params = GenerationParams(
            venue_id=venue_id,
            start_date=schedule.start_date,
            end_date=schedule.end_date,
            staffing_requirements=self.repository.staffing_requirements(schedule.id),
        )
        return SolverContext.build(
            schedule.id,
            employees,
            self.repository.shift_definitions_for_venue(venue_id),
            self.repository.employee_constraints_for_venue(venue_id),
            self.repository.relationship_constraints_for_venue(venue_id),
            leave,
            params,
            self.config,
        )

    def _check_assignment_rules(self, roster: Roster, context: SolverContext) -> List[GenerationWarning]:
        """Each stored assignment must still pass the hard gates against the rest of the roster."""
        warnings = []
        employees = context.employees_by_id
        shifts = context.shifts_by_id

        for index, assignment in enumerate(roster.to_list()):
            employee = employees.get(assignment.user_id)
            shift = shifts.get(assignment.shift_definition_id)
            if employee is None or shift is None:
                missing = "employee" if employee is None else "shift definition"
                warnings.append(GenerationWarning(
                    type=WarningType.CONSTRAINT_VIOLATED,
                    message=f"Assignment refers to an unknown {missing}",
                    date=assignment.date,
                    severity=Severity.HIGH,
                    shift_definition_id=assignment.shift_definition_id,
                    employee_id=assignment.user_id,
                ))
                continue

            eligibility = can_employee_work_shift(
                employee, shift, assignment.date,
                context.constraints_for(employee.id),
                roster,
                leave_requests=context.effective_leave,
                week_start_day=self.config.week_start_day,
                exclude=(index,),
            )
            if not eligibility:
                warnings.append(GenerationWarning(
                    type=WarningType.CONSTRAINT_VIOLATED,
                    message=f"{employee.name} on {shift.name}: {eligibility.reason}",
                    date=assignment.date,
                    severity=Severity.HIGH,
                    shift_definition_id=shift.id,
                    employee_id=employee.id,
                ))
            elif eligibility.is_penalized:
                warnings.append(GenerationWarning(
                    type=WarningType.SOFT_CONSTRAINT_VIOLATED,
                    message=f"{employee.name} on {shift.name} breaks a soft constraint",
                    date=assignment.date,
                    severity=Severity.LOW,
                    shift_definition_id=shift.id,
                    employee_id=employee.id,
                ))

        return warnings
