"""
Data models for the shift scheduling system.
"""
from .employee import Employee, ContractType, DefaultShift, LeaveRequest, LeaveStatus
from .shift import ShiftDefinition, parse_time, minutes_of_day
from .schedule import Roster, Schedule, ScheduleStatus, ShiftAssignment, date_range
from .constraints import (
    EmployeeConstraint,
    EmployeeConstraintType,
    RelationshipConstraint,
    RelationshipConstraintType,
    Preference,
    Violation,
    CONSTRAINT_CONFIG_DEFAULTS,
    parse_constraint_config,
)
from .generation import (
    EmployeeStats,
    GenerationParams,
    GenerationResult,
    GenerationStats,
    GenerationWarning,
    Severity,
    ValidationResult,
    WarningType,
)

__all__ = [
    "Employee", "ContractType", "DefaultShift", "LeaveRequest", "LeaveStatus",
    "ShiftDefinition", "parse_time", "minutes_of_day",
    "Roster", "Schedule", "ScheduleStatus", "ShiftAssignment", "date_range",
    "EmployeeConstraint", "EmployeeConstraintType",
    "RelationshipConstraint", "RelationshipConstraintType", "Preference",
    "Violation", "CONSTRAINT_CONFIG_DEFAULTS", "parse_constraint_config",
    "EmployeeStats", "GenerationParams", "GenerationResult", "GenerationStats",
    "GenerationWarning", "Severity", "ValidationResult", "WarningType",
]
