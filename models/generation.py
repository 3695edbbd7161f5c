"""
Generation parameters, warnings, statistics and results.
"""
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .schedule import ShiftAssignment


class WarningType(Enum):
    UNDERSTAFFED = "UNDERSTAFFED"
    SOFT_CONSTRAINT_VIOLATED = "SOFT_CONSTRAINT_VIOLATED"
    RELATIONSHIP_VIOLATED = "RELATIONSHIP_VIOLATED"
    # Raised only when re-checking a stored roster
    CONSTRAINT_VIOLATED = "CONSTRAINT_VIOLATED"


class Severity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class GenerationParams:
    """
    Inputs of one generation run.

    Attributes:
        venue_id: Venue whose shift definitions are filled
        start_date: First day (inclusive)
        end_date: Last day (inclusive)
        staffing_requirements: Exact staff count per (date, shift id),
            overriding the shift definition's bounds; 0 skips the slot
    """
    venue_id: str
    start_date: date
    end_date: date
    prefer_fixed_staff: bool = True
    balance_hours: bool = True
    minimize_cost: bool = False
    staffing_requirements: Mapping[Tuple[date, str], int] = field(default_factory=dict)

    def __post_init__(self):
        if self.end_date < self.start_date:
            raise ValueError(
                f"end_date {self.end_date} is before start_date {self.start_date}"
            )

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1


@dataclass(frozen=True)
class GenerationWarning:
    """A business condition surfaced to the caller instead of an exception."""
    type: WarningType
    message: str
    date: date
    severity: Severity
    shift_definition_id: Optional[str] = None
    employee_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "message": self.message,
            "date": self.date.isoformat(),
            "severity": self.severity.value,
            "shift_definition_id": self.shift_definition_id,
            "employee_id": self.employee_id,
        }

    def __str__(self) -> str:
        return f"[{self.severity.value.upper()}] {self.type.value} {self.date}: {self.message}"


@dataclass
class EmployeeStats:
    user_id: str
    name: str
    shifts_assigned: int
    hours_assigned: float
    cost_estimated: float
    contract_hours_week: Optional[float]
    utilization_percentage: float


@dataclass
class GenerationStats:
    total_shifts: int = 0
    total_hours: float = 0.0
    total_cost: float = 0.0
    employee_stats: List[EmployeeStats] = field(default_factory=list)
    coverage_percentage: float = 100.0
    soft_constraints_violated: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_shifts": self.total_shifts,
            "total_hours": self.total_hours,
            "total_cost": self.total_cost,
            "coverage_percentage": self.coverage_percentage,
            "soft_constraints_violated": self.soft_constraints_violated,
            "employee_stats": [vars(s).copy() for s in self.employee_stats],
        }


def has_high_severity(warnings: List[GenerationWarning]) -> bool:
    return any(w.severity == Severity.HIGH for w in warnings)


@dataclass
class GenerationResult:
    """
    Output of a generation run.

    `success` is true iff no warning has high severity.
    """
    success: bool
    assignments: List[ShiftAssignment] = field(default_factory=list)
    warnings: List[GenerationWarning] = field(default_factory=list)
    stats: GenerationStats = field(default_factory=GenerationStats)
    optimized: bool = False

    def warnings_of(self, warning_type: WarningType) -> List[GenerationWarning]:
        return [w for w in self.warnings if w.type == warning_type]

    def __str__(self) -> str:
        status = "OK" if self.success else "NEEDS ATTENTION"
        return (
            f"{status} | {len(self.assignments)} assignments | "
            f"{len(self.warnings)} warnings | coverage {self.stats.coverage_percentage:.1f}%"
        )


@dataclass
class ValidationResult:
    """Result of re-checking a persisted roster."""
    is_valid: bool
    warnings: List[GenerationWarning] = field(default_factory=list)
