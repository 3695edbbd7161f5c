"""
Constraint models for the shift generation engine.

Each constraint type carries its own typed configuration. Raw payloads coming
from storage are turned into those configs by `parse_constraint_config`, which
fills anything missing or malformed from `CONSTRAINT_CONFIG_DEFAULTS` instead
of failing the run.
"""
from dataclasses import dataclass, field
from datetime import date, time
from enum import Enum
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple, Union

from .shift import parse_time


class EmployeeConstraintType(Enum):
    """Per-employee constraint vocabulary."""
    AVAILABILITY = "AVAILABILITY"
    BLOCKED_DAY = "BLOCKED_DAY"
    MAX_HOURS = "MAX_HOURS"
    MIN_REST = "MIN_REST"
    PREFERRED_SHIFT = "PREFERRED_SHIFT"
    CONSECUTIVE_DAYS = "CONSECUTIVE_DAYS"
    SKILL_REQUIRED = "SKILL_REQUIRED"


class RelationshipConstraintType(Enum):
    """Constraints spanning two or more employees."""
    NEVER_TOGETHER = "NEVER_TOGETHER"
    ALWAYS_TOGETHER = "ALWAYS_TOGETHER"
    SAME_DAY_OFF = "SAME_DAY_OFF"
    MIN_OVERLAP = "MIN_OVERLAP"
    MAX_TOGETHER = "MAX_TOGETHER"


class Preference(Enum):
    PREFER = "PREFER"
    AVOID = "AVOID"


# =============================================================================
# TYPED CONFIGURATIONS
# =============================================================================

@dataclass(frozen=True)
class AvailabilityConfig:
    weekday: Optional[int] = None
    available: bool = True
    start_time: Optional[time] = None
    end_time: Optional[time] = None


@dataclass(frozen=True)
class BlockedDayConfig:
    weekday: Optional[int] = None
    reason: str = "Blocked day"


@dataclass(frozen=True)
class MaxHoursConfig:
    max_hours: float = 40.0


@dataclass(frozen=True)
class MinRestConfig:
    min_rest_hours: float = 11.0


@dataclass(frozen=True)
class PreferredShiftConfig:
    shift_type: str = ""
    preference: Preference = Preference.PREFER


@dataclass(frozen=True)
class ConsecutiveDaysConfig:
    max_days: int = 6


@dataclass(frozen=True)
class SkillRequiredConfig:
    skill: str = ""


@dataclass(frozen=True)
class RelationshipConfig:
    """Relationship types that need no parameters."""


@dataclass(frozen=True)
class MinOverlapConfig:
    min_overlap_minutes: int = 30


@dataclass(frozen=True)
class MaxTogetherConfig:
    max_hours: float = 20.0


ConstraintConfig = Union[
    AvailabilityConfig, BlockedDayConfig, MaxHoursConfig, MinRestConfig,
    PreferredShiftConfig, ConsecutiveDaysConfig, SkillRequiredConfig,
    RelationshipConfig, MinOverlapConfig, MaxTogetherConfig,
]


# Defaults applied when a payload omits a field or carries an unusable value.
CONSTRAINT_CONFIG_DEFAULTS: Dict[Enum, Dict[str, Any]] = {
    EmployeeConstraintType.AVAILABILITY: {
        "weekday": None, "available": True, "start_time": None, "end_time": None,
    },
    EmployeeConstraintType.BLOCKED_DAY: {"weekday": None, "reason": "Blocked day"},
    EmployeeConstraintType.MAX_HOURS: {"max_hours": 40.0},
    EmployeeConstraintType.MIN_REST: {"min_rest_hours": 11.0},
    EmployeeConstraintType.PREFERRED_SHIFT: {
        "shift_type": "", "preference": Preference.PREFER,
    },
    EmployeeConstraintType.CONSECUTIVE_DAYS: {"max_days": 6},
    EmployeeConstraintType.SKILL_REQUIRED: {"skill": ""},
    RelationshipConstraintType.NEVER_TOGETHER: {},
    RelationshipConstraintType.ALWAYS_TOGETHER: {},
    RelationshipConstraintType.SAME_DAY_OFF: {},
    RelationshipConstraintType.MIN_OVERLAP: {"min_overlap_minutes": 30},
    RelationshipConstraintType.MAX_TOGETHER: {"max_hours": 20.0},
}

_CONFIG_CLASSES = {
    EmployeeConstraintType.AVAILABILITY: AvailabilityConfig,
    EmployeeConstraintType.BLOCKED_DAY: BlockedDayConfig,
    EmployeeConstraintType.MAX_HOURS: MaxHoursConfig,
    EmployeeConstraintType.MIN_REST: MinRestConfig,
    EmployeeConstraintType.PREFERRED_SHIFT: PreferredShiftConfig,
    EmployeeConstraintType.CONSECUTIVE_DAYS: ConsecutiveDaysConfig,
    EmployeeConstraintType.SKILL_REQUIRED: SkillRequiredConfig,
    RelationshipConstraintType.NEVER_TOGETHER: RelationshipConfig,
    RelationshipConstraintType.ALWAYS_TOGETHER: RelationshipConfig,
    RelationshipConstraintType.SAME_DAY_OFF: RelationshipConfig,
    RelationshipConstraintType.MIN_OVERLAP: MinOverlapConfig,
    RelationshipConstraintType.MAX_TOGETHER: MaxTogetherConfig,
}

# Payload keys accepted for each field (storage uses camelCase).
_FIELD_ALIASES = {
    "weekday": ("weekday", "day_of_week"),
    "available": ("available",),
    "start_time": ("start_time", "startTime"),
    "end_time": ("end_time", "endTime"),
    "reason": ("reason",),
    "max_hours": ("max_hours", "maxHours"),
    "min_rest_hours": ("min_rest_hours", "minRestHours"),
    "shift_type": ("shift_type", "shiftType"),
    "preference": ("preference",),
    "max_days": ("max_days", "maxDays"),
    "skill": ("skill",),
    "min_overlap_minutes": ("min_overlap_minutes", "minOverlapMinutes"),
}


def _raw_value(payload: Mapping[str, Any], field_name: str) -> Any:
    for key in _FIELD_ALIASES.get(field_name, (field_name,)):
        if key in payload and payload[key] is not None:
            return payload[key]
    if field_name == "weekday":
        return _from_sunday_based(payload.get("dayOfWeek"))
    return None


def _from_sunday_based(value: Any) -> Optional[int]:
    """Stored `dayOfWeek` values count Sunday as 0; weekdays here start on Monday."""
    try:
        day = int(value)
    except (TypeError, ValueError):
        return None
    return (day - 1) % 7 if 0 <= day <= 6 else None


def _coerce(field_name: str, value: Any, default: Any) -> Any:
    """Coerce a raw payload value to the field's type, or return the default."""
    if value is None:
        return default
    try:
        if field_name == "weekday":
            weekday = int(value)
            return weekday if 0 <= weekday <= 6 else default
        if field_name == "available":
            if isinstance(value, str):
                return value.strip().lower() not in ("false", "0", "no")
            return bool(value)
        if field_name in ("start_time", "end_time"):
            return parse_time(value) or default
        if field_name == "preference":
            if isinstance(value, Preference):
                return value
            return Preference(str(value).strip().upper())
        if field_name in ("max_days", "min_overlap_minutes"):
            number = int(value)
            return number if number > 0 else default
        if field_name in ("max_hours", "min_rest_hours"):
            number = float(value)
            return number if number > 0 else default
        return str(value)
    except (TypeError, ValueError):
        return default


def parse_constraint_config(constraint_type: Enum,
                            payload: Optional[Mapping[str, Any]]) -> ConstraintConfig:
    """
    Build the typed configuration for a constraint from a raw payload.

    Args:
        constraint_type: EmployeeConstraintType or RelationshipConstraintType
        payload: Raw mapping as stored (may be None or partial)

    Returns:
        Config dataclass with defaults filled in
    """
    payload = payload or {}
    defaults = CONSTRAINT_CONFIG_DEFAULTS[constraint_type]
    values = {
        name: _coerce(name, _raw_value(payload, name), default)
        for name, default in defaults.items()
    }
    return _CONFIG_CLASSES[constraint_type](**values)


# =============================================================================
# CONSTRAINTS
# =============================================================================

@dataclass(frozen=True)
class EmployeeConstraint:
    """
    A rule attached to one employee (or venue-wide when user_id is None).

    Hard constraints veto an assignment; soft ones only penalize it.
    """
    id: str
    constraint_type: EmployeeConstraintType
    config: ConstraintConfig
    user_id: Optional[str] = None
    valid_from: Optional[date] = None
    valid_to: Optional[date] = None
    priority: int = 0
    is_hard_constraint: bool = True
    venue_id: Optional[str] = None

    @classmethod
    def from_payload(cls, id: str, constraint_type, payload=None, **kwargs) -> "EmployeeConstraint":
        ctype = EmployeeConstraintType(constraint_type)
        return cls(id=id, constraint_type=ctype,
                   config=parse_constraint_config(ctype, payload), **kwargs)

    def __str__(self) -> str:
        hard_soft = "HARD" if self.is_hard_constraint else "SOFT"
        return f"[{hard_soft}] {self.constraint_type.value} ({self.user_id or 'venue'})"


@dataclass(frozen=True)
class RelationshipConstraint:
    """A rule spanning the employees listed in `user_ids`."""
    id: str
    constraint_type: RelationshipConstraintType
    user_ids: FrozenSet[str]
    config: ConstraintConfig = field(default_factory=RelationshipConfig)
    valid_from: Optional[date] = None
    valid_to: Optional[date] = None
    priority: int = 0
    is_hard_constraint: bool = True
    venue_id: Optional[str] = None

    @classmethod
    def from_payload(cls, id: str, constraint_type, user_ids, payload=None,
                     **kwargs) -> "RelationshipConstraint":
        ctype = RelationshipConstraintType(constraint_type)
        return cls(id=id, constraint_type=ctype, user_ids=frozenset(user_ids),
                   config=parse_constraint_config(ctype, payload), **kwargs)

    def involves(self, *employee_ids: str) -> bool:
        return all(emp_id in self.user_ids for emp_id in employee_ids)


@dataclass(frozen=True)
class Violation:
    """
    A relationship constraint violation.

    Attributes:
        constraint_id: Violated constraint
        constraint_type: Its type
        message: Human-readable description
        employee_ids: Employees involved
        date: Date of the violation
        severity: "hard" or "soft", mirrored from the constraint
    """
    constraint_id: str
    constraint_type: RelationshipConstraintType
    message: str
    employee_ids: Tuple[str, ...]
    date: date
    severity: str

    @property
    def is_hard(self) -> bool:
        return self.severity == "hard"

    def __str__(self) -> str:
        return f"[{self.severity.upper()}] {self.constraint_type.value}: {self.message}"
