"""
Data Loader Agent - Loads and parses CSV data files into the repository.

Expected files in the data directory:

    employees.csv                 (required)
    shift_definitions.csv         (required)
    schedules.csv                 (required)
    employee_constraints.csv      (optional)
    relationship_constraints.csv  (optional)
    leave_requests.csv            (optional)
    staffing_requirements.csv     (optional)

List-valued columns (skills, available_days, user_ids, required_skills) are
separated by ";". Constraint configs are JSON objects in the `config` column.
"""
import json
import pandas as pd
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from .base_agent import BaseAgent
from models.constraints import EmployeeConstraint, RelationshipConstraint
from models.employee import ContractType, DefaultShift, Employee, LeaveRequest, LeaveStatus
from models.schedule import Schedule, ScheduleStatus
from models.shift import ShiftDefinition, parse_time
from storage import ScheduleNotFoundError, ScheduleRepository


REQUIRED_FILES = ("employees.csv", "shift_definitions.csv", "schedules.csv")


# =============================================================================
# CELL PARSERS
# =============================================================================

def _text(row: pd.Series, column: str) -> Optional[str]:
    if column not in row.index:
        return None
    value = row[column]
    if pd.isna(value):
        return None
    value = str(value).strip()
    return value or None


def _required(row: pd.Series, column: str) -> str:
    value = _text(row, column)
    if value is None:
        raise ValueError(f"missing {column}")
    return value


def _bool(row: pd.Series, column: str, default: bool = False) -> bool:
    value = _text(row, column)
    if value is None:
        return default
    return value.lower() in ("1", "true", "yes", "y", "si")


def _float(row: pd.Series, column: str) -> Optional[float]:
    value = _text(row, column)
    return float(value) if value is not None else None


def _int(row: pd.Series, column: str, default: Optional[int] = None) -> Optional[int]:
    value = _text(row, column)
    return int(float(value)) if value is not None else default


def _date(row: pd.Series, column: str) -> Optional[date]:
    value = _text(row, column)
    return datetime.strptime(value, "%Y-%m-%d").date() if value is not None else None


def _list(row: pd.Series, column: str) -> List[str]:
    value = _text(row, column)
    if value is None:
        return []
    return [part.strip() for part in value.split(";") if part.strip()]


def _json(row: pd.Series, column: str) -> Dict[str, Any]:
    value = _text(row, column)
    if value is None:
        return {}
    payload = json.loads(value)
    return payload if isinstance(payload, dict) else {}


class DataLoaderAgent(BaseAgent):
    """
    Agent responsible for loading and parsing all CSV data files.

    Responsibilities:
    - Load employees, shift definitions and schedules
    - Load employee and relationship constraints
    - Load leave requests and staffing overrides
    - Store everything in the ScheduleRepository
    """

    def __init__(self, repository: ScheduleRepository, data_dir: str = "data", verbose: bool = True):
        super().__init__("DataLoader", verbose)
        self.repository = repository
        self.data_dir = Path(data_dir)
        self.skipped_rows: Dict[str, int] = {}

    def execute(self, **kwargs) -> Dict[str, Any]:
        """
        Load all data from CSV files into the repository.

        Returns:
            Dictionary with the number of records loaded per file

        Raises:
            FileNotFoundError: A required file is missing
        """
        self.log(f"Starting data loading from {self.data_dir}...")

        for filename in REQUIRED_FILES:
            if not (self.data_dir / filename).exists():
                self.log(f"Required file not found: {self.data_dir / filename}", "error")
                raise FileNotFoundError(self.data_dir / filename)

        self.skipped_rows = {}

        employees = self._load("employees.csv", self._parse_employee)
        self.repository.add_employees(employees)

        shifts = self._load("shift_definitions.csv", self._parse_shift_definition)
        self.repository.add_shift_definitions(shifts)

        schedules = self._load("schedules.csv", self._parse_schedule)
        for schedule in schedules:
            self.repository.add_schedule(schedule)

        constraints = self._load("employee_constraints.csv", self._parse_employee_constraint)
        self.repository.add_employee_constraints(constraints)

        relationships = self._load("relationship_constraints.csv", self._parse_relationship_constraint)
        self.repository.add_relationship_constraints(relationships)

        leave = self._load("leave_requests.csv", self._parse_leave_request)
        self.repository.add_leave_requests(leave)

        staffing = self._load("staffing_requirements.csv", self._parse_staffing_requirement)
        self._store_staffing(staffing)

        result = {
            "employee_count": len(employees),
            "shift_definition_count": len(shifts),
            "schedule_count": len(schedules),
            "employee_constraint_count": len(constraints),
            "relationship_constraint_count": len(relationships),
            "leave_request_count": len(leave),
            "staffing_requirement_count": len(staffing),
            "skipped_rows": dict(self.skipped_rows),
        }

        self.log(
            f"Data loading complete: {len(employees)} employees, {len(shifts)} shifts, "
            f"{len(schedules)} schedules",
            "success",
        )
        return result

    def _load(self, filename: str, parse_row: Callable[[pd.Series], Any]) -> List[Any]:
        """Read one CSV and parse each row, skipping rows that do not parse."""
        filepath = self.data_dir / filename
        if not filepath.exists():
            self.log(f"{filename} not found, nothing loaded", "debug")
            return []

        df = pd.read_csv(filepath, dtype=str)
        df.columns = df.columns.str.strip()

        records = []
        for idx, row in df.iterrows():
            try:
                records.append(parse_row(row))
            except (KeyError, TypeError, ValueError) as e:
                self.skipped_rows[filename] = self.skipped_rows.get(filename, 0) + 1
                self.log(f"Skipping {filename} row {idx + 2}: {e}", "warning")

        self.log(f"Loaded {len(records)} rows from {filename}")
        return records

    # ==================== Row parsers ====================

    def _parse_employee(self, row: pd.Series) -> Employee:
        employee_id = _required(row, "id")
        available_days = frozenset(int(day) for day in _list(row, "available_days"))
        if any(not 0 <= day <= 6 for day in available_days):
            raise ValueError(f"available_days out of range: {sorted(available_days)}")
        return Employee(
            id=employee_id,
            first_name=_text(row, "first_name") or "",
            last_name=_text(row, "last_name") or "",
            is_fixed_staff=_bool(row, "is_fixed_staff"),
            contract_type=ContractType.from_string(_text(row, "contract_type")),
            contract_hours_week=_float(row, "contract_hours_week"),
            venue_id=_text(row, "venue_id"),
            skills=frozenset(_list(row, "skills")),
            can_work_alone=_bool(row, "can_work_alone"),
            can_handle_cash=_bool(row, "can_handle_cash"),
            hourly_rate_base=_float(row, "hourly_rate_base"),
            hourly_rate_extra=_float(row, "hourly_rate_extra"),
            hourly_rate_holiday=_float(row, "hourly_rate_holiday"),
            hourly_rate_night=_float(row, "hourly_rate_night"),
            default_shift=DefaultShift.from_string(_text(row, "default_shift")),
            available_days=available_days,
            work_days_per_week=_int(row, "work_days_per_week"),
        )

    def _parse_shift_definition(self, row: pd.Series) -> ShiftDefinition:
        start = parse_time(_text(row, "start_time"))
        end = parse_time(_text(row, "end_time"))
        if start is None or end is None:
            raise ValueError("start_time and end_time must be HH:MM")
        return ShiftDefinition(
            id=_required(row, "id"),
            venue_id=_required(row, "venue_id"),
            name=_text(row, "name") or _required(row, "id"),
            code=_text(row, "code") or "",
            start_time=start,
            end_time=end,
            break_minutes=_int(row, "break_minutes", 0),
            min_staff=_int(row, "min_staff", 1),
            max_staff=_int(row, "max_staff"),
            required_skills=tuple(_list(row, "required_skills")),
            rate_multiplier=_float(row, "rate_multiplier") or 1.0,
            position=_int(row, "position", 0),
            color=_text(row, "color"),
            is_active=_bool(row, "is_active", default=True),
        )

    def _parse_schedule(self, row: pd.Series) -> Schedule:
        start, end = _date(row, "start_date"), _date(row, "end_date")
        if start is None or end is None:
            raise ValueError("schedule needs start_date and end_date")
        status = _text(row, "status")
        return Schedule(
            id=_required(row, "id"),
            venue_id=_required(row, "venue_id"),
            start_date=start,
            end_date=end,
            status=ScheduleStatus(status.upper()) if status else ScheduleStatus.DRAFT,
        )

    def _parse_employee_constraint(self, row: pd.Series) -> EmployeeConstraint:
        return EmployeeConstraint.from_payload(
            _required(row, "id"),
            _required(row, "constraint_type").upper(),
            _json(row, "config"),
            user_id=_text(row, "user_id"),
            valid_from=_date(row, "valid_from"),
            valid_to=_date(row, "valid_to"),
            priority=_int(row, "priority", 0),
            is_hard_constraint=_bool(row, "is_hard_constraint", default=True),
            venue_id=_text(row, "venue_id"),
        )

    def _parse_relationship_constraint(self, row: pd.Series) -> RelationshipConstraint:
        user_ids = _list(row, "user_ids")
        if len(user_ids) < 2:
            raise ValueError("relationship constraint needs at least two user_ids")
        return RelationshipConstraint.from_payload(
            _required(row, "id"),
            _required(row, "constraint_type").upper(),
            user_ids,
            _json(row, "config"),
            valid_from=_date(row, "valid_from"),
            valid_to=_date(row, "valid_to"),
            priority=_int(row, "priority", 0),
            is_hard_constraint=_bool(row, "is_hard_constraint", default=True),
            venue_id=_text(row, "venue_id"),
        )

    def _parse_leave_request(self, row: pd.Series) -> LeaveRequest:
        start, end = _date(row, "start_date"), _date(row, "end_date")
        if start is None or end is None:
            raise ValueError("leave request needs start_date and end_date")
        status = _text(row, "status")
        return LeaveRequest(
            id=_required(row, "id"),
            user_id=_required(row, "user_id"),
            start_date=start,
            end_date=end,
            status=LeaveStatus(status.upper()) if status else LeaveStatus.PENDING,
        )

    def _parse_staffing_requirement(self, row: pd.Series) -> Tuple[str, date, str, int]:
        target_date = _date(row, "date")
        staff = _int(row, "required_staff")
        if target_date is None or staff is None or staff < 0:
            raise ValueError("staffing requirement needs date and a non-negative required_staff")
        return (_required(row, "schedule_id"), target_date, _required(row, "shift_definition_id"), staff)

    def _store_staffing(self, rows: List[Tuple[str, date, str, int]]) -> None:
        by_schedule: Dict[str, Dict[Tuple[date, str], int]] = {}
        for schedule_id, target_date, shift_id, staff in rows:
            by_schedule.setdefault(schedule_id, {})[(target_date, shift_id)] = staff
        for schedule_id, requirements in by_schedule.items():
            try:
                self.repository.set_staffing_requirements(schedule_id, requirements)
            except ScheduleNotFoundError:
                self.log(f"Staffing requirements for unknown schedule {schedule_id} ignored", "warning")
