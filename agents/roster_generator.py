"""
Roster Generator Agent - Exports schedules to Excel format.
"""
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Border, Side, Alignment
from openpyxl.utils import get_column_letter

from .base_agent import BaseAgent
from models.employee import Employee
from models.generation import GenerationResult, GenerationWarning, Severity, ValidationResult
from models.schedule import Schedule, ShiftAssignment
from models.shift import ShiftDefinition
from scheduling import required_staff


# Fallback colours for shifts that carry none, in position order
SHIFT_PALETTE = ("C6EFCE", "FFEB9C", "FCE4D6", "DDEBF7", "E4DFEC", "FFF2CC")
DAY_OFF = "/"


def _solid(color: str) -> PatternFill:
    color = color.lstrip("#").upper()
    return PatternFill(start_color=color, end_color=color, fill_type="solid")


class RosterGeneratorAgent(BaseAgent):
    """
    Agent responsible for generating roster output files.

    Responsibilities:
    - Export the roster grid (employees x dates) to Excel
    - Generate an employee hours summary
    - Report coverage per date and shift
    - List generation and validation warnings
    """

    def __init__(self, verbose: bool = True, headroom: int = 2):
        super().__init__("RosterGenerator", verbose)
        self.headroom = headroom

        # Style definitions
        self.header_fill = _solid("1F4E79")
        self.header_font = Font(color="FFFFFF", bold=True, size=11)
        self.weekend_fill = _solid("FFF2CC")
        self.day_off_fill = _solid("D9D9D9")
        self.understaffed_font = Font(color="8B0000", bold=True)
        self.thin_border = Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )

    def execute(self,
                schedule: Schedule,
                assignments: Sequence[ShiftAssignment],
                employees: Sequence[Employee],
                shifts: Sequence[ShiftDefinition],
                output_path: str = "output",
                result: Optional[GenerationResult] = None,
                validation: Optional[ValidationResult] = None,
                staffing_requirements: Optional[Dict] = None,
                **kwargs) -> str:
        """
        Generate Excel roster file.

        Args:
            schedule: The schedule being exported
            assignments: Its assignments
            employees: Employees to list (everyone gets a row, scheduled or not)
            shifts: Shift definitions referenced by the assignments
            output_path: Directory for output files
            result: Generation result, for its warnings
            validation: Validation result, for its warnings
            staffing_requirements: Exact staff counts per (date, shift id)

        Returns:
            Path to the generated file
        """
        self.log(f"Generating roster for schedule {schedule.id} ({schedule.venue_id})...")

        output_dir = Path(output_path)
        output_dir.mkdir(parents=True, exist_ok=True)
        filepath = output_dir / f"roster_{schedule.venue_id}_{schedule.id}_{schedule.start_date}.xlsx"

        shifts_by_id = {s.id: s for s in shifts}
        fills = self._shift_fills(shifts)

        wb = Workbook()
        self._create_roster_sheet(wb, schedule, assignments, employees, shifts_by_id, fills)
        self._create_employee_summary_sheet(wb, assignments, employees)
        self._create_coverage_sheet(wb, schedule, assignments, shifts, staffing_requirements)

        warnings: List[GenerationWarning] = []
        if result:
            warnings.extend(result.warnings)
        if validation:
            generated = set(warnings)
            warnings.extend(w for w in validation.warnings if w not in generated)
        self._create_warnings_sheet(wb, warnings)

        wb.save(filepath)

        self.log(f"Roster saved to {filepath}", "success")
        return str(filepath)

    def _shift_fills(self, shifts: Sequence[ShiftDefinition]) -> Dict[str, PatternFill]:
        fills = {}
        ordered = sorted(shifts, key=lambda s: (-s.position, s.id))
        for i, shift in enumerate(ordered):
            fills[shift.id] = _solid(shift.color or SHIFT_PALETTE[i % len(SHIFT_PALETTE)])
        return fills

    def _write_header(self, ws, headers: Sequence[str], row: int = 1) -> None:
        for col, header in enumerate(headers, 1):
            cell = ws.cell(row=row, column=col, value=header)
            cell.fill = self.header_fill
            cell.font = self.header_font
            cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
            cell.border = self.thin_border

    def _create_roster_sheet(self, wb: Workbook, schedule: Schedule,
                             assignments: Sequence[ShiftAssignment],
                             employees: Sequence[Employee],
                             shifts_by_id: Dict[str, ShiftDefinition],
                             fills: Dict[str, PatternFill]) -> None:
        """Create the main roster sheet."""
        ws = wb.active
        ws.title = "Roster"

        dates = schedule.get_dates_in_range()
        headers = ["ID", "Employee Name", "Staff"] + [
            d.strftime("%a\n%d/%m") for d in dates
        ] + ["Total Hours"]
        self._write_header(ws, headers)

        ws.column_dimensions['A'].width = 10
        ws.column_dimensions['B'].width = 22
        ws.column_dimensions['C'].width = 8
        for col in range(4, 4 + len(dates)):
            ws.column_dimensions[get_column_letter(col)].width = 8
        ws.column_dimensions[get_column_letter(4 + len(dates))].width = 12

        by_employee_date: Dict[tuple, List[ShiftAssignment]] = defaultdict(list)
        for a in assignments:
            by_employee_date[(a.user_id, a.date)].append(a)

        row = 2
        for employee in sorted(employees, key=lambda e: (not e.is_fixed_staff, e.name, e.id)):
            ws.cell(row=row, column=1, value=employee.id).border = self.thin_border
            ws.cell(row=row, column=2, value=employee.name).border = self.thin_border
            ws.cell(row=row, column=3, value="Fixed" if employee.is_fixed_staff else "Extra").border = self.thin_border

            total_hours = 0.0
            for col, target_date in enumerate(dates, 4):
                placed = by_employee_date.get((employee.id, target_date), [])
                if placed:
                    assignment = placed[0]
                    shift = shifts_by_id.get(assignment.shift_definition_id)
                    code = shift.code if shift and shift.code else assignment.shift_definition_id
                    cell = ws.cell(row=row, column=col, value=code)
                    cell.fill = fills.get(assignment.shift_definition_id, PatternFill())
                    total_hours += sum(a.hours_scheduled for a in placed)
                else:
                    cell = ws.cell(row=row, column=col, value=DAY_OFF)
                    cell.fill = self.weekend_fill if target_date.weekday() >= 5 else self.day_off_fill

                cell.alignment = Alignment(horizontal="center")
                cell.border = self.thin_border

            hours_cell = ws.cell(row=row, column=4 + len(dates), value=round(total_hours, 2))
            hours_cell.alignment = Alignment(horizontal="center")
            hours_cell.border = self.thin_border
            row += 1

        # Legend
        legend_row = row + 2
        ws.cell(row=legend_row, column=1, value="Legend:").font = Font(bold=True)
        ordered = sorted(shifts_by_id.values(), key=lambda s: (-s.position, s.id))
        for i, shift in enumerate(ordered):
            cell = ws.cell(row=legend_row + 1 + i, column=1, value=shift.code or shift.id)
            cell.fill = fills[shift.id]
            cell.alignment = Alignment(horizontal="center")
            ws.cell(
                row=legend_row + 1 + i, column=2,
                value=f"{shift.name} ({shift.start_time:%H:%M}-{shift.end_time:%H:%M})",
            )
        off_row = legend_row + 1 + len(ordered)
        ws.cell(row=off_row, column=1, value=DAY_OFF).fill = self.day_off_fill
        ws.cell(row=off_row, column=2, value="Day Off")

    def _create_employee_summary_sheet(self, wb: Workbook,
                                       assignments: Sequence[ShiftAssignment],
                                       employees: Sequence[Employee]) -> None:
        """Create employee summary sheet."""
        ws = wb.create_sheet("Employee Summary")
        headers = ["ID", "Name", "Staff", "Shifts", "Hours", "Cost", "Contract h/week"]
        self._write_header(ws, headers)

        by_employee: Dict[str, List[ShiftAssignment]] = defaultdict(list)
        for a in assignments:
            by_employee[a.user_id].append(a)

        rows = []
        for employee in employees:
            placed = by_employee.get(employee.id, [])
            rows.append([
                employee.id,
                employee.name,
                "Fixed" if employee.is_fixed_staff else "Extra",
                len(placed),
                round(sum(a.hours_scheduled for a in placed), 2),
                round(sum(a.cost_estimated for a in placed), 2),
                employee.contract_hours_week,
            ])
        rows.sort(key=lambda r: (-r[4], r[0]))

        for row, data in enumerate(rows, 2):
            for col, value in enumerate(data, 1):
                ws.cell(row=row, column=col, value=value).border = self.thin_border

        for col in range(1, len(headers) + 1):
            ws.column_dimensions[get_column_letter(col)].width = 16

    def _create_coverage_sheet(self, wb: Workbook, schedule: Schedule,
                               assignments: Sequence[ShiftAssignment],
                               shifts: Sequence[ShiftDefinition],
                               staffing_requirements: Optional[Dict]) -> None:
        """Create per-date, per-shift coverage sheet."""
        ws = wb.create_sheet("Coverage")
        headers = ["Date", "Day", "Shift", "Assigned", "Required", "Status"]
        self._write_header(ws, headers)

        counts: Dict[tuple, int] = defaultdict(int)
        for a in assignments:
            counts[a.slot] += 1

        active = sorted((s for s in shifts if s.is_active), key=lambda s: (-s.position, s.id))
        row = 2
        for target_date in schedule.get_dates_in_range():
            for shift in active:
                minimum, _ = required_staff(shift, target_date, staffing_requirements, self.headroom)
                assigned = counts[(target_date, shift.id)]
                status = "OK" if assigned >= minimum else "Understaffed"
                data = [
                    target_date.strftime("%Y-%m-%d"),
                    target_date.strftime("%A"),
                    shift.name,
                    assigned,
                    minimum,
                    status,
                ]
                for col, value in enumerate(data, 1):
                    cell = ws.cell(row=row, column=col, value=value)
                    cell.border = self.thin_border
                    if target_date.weekday() >= 5:
                        cell.fill = self.weekend_fill
                if assigned < minimum:
                    ws.cell(row=row, column=6).font = self.understaffed_font
                row += 1

        for col, width in zip("ABCDEF", (12, 12, 18, 10, 10, 14)):
            ws.column_dimensions[col].width = width

    def _create_warnings_sheet(self, wb: Workbook, warnings: Sequence[GenerationWarning]) -> None:
        """Create warnings report sheet."""
        ws = wb.create_sheet("Warnings")
        ws.cell(row=1, column=1, value="GENERATION WARNINGS").font = Font(bold=True, size=14)

        high = sum(1 for w in warnings if w.severity == Severity.HIGH)
        ws.cell(row=3, column=1, value="Total warnings:")
        ws.cell(row=3, column=2, value=len(warnings))
        ws.cell(row=4, column=1, value="High severity:")
        high_cell = ws.cell(row=4, column=2, value=high)
        high_cell.font = Font(color="8B0000" if high else "006400", bold=True)

        headers = ["Date", "Type", "Severity", "Shift", "Employee", "Message"]
        self._write_header(ws, headers, row=6)
        for row, warning in enumerate(sorted(warnings, key=lambda w: (w.date, w.type.value)), 7):
            data = [
                warning.date.strftime("%Y-%m-%d"),
                warning.type.value,
                warning.severity.value,
                warning.shift_definition_id or "",
                warning.employee_id or "",
                warning.message,
            ]
            for col, value in enumerate(data, 1):
                ws.cell(row=row, column=col, value=value).border = self.thin_border

        for col, width in zip("ABCDEF", (12, 26, 10, 14, 14, 60)):
            ws.column_dimensions[col].width = width
