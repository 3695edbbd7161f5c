from pathlib import Path

from openpyxl import load_workbook

from agents import RosterGeneratorAgent
from models.schedule import Schedule
from scheduling import validate_schedule
from tests.builders import MONDAY, day, make_employee, make_params, make_shift, run


def export(tmp_path, staffing=None):
    employees = [make_employee("a", last_name="Rossi", is_fixed_staff=True), make_employee("b")]
    shifts = [
        make_shift("mattina", "08:00", "16:00", min_staff=1, max_staff=1, position=2),
        make_shift("sera", "16:00", "00:00", min_staff=2, max_staff=2, position=1, color="#ffeb9c"),
    ]
    schedule = Schedule("w51", "v1", MONDAY, day(1))
    result = run(employees, shifts, params=make_params(MONDAY, day(1), staffing_requirements=staffing or {}))
    validation = validate_schedule(result.assignments, shifts, MONDAY, day(1), staffing)

    path = RosterGeneratorAgent(verbose=False).execute(
        schedule=schedule,
        assignments=result.assignments,
        employees=employees,
        shifts=shifts,
        output_path=str(tmp_path),
        result=result,
        validation=validation,
        staffing_requirements=staffing,
    )
    return path, result


def test_workbook_has_all_sheets(tmp_path):
    path, _ = export(tmp_path)

    assert Path(path).name == "roster_v1_w51_2024-12-16.xlsx"
    wb = load_workbook(path)
    assert wb.sheetnames == ["Roster", "Employee Summary", "Coverage", "Warnings"]


def test_roster_grid_shows_codes_and_days_off(tmp_path):
    path, result = export(tmp_path)
    ws = load_workbook(path)["Roster"]

    assert ws.cell(row=1, column=4).value == "Mon\n16/12"
    # Fixed staff first
    assert ws.cell(row=2, column=1).value == "a"
    codes = {ws.cell(row=row, column=4).value for row in (2, 3)}
    assert codes == {"M", "S"}
    total = ws.cell(row=2, column=6).value
    assert total == sum(a.hours_scheduled for a in result.assignments if a.user_id == "a")


def test_coverage_and_warnings_sheets(tmp_path):
    path, result = export(tmp_path)
    wb = load_workbook(path)

    coverage = wb["Coverage"]
    rows = [[c.value for c in row] for row in coverage.iter_rows(min_row=2, values_only=False)]
    evening = [r for r in rows if r[2] == "Sera"]
    assert evening and all(r[5] == "Understaffed" for r in evening)
    assert all(r[5] == "OK" for r in rows if r[2] == "Mattina")

    warnings = wb["Warnings"]
    assert warnings.cell(row=3, column=2).value == len(result.warnings)
    assert warnings.cell(row=6, column=2).value == "Type"
    assert warnings.cell(row=7, column=2).value == "UNDERSTAFFED"


def test_overrides_drive_coverage_sheet(tmp_path):
    staffing = {(MONDAY, "sera"): 1, (day(1), "sera"): 0}
    path, result = export(tmp_path, staffing)
    coverage = load_workbook(path)["Coverage"]

    required = {
        (row[0], row[2]): row[4]
        for row in coverage.iter_rows(min_row=2, values_only=True)
    }
    assert required[("2024-12-16", "Sera")] == 1
    assert required[("2024-12-17", "Sera")] == 0
    assert result.success
