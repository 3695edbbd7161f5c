from collections import Counter

from config import SchedulingConfig
from models.employee import LeaveRequest, LeaveStatus
from models.generation import Severity, WarningType
from scheduling import SolverContext, build_assignment, generate_shifts_greedy, required_staff
from tests.builders import (
    MONDAY,
    day,
    make_constraint,
    make_employee,
    make_params,
    make_relationship,
    make_shift,
    run,
)

NO_SWAPS = SchedulingConfig(optimizer_max_passes=0)


def week_params(**kwargs):
    return make_params(MONDAY, day(6), **kwargs)


def staff(count, **kwargs):
    return [make_employee(f"e{n:02d}", **kwargs) for n in range(count)]


def test_nobody_is_double_booked():
    shifts = [
        make_shift("mattina", "08:00", "16:00", min_staff=2, max_staff=3, position=2),
        make_shift("sera", "16:00", "00:00", min_staff=2, max_staff=3, position=1),
    ]
    result = run(staff(5), shifts, params=week_params())

    per_day = Counter((a.user_id, a.date) for a in result.assignments)
    assert result.assignments
    assert max(per_day.values()) == 1


def test_hard_blocked_day_is_respected():
    employees = staff(3)
    blocked = make_constraint("e00", "BLOCKED_DAY", {"weekday": 2})
    result = run(employees, [make_shift(min_staff=3, max_staff=3)], [blocked], params=week_params())

    wednesday = [a for a in result.assignments if a.date.weekday() == 2]
    assert wednesday
    assert all(a.user_id != "e00" for a in wednesday)


def test_never_more_than_max_staff():
    shift = make_shift(min_staff=1, max_staff=2)
    result = run(staff(6), [shift], params=week_params())

    per_slot = Counter(a.slot for a in result.assignments)
    assert set(per_slot.values()) == {2}


def test_max_staff_defaults_to_min_plus_headroom():
    result = run(staff(6), [make_shift(min_staff=1)])
    assert len(result.assignments) == 3


def test_generation_is_deterministic():
    shifts = [
        make_shift("mattina", "08:00", "16:00", min_staff=2, max_staff=2, position=2),
        make_shift("sera", "16:00", "00:00", min_staff=1, max_staff=2, position=1),
    ]
    employees = staff(4) + [make_employee("f1", is_fixed_staff=True)]
    first = run(employees, shifts, params=week_params())
    second = run(list(reversed(employees)), shifts, params=week_params())

    key = [(a.date, a.shift_definition_id, a.user_id) for a in first.assignments]
    assert key == [(a.date, a.shift_definition_id, a.user_id) for a in second.assignments]


def test_ties_resolve_by_employee_id():
    result = run([make_employee("b"), make_employee("a")], [make_shift(min_staff=1, max_staff=1)])
    assert [a.user_id for a in result.assignments] == ["a"]


def test_understaffed_warning_reports_assigned_over_minimum():
    result = run([make_employee("e1")], [make_shift(min_staff=2, max_staff=3)])

    assert len(result.assignments) == 1
    understaffed = result.warnings_of(WarningType.UNDERSTAFFED)
    assert len(understaffed) == 1
    assert "1/2" in understaffed[0].message
    assert understaffed[0].severity == Severity.HIGH
    assert not result.success


def test_hard_never_together_places_one_of_the_pair():
    rule = make_relationship("NEVER_TOGETHER", ["a", "b"])
    result = run([make_employee("a"), make_employee("b")], [make_shift(min_staff=1, max_staff=2)],
                 relationships=[rule])

    assert len(result.assignments) == 1
    assert not result.warnings_of(WarningType.RELATIONSHIP_VIOLATED)
    assert result.success


def test_soft_never_together_is_placed_and_reported():
    rule = make_relationship("NEVER_TOGETHER", ["a", "b"], hard=False)
    result = run([make_employee("a"), make_employee("b")], [make_shift(min_staff=2, max_staff=2)],
                 relationships=[rule])

    assert len(result.assignments) == 2
    reported = result.warnings_of(WarningType.RELATIONSHIP_VIOLATED)
    assert [w.severity for w in reported] == [Severity.LOW]
    assert result.success


def test_staffing_override_is_exact_and_zero_skips():
    shift = make_shift(min_staff=1, max_staff=1)
    params = make_params(MONDAY, day(1), staffing_requirements={(MONDAY, "mattina"): 3, (day(1), "mattina"): 0})
    result = run(staff(5), [shift], params=params)

    per_date = Counter(a.date for a in result.assignments)
    assert per_date == {MONDAY: 3}
    assert result.success


def test_required_staff_helper():
    shift = make_shift(min_staff=2)
    assert required_staff(shift, MONDAY) == (2, 4)
    assert required_staff(shift, MONDAY, headroom=0) == (2, 2)
    assert required_staff(shift, MONDAY, {(MONDAY, "mattina"): 5}) == (5, 5)
    assert required_staff(shift, day(1), {(MONDAY, "mattina"): 5}) == (2, 4)


def test_shifts_filled_by_position():
    early = make_shift("mattina", "08:00", "16:00", min_staff=1, max_staff=1, position=1)
    busy = make_shift("sera", "16:00", "00:00", min_staff=1, max_staff=1, position=5)
    result = run([make_employee("a")], [early, busy])

    assert [a.shift_definition_id for a in result.assignments] == ["sera"]
    assert result.warnings_of(WarningType.UNDERSTAFFED)[0].shift_definition_id == "mattina"


def test_inactive_and_foreign_shifts_are_not_filled():
    shifts = [
        make_shift("mattina", is_active=False),
        make_shift("altro", venue_id="v2"),
    ]
    result = run(staff(2), shifts)
    assert result.assignments == []
    assert result.success
    assert result.stats.coverage_percentage == 100.0


def test_soft_penalty_reported_and_ranked_last():
    penalized = make_constraint("a", "MAX_HOURS", {"max_hours": 4}, hard=False)
    result = run([make_employee("a"), make_employee("b")], [make_shift(min_staff=2, max_staff=2)], [penalized])

    assert {a.user_id for a in result.assignments} == {"a", "b"}
    soft = result.warnings_of(WarningType.SOFT_CONSTRAINT_VIOLATED)
    assert [w.employee_id for w in soft] == ["a"]
    assert result.stats.soft_constraints_violated == 1

    single = run([make_employee("a"), make_employee("b")], [make_shift(min_staff=1, max_staff=1)], [penalized])
    assert [a.user_id for a in single.assignments] == ["b"]


def test_approved_leave_blocks_and_can_be_ignored():
    leave = [LeaveRequest("l1", "a", MONDAY, MONDAY, LeaveStatus.APPROVED)]
    shift = make_shift(min_staff=1, max_staff=1)

    respected = run([make_employee("a"), make_employee("b")], [shift], leave=leave)
    ignored = run([make_employee("a"), make_employee("b")], [shift], leave=leave,
                  config=SchedulingConfig(respect_leave_requests=False))

    assert [a.user_id for a in respected.assignments] == ["b"]
    assert [a.user_id for a in ignored.assignments] == ["a"]


def test_work_days_limit_and_fixed_staff_priority():
    extra = make_employee("a", work_days_per_week=2)
    fixed = make_employee("z", is_fixed_staff=True, work_days_per_week=3)
    result = run([extra, fixed], [make_shift(min_staff=1, max_staff=2)], params=week_params(), config=NO_SWAPS)

    days = Counter(a.user_id for a in result.assignments)
    assert days == {"a": 2, "z": 3}
    # Fixed staff take their contracted days first
    first_days = {a.user_id for a in result.assignments if a.date in (MONDAY, day(1), day(2))}
    assert "z" in first_days


def test_week_start_changes_work_day_counting():
    employee = make_employee("a", work_days_per_week=1)
    params = make_params(day(-1), MONDAY)
    shift = make_shift(min_staff=1, max_staff=1)

    monday_weeks = run([employee], [shift], params=params, config=SchedulingConfig(week_start_day=0))
    sunday_weeks = run([employee], [shift], params=params, config=SchedulingConfig(week_start_day=6))

    assert len(monday_weeks.assignments) == 2
    assert len(sunday_weeks.assignments) == 1


def test_assignment_hours_and_cost():
    night = make_shift("notte", "22:00", "06:00", break_minutes=30, rate_multiplier=1.2)
    assignment = build_assignment("s1", make_employee("a", hourly_rate_base=11.0), night, MONDAY)
    assert assignment.hours_scheduled == 7.5
    assert assignment.cost_estimated == 99.0
    assert assignment.end_time.date() == day(1)

    fallback = build_assignment("s1", make_employee("b", hourly_rate_base=None), night, MONDAY)
    assert fallback.cost_estimated == 90.0


def test_greedy_outcome_exposes_roster():
    context = SolverContext.build(
        "s1", staff(2), [make_shift(min_staff=1, max_staff=1)], [], [], [], make_params(),
    )
    outcome = generate_shifts_greedy(context)
    assert len(outcome.roster) == 1
    assert outcome.warnings == []


def test_venue_wide_constraints_apply_to_everyone():
    closed = make_constraint(None, "BLOCKED_DAY", {"weekday": 0})
    result = run(staff(3), [make_shift()], [closed])
    assert result.assignments == []
    assert result.warnings_of(WarningType.UNDERSTAFFED)
