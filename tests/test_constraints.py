from datetime import date

from models.employee import LeaveRequest, LeaveStatus
from scheduling import (
    calculate_shift_hours,
    can_employee_work_shift,
    check_employee_availability,
    matches_shift_type,
    week_bounds,
)
from tests.builders import MONDAY, day, make_assignment, make_constraint, make_employee, make_shift


def test_overnight_shift_hours_deduct_break():
    night = make_shift("notte", "22:00", "06:00", break_minutes=30)
    assert calculate_shift_hours(night) == 7.5


def test_week_bounds_follow_configured_start():
    wednesday = day(2)
    assert week_bounds(wednesday) == (MONDAY, day(6))
    # Sunday-first week
    assert week_bounds(wednesday, 6) == (date(2024, 12, 15), date(2024, 12, 21))


def test_shift_type_matching_is_fuzzy():
    evening = make_shift("sera", "16:00", "00:00", name="Sera lunga", code="SL")
    assert matches_shift_type("sera", evening)
    assert matches_shift_type("SL", evening)
    assert not matches_shift_type("mattina", evening)
    assert not matches_shift_type("", evening)


def test_hard_blocked_day_vetoes():
    employee = make_employee("e1")
    blocked = make_constraint("e1", "BLOCKED_DAY", {"weekday": 2, "reason": "University"})

    result = can_employee_work_shift(employee, make_shift(), day(2), [blocked], [])
    assert not result
    assert result.reason == "University"
    assert can_employee_work_shift(employee, make_shift(), day(3), [blocked], [])


def test_soft_blocked_day_does_not_veto():
    employee = make_employee("e1")
    blocked = make_constraint("e1", "BLOCKED_DAY", {"weekday": 2}, hard=False)
    assert can_employee_work_shift(employee, make_shift(), day(2), [blocked], [])


def test_constraint_outside_validity_is_ignored():
    employee = make_employee("e1")
    blocked = make_constraint("e1", "BLOCKED_DAY", {"weekday": 2}, valid_to=day(-1))
    assert can_employee_work_shift(employee, make_shift(), day(2), [blocked], [])


def test_max_hours_veto_reports_projected_and_limit():
    employee = make_employee("e1")
    long_shift = make_shift("lungo", "08:00", "18:00")
    existing = [make_assignment(employee, long_shift, day(i), hours=9.5) for i in range(4)]
    short_shift = make_shift("corto", "10:00", "15:00")
    cap = make_constraint("e1", "MAX_HOURS", {"maxHours": 40})

    result = can_employee_work_shift(employee, short_shift, day(4), [cap], existing)

    assert not result
    assert "43" in result.reason
    assert "40" in result.reason


def test_soft_max_hours_penalizes():
    employee = make_employee("e1")
    long_shift = make_shift("lungo", "08:00", "18:00")
    existing = [make_assignment(employee, long_shift, day(i), hours=9.5) for i in range(4)]
    cap = make_constraint("e1", "MAX_HOURS", {"max_hours": 40}, hard=False)

    result = can_employee_work_shift(employee, make_shift("corto", "10:00", "15:00"), day(4), [cap], existing)
    assert result
    assert result.is_penalized


def test_max_hours_counts_only_the_business_week():
    employee = make_employee("e1")
    shift = make_shift()
    previous_week = [make_assignment(employee, shift, day(-i)) for i in range(1, 6)]
    cap = make_constraint("e1", "MAX_HOURS", {"max_hours": 10})
    assert can_employee_work_shift(employee, shift, day(0), [cap], previous_week)


def test_min_rest_between_days():
    employee = make_employee("e1")
    late = make_shift("sera", "16:00", "00:00")
    early = make_shift("alba", "06:00", "12:00")
    yesterday = [make_assignment(employee, late, day(0))]
    rest = make_constraint("e1", "MIN_REST", {"min_rest_hours": 11})

    result = can_employee_work_shift(employee, early, day(1), [rest], yesterday)
    assert not result
    assert "6h vs 11h" in result.reason

    soft = make_constraint("e1", "MIN_REST", {"min_rest_hours": 11}, hard=False)
    penalized = can_employee_work_shift(employee, early, day(1), [soft], yesterday)
    assert penalized and penalized.is_penalized


def test_soft_rest_breach_places_with_penalty_before_max_hours():
    employee = make_employee("e1")
    late = make_shift("sera", "16:00", "00:00")
    existing = [make_assignment(employee, late, day(0), hours=38)]
    rules = [
        make_constraint("e1", "MIN_REST", {"min_rest_hours": 11}, hard=False),
        make_constraint("e1", "MAX_HOURS", {"max_hours": 40}),
    ]
    result = can_employee_work_shift(employee, make_shift("alba", "06:00", "12:00"), day(1), rules, existing)
    assert result.can_work
    assert result.is_penalized


def test_one_shift_per_day():
    employee = make_employee("e1")
    existing = [make_assignment(employee, make_shift(), MONDAY)]
    result = can_employee_work_shift(employee, make_shift("sera", "16:00", "00:00"), MONDAY, [], existing)
    assert result.reason == "Already assigned on this day"


def test_approved_leave_vetoes():
    employee = make_employee("e1")
    leave = [LeaveRequest("l1", "e1", day(0), day(1), LeaveStatus.APPROVED)]
    assert not can_employee_work_shift(employee, make_shift(), day(1), [], [], leave_requests=leave)
    assert can_employee_work_shift(employee, make_shift(), day(2), [], [], leave_requests=leave)


def test_consecutive_days_cap():
    employee = make_employee("e1")
    shift = make_shift()
    existing = [make_assignment(employee, shift, day(i)) for i in range(3)]
    cap = make_constraint("e1", "CONSECUTIVE_DAYS", {"max_days": 3})

    availability = check_employee_availability(employee, day(3), [cap], existing)
    assert not availability.is_available
    assert "3 consecutive" in availability.reason
    assert check_employee_availability(employee, day(4), [cap], existing).is_available


def test_availability_window_bounds_shift():
    employee = make_employee("e1")
    window = make_constraint("e1", "AVAILABILITY", {"weekday": 0, "start_time": "12:00"})
    result = can_employee_work_shift(employee, make_shift(), MONDAY, [window], [])
    assert result.reason == "Shift starts before availability window"
    assert can_employee_work_shift(employee, make_shift("sera", "16:00", "22:00"), MONDAY, [window], [])


def test_hard_unavailable_day():
    employee = make_employee("e1")
    off = make_constraint("e1", "AVAILABILITY", {"weekday": 0, "available": False})
    assert not can_employee_work_shift(employee, make_shift(), MONDAY, [off], [])


def test_hard_preference_restricts_shift_type():
    employee = make_employee("e1")
    only_evenings = make_constraint("e1", "PREFERRED_SHIFT", {"shift_type": "sera", "preference": "PREFER"})
    assert not can_employee_work_shift(employee, make_shift(), MONDAY, [only_evenings], [])
    assert can_employee_work_shift(employee, make_shift("sera", "16:00", "00:00"), MONDAY, [only_evenings], [])


def test_skills_and_venue_gates():
    shift = make_shift(required_skills=("bar",))
    assert not can_employee_work_shift(make_employee("e1"), shift, MONDAY, [], [])
    assert can_employee_work_shift(make_employee("e2", skills=frozenset({"bar"})), shift, MONDAY, [], [])
    assert not can_employee_work_shift(make_employee("e3", venue_id="v2"), make_shift(), MONDAY, [], [])
    assert can_employee_work_shift(make_employee("e4", venue_id=None), make_shift(), MONDAY, [], [])


def test_extra_staff_available_days():
    extra = make_employee("e1", available_days=frozenset({5, 6}))
    assert not can_employee_work_shift(extra, make_shift(), MONDAY, [], [])
    assert can_employee_work_shift(extra, make_shift(), day(5), [], [])


def test_excluded_positions_are_ignored():
    employee = make_employee("e1")
    existing = [make_assignment(employee, make_shift(), MONDAY)]
    assert can_employee_work_shift(employee, make_shift(), MONDAY, [], existing, exclude=(0,))
