import pytest

from models.employee import LeaveRequest, LeaveStatus
from models.schedule import Schedule, ScheduleStatus
from storage import ScheduleNotFoundError
from tests.builders import MONDAY, day, make_assignment, make_constraint, make_employee, make_relationship, make_shift


def add_week(repository, schedule_id="s1", venue_id="v1"):
    return repository.add_schedule(Schedule(schedule_id, venue_id, MONDAY, day(6)))


def test_unknown_schedule_raises_lookup_error(repository):
    with pytest.raises(ScheduleNotFoundError) as excinfo:
        repository.get_schedule("missing")
    assert excinfo.value.schedule_id == "missing"
    assert isinstance(excinfo.value, LookupError)


def test_venue_scoping_includes_venue_agnostic_records(repository):
    repository.add_employees([
        make_employee("here"),
        make_employee("anywhere", venue_id=None),
        make_employee("elsewhere", venue_id="v2"),
    ])
    repository.add_shift_definitions([
        make_shift("mattina"),
        make_shift("chiuso", is_active=False),
        make_shift("altrove", venue_id="v2"),
    ])
    repository.add_employee_constraints([
        make_constraint("here", "MAX_HOURS", venue_id="v1"),
        make_constraint("here", "MIN_REST"),
        make_constraint("elsewhere", "MAX_HOURS", venue_id="v2"),
    ])
    repository.add_relationship_constraints([
        make_relationship("NEVER_TOGETHER", ["here", "anywhere"], venue_id="v2"),
    ])

    assert sorted(e.id for e in repository.employees_for_venue("v1")) == ["anywhere", "here"]
    assert [s.id for s in repository.shift_definitions_for_venue("v1")] == ["mattina"]
    assert len(repository.employee_constraints_for_venue("v1")) == 2
    assert repository.relationship_constraints_for_venue("v1") == []


def test_approved_leave_overlapping(repository):
    repository.add_leave_requests([
        LeaveRequest("l1", "a", day(-3), MONDAY, LeaveStatus.APPROVED),
        LeaveRequest("l2", "a", day(2), day(3), LeaveStatus.PENDING),
        LeaveRequest("l3", "b", day(10), day(12), LeaveStatus.APPROVED),
        LeaveRequest("l4", "c", day(4), day(4), LeaveStatus.APPROVED),
    ])
    assert [r.id for r in repository.approved_leave_overlapping(MONDAY, day(6))] == ["l1", "l4"]
    assert [r.id for r in repository.approved_leave_overlapping(MONDAY, day(6), ["a"])] == ["l1"]


def test_replace_assignments_deletes_then_inserts(repository):
    add_week(repository)
    shift = make_shift()
    a, b = make_employee("a"), make_employee("b")

    repository.replace_assignments("s1", [make_assignment(a, shift, day(1)), make_assignment(b, shift, MONDAY)])
    stored = repository.replace_assignments("s1", [make_assignment(b, shift, day(2))])

    loaded = repository.load_assignments("s1")
    assert stored == 1
    assert [(x.user_id, x.date) for x in loaded] == [("b", day(2))]
    assert loaded[0].id == "s1-00001"


def test_assignments_load_in_date_order(repository):
    add_week(repository)
    late, early = make_shift("sera", "16:00", "00:00"), make_shift("mattina")
    a, b = make_employee("a"), make_employee("b")
    repository.replace_assignments("s1", [
        make_assignment(a, late, day(1)),
        make_assignment(b, late, MONDAY),
        make_assignment(a, early, MONDAY),
    ])
    loaded = repository.load_assignments("s1")
    assert [(x.date, x.shift_definition_id) for x in loaded] == [
        (MONDAY, "mattina"), (MONDAY, "sera"), (day(1), "sera"),
    ]


def test_assignments_of_unknown_schedule_are_rejected(repository):
    with pytest.raises(ScheduleNotFoundError):
        repository.replace_assignments("nope", [])
    with pytest.raises(ScheduleNotFoundError):
        repository.load_assignments("nope")


def test_mark_generated_keeps_log(repository):
    add_week(repository)
    schedule = repository.mark_generated("s1", {"success": True})
    assert schedule.status == ScheduleStatus.GENERATED
    assert repository.get_schedule("s1").generation_log == {"success": True}


def test_staffing_requirements_are_per_schedule(repository):
    add_week(repository)
    add_week(repository, "s2")
    repository.set_staffing_requirements("s1", {(MONDAY, "mattina"): 4})

    requirements = repository.staffing_requirements("s1")
    requirements[(day(1), "mattina")] = 0

    assert repository.staffing_requirements("s1") == {(MONDAY, "mattina"): 4}
    assert repository.staffing_requirements("s2") == {}
    with pytest.raises(ScheduleNotFoundError):
        repository.set_staffing_requirements("nope", {})


def test_schedules_listed_by_start_date(repository):
    repository.add_schedule(Schedule("later", "v1", day(7), day(13)))
    add_week(repository)
    assert [s.id for s in repository.list_schedules()] == ["s1", "later"]
