from datetime import date, time

import pytest

from agents import DataLoaderAgent
from models.constraints import EmployeeConstraintType, RelationshipConstraintType
from models.employee import ContractType, DefaultShift

EMPLOYEES = """id,first_name,last_name,is_fixed_staff,contract_type,contract_hours_week,venue_id,skills,available_days,work_days_per_week,hourly_rate_base,default_shift
a,Anna,Neri,true,TEMPO_INDETERMINATO,40,v1,bar;cash,,5,12.5,mattina
b,Bruno,Gallo,false,LAVORO_INTERMITTENTE,,v1,,5;6,,,
,Nobody,Missing,false,,,,,,,,
c,Carla,Verdi,no,,,,,1;9,,,
"""

SHIFTS = """id,venue_id,name,code,start_time,end_time,break_minutes,min_staff,max_staff,required_skills,rate_multiplier,position,is_active
mattina,v1,Mattina,M,08:00,16:00,30,2,3,bar,1.0,2,true
notte,v1,Notte,N,22:00,06:00,30,1,,,1.25,1,false
rotto,v1,Rotto,R,soon,16:00,,,,,,,
"""

SCHEDULES = """id,venue_id,start_date,end_date,status
w51,v1,2024-12-16,2024-12-22,
w52,v1,2024-12-23,2024-12-29,generated
"""

CONSTRAINTS = """id,user_id,constraint_type,config,valid_from,valid_to,priority,is_hard_constraint,venue_id
c1,a,MAX_HOURS,"{""maxHours"": 36}",2024-12-01,,3,true,v1
c2,,BLOCKED_DAY,"{""weekday"": 6}",,,,false,
c3,a,NOT_A_TYPE,,,,,,
"""

RELATIONSHIPS = """id,constraint_type,user_ids,config,is_hard_constraint
r1,MIN_OVERLAP,a;b,"{""minOverlapMinutes"": 45}",true
r2,NEVER_TOGETHER,a,,true
"""

LEAVE = """id,user_id,start_date,end_date,status
l1,a,2024-12-18,2024-12-19,approved
"""

STAFFING = """schedule_id,date,shift_definition_id,required_staff
w51,2024-12-21,mattina,4
w51,2024-12-22,mattina,0
ghost,2024-12-21,mattina,2
w51,2024-12-20,mattina,-1
"""


def write_data(directory, **files):
    defaults = {
        "employees.csv": EMPLOYEES,
        "shift_definitions.csv": SHIFTS,
        "schedules.csv": SCHEDULES,
    }
    defaults.update(files)
    for name, content in defaults.items():
        if content is not None:
            (directory / name).write_text(content)
    return directory


def load(repository, directory):
    return DataLoaderAgent(repository, str(directory), verbose=False).execute()


def test_loads_required_files_and_skips_bad_rows(repository, tmp_path):
    counts = load(repository, write_data(tmp_path))

    assert counts["employee_count"] == 2
    assert counts["shift_definition_count"] == 2
    assert counts["schedule_count"] == 2
    assert counts["skipped_rows"] == {"employees.csv": 2, "shift_definitions.csv": 1}
    assert counts["employee_constraint_count"] == 0


def test_employee_columns_are_parsed(repository, tmp_path):
    load(repository, write_data(tmp_path))

    anna = repository.get_employee("a")
    assert anna.name == "Anna Neri"
    assert anna.is_fixed_staff
    assert anna.contract_type == ContractType.PERMANENT
    assert anna.skills == frozenset({"bar", "cash"})
    assert anna.work_days_per_week == 5
    assert anna.default_shift == DefaultShift.MORNING

    bruno = repository.get_employee("b")
    assert bruno.contract_hours_week is None
    assert bruno.hourly_rate_base is None
    assert bruno.available_days == frozenset({5, 6})


def test_shift_columns_are_parsed(repository, tmp_path):
    load(repository, write_data(tmp_path))

    active = repository.shift_definitions_for_venue("v1")
    assert [s.id for s in active] == ["mattina"]
    morning = active[0]
    assert (morning.start_time, morning.end_time) == (time(8), time(16))
    assert morning.required_skills == ("bar",)
    assert morning.max_staff == 3


def test_schedule_status_defaults_to_draft(repository, tmp_path):
    load(repository, write_data(tmp_path))
    assert repository.get_schedule("w51").status.value == "DRAFT"
    assert repository.get_schedule("w52").status.value == "GENERATED"
    assert repository.get_schedule("w51").start_date == date(2024, 12, 16)


def test_optional_files(repository, tmp_path):
    write_data(
        tmp_path,
        **{
            "employee_constraints.csv": CONSTRAINTS,
            "relationship_constraints.csv": RELATIONSHIPS,
            "leave_requests.csv": LEAVE,
            "staffing_requirements.csv": STAFFING,
        },
    )
    counts = load(repository, tmp_path)

    assert counts["employee_constraint_count"] == 2
    assert counts["relationship_constraint_count"] == 1
    assert counts["leave_request_count"] == 1
    assert counts["skipped_rows"]["staffing_requirements.csv"] == 1

    constraints = repository.employee_constraints_for_venue("v1")
    cap = next(c for c in constraints if c.constraint_type == EmployeeConstraintType.MAX_HOURS)
    assert cap.config.max_hours == 36.0
    assert cap.valid_from == date(2024, 12, 1)
    venue_wide = next(c for c in constraints if c.user_id is None)
    assert not venue_wide.is_hard_constraint

    overlap = repository.relationship_constraints_for_venue("v1")[0]
    assert overlap.constraint_type == RelationshipConstraintType.MIN_OVERLAP
    assert overlap.config.min_overlap_minutes == 45

    assert [r.id for r in repository.approved_leave_overlapping(date(2024, 12, 16), date(2024, 12, 22))] == ["l1"]
    assert repository.staffing_requirements("w51") == {
        (date(2024, 12, 21), "mattina"): 4,
        (date(2024, 12, 22), "mattina"): 0,
    }


def test_missing_required_file_raises(repository, tmp_path):
    write_data(tmp_path, **{"schedules.csv": None})
    with pytest.raises(FileNotFoundError):
        load(repository, tmp_path)


def test_bundled_sample_data_loads(repository, sample_data_dir):
    counts = load(repository, sample_data_dir)
    assert counts["employee_count"] == 6
    assert counts["schedule_count"] == 1
    assert counts["skipped_rows"] == {}
