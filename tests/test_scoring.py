import pytest

from scheduling import ScoredCandidate, ScoringPolicy, calculate_employee_score, rank_candidates
from tests.builders import MONDAY, day, make_assignment, make_constraint, make_employee, make_shift


def score(employee, shift=None, constraints=(), existing=(), **kwargs):
    return calculate_employee_score(employee, shift or make_shift(), MONDAY, list(constraints),
                                    list(existing), **kwargs)


def test_base_score_with_empty_week():
    # base 100 plus the full hour-balancing bonus
    assert score(make_employee("e1")) == 130


def test_fixed_staff_bonus_follows_policy():
    fixed = make_employee("e1", is_fixed_staff=True)
    assert score(fixed) == 150
    assert score(fixed, policy=ScoringPolicy(prefer_fixed_staff=False)) == 130


def test_preferences_apply_hard_or_soft():
    employee = make_employee("e1")
    evening = make_shift("sera", "16:00", "00:00")
    prefer = make_constraint("e1", "PREFERRED_SHIFT", {"shift_type": "sera"}, hard=False)
    avoid = make_constraint("e1", "PREFERRED_SHIFT", {"shift_type": "sera", "preference": "AVOID"})

    assert score(employee, evening, [prefer]) == 160
    assert score(employee, make_shift(), [prefer]) == 110
    assert score(employee, evening, [avoid]) == 90
    assert score(employee, make_shift(), [avoid]) == 130


def test_hour_balancing_favours_employees_with_fewer_hours():
    employee = make_employee("e1", contract_hours_week=20)
    existing = [make_assignment(employee, make_shift(), day(i)) for i in range(1, 3)]
    # 16h of a 20h contract: 80% utilization -> 30 - 24
    assert score(employee, existing=existing) == pytest.approx(106)
    assert score(employee, existing=existing, policy=ScoringPolicy(balance_hours=False)) == 100


def test_cost_term_is_capped():
    policy = ScoringPolicy(balance_hours=False, minimize_cost=True)
    assert score(make_employee("e1", hourly_rate_base=12), policy=policy) == 88
    assert score(make_employee("e2", hourly_rate_base=45), policy=policy) == 70
    assert score(make_employee("e3", hourly_rate_base=None), policy=policy) == 90


def test_skill_coverage_bonus():
    shift = make_shift(required_skills=("bar", "cash"))
    policy = ScoringPolicy(balance_hours=False)
    assert score(make_employee("e1", skills=frozenset({"bar"})), shift, policy=policy) == 105
    assert score(make_employee("e2", skills=frozenset({"bar", "cash"})), shift, policy=policy) == 110


def test_ranking_breaks_ties_by_employee_id():
    ranked = rank_candidates([
        ScoredCandidate(make_employee("c"), 120),
        ScoredCandidate(make_employee("b"), 130),
        ScoredCandidate(make_employee("a"), 120),
    ])
    assert [c.employee.id for c in ranked] == ["b", "a", "c"]
