import pytest

from benchmark import Benchmark, build_synthetic_venue, get_profile_summary, profile_function
from tests.builders import MONDAY, day, make_params
from scheduling import generate_shifts


def test_profile_function_records_failures():
    @profile_function
    def explode():
        raise RuntimeError("nope")

    with pytest.raises(RuntimeError):
        explode()

    summary = get_profile_summary()
    name = next(key for key in summary if key.endswith("explode"))
    assert summary[name]["failure_count"] == 1


def test_engine_entry_points_are_profiled():
    employees, shifts = build_synthetic_venue(6, venue_id="v1")
    generate_shifts("s1", employees, shifts, [], [], [], make_params(MONDAY, day(6)))

    summary = get_profile_summary()
    assert summary["generate_shifts_greedy"]["call_count"] == 1
    assert summary["optimize_schedule"]["call_count"] == 1


def test_benchmark_runner_collects_timings(capsys):
    bench = Benchmark().add("noop", lambda: None, iterations=3)
    results = bench.run()
    assert len(results[0].times) == 3
    assert bench.get_results_dict()[0]["successful"] == 3
