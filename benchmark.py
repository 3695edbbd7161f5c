"""
Benchmark and Profiling Module for the Venue Shift Scheduler.

Provides:
- Timing of engine entry points through the @profile_function decorator
- A small benchmark runner with statistical summaries
- A synthetic-venue benchmark of the full generation pipeline

Usage:
    # Run benchmarks
    python benchmark.py

    # Profile a function
    @profile_function
    def generate(...):
        ...
"""
import time
import statistics
import functools
from datetime import date, datetime, time as dtime, timedelta
from typing import Any, Callable, Dict, List, Optional
from dataclasses import dataclass, field


# =============================================================================
# PROFILING DECORATOR
# =============================================================================

@dataclass
class ProfileResult:
    """Timing of a single profiled call."""
    function_name: str
    execution_time: float
    timestamp: datetime = field(default_factory=datetime.now)
    success: bool = True
    error: Optional[str] = None


# Calls recorded per qualified function name
_profile_data: Dict[str, List[ProfileResult]] = {}


def profile_function(func: Callable) -> Callable:
    """
    Decorator recording the wall time of every call, failed calls included.

    Results are kept in memory; read them with get_profile_summary().
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> Any:
        start_time = time.perf_counter()
        error_msg = None
        success = True

        try:
            return func(*args, **kwargs)
        except Exception as e:
            success = False
            error_msg = str(e)
            raise
        finally:
            func_name = func.__qualname__
            _profile_data.setdefault(func_name, []).append(ProfileResult(
                function_name=func_name,
                execution_time=time.perf_counter() - start_time,
                success=success,
                error=error_msg
            ))

    return wrapper


def get_profile_summary() -> Dict[str, Dict[str, Any]]:
    """
    Summarize all profiled functions.

    Returns:
        Dictionary keyed by function name with call counts and timings
    """
    summary = {}

    for func_name, results in _profile_data.items():
        times = [r.execution_time for r in results]
        failures = sum(1 for r in results if not r.success)

        summary[func_name] = {
            "call_count": len(results),
            "success_count": len(results) - failures,
            "failure_count": failures,
            "total_time": sum(times),
            "avg_time": statistics.mean(times) if times else 0,
            "min_time": min(times) if times else 0,
            "max_time": max(times) if times else 0,
            "std_dev": statistics.stdev(times) if len(times) > 1 else 0,
        }

    return summary


def clear_profile_data() -> None:
    """Forget all recorded calls."""
    _profile_data.clear()


def print_profile_report() -> None:
    """Print the profiling summary, slowest functions first."""
    summary = get_profile_summary()

    if not summary:
        print("No profiling data collected.")
        return

    print("\n" + "=" * 80)
    print("PROFILING REPORT")
    print("=" * 80)

    ordered = sorted(summary.items(), key=lambda item: item[1]["total_time"], reverse=True)
    for func_name, stats in ordered:
        print(f"\n{func_name}")
        print(f"   Calls: {stats['call_count']} ({stats['success_count']} ok, {stats['failure_count']} failed)")
        print(f"   Total: {stats['total_time'] * 1000:.1f}ms | Avg: {stats['avg_time'] * 1000:.1f}ms")
        print(f"   Range: {stats['min_time'] * 1000:.1f}ms - {stats['max_time'] * 1000:.1f}ms")

    print("\n" + "=" * 80)


# =============================================================================
# BENCHMARK RUNNER
# =============================================================================

@dataclass
class BenchmarkResult:
    """Timings collected for one benchmark."""
    name: str
    iterations: int
    times: List[float]
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def mean(self) -> float:
        return statistics.mean(self.times) if self.times else 0

    @property
    def median(self) -> float:
        return statistics.median(self.times) if self.times else 0

    @property
    def std_dev(self) -> float:
        return statistics.stdev(self.times) if len(self.times) > 1 else 0

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "iterations": self.iterations,
            "successful": len(self.times),
            "mean": self.mean,
            "median": self.median,
            "std_dev": self.std_dev,
            "min": min(self.times) if self.times else 0,
            "max": max(self.times) if self.times else 0,
            "timestamp": self.timestamp.isoformat(),
        }


class Benchmark:
    """
    Benchmark runner.

    Usage:
        bench = Benchmark()
        bench.add("Greedy, 20 employees", run, iterations=5)
        bench.run()
        bench.print_report()
    """

    def __init__(self):
        self.benchmarks: List[Dict] = []
        self.results: List[BenchmarkResult] = []

    def add(self, name: str, func: Callable, iterations: int = 5,
            args: tuple = (), kwargs: dict = None) -> "Benchmark":
        self.benchmarks.append({
            "name": name,
            "func": func,
            "iterations": iterations,
            "args": args,
            "kwargs": kwargs or {}
        })
        return self

    def run(self) -> List[BenchmarkResult]:
        """Run every registered benchmark; failed iterations are reported and not timed."""
        self.results = []

        for bench in self.benchmarks:
            print(f"Running benchmark: {bench['name']}...")
            times = []

            for i in range(bench['iterations']):
                start = time.perf_counter()
                try:
                    bench['func'](*bench['args'], **bench['kwargs'])
                except Exception as e:
                    print(f"  Iteration {i + 1} failed: {e}")
                    continue
                times.append(time.perf_counter() - start)
                print(f"  Iteration {i + 1}: {times[-1] * 1000:.1f}ms")

            self.results.append(BenchmarkResult(
                name=bench['name'],
                iterations=bench['iterations'],
                times=times
            ))

        return self.results

    def print_report(self) -> None:
        if not self.results:
            print("No benchmark results. Run benchmarks first.")
            return

        print("\n" + "=" * 80)
        print("BENCHMARK REPORT")
        print("=" * 80)

        for result in self.results:
            print(f"\n{result.name}")
            print(f"   Iterations: {result.iterations} (successful: {len(result.times)})")
            print(f"   Mean: {result.mean * 1000:.1f}ms | Median: {result.median * 1000:.1f}ms")
            print(f"   Std Dev: {result.std_dev * 1000:.1f}ms")

            if result.mean < 1:
                print("   Status: FAST")
            elif result.mean < 10:
                print("   Status: ACCEPTABLE")
            else:
                print("   Status: SLOW")

        print("\n" + "=" * 80)

    def get_results_dict(self) -> List[dict]:
        return [r.to_dict() for r in self.results]


# =============================================================================
# SYSTEM BENCHMARK
# =============================================================================

def build_synthetic_venue(employee_count: int, venue_id: str = "bench"):
    """
    A venue with three shifts and a mixed fixed/extra workforce.

    Returns:
        (employees, shift_definitions)
    """
    from models.employee import Employee
    from models.shift import ShiftDefinition

    shifts = [
        ShiftDefinition(id="morning", venue_id=venue_id, name="Mattina", code="M",
                        start_time=dtime(7, 0), end_time=dtime(15, 0), break_minutes=30,
                        min_staff=3, max_staff=5, position=3),
        ShiftDefinition(id="evening", venue_id=venue_id, name="Sera", code="S",
                        start_time=dtime(15, 0), end_time=dtime(23, 0), break_minutes=30,
                        min_staff=3, max_staff=5, position=2),
        ShiftDefinition(id="night", venue_id=venue_id, name="Notte", code="N",
                        start_time=dtime(22, 0), end_time=dtime(6, 0), break_minutes=30,
                        min_staff=1, max_staff=2, rate_multiplier=1.25, position=1),
    ]
    employees = [
        Employee(
            id=f"e{n:03d}",
            first_name="Staff",
            last_name=str(n),
            is_fixed_staff=n % 3 != 0,
            contract_hours_week=40.0 if n % 3 != 0 else 20.0,
            venue_id=venue_id,
            hourly_rate_base=10.0 + (n % 5),
            work_days_per_week=5 if n % 3 != 0 else None,
        )
        for n in range(employee_count)
    ]
    return employees, shifts


def run_system_benchmark(sizes=(10, 25, 50), days: int = 14, iterations: int = 3):
    """
    Time generate_shifts over synthetic venues of increasing size.
    """
    from config import SchedulingConfig
    from models.generation import GenerationParams
    from scheduling import generate_shifts

    print("=" * 80)
    print("VENUE SHIFT SCHEDULER - BENCHMARK SUITE")
    print("=" * 80)
    print(f"Started at: {datetime.now().isoformat()}")
    print()

    start = date(2024, 12, 16)
    params = GenerationParams(venue_id="bench", start_date=start,
                              end_date=start + timedelta(days=days - 1))

    bench = Benchmark()
    for size in sizes:
        employees, shifts = build_synthetic_venue(size)
        for scope in ("same_shift", "same_date"):
            bench.add(
                f"generate_shifts: {size} employees, {days} days, {scope}",
                generate_shifts,
                iterations=iterations,
                args=("bench", employees, shifts, [], [], [], params,
                      SchedulingConfig(optimizer_scope=scope)),
            )

    bench.run()
    bench.print_report()
    print_profile_report()

    return bench.get_results_dict()


if __name__ == "__main__":
    run_system_benchmark()
