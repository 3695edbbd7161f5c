"""
Venue Shift Scheduler - command line entry point.

Loads the CSV data directory, generates the roster for one schedule,
validates what was stored and exports it to Excel.

Usage:
    python main.py --data-dir data --schedule sched-2024-12-16
    python main.py --optimizer-scope same_date --passes 3 --week-start 6
"""
import argparse
import sys
from dataclasses import replace

from agents import CoordinatorAgent
from config import config as default_config
from storage import ScheduleNotFoundError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a venue shift roster from CSV data and export it to Excel."
    )
    parser.add_argument("--data-dir", default=default_config.data_dir,
                        help="Directory holding the CSV input files")
    parser.add_argument("--output", default=default_config.output_dir,
                        help="Directory for the Excel roster and the log file")
    parser.add_argument("--schedule", default=default_config.default_schedule_id,
                        help="Schedule id to generate (default: first schedule loaded)")
    parser.add_argument("--week-start", type=int, choices=range(7),
                        default=default_config.scheduling.week_start_day,
                        help="First day of the business week, 0 = Monday")
    parser.add_argument("--optimizer-scope", choices=("same_shift", "same_date"),
                        default=default_config.scheduling.optimizer_scope,
                        help="Which assignments the local search may swap")
    parser.add_argument("--passes", type=int, default=default_config.scheduling.optimizer_max_passes,
                        help="Maximum optimizer passes, 0 disables the optimizer")
    parser.add_argument("--minimize-cost", action="store_true",
                        help="Favour cheaper employees when scoring")
    parser.add_argument("--no-balance", action="store_true",
                        help="Do not favour employees with fewer hours this week")
    parser.add_argument("--no-persist", action="store_true",
                        help="Generate without replacing the stored assignments")
    parser.add_argument("--quiet", action="store_true",
                        help="Suppress console output (the log file is still written)")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    scheduling = replace(
        default_config.scheduling,
        week_start_day=args.week_start,
        optimizer_scope=args.optimizer_scope,
        optimizer_max_passes=args.passes,
    )
    app_config = replace(
        default_config,
        scheduling=scheduling,
        data_dir=args.data_dir,
        output_dir=args.output,
        verbose=not args.quiet,
        default_schedule_id=args.schedule,
    )

    overrides = {
        "minimize_cost": args.minimize_cost,
        "balance_hours": not args.no_balance,
    }

    coordinator = CoordinatorAgent(app_config=app_config)
    try:
        if args.no_persist:
            # Dry run: nothing is stored, validated or exported
            coordinator.data_loader.execute()
            result = coordinator.execute(
                schedule_id=coordinator.resolve_schedule_id(args.schedule),
                params_overrides=overrides,
                persist=False,
            )
            return 0 if result.success else 1

        results = coordinator.run_workflow(schedule_id=args.schedule, params_overrides=overrides)
    except ScheduleNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except FileNotFoundError as e:
        print(f"Missing input file: {e}", file=sys.stderr)
        return 2

    return 0 if results["success"] else 1


if __name__ == "__main__":
    sys.exit(main())
