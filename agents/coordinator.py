"""
Coordinator Agent - Orchestrates the scheduling workflow.

This module implements the central coordinator with:
- Agent lifecycle management
- Workflow orchestration (load -> generate -> validate -> export)
- Performance profiling
- Error handling with graceful degradation
"""
import time
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from rich.table import Table

from .base_agent import BaseAgent
from .data_loader import DataLoaderAgent
from .compliance_validator import ComplianceValidatorAgent
from .roster_generator import RosterGeneratorAgent

from benchmark import profile_function
from config import AppConfig
from models.generation import GenerationParams, GenerationResult, Severity, WarningType
from models.schedule import Schedule
from scheduling import generate_shifts
from storage import ScheduleNotFoundError, ScheduleRepository


PARAM_OVERRIDE_KEYS = ("prefer_fixed_staff", "balance_hours", "minimize_cost", "staffing_requirements")


class CoordinatorAgent(BaseAgent):
    """
    Master coordinator that orchestrates all agents.

    Responsibilities:
    - Initialize and manage all agents
    - Generate shifts for a schedule from repository data
    - Persist the generated roster
    - Track overall progress and report final results
    """

    def __init__(self, repository: Optional[ScheduleRepository] = None,
                 app_config: Optional[AppConfig] = None):
        self.app_config = app_config or AppConfig()
        super().__init__("Coordinator", self.app_config.verbose)

        self.repository = repository or ScheduleRepository()
        scheduling = self.app_config.scheduling
        verbose = self.app_config.verbose

        self.data_loader = DataLoaderAgent(self.repository, self.app_config.data_dir, verbose)
        self.compliance_validator = ComplianceValidatorAgent(self.repository, scheduling, verbose)
        self.roster_generator = RosterGeneratorAgent(verbose, scheduling.max_staff_headroom)

        # Workflow state
        self.last_result: Optional[GenerationResult] = None
        self.workflow_log: List[Dict] = []
        self.start_time: Optional[float] = None

    @profile_function
    def execute(self,
                schedule_id: str,
                params_overrides: Optional[Mapping[str, Any]] = None,
                persist: bool = True,
                **kwargs) -> GenerationResult:
        """
        Generate shifts for a stored schedule.

        Args:
            schedule_id: Schedule to fill
            params_overrides: prefer_fixed_staff / balance_hours / minimize_cost
                switches and extra staffing_requirements
            persist: Replace the schedule's stored assignments with the result

        Returns:
            GenerationResult

        Raises:
            ScheduleNotFoundError: Unknown schedule id
            ValueError: Unknown override key
        """
        try:
            schedule = self.repository.get_schedule(schedule_id)
        except ScheduleNotFoundError as e:
            self.log(f"Cannot generate: {e}", "error")
            raise

        params = self._build_params(schedule, params_overrides)
        venue_id = schedule.venue_id
        employees = self.repository.employees_for_venue(venue_id)

        self.log(
            f"Generating {schedule.id} for {venue_id}: {schedule.start_date} to {schedule.end_date} "
            f"({len(employees)} employees)"
        )

        result = generate_shifts(
            schedule.id,
            employees,
            self.repository.shift_definitions_for_venue(venue_id),
            self.repository.employee_constraints_for_venue(venue_id),
            self.repository.relationship_constraints_for_venue(venue_id),
            self.repository.approved_leave_overlapping(
                schedule.start_date, schedule.end_date, [e.id for e in employees],
            ),
            params,
            self.app_config.scheduling,
        )
        self.last_result = result

        if persist:
            stored = self.repository.replace_assignments(schedule.id, result.assignments)
            self.repository.mark_generated(schedule.id, self._generation_log(result))
            self.log(f"Persisted {stored} assignments, schedule marked GENERATED")

        level = "success" if result.success else "warning"
        self.log(f"Generation finished: {result}", level)
        self._print_generation_table(result)
        return result

    def _build_params(self, schedule: Schedule,
                      overrides: Optional[Mapping[str, Any]]) -> GenerationParams:
        overrides = dict(overrides or {})
        unknown = set(overrides) - set(PARAM_OVERRIDE_KEYS)
        if unknown:
            raise ValueError(f"Unknown generation parameters: {', '.join(sorted(unknown))}")

        staffing = self.repository.staffing_requirements(schedule.id)
        staffing.update(overrides.pop("staffing_requirements", None) or {})

        return GenerationParams(
            venue_id=schedule.venue_id,
            start_date=schedule.start_date,
            end_date=schedule.end_date,
            staffing_requirements=staffing,
            **overrides,
        )

    @staticmethod
    def _generation_log(result: GenerationResult) -> Dict[str, Any]:
        return {
            "generated_at": datetime.now().isoformat(),
            "success": result.success,
            "optimized": result.optimized,
            "stats": result.stats.to_dict(),
            "warnings": [w.to_dict() for w in result.warnings],
        }

    # ==================== Full workflow ====================

    def run_workflow(self,
                     schedule_id: Optional[str] = None,
                     params_overrides: Optional[Mapping[str, Any]] = None,
                     output_path: Optional[str] = None,
                     load_data: bool = True,
                     export: bool = True) -> Dict[str, Any]:
        """
        Load data, generate, validate the stored roster and export it.

        Returns:
            Dictionary with the generation result, validation result,
            output file and timings
        """
        self.start_time = time.time()
        output_path = output_path or self.app_config.output_dir

        log_file = BaseAgent.setup_file_logging(output_path)
        self.log("=" * 60)
        self.log("STARTING SHIFT SCHEDULER")
        self.log(f"Business week starts on {self.app_config.scheduling.week_start_name}")
        self.log(f"Log file: {log_file}")
        self.log("=" * 60)

        self._startup_all_agents()

        try:
            if load_data:
                self._log_phase("PHASE 1: DATA LOADING")
                loaded = self.data_loader.execute()
                self._log_phase_complete(
                    f"Loaded {loaded['employee_count']} employees, "
                    f"{loaded['shift_definition_count']} shifts, {loaded['schedule_count']} schedules"
                )

            schedule_id = self.resolve_schedule_id(schedule_id)

            self._log_phase("PHASE 2: SHIFT GENERATION")
            result = self.execute(schedule_id=schedule_id, params_overrides=params_overrides)
            self._log_phase_complete(f"{len(result.assignments)} assignments, {len(result.warnings)} warnings")

            self._log_phase("PHASE 3: VALIDATION")
            validation = self.compliance_validator.execute(schedule_id=schedule_id)
            self._log_phase_complete("Valid" if validation.is_valid else "Issues found")

            output_file = None
            if export:
                self._log_phase("PHASE 4: EXPORTING ROSTER")
                schedule = self.repository.get_schedule(schedule_id)
                output_file = self.roster_generator.safe_execute(
                    schedule=schedule,
                    assignments=self.repository.load_assignments(schedule_id),
                    employees=self.repository.employees_for_venue(schedule.venue_id),
                    shifts=self.repository.shift_definitions_for_venue(schedule.venue_id),
                    output_path=output_path,
                    result=result,
                    validation=validation,
                    staffing_requirements=self.repository.staffing_requirements(schedule_id),
                )
                if output_file:
                    self._log_phase_complete(f"Exported to {output_file}")
                else:
                    self.log("Export failed; the roster is stored but no workbook was written", "warning")

            elapsed = time.time() - self.start_time
            results = {
                "schedule_id": schedule_id,
                "success": result.success and validation.is_valid,
                "generation": result,
                "validation": validation,
                "output_file": output_file,
                "log_file": BaseAgent._log_file_path,
                "elapsed_time_seconds": elapsed,
            }
            self._print_final_report(results)
            return results

        except Exception as e:
            self._handle_error(e, "scheduling workflow")
            raise

        finally:
            self._shutdown_all_agents()
            if BaseAgent._file_logger:
                elapsed = time.time() - self.start_time if self.start_time else 0
                BaseAgent._file_logger.info("=" * 70)
                BaseAgent._file_logger.info(f"SESSION ENDED - Total time: {elapsed:.2f}s")
                BaseAgent._file_logger.info("=" * 70)

    def resolve_schedule_id(self, schedule_id: Optional[str] = None) -> str:
        """The given id, else the configured default, else the earliest loaded schedule."""
        if schedule_id:
            return schedule_id
        if self.app_config.default_schedule_id:
            return self.app_config.default_schedule_id
        schedules = self.repository.list_schedules()
        if not schedules:
            raise ScheduleNotFoundError("<none loaded>")
        return schedules[0].id

    def _startup_all_agents(self) -> None:
        for agent in (self.data_loader, self.compliance_validator, self.roster_generator):
            agent.startup()

    def _shutdown_all_agents(self) -> None:
        for agent in (self.roster_generator, self.compliance_validator, self.data_loader):
            agent.shutdown()

    def _log_phase(self, phase_name: str) -> None:
        """Log the start of a workflow phase."""
        self.log(f"{'-' * 50}")
        self.log(phase_name)
        self.log(f"{'-' * 50}")
        self.workflow_log.append({
            "phase": phase_name,
            "timestamp": datetime.now().isoformat(),
            "type": "start"
        })

    def _log_phase_complete(self, message: str) -> None:
        self.log(message, "success")
        self.workflow_log.append({
            "message": message,
            "timestamp": datetime.now().isoformat(),
            "type": "complete"
        })

    # ==================== Reporting ====================

    def _print_generation_table(self, result: GenerationResult) -> None:
        stats = result.stats
        table = Table(title="Generation Summary")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", justify="right")
        table.add_row("Assignments", str(stats.total_shifts))
        table.add_row("Hours", f"{stats.total_hours:.1f}")
        table.add_row("Estimated cost", f"{stats.total_cost:.2f}")
        table.add_row("Coverage", f"{stats.coverage_percentage:.1f}%")
        table.add_row("Understaffed slots", str(len(result.warnings_of(WarningType.UNDERSTAFFED))))
        table.add_row("Soft constraints broken", str(stats.soft_constraints_violated))
        table.add_row("Relationship issues", str(len(result.warnings_of(WarningType.RELATIONSHIP_VIOLATED))))
        table.add_row("Optimized", "yes" if result.optimized else "no")
        self.console.print(table)

    def _print_final_report(self, results: Dict) -> None:
        """Print the final results report."""
        result: GenerationResult = results["generation"]
        validation = results["validation"]

        self.log("=" * 60)
        self.log("SCHEDULING COMPLETE - FINAL REPORT")
        self.log("=" * 60)

        table = Table(title=f"Employees - {results['schedule_id']}")
        for column in ("ID", "Name", "Shifts", "Hours", "Cost", "Utilization"):
            table.add_column(column, justify="left" if column in ("ID", "Name") else "right")
        for s in result.stats.employee_stats:
            table.add_row(
                s.user_id, s.name, str(s.shifts_assigned), f"{s.hours_assigned:.1f}",
                f"{s.cost_estimated:.2f}", f"{s.utilization_percentage:.0f}%",
            )
        self.console.print(table)

        high = sum(1 for w in validation.warnings if w.severity == Severity.HIGH)
        self.log(f"Generation: {'OK' if result.success else 'NEEDS ATTENTION'}")
        self.log(f"Validation: {'VALID' if validation.is_valid else f'{high} blocking issues'}")
        self.log(f"Time: {results['elapsed_time_seconds']:.2f} seconds")
        if results.get("output_file"):
            self.log(f"Output: {results['output_file']}")
        if results.get("log_file"):
            self.log(f"Log File: {results['log_file']}")
        self.log("=" * 60)
