"""
Configuration for the Venue Shift Scheduler.

Settings are plain dataclasses with defaults; `AppConfig.load()` lets the
environment override the handful of values that differ between deployments.
"""

import os
import logging
from dataclasses import dataclass, field
from typing import Optional


# =============================================================================
# ENVIRONMENT HELPERS
# =============================================================================

def _env_int(name: str, default: int) -> int:
    """Read an integer from the environment, falling back on bad values."""
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logging.warning(f"Ignoring {name}={raw!r}: not an integer, using {default}")
        return default


def _env_bool(name: str, default: bool) -> bool:
    """Read a boolean flag from the environment."""
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# =============================================================================
# SCHEDULING CONFIGURATION
# =============================================================================

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday",
                 "Friday", "Saturday", "Sunday")


@dataclass
class SchedulingConfig:
    """Tunable parameters of the shift generation engine."""

    # Business week used by weekly caps, hour balancing and work-day counts.
    # Python weekday convention: 0 = Monday ... 6 = Sunday.
    week_start_day: int = 0

    # Fallbacks for incomplete employee records
    fallback_hourly_rate: float = 10.0
    default_contract_hours: float = 40.0

    # Greedy builder
    penalty_points: float = 50.0          # Subtracted from soft-penalized candidates
    max_staff_headroom: int = 2           # max_staff = min_staff + headroom when unset
    fixed_staff_priority_bonus: float = 1000.0
    fixed_staff_day_bonus: float = 100.0
    respect_leave_requests: bool = True

    # Local search
    optimizer_scope: str = "same_shift"   # same_shift | same_date
    optimizer_max_passes: int = 1

    def __post_init__(self):
        if not 0 <= self.week_start_day <= 6:
            raise ValueError(f"week_start_day must be 0-6, got {self.week_start_day}")
        if self.optimizer_max_passes < 0:
            raise ValueError("optimizer_max_passes cannot be negative")

    @property
    def week_start_name(self) -> str:
        return WEEKDAY_NAMES[self.week_start_day]


# =============================================================================
# MAIN APPLICATION CONFIGURATION
# =============================================================================

@dataclass
class AppConfig:
    """Main application configuration."""

    scheduling: SchedulingConfig = field(default_factory=SchedulingConfig)

    # I/O locations
    data_dir: str = "data"
    output_dir: str = "output"
    verbose: bool = True

    # Optional schedule to run when the CLI is called without --schedule
    default_schedule_id: Optional[str] = None

    @classmethod
    def load(cls) -> "AppConfig":
        """Load configuration from environment and defaults."""
        scheduling = SchedulingConfig(
            week_start_day=_env_int("SHIFT_WEEK_START_DAY", 0),
            optimizer_scope=os.environ.get("SHIFT_OPTIMIZER_SCOPE", "same_shift"),
            optimizer_max_passes=_env_int("SHIFT_OPTIMIZER_MAX_PASSES", 1),
            respect_leave_requests=_env_bool("SHIFT_RESPECT_LEAVE", True),
        )
        return cls(
            scheduling=scheduling,
            data_dir=os.environ.get("SHIFT_DATA_DIR", "data"),
            output_dir=os.environ.get("SHIFT_OUTPUT_DIR", "output"),
            verbose=_env_bool("SHIFT_VERBOSE", True),
            default_schedule_id=os.environ.get("SHIFT_SCHEDULE_ID") or None,
        )


# Global configuration instance
config = AppConfig.load()
