"""
Storage layer for schedules, reference data and generated rosters.
"""
from .repository import ScheduleNotFoundError, ScheduleRepository

__all__ = ["ScheduleNotFoundError", "ScheduleRepository"]
