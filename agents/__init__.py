"""
Agents for the Venue Shift Scheduler.

The agents wrap the pure scheduling engine with data loading, persistence,
validation, export and logging.
"""
from .base_agent import AgentState, BaseAgent, ISchedulingAgent
from .coordinator import CoordinatorAgent
from .data_loader import DataLoaderAgent
from .compliance_validator import ComplianceValidatorAgent
from .roster_generator import RosterGeneratorAgent

__all__ = [
    "AgentState",
    "BaseAgent",
    "ISchedulingAgent",
    "CoordinatorAgent",
    "DataLoaderAgent",
    "ComplianceValidatorAgent",
    "RosterGeneratorAgent",
]
