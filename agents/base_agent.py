"""
Base Agent class that all agents inherit from.
Provides common functionality for agent lifecycle, logging and error handling.

This module defines:
- ISchedulingAgent: Interface contract for all scheduling agents
- AgentState: Lifecycle state enumeration
- BaseAgent: Abstract base implementation

Architecture Note:
    Agents are thin shells around the pure scheduling engine. They own I/O
    (CSV, Excel, the repository) and reporting; the engine owns the rules.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Protocol, runtime_checkable
from rich.console import Console
from pathlib import Path
import logging
import os
import time
import traceback


ROOT_LOGGER_NAME = "ShiftScheduler"


# =============================================================================
# INTERFACE CONTRACT
# =============================================================================

@runtime_checkable
class ISchedulingAgent(Protocol):
    """
    Interface contract for all scheduling agents.

    Usage:
        def process_with_agent(agent: ISchedulingAgent):
            if agent.health_check():
                result = agent.execute(schedule_id="S1")
    """

    @property
    def name(self) -> str:
        """Agent's unique identifier."""
        ...

    @property
    def is_active(self) -> bool:
        """Whether the agent is currently active."""
        ...

    def execute(self, **kwargs) -> Any:
        """Execute the agent's main task."""
        ...

    def health_check(self) -> bool:
        """Check if the agent is healthy and ready to process."""
        ...

    def startup(self) -> None:
        """Initialize and start the agent."""
        ...

    def shutdown(self) -> None:
        """Gracefully shut down the agent."""
        ...

    def get_metrics(self) -> Dict[str, Any]:
        """Get agent performance metrics."""
        ...


class AgentState(Enum):
    """Agent lifecycle states."""
    INITIALIZING = "initializing"
    IDLE = "idle"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"
    SHUTDOWN = "shutdown"


class BaseAgent(ABC):
    """
    Abstract base class for all agents in the scheduling system.

    Provides:
    - State management with explicit lifecycle
    - Dual logging (console + file)
    - Error handling with graceful degradation
    - Standard lifecycle methods

    Attributes:
        name: Unique identifier for the agent
        state: Agent's internal data dict
        agent_state: Current lifecycle state (AgentState enum)
        is_active: Whether the agent is currently active
    """

    # Class-level file logger (shared across all agents)
    _file_logger: Optional[logging.Logger] = None
    _log_file_path: Optional[str] = None

    @classmethod
    def setup_file_logging(cls, log_dir: str = "output") -> str:
        """
        Set up file logging for all agents and the scheduling engine.

        Engine modules log under child loggers of the same root, so their
        records land in this file too.

        Args:
            log_dir: Directory for log files

        Returns:
            Path to the log file
        """
        if cls._file_logger is not None:
            return cls._log_file_path

        Path(log_dir).mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = os.path.join(log_dir, f"scheduling_log_{timestamp}.txt")

        cls._file_logger = logging.getLogger(ROOT_LOGGER_NAME)
        cls._file_logger.setLevel(logging.DEBUG)

        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)

        formatter = logging.Formatter(
            '%(asctime)s | %(levelname)-8s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        file_handler.setFormatter(formatter)

        cls._file_logger.addHandler(file_handler)
        cls._log_file_path = log_file

        cls._file_logger.info("=" * 70)
        cls._file_logger.info("VENUE SHIFT SCHEDULER - LOG FILE")
        cls._file_logger.info(f"Session started: {datetime.now().isoformat()}")
        cls._file_logger.info("=" * 70)

        return log_file

    @classmethod
    def close_file_logging(cls) -> None:
        """Detach and close the shared file handler."""
        if cls._file_logger is None:
            return
        for handler in list(cls._file_logger.handlers):
            if isinstance(handler, logging.FileHandler):
                handler.close()
                cls._file_logger.removeHandler(handler)
        cls._file_logger = None
        cls._log_file_path = None

    def __init__(self, name: str, verbose: bool = True):
        """
        Initialize the agent.

        Args:
            name: Unique name for this agent
            verbose: Print status lines to the console
        """
        self.name = name
        self.agent_state = AgentState.INITIALIZING
        self.is_active = True
        self.console = Console(quiet=not verbose)
        self._error_count = 0
        self._max_errors = 3  # Graceful degradation threshold
        self._last_execution_time: Optional[float] = None

        self._transition_state(AgentState.IDLE)
        self.log("Agent initialized and ready", "debug")

    # ==================== Lifecycle ====================

    @abstractmethod
    def execute(self, **kwargs) -> Any:
        """
        Execute the agent's main task.
        Override in subclasses to implement specific behavior.

        Returns:
            Result of the agent's execution
        """
        pass

    def startup(self) -> None:
        """
        Start up the agent (explicit lifecycle protocol).
        Called before first execution.
        """
        self.is_active = True
        self._error_count = 0
        self._transition_state(AgentState.IDLE)
        self.log("Agent started", "success")

    def shutdown(self) -> None:
        """Shut down the agent and log its final status."""
        self._transition_state(AgentState.SHUTDOWN)
        self.is_active = False
        self.log(f"Agent shutdown (errors: {self._error_count})", "info")

    def health_check(self) -> bool:
        """
        Check if the agent is healthy and ready to process.

        Returns:
            True if agent is healthy, False otherwise
        """
        return (
            self.is_active and
            self.agent_state not in [AgentState.ERROR, AgentState.SHUTDOWN] and
            self._error_count < self._max_errors
        )

    def get_metrics(self) -> Dict[str, Any]:
        """Get agent performance metrics."""
        return {
            "name": self.name,
            "state": self.agent_state.value,
            "is_active": self.is_active,
            "error_count": self._error_count,
            "max_errors": self._max_errors,
            "is_healthy": self.health_check(),
            "execution_time": self._last_execution_time,
        }

    # ==================== Logging ====================

    def log(self, message: str, level: str = "info") -> None:
        """
        Log a message with agent context (dual: console + file).

        Args:
            message: The log message
            level: Log level (info, warning, error, debug, success)
        """
        colors = {
            "info": "blue",
            "warning": "yellow",
            "error": "red",
            "debug": "dim",
            "success": "green"
        }
        color = colors.get(level, "white")
        self.console.print(f"[{color}][{self.name}] {message}[/{color}]")

        if BaseAgent._file_logger:
            log_level = {
                "info": logging.INFO,
                "warning": logging.WARNING,
                "error": logging.ERROR,
                "debug": logging.DEBUG,
                "success": logging.INFO,
            }.get(level, logging.INFO)

            BaseAgent._file_logger.log(log_level, f"[{self.name}] {message}")

    # ==================== State Management ====================

    def _transition_state(self, new_state: AgentState) -> None:
        old_state = self.agent_state
        self.agent_state = new_state

        if BaseAgent._file_logger:
            BaseAgent._file_logger.debug(
                f"[{self.name}] State: {old_state.value} -> {new_state.value}"
            )

    def get_agent_state(self) -> AgentState:
        """Get the current agent lifecycle state."""
        return self.agent_state

    # ==================== Error Handling ====================

    def _handle_error(self, error: Exception, context: str = "") -> bool:
        """
        Handle an error with graceful degradation.

        Args:
            error: The exception that occurred
            context: Description of what was happening when error occurred

        Returns:
            True if agent can continue, False if should stop
        """
        self._error_count += 1
        self._transition_state(AgentState.ERROR)

        error_msg = f"Error in {context}: {type(error).__name__}: {str(error)}"
        self.log(error_msg, "error")

        if BaseAgent._file_logger:
            BaseAgent._file_logger.error(f"[{self.name}] Traceback:\n{traceback.format_exc()}")

        if self._error_count >= self._max_errors:
            self.log(f"Max errors ({self._max_errors}) reached - agent degraded", "warning")
            return False

        self.log(f"Error {self._error_count}/{self._max_errors} - continuing with degraded mode", "warning")
        self._transition_state(AgentState.IDLE)
        return True

    def safe_execute(self, **kwargs) -> Any:
        """
        Execute with error handling and graceful degradation.

        Wraps the execute() method with try/except and state management.

        Returns:
            Result of execute() or None if error occurred
        """
        started = time.perf_counter()
        try:
            self._transition_state(AgentState.PROCESSING)
            result = self.execute(**kwargs)
            self._transition_state(AgentState.COMPLETED)
            return result
        except Exception as e:
            can_continue = self._handle_error(e, "execute()")
            if not can_continue:
                raise
            return None
        finally:
            self._last_execution_time = time.perf_counter() - started

    # ==================== Utility Methods ====================

    def __str__(self) -> str:
        status = "active" if self.is_active else "inactive"
        return f"{self.name} ({self.__class__.__name__}, {status})"

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name='{self.name}', active={self.is_active})>"
