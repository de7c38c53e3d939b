"""Resource management and limits for path exploration.
Provides step counting, limit enforcement, and the record returned when a
function's exploration stops early.
"""
from __future__ import annotations
import threading
import time
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any


class ResourceType(Enum):
    """Types of resources to track."""
    STEPS = auto()
    TIME = auto()


class LimitExceeded(Exception):
    """Exception raised when a resource limit is exceeded."""
    def __init__(self, resource_type: ResourceType, current: Any, limit: Any):
        self.resource_type = resource_type
        self.current = current
        self.limit = limit
        super().__init__(f"{resource_type.name} limit exceeded: {current} >= {limit}")


@dataclass
class ResourceLimits:
    """Configurable resource limits."""
    max_steps: int = 10000
    timeout_seconds: float | None = None
    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "max_steps": self.max_steps,
            "timeout_seconds": self.timeout_seconds,
        }


@dataclass
class ResourceSnapshot:
    """Snapshot of current resource usage."""
    steps: int = 0
    states_recorded: int = 0
    pruned: int = 0
    deduplicated: int = 0
    elapsed_time: float = 0.0
    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "steps": self.steps,
            "states_recorded": self.states_recorded,
            "pruned": self.pruned,
            "deduplicated": self.deduplicated,
            "elapsed_time": self.elapsed_time,
        }


@dataclass(frozen=True)
class BudgetExhausted:
    """Exploration of a function stopped before reaching a fixed point.
    The states recorded so far are kept; the pending frontier is discarded.
    Attributes:
        function: Name of the explored function.
        steps: Steps performed before stopping.
        discarded: Number of pending work items dropped.
        reason: Which limit was hit.
    """
    function: str
    steps: int
    discarded: int
    reason: ResourceType = ResourceType.STEPS
    def to_dict(self) -> dict[str, Any]:
        return {
            "function": self.function,
            "steps": self.steps,
            "discarded": self.discarded,
            "reason": self.reason.name,
        }
    def __str__(self) -> str:
        return (
            f"{self.reason.name.lower()} budget exhausted in {self.function} after "
            f"{self.steps} steps ({self.discarded} pending states discarded)"
        )


class ResourceTracker:
    """Tracks and enforces resource limits during one exploration."""
    def __init__(self, limits: ResourceLimits | None = None):
        self.limits = limits or ResourceLimits()
        self._steps = 0
        self._states_recorded = 0
        self._pruned = 0
        self._deduplicated = 0
        self._start_time: float | None = None
        self._lock = threading.RLock()
    def start(self) -> None:
        """Start resource tracking."""
        with self._lock:
            self._start_time = time.perf_counter()
            self._steps = 0
            self._states_recorded = 0
            self._pruned = 0
            self._deduplicated = 0
    @property
    def steps(self) -> int:
        return self._steps
    @property
    def elapsed_time(self) -> float:
        """Get elapsed time in seconds."""
        if self._start_time is None:
            return 0.0
        return time.perf_counter() - self._start_time
    def record_step(self) -> None:
        with self._lock:
            self._steps += 1
    def record_state(self) -> None:
        with self._lock:
            self._states_recorded += 1
    def record_pruned(self, count: int = 1) -> None:
        with self._lock:
            self._pruned += count
    def record_duplicate(self) -> None:
        with self._lock:
            self._deduplicated += 1
    def check_limits(self) -> None:
        """Raise LimitExceeded if another step would exceed a limit."""
        with self._lock:
            if self._steps >= self.limits.max_steps:
                raise LimitExceeded(ResourceType.STEPS, self._steps, self.limits.max_steps)
            timeout = self.limits.timeout_seconds
            if timeout is not None and self.elapsed_time >= timeout:
                raise LimitExceeded(ResourceType.TIME, self.elapsed_time, timeout)
    def snapshot(self) -> ResourceSnapshot:
        """Get current resource usage snapshot."""
        with self._lock:
            return ResourceSnapshot(
                steps=self._steps,
                states_recorded=self._states_recorded,
                pruned=self._pruned,
                deduplicated=self._deduplicated,
                elapsed_time=self.elapsed_time,
            )


__all__ = [
    "ResourceType",
    "LimitExceeded",
    "ResourceLimits",
    "ResourceSnapshot",
    "BudgetExhausted",
    "ResourceTracker",
]
