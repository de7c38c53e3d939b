"""Frontier strategies for the path explorer.
The frontier holds ``(point, state)`` work items. The order in which they
are explored affects only performance: the explorer records every distinct
state reaching each point, so the final result is the same for every
strategy as long as the step budget is not exhausted.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from pathspectre.core.state import ProgramState


class ExplorationStrategy(Enum):
    """Path exploration strategies."""
    DFS = auto()
    BFS = auto()


@dataclass(frozen=True)
class WorkItem:
    """A program state waiting to be processed at a program point."""
    point: int
    state: ProgramState


class PathManager(ABC):
    """Abstract base class for frontiers."""
    @abstractmethod
    def add_state(self, item: WorkItem) -> None:
        """Add a work item to explore."""
    @abstractmethod
    def get_next_state(self) -> WorkItem | None:
        """Get the next work item to explore."""
    @abstractmethod
    def is_empty(self) -> bool:
        """Check if there are work items to explore."""
    @abstractmethod
    def size(self) -> int:
        """Get number of pending work items."""
    def drain(self) -> list[WorkItem]:
        """Remove and return every pending work item."""
        items = []
        while not self.is_empty():
            items.append(self.get_next_state())
        return items


class DFSPathManager(PathManager):
    """Depth-first exploration."""
    def __init__(self):
        self._stack: list[WorkItem] = []
    def add_state(self, item: WorkItem) -> None:
        self._stack.append(item)
    def get_next_state(self) -> WorkItem | None:
        if self._stack:
            return self._stack.pop()
        return None
    def is_empty(self) -> bool:
        return len(self._stack) == 0
    def size(self) -> int:
        return len(self._stack)


class BFSPathManager(PathManager):
    """Breadth-first exploration."""
    def __init__(self):
        self._queue: deque[WorkItem] = deque()
    def add_state(self, item: WorkItem) -> None:
        self._queue.append(item)
    def get_next_state(self) -> WorkItem | None:
        if self._queue:
            return self._queue.popleft()
        return None
    def is_empty(self) -> bool:
        return len(self._queue) == 0
    def size(self) -> int:
        return len(self._queue)


def create_path_manager(strategy: ExplorationStrategy) -> PathManager:
    """Factory function for frontiers."""
    if strategy == ExplorationStrategy.DFS:
        return DFSPathManager()
    return BFSPathManager()


__all__ = [
    "ExplorationStrategy",
    "WorkItem",
    "PathManager",
    "DFSPathManager",
    "BFSPathManager",
    "create_path_manager",
]
