"""Min-priority queue for A* with deterministic tie-breaking."""

import heapq
import itertools
from typing import List, Tuple, Any, Optional
from dataclasses import dataclass


@dataclass
class PriorityItem:
    """
    Item in the priority queue with proper comparison for tie-breaking.

    Comparison order:
    1. f_cost (lower is better)
    2. h_cost (lower is better - favor nodes closer to target)
    3. g_cost (lower is better - favor nodes closer to start)
    4. sequence (insertion order)
    """
    f_cost: float
    h_cost: float
    g_cost: float
    sequence: int
    data: Any

    def __lt__(self, other: 'PriorityItem') -> bool:
        """Define comparison for heap ordering."""
        if self.f_cost != other.f_cost:
            return self.f_cost < other.f_cost
        if self.h_cost != other.h_cost:
            return self.h_cost < other.h_cost
        if self.g_cost != other.g_cost:
            return self.g_cost < other.g_cost
        return self.sequence < other.sequence


class PriorityQueue:
    """
    Binary-heap priority queue keyed by f = g + h.

    Entries are never updated in place; a cell may be pushed several times
    with improving costs, and the caller discards stale pops with its
    closed set.
    """

    def __init__(self):
        self._heap: List[PriorityItem] = []
        self._counter = itertools.count()

    def __len__(self) -> int:
        return len(self._heap)

    def is_empty(self) -> bool:
        """Check if the queue is empty."""
        return not self._heap

    def size(self) -> int:
        """Get the number of entries in the queue, stale ones included."""
        return len(self._heap)

    def put(self, f_cost: float, h_cost: float, g_cost: float, data: Any):
        """Add an entry to the queue."""
        heapq.heappush(self._heap, PriorityItem(f_cost, h_cost, g_cost, next(self._counter), data))

    def get(self) -> Optional[Tuple[float, Any]]:
        """
        Remove and return (f_cost, data) for the lowest entry.
        Returns None if queue is empty.
        """
        if not self._heap:
            return None
        entry = heapq.heappop(self._heap)
        return (entry.f_cost, entry.data)

