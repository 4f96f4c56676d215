"""Time-ordered queue of pending (quantized) triggers."""

from __future__ import annotations

import heapq
import itertools
import logging

from gyrotone.core.timing.quantize import FLUSH_TOLERANCE
from gyrotone.core.triggers.models import PendingTrigger

logger = logging.getLogger(__name__)


class PendingQueue:
    """Min-heap of pending triggers keyed by execute time.

    Ties keep insertion order.

    Args:
        flush_tolerance: Slack added to ``now`` when releasing due entries
    """

    def __init__(self, flush_tolerance: float = FLUSH_TOLERANCE) -> None:
        self.flush_tolerance = flush_tolerance
        self._heap: list[tuple[float, int, PendingTrigger]] = []
        self._counter = itertools.count()

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return bool(self._heap)

    def push(self, trigger: PendingTrigger) -> None:
        heapq.heappush(self._heap, (trigger.execute_time, next(self._counter), trigger))

    def peek_time(self) -> float | None:
        """Execute time of the earliest entry, or None when empty."""
        return self._heap[0][0] if self._heap else None

    def pop_due(self, now: float) -> list[PendingTrigger]:
        """Remove and return every entry with ``execute_time <= now + tolerance``.

        Args:
            now: Current time in seconds

        Returns:
            Due triggers in execute-time order
        """
        due: list[PendingTrigger] = []
        limit = now + self.flush_tolerance
        while self._heap and self._heap[0][0] <= limit:
            due.append(heapq.heappop(self._heap)[2])
        return due

    def remove_layer(self, layer_id: str) -> int:
        """Drop every entry owned by ``layer_id``.

        Returns:
            Number of entries removed
        """
        kept = [entry for entry in self._heap if entry[2].layer_id != layer_id]
        removed = len(self._heap) - len(kept)
        if removed:
            heapq.heapify(kept)
            self._heap = kept
            logger.debug(f"Removed {removed} pending trigger(s) for layer '{layer_id}'")
        return removed

    def clear(self) -> None:
        self._heap.clear()

    def snapshot(self) -> list[PendingTrigger]:
        """Entries in execute-time order without removing them."""
        return [entry[2] for entry in sorted(self._heap, key=lambda e: (e[0], e[1]))]


__all__ = ["PendingQueue"]
