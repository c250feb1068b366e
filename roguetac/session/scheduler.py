"""
Scheduler - Delayed actions keyed to a fight generation.

The opponent does not answer instantly: after a player move its reply
is queued with a short delay. Every queued action carries the RunState
generation it was issued against. When a new fight starts the
generation moves on, and anything still queued from the old fight is
discarded instead of fired.

Nothing here blocks or spawns threads. Callers drive time forward with
due(now) or take everything at once with drain().
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable
import logging
import time

from ..engine_core.action import Action

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass(frozen=True)
class ScheduledAction:
    """An action waiting for its due time."""
    action: Action
    due_at: float
    generation: int


class Scheduler:
    """
    Queue of delayed actions.

    Usage:
        scheduler = Scheduler(clock=time.monotonic)
        scheduler.schedule(Action.opponent_move(gen), delay_ms=350, generation=gen)
        for item in scheduler.due(time.monotonic(), current_generation=gen):
            reducer.apply(state, item.action)
    """

    def __init__(self, clock: Clock | None = None):
        self.clock = clock or time.monotonic
        self._queue: list[ScheduledAction] = []

    def __len__(self) -> int:
        return len(self._queue)

    @property
    def pending(self) -> list[ScheduledAction]:
        return list(self._queue)

    def next_due_at(self) -> float | None:
        if not self._queue:
            return None
        return min(item.due_at for item in self._queue)

    def schedule(self, action: Action, delay_ms: int, generation: int) -> ScheduledAction:
        """Queue an action to fire delay_ms from now."""
        item = ScheduledAction(
            action=action,
            due_at=self.clock() + delay_ms / 1000.0,
            generation=generation,
        )
        self._queue.append(item)
        self._queue.sort(key=lambda s: s.due_at)
        return item

    def cancel_stale(self, generation: int) -> int:
        """Drop everything not issued against `generation`. Returns how many."""
        stale = [item for item in self._queue if item.generation != generation]
        if stale:
            logger.warning(
                "Discarding %d stale scheduled action(s) (generation is now %d)",
                len(stale),
                generation,
            )
        self._queue = [item for item in self._queue if item.generation == generation]
        return len(stale)

    def due(self, now: float | None = None, current_generation: int | None = None) -> list[ScheduledAction]:
        """
        Pop every action whose time has come, oldest first.

        If current_generation is given, stale actions are discarded first.
        """
        if current_generation is not None:
            self.cancel_stale(current_generation)

        now = self.clock() if now is None else now
        ready = [item for item in self._queue if item.due_at <= now]
        self._queue = [item for item in self._queue if item.due_at > now]
        return ready

    def drain(self, current_generation: int | None = None) -> list[ScheduledAction]:
        """Pop everything regardless of due time."""
        if current_generation is not None:
            self.cancel_stale(current_generation)
        ready, self._queue = self._queue, []
        return ready

    def clear(self) -> None:
        self._queue = []
