"""Cooperative scheduler running tasks at fixed periods."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable


@dataclass
class _Task:
    func: Callable[[], object]
    rate_ms: int
    last_run: int = 0


def _default_clock() -> int:
    return int(time.monotonic() * 1000)


class Scheduler:
    """Runs each task once its period has passed since it last ran.

    ``clock`` returns the current time in milliseconds. Every task counts
    as last run at time 0.
    """

    def __init__(self, clock: Callable[[], int] | None = None) -> None:
        self._clock = clock or _default_clock
        self._tasks: list[_Task] = []

    def __len__(self) -> int:
        return len(self._tasks)

    def add(self, task: Callable[[], object], rate_ms: int) -> None:
        """Register a task to run every ``rate_ms`` milliseconds."""
        if rate_ms < 0:
            raise ValueError(f"rate_ms must not be negative, got {rate_ms}")
        self._tasks.append(_Task(task, rate_ms))

    def run(self) -> int:
        """Run every task that is due, in the order added; return how many ran."""
        ran = 0
        for task in self._tasks:
            now = self._clock()
            if now >= task.rate_ms + task.last_run:
                task.last_run = now
                task.func()
                ran += 1
        return ran