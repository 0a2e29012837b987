#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/diffviz/delivery/scheduler.py
"""Deferred cleanup tasks.

Shared artifacts are retired by in-process timers. Timers are daemon
threads: they are lost when the process exits, so an artifact created
shortly before shutdown may outlive its nominal lifetime.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict

logger = logging.getLogger(__name__)


class ScheduledTask:
    """Handle for one deferred action.

    Parameters
    ----------
    name : str
        Human-readable task name used in log messages
    run_at : datetime
        Instant the action is due

    """

    def __init__(self, name: str, run_at: datetime, timer: threading.Timer, scheduler: DeferredTaskScheduler):
        """Initialize the handle; use :meth:`DeferredTaskScheduler.schedule` instead."""
        self.name = name
        self.run_at = run_at
        self._timer = timer
        self._scheduler = scheduler
        self.fired = False
        self.cancelled = False

    def cancel(self) -> bool:
        """Cancel the task if it has not fired yet.

        Returns
        -------
        bool
            True if the task was pending and is now cancelled

        """
        if self.fired or self.cancelled:
            return False
        self._timer.cancel()
        self.cancelled = True
        self._scheduler._forget(self)
        logger.debug(f"Cancelled deferred task '{self.name}'")
        return True

    @property
    def pending(self) -> bool:
        return not (self.fired or self.cancelled)

    def __repr__(self) -> str:
        state = "fired" if self.fired else "cancelled" if self.cancelled else "pending"
        return f"ScheduledTask(name={self.name!r}, run_at={self.run_at.isoformat()}, state={state})"


class DeferredTaskScheduler:
    """Process-scoped registry of deferred actions.

    Each task runs once on its own daemon timer thread and removes itself
    from the registry when it fires. Exceptions raised by the action are
    logged, never propagated.

    Examples
    --------
        >>> scheduler = DeferredTaskScheduler()
        >>> task = scheduler.schedule("cleanup", 30 * 60, print, "done")
        >>> task.cancel()
        True

    """

    def __init__(self) -> None:
        """Initialize an empty scheduler."""
        self._tasks: Dict[int, ScheduledTask] = {}
        self._lock = threading.Lock()

    def schedule(self, name: str, delay_seconds: float, action: Callable[..., Any], *args: Any) -> ScheduledTask:
        """Run ``action(*args)`` once after ``delay_seconds``.

        Parameters
        ----------
        name : str
            Task name for log messages
        delay_seconds : float
            Delay before the action runs
        action : callable
            Action to run
        *args
            Positional arguments for the action

        Returns
        -------
        ScheduledTask
            Handle that can cancel the task

        """
        run_at = datetime.now(timezone.utc) + timedelta(seconds=delay_seconds)
        holder: Dict[str, ScheduledTask] = {}

        def run() -> None:
            task = holder["task"]
            task.fired = True
            self._forget(task)
            try:
                action(*args)
            except Exception as e:
                logger.warning(f"Deferred task '{name}' failed: {e}")

        timer = threading.Timer(delay_seconds, run)
        timer.daemon = True
        task = ScheduledTask(name, run_at, timer, self)
        holder["task"] = task

        with self._lock:
            self._tasks[id(task)] = task
        timer.start()
        logger.debug(f"Scheduled deferred task '{name}' for {run_at.isoformat()}")
        return task

    def _forget(self, task: ScheduledTask) -> None:
        with self._lock:
            self._tasks.pop(id(task), None)

    @property
    def pending_tasks(self) -> list[ScheduledTask]:
        with self._lock:
            return list(self._tasks.values())

    def cancel_all(self) -> int:
        """Cancel every pending task and return how many were cancelled."""
        cancelled = 0
        for task in self.pending_tasks:
            if task.cancel():
                cancelled += 1
        return cancelled
