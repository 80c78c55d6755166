"""
Spacing policy for dispatches and the run-scoped cancellation token.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from titleseed.schemas import ThrottleConfig

logger = logging.getLogger(__name__)

Action = Callable[[], Awaitable[None] | None]


class RunToken:
    """Cancellation token scoped to one pipeline run.

    Every delayed action of a run is tracked here and checks the token right
    before it takes effect, so callbacks scheduled by an aborted or replaced
    run can never touch a later run.
    """

    __slots__ = ("_cancelled", "_tasks")

    def __init__(self) -> None:
        self._cancelled = False
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def track(self, task: asyncio.Task[None]) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def cancel(self) -> None:
        """Marks the run cancelled and cancels tracked tasks still pending."""
        self._cancelled = True
        for task in list(self._tasks):
            task.cancel()

    @property
    def pending(self) -> int:
        return sum(1 for t in self._tasks if not t.done())


@dataclass(frozen=True, slots=True)
class Throttle:
    """Minimum spacing between dispatches.

    Attributes:
        subtask_interval: Spacing between items of a fan-out stage.
        stage_settle_delay: Wait between a stage completing and the next
            stage dispatching.
    """

    subtask_interval: float = 0.5
    stage_settle_delay: float = 0.5

    def __post_init__(self) -> None:
        if self.subtask_interval < 0 or self.stage_settle_delay < 0:
            raise ValueError("Throttle durations must be non-negative.")

    @classmethod
    def from_config(cls, cfg: ThrottleConfig) -> Throttle:
        return cls(
            subtask_interval=cfg.subtask_interval,
            stage_settle_delay=cfg.stage_settle_delay,
        )

    def dispatch_offset(self, sequence_index: int) -> float:
        """Delay from stage start before item ``sequence_index`` may dispatch."""
        return sequence_index * self.subtask_interval

    def schedule_after(
        self,
        duration: float,
        action: Action,
        *,
        token: RunToken | None = None,
    ) -> asyncio.Task[None]:
        """Runs ``action`` no earlier than ``duration`` seconds from now.

        Returns immediately. The delay is a lower bound only; the event loop
        may run the action later. ``action`` may be a plain callable or a
        coroutine function; its result is awaited when awaitable.

        Args:
            duration: Minimum delay in seconds.
            action: Zero-argument callable to run.
            token: Optional run token; the action is skipped if it has been
                cancelled by the time the delay elapses.

        Returns:
            The task running the delayed action.
        """
        task = asyncio.create_task(self._delayed(max(0.0, duration), action, token))
        if token is not None:
            token.track(task)
        return task

    @staticmethod
    async def _delayed(
        duration: float,
        action: Action,
        token: RunToken | None,
    ) -> None:
        await asyncio.sleep(duration)
        if token is not None and token.cancelled:
            logger.debug("Skipping delayed action of a cancelled run")
            return
        result = action()
        if inspect.isawaitable(result):
            await result
