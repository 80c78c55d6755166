"""
The provisioning state machine.

A run walks the catalog's stages in order. Each stage's work items run as
independent tasks that report back through a per-run event queue; a single
consumer task applies those events, so every state transition happens in one
place regardless of the order in which remote calls finish.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import types
from dataclasses import dataclass
from enum import Enum
from typing import Final, Self, final

from titleseed.admin import AdminClientProtocol
from titleseed.errors import CredentialError, PipelineStateError, StageTimeoutError
from titleseed.schemas import (
    FanOutWorkItem,
    PipelineConfig,
    PipelinePhase,
    ProgressSnapshot,
)

from .catalog import StageCatalog
from .progress import LoggingReporter, ProgressReporter, build_snapshot
from .state import PipelineState
from .throttle import RunToken, Throttle
from .tracker import FanOutTracker

logger = logging.getLogger(__name__)


@final
class StopToken:
    """Typed sentinel used to end the event queue."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "STOP"


STOP: Final[StopToken] = StopToken()


class _Outcome(str, Enum):
    DISPATCHED = "dispatched"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SETTLED = "settled"


@dataclass(frozen=True, slots=True)
class _Event:
    outcome: _Outcome
    stage_index: int
    sequence_index: int = 0
    error: BaseException | None = None


class PipelineController:
    """Drives a provisioning run through every stage of a catalog.

    Single stages issue one call and advance on its success. Fan-out stages
    issue one call per item, spaced by the throttle's subtask interval, and
    advance once every item has succeeded. After each stage the throttle's
    settle delay elapses before the next stage dispatches.

    The first failure halts the run. In-flight items are not cancelled by a
    halt; their successes are still counted and further failures are logged.
    Clearing the error does not resubmit anything: use :meth:`retry_failed`
    to re-dispatch the failed items of the current stage explicitly.

    Args:
        client: Admin operations to dispatch to.
        catalog: Stages and payloads.
        throttle: Spacing policy; defaults to 0.5 s for both delays.
        item_timeout: Seconds a single call may take before it counts as
            failed. None waits indefinitely.
        lookahead_bias: Added to the progress fraction.
        reporter: Progress subscriber; defaults to logging.
    """

    def __init__(
        self,
        client: AdminClientProtocol,
        catalog: StageCatalog,
        *,
        throttle: Throttle | None = None,
        item_timeout: float | None = None,
        lookahead_bias: float = 0.1,
        reporter: ProgressReporter | None = None,
    ) -> None:
        if item_timeout is not None and item_timeout <= 0:
            raise ValueError(f"item_timeout must be positive, got {item_timeout}")
        missing = [
            stage.operation
            for stage in catalog.stages
            if not callable(getattr(client, stage.operation, None))
        ]
        if missing:
            raise ValueError(f"Admin client does not implement: {', '.join(missing)}")

        self._client = client
        self._catalog = catalog
        self._throttle = throttle or Throttle()
        self._item_timeout = item_timeout
        self._lookahead_bias = lookahead_bias
        self._reporter: ProgressReporter = reporter or LoggingReporter()

        self._state: PipelineState | None = None
        self._token: RunToken | None = None
        self._events: asyncio.Queue[_Event | StopToken] | None = None
        self._consumer: asyncio.Task[None] | None = None
        self._settled: asyncio.Event | None = None
        self._reset_stage()

    @classmethod
    def from_config(
        cls,
        client: AdminClientProtocol,
        catalog: StageCatalog,
        cfg: PipelineConfig,
        *,
        reporter: ProgressReporter | None = None,
    ) -> Self:
        return cls(
            client,
            catalog,
            throttle=Throttle.from_config(cfg.throttle),
            item_timeout=cfg.item_timeout,
            lookahead_bias=cfg.lookahead_bias,
            reporter=reporter,
        )

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> PipelineState | None:
        return self._state

    @property
    def catalog(self) -> StageCatalog:
        return self._catalog

    @property
    def throttle(self) -> Throttle:
        return self._throttle

    @property
    def phase(self) -> PipelinePhase:
        state = self._state
        if state is None:
            return PipelinePhase.IDLE
        if state.is_complete:
            return PipelinePhase.COMPLETE
        if state.is_halted:
            return PipelinePhase.HALTED
        if self._undispatched > 0 or self._settle_pending or self._deferred_dispatch:
            return PipelinePhase.DISPATCHING
        return PipelinePhase.AWAITING

    @property
    def failed_items(self) -> list[int]:
        """Sequence indexes of the current stage's items that failed."""
        return sorted(self._failed)

    def snapshot(self) -> ProgressSnapshot:
        return build_snapshot(
            self._state,
            self._catalog.stages,
            phase=self.phase,
            subtask_target=self._tracker.target if self._tracker else 0,
            lookahead_bias=self._lookahead_bias,
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def start(self, credential: str) -> PipelineState:
        """Starts a new run at stage 0.

        Any previous run of this controller is aborted first; its scheduled
        callbacks can no longer take effect.

        Args:
            credential: The title's secret key.

        Returns:
            PipelineState: State of the new run.

        Raises:
            CredentialError: If ``credential`` is empty or blank. No run is
                created in that case.
        """
        if not isinstance(credential, str) or not credential.strip():
            raise CredentialError("A secret key is required to start provisioning.")

        await self.abort()

        token = RunToken()
        events: asyncio.Queue[_Event | StopToken] = asyncio.Queue()
        self._token = token
        self._events = events
        self._settled = asyncio.Event()
        self._state = PipelineState(
            credential=credential,
            total_stages=len(self._catalog),
        )
        self._reset_stage()
        self._consumer = asyncio.create_task(self._consume(token, events))

        logger.info(
            "Provisioning started (%d stages, %d calls)",
            len(self._catalog),
            sum(self._catalog.cardinality(i) for i in range(len(self._catalog))),
        )
        self._dispatch_current()
        return self._state

    def advance(self) -> bool:
        """Moves to the next stage once the current one has fully succeeded.

        Called by the dispatch layer; has no effect while halted, after
        completion, or while the current stage still has outstanding items.

        Returns:
            True if the stage index advanced.
        """
        state = self._require_state()
        if state.is_complete:
            return False
        if state.is_halted:
            logger.info(
                "Stage %r finished while halted; waiting for the error to clear",
                self._catalog[state.stage_index].key,
            )
            return False
        if self._tracker is None or not self._tracker.is_complete:
            return False

        finished = self._catalog[state.stage_index]
        state.stage_index += 1
        state.stage_subtask_completed = 0
        self._reset_stage()
        logger.info("Stage %r complete", finished.key)

        if state.is_complete:
            logger.info("Provisioning complete")
            self._finish()
            return True

        self._settle_pending = True
        events = self._events
        index = state.stage_index
        assert events is not None
        self._throttle.schedule_after(
            self._throttle.stage_settle_delay,
            lambda: events.put_nowait(_Event(_Outcome.SETTLED, index)),
            token=self._token,
        )
        self._notify_progress()
        return True

    def report_error(self, err: BaseException) -> None:
        """Halts the run with ``err``.

        The first error is kept; errors reported while already halted, or
        after the run completed, are only logged. In-flight items keep running.
        """
        state = self._require_state()
        if state.last_error is not None:
            logger.warning("Additional failure while halted: %s", err)
            return
        if state.is_complete:
            logger.warning("Ignoring failure reported after completion: %s", err)
            return

        state.last_error = err
        stage = self._catalog[state.stage_index]
        logger.error(
            "Provisioning halted at stage %r: %s",
            stage.key,
            err,
        )
        if self._settled is not None:
            self._settled.set()
        snapshot = self.snapshot()
        self._reporter.on_error(snapshot.error_message or "", snapshot)

    def clear_error(self) -> None:
        """Clears the halting error and resumes waiting on the current stage.

        Failed items are not resubmitted, so a stage with a failed item stays
        incomplete until :meth:`retry_failed` is called. If the stage finished
        while halted, or the next stage's dispatch was held back by the halt,
        the run proceeds.
        """
        state = self._require_state()
        if state.last_error is None:
            return

        state.last_error = None
        if self._settled is not None and not state.is_complete:
            self._settled.clear()
        logger.info("Error cleared at stage index %d", state.stage_index)
        self._notify_progress()

        if self._deferred_dispatch:
            self._dispatch_current()
        elif self._tracker is not None and self._tracker.is_complete:
            self.advance()

    def retry_failed(self) -> int:
        """Re-dispatches the failed items of the current stage.

        The items are spaced by the subtask interval starting now. Items that
        are still in flight are left alone.

        Returns:
            Number of items re-dispatched.

        Raises:
            PipelineStateError: If no run exists or the run is halted.
        """
        state = self._require_state()
        if state.is_halted:
            raise PipelineStateError("Clear the error before retrying failed items.")
        if state.is_complete or not self._failed:
            return 0

        failed = sorted(self._failed)
        self._failed.clear()
        self._undispatched += len(failed)
        for offset, seq in enumerate(failed):
            self._schedule_item(self._items[seq], self._throttle.dispatch_offset(offset))

        logger.info(
            "Retrying %d failed item(s) of stage %r",
            len(failed),
            self._catalog[state.stage_index].key,
        )
        self._notify_progress()
        return len(failed)

    async def wait(self) -> PipelineState:
        """Waits until the run completes or halts.

        Returns:
            PipelineState: The run's state at that point.
        """
        state = self._require_state()
        assert self._settled is not None
        await self._settled.wait()
        return state

    async def abort(self) -> None:
        """Stops the current run.

        Pending dispatches and in-flight calls are cancelled, and callbacks
        that still fire are ignored. Anyone blocked in :meth:`wait` is
        released. The state is kept for inspection.
        """
        if self._token is not None:
            logger.info("Aborting run (%d pending dispatches)", self._token.pending)
            self._token.cancel()
        if self._settled is not None:
            self._settled.set()
        consumer, self._consumer = self._consumer, None
        if consumer is not None and not consumer.done():
            consumer.cancel()
            await asyncio.gather(consumer, return_exceptions=True)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _dispatch_current(self) -> None:
        state = self._require_state()
        index = state.stage_index
        stage = self._catalog[index]
        items = self._catalog.work_items(index, self._throttle)

        self._reset_stage()
        self._tracker = FanOutTracker(len(items))
        self._items = {item.sequence_index: item for item in items}
        self._undispatched = len(items)

        logger.info(
            "Stage %d/%d: creating %s (%d call%s)",
            index + 1,
            state.total_stages,
            stage.title,
            len(items),
            "" if len(items) == 1 else "s",
        )
        self._notify_progress()

        if not items:
            self.advance()
            return

        for item in items:
            self._schedule_item(item, item.scheduled_at)

    def _schedule_item(self, item: FanOutWorkItem, delay: float) -> None:
        state = self._require_state()
        assert self._events is not None
        self._throttle.schedule_after(
            delay,
            functools.partial(
                self._run_item,
                self._events,
                state.stage_index,
                state.credential,
                item,
            ),
            token=self._token,
        )

    async def _run_item(
        self,
        events: asyncio.Queue[_Event | StopToken],
        stage_index: int,
        credential: str,
        item: FanOutWorkItem,
    ) -> None:
        seq = item.sequence_index
        stage_key = self._catalog[stage_index].key
        events.put_nowait(_Event(_Outcome.DISPATCHED, stage_index, seq))
        logger.debug("Dispatching %s item #%d", stage_key, seq)

        deadline = asyncio.timeout(self._item_timeout)
        try:
            call = getattr(self._client, item.operation)
            async with deadline:
                await call(credential, **item.payload)
        except Exception as e:
            error: BaseException = e
            if deadline.expired():
                assert self._item_timeout is not None
                error = StageTimeoutError(stage_key, seq, self._item_timeout)
            logger.warning("%s item #%d failed: %s", stage_key, seq, error)
            events.put_nowait(_Event(_Outcome.FAILED, stage_index, seq, error))
        else:
            logger.debug("%s item #%d succeeded", stage_key, seq)
            events.put_nowait(_Event(_Outcome.SUCCEEDED, stage_index, seq))

    # ------------------------------------------------------------------
    # Event handling (runs on the consumer task only)
    # ------------------------------------------------------------------

    async def _consume(
        self,
        token: RunToken,
        events: asyncio.Queue[_Event | StopToken],
    ) -> None:
        while True:
            event = await events.get()
            if isinstance(event, StopToken) or token.cancelled:
                break
            try:
                self._apply(event)
            except Exception as e:
                logger.exception("Failed to apply %s event", event.outcome.value)
                self.report_error(e)

    def _apply(self, event: _Event) -> None:
        state = self._require_state()
        if event.stage_index != state.stage_index:
            logger.debug(
                "Ignoring %s event of stage %d (current stage %d)",
                event.outcome.value,
                event.stage_index,
                state.stage_index,
            )
            return

        match event.outcome:
            case _Outcome.DISPATCHED:
                self._undispatched = max(0, self._undispatched - 1)
                if self._undispatched == 0:
                    self._notify_progress()
            case _Outcome.SUCCEEDED:
                self._on_item_success(event.sequence_index)
            case _Outcome.FAILED:
                self._failed.add(event.sequence_index)
                assert event.error is not None
                self.report_error(event.error)
            case _Outcome.SETTLED:
                self._on_settled()

    def _on_item_success(self, seq: int) -> None:
        state = self._require_state()
        if self._tracker is None:
            return
        if seq in self._succeeded:
            logger.warning("Ignoring duplicate success of item #%d", seq)
            return

        self._succeeded.add(seq)
        self._failed.discard(seq)
        done = self._tracker.record_success()
        state.stage_subtask_completed = self._tracker.completed
        self._notify_progress()
        if done:
            self.advance()

    def _on_settled(self) -> None:
        state = self._require_state()
        self._settle_pending = False
        if state.is_halted:
            self._deferred_dispatch = True
            logger.info("Holding stage %d dispatch until the error clears", state.stage_index)
            return
        self._dispatch_current()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _reset_stage(self) -> None:
        self._tracker: FanOutTracker | None = None
        self._items: dict[int, FanOutWorkItem] = {}
        self._succeeded: set[int] = set()
        self._failed: set[int] = set()
        self._undispatched = 0
        self._settle_pending = False
        self._deferred_dispatch = False

    def _finish(self) -> None:
        if self._settled is not None:
            self._settled.set()
        if self._events is not None:
            self._events.put_nowait(STOP)
        self._reporter.on_complete(self.snapshot())

    def _notify_progress(self) -> None:
        self._reporter.on_progress(self.snapshot())

    def _require_state(self) -> PipelineState:
        if self._state is None:
            raise PipelineStateError("No provisioning run has been started.")
        return self._state

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        tb: types.TracebackType | None,
    ) -> None:
        await self.abort()
