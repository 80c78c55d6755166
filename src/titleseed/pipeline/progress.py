"""
Progress reporting for provisioning runs.

Reporters are read-only subscribers: the controller hands them immutable
snapshots after every transition and never reads anything back.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol

from titleseed.schemas import PipelinePhase, ProgressSnapshot, StageDescriptor

from .state import PipelineState

logger = logging.getLogger(__name__)


class ProgressReporter(Protocol):
    """Protocol for surfacing run progress to an operator."""

    def on_progress(self, snapshot: ProgressSnapshot) -> None:
        """Reports a state change (stage dispatched, item finished, ...).

        Args:
            snapshot: Current view of the run.
        """
        ...

    def on_error(self, message: str, snapshot: ProgressSnapshot) -> None:
        """Reports that the run halted.

        Args:
            message: The failure message, verbatim.
            snapshot: View of the halted run.
        """
        ...

    def on_complete(self, snapshot: ProgressSnapshot) -> None:
        """Reports that every stage finished."""
        ...


class LoggingReporter:
    """Reporter that writes progress to the ``titleseed`` logger."""

    def __init__(self) -> None:
        self._last_stage: int | None = None

    def on_progress(self, snapshot: ProgressSnapshot) -> None:
        if snapshot.stage_index != self._last_stage and snapshot.stage_title:
            self._last_stage = snapshot.stage_index
            logger.info(
                "Creating %s... (%d%%)",
                snapshot.stage_title,
                round(snapshot.fraction * 100),
            )
        elif snapshot.subtask_target > 1:
            logger.debug(
                "%s: %d/%d",
                snapshot.stage_title,
                snapshot.subtask_completed,
                snapshot.subtask_target,
            )

    def on_error(self, message: str, snapshot: ProgressSnapshot) -> None:
        logger.error("Upload halted while creating %s: %s", snapshot.stage_title, message)

    def on_complete(self, snapshot: ProgressSnapshot) -> None:
        logger.info("Upload complete (%d stages)", snapshot.total_stages)


def progress_fraction(stage_index: int, total_stages: int, bias: float) -> float:
    """Completion fraction shown to the operator, ``min(1, i/n + bias)``."""
    return min(1.0, stage_index / total_stages + bias)


def build_snapshot(
    state: PipelineState | None,
    stages: Sequence[StageDescriptor],
    *,
    phase: PipelinePhase,
    subtask_target: int = 0,
    lookahead_bias: float = 0.1,
) -> ProgressSnapshot:
    """Builds a read-only snapshot of a run.

    Args:
        state: Run state, or None before a run starts.
        stages: Ordered stage descriptors of the run.
        phase: Phase derived by the controller.
        subtask_target: Item count of the current stage.
        lookahead_bias: Added to the raw fraction.

    Returns:
        ProgressSnapshot: The snapshot.
    """
    total = len(stages)
    if state is None:
        return ProgressSnapshot(
            stage_index=0,
            total_stages=total,
            stage_key=None,
            stage_title=None,
            fraction=0.0,
            complete=False,
            subtask_completed=0,
            subtask_target=0,
            error_message=None,
            phase=phase,
        )

    index = state.stage_index
    current = stages[index] if index < total else None
    error = state.last_error

    return ProgressSnapshot(
        stage_index=index,
        total_stages=total,
        stage_key=current.key if current else None,
        stage_title=current.title if current else None,
        fraction=progress_fraction(index, total, lookahead_bias),
        complete=index >= total - 1,
        subtask_completed=state.stage_subtask_completed,
        subtask_target=subtask_target,
        error_message=(str(error) or type(error).__name__) if error else None,
        phase=phase,
    )
