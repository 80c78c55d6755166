from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class StageKind(str, Enum):
    """How a stage's payload is dispatched."""

    SINGLE = "single"
    FAN_OUT = "fan_out"


class PipelinePhase(str, Enum):
    """Coarse state of a provisioning run, derived from ``PipelineState``."""

    IDLE = "idle"
    DISPATCHING = "dispatching"
    AWAITING = "awaiting"
    HALTED = "halted"
    COMPLETE = "complete"


@dataclass(frozen=True, slots=True)
class StageDescriptor:
    """Static description of one provisioning stage.

    Attributes:
        key: Stable identifier (e.g. ``"store"``).
        title: Display string used in progress messages.
        kind: Single call or fan-out.
        operation: Name of the admin client coroutine this stage invokes.
    """

    key: str
    title: str
    kind: StageKind
    operation: str


@dataclass(frozen=True, slots=True)
class FanOutWorkItem:
    """One remote call within a stage.

    Attributes:
        sequence_index: Position of the item within its stage.
        operation: Admin client coroutine name.
        payload: Keyword arguments for the call, excluding the secret key.
        scheduled_at: Seconds after stage start before the item may dispatch.
    """

    sequence_index: int
    operation: str
    payload: dict[str, Any] = field(default_factory=dict)
    scheduled_at: float = 0.0


@dataclass(frozen=True, slots=True)
class ProgressSnapshot:
    """Read-only view of a run handed to progress reporters.

    Attributes:
        stage_index: Index of the current stage.
        total_stages: Number of stages in the pipeline.
        stage_key: Key of the current stage, or None once complete.
        stage_title: Title of the current stage, or None once complete.
        fraction: Completion fraction in ``[0, 1]`` including the lookahead bias.
        complete: True once the last stage is reached.
        subtask_completed: Successful items recorded for the current stage.
        subtask_target: Number of items in the current stage.
        error_message: Message of the halting error, if any.
        phase: Derived pipeline phase.
    """

    stage_index: int
    total_stages: int
    stage_key: str | None
    stage_title: str | None
    fraction: float
    complete: bool
    subtask_completed: int
    subtask_target: int
    error_message: str | None
    phase: PipelinePhase
