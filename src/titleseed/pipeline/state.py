from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class PipelineState:
    """Mutable state of one provisioning run.

    Owned and mutated exclusively by ``PipelineController``; everything else
    reads it, usually through a ``ProgressSnapshot``.

    Attributes:
        credential: Secret key used by every dispatched call. Read-only once
            the state exists.
        total_stages: Number of stages in the run.
        stage_index: Current stage; equal to ``total_stages`` once complete.
        stage_subtask_completed: Successful items recorded for the current
            stage. Reset whenever ``stage_index`` changes.
        last_error: Error that halted the run, if any.
    """

    credential: str = field(repr=False)
    total_stages: int
    stage_index: int = 0
    stage_subtask_completed: int = 0
    last_error: BaseException | None = None

    def __post_init__(self) -> None:
        if self.total_stages < 1:
            raise ValueError("A pipeline needs at least one stage.")

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "credential" and hasattr(self, "credential"):
            raise AttributeError("credential cannot be changed once set")
        object.__setattr__(self, name, value)

    @property
    def is_complete(self) -> bool:
        return self.stage_index >= self.total_stages

    @property
    def is_halted(self) -> bool:
        return self.last_error is not None
