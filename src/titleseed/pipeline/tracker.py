class FanOutTracker:
    """Counts successful items of one stage.

    The tracker only counts; it cannot tell items apart, so a duplicate signal
    from the same item would over-count. Callers record each item at most once.
    An over-count never reports completion a second time.
    """

    __slots__ = ("_target", "_completed")

    def __init__(self, target: int) -> None:
        if target < 0:
            raise ValueError(f"target must be non-negative, got {target}")
        self._target = target
        self._completed = 0

    @property
    def target(self) -> int:
        """Number of items in the stage (N)."""
        return self._target

    @property
    def completed(self) -> int:
        return self._completed

    @property
    def is_complete(self) -> bool:
        return self._completed >= self._target

    def record_success(self) -> bool:
        """Records one successful item.

        Returns:
            True exactly when this call brings the count to the target.
        """
        self._completed += 1
        return self._completed == self._target

    def __repr__(self) -> str:
        return f"<FanOutTracker {self._completed}/{self._target}>"
