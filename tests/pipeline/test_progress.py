import logging

import pytest

from titleseed.pipeline import STAGES, LoggingReporter, PipelineState, build_snapshot
from titleseed.pipeline.progress import progress_fraction
from titleseed.schemas import PipelinePhase


def test_progress_fraction_includes_bias_and_is_capped():
    assert progress_fraction(0, 6, 0.1) == pytest.approx(0.1)
    assert progress_fraction(3, 6, 0.1) == pytest.approx(0.6)
    assert progress_fraction(6, 6, 0.1) == 1.0


def test_snapshot_without_state():
    snap = build_snapshot(None, STAGES, phase=PipelinePhase.IDLE)

    assert snap.stage_index == 0
    assert snap.fraction == 0.0
    assert snap.complete is False
    assert snap.stage_key is None


def test_snapshot_of_first_stage():
    state = PipelineState(credential="k", total_stages=len(STAGES))
    snap = build_snapshot(
        state, STAGES, phase=PipelinePhase.AWAITING, subtask_target=1
    )

    assert snap.stage_key == "currency"
    assert snap.stage_title == "currencies"
    assert snap.fraction == pytest.approx(0.1)
    assert snap.complete is False
    assert snap.error_message is None


def test_complete_flag_is_set_on_the_last_stage():
    state = PipelineState(credential="k", total_stages=6, stage_index=5)
    snap = build_snapshot(state, STAGES, phase=PipelinePhase.AWAITING)

    assert snap.stage_key == "cloudscript"
    assert snap.complete is True
    assert snap.fraction == pytest.approx(5 / 6 + 0.1)


def test_snapshot_after_completion():
    state = PipelineState(credential="k", total_stages=6, stage_index=6)
    snap = build_snapshot(state, STAGES, phase=PipelinePhase.COMPLETE)

    assert snap.stage_key is None
    assert snap.complete is True
    assert snap.fraction == 1.0


def test_error_message_falls_back_to_type_name():
    state = PipelineState(credential="k", total_stages=6, last_error=TimeoutError())
    snap = build_snapshot(state, STAGES, phase=PipelinePhase.HALTED)
    assert snap.error_message == "TimeoutError"


def test_logging_reporter(caplog):
    reporter = LoggingReporter()
    state = PipelineState(credential="k", total_stages=6, stage_index=3)
    snap = build_snapshot(state, STAGES, phase=PipelinePhase.DISPATCHING)

    with caplog.at_level(logging.INFO, logger="titleseed"):
        reporter.on_progress(snap)
        reporter.on_progress(snap)
        reporter.on_error("Invalid input parameters", snap)

    messages = [r.getMessage() for r in caplog.records]
    assert messages.count("Creating stores... (60%)") == 1
    assert any("Invalid input parameters" in m for m in messages)
