"""
Staged provisioning pipeline.

Exposes the controller that drives a run together with the pieces it is
assembled from: the stage catalog, the throttle, the fan-out tracker and the
progress reporting contract.
"""

__all__ = [
    "CATALOG_VERSION",
    "STAGES",
    "FanOutTracker",
    "LoggingReporter",
    "PipelineController",
    "PipelineState",
    "ProgressReporter",
    "RunToken",
    "SeedData",
    "StageCatalog",
    "Throttle",
    "build_snapshot",
    "console_links",
    "flatten_drop_tables",
    "load_seed_data",
]

from .catalog import (
    CATALOG_VERSION,
    STAGES,
    SeedData,
    StageCatalog,
    console_links,
    flatten_drop_tables,
    load_seed_data,
)
from .controller import PipelineController
from .progress import LoggingReporter, ProgressReporter, build_snapshot
from .state import PipelineState
from .throttle import RunToken, Throttle
from .tracker import FanOutTracker
