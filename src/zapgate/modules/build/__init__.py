"""CI build steps and the records passed between them."""

from .handoff import HANDOFF_RECORD, LAUNCH_RECORD, HandoffStore
from .models import BuildResult, BuildStep, HandoffRecord
from .steps import (
    BuildContext,
    execute_step,
    run_prebuild_step,
    run_scan_step,
    run_threshold_step,
)

__all__ = [
    "HANDOFF_RECORD",
    "LAUNCH_RECORD",
    "BuildContext",
    "BuildResult",
    "BuildStep",
    "HandoffRecord",
    "HandoffStore",
    "execute_step",
    "run_prebuild_step",
    "run_scan_step",
    "run_threshold_step",
]
