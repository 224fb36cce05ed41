"""Scan orchestration."""

from .cancel import CancelToken
from .driver import ScanDriver, load_session_path, session_file_path, settings_home
from .models import DriverOutcome, PhaseResult
from .phases import PhaseRunner

__all__ = [
    "CancelToken",
    "DriverOutcome",
    "PhaseResult",
    "PhaseRunner",
    "ScanDriver",
    "load_session_path",
    "session_file_path",
    "settings_home",
]
