"""Scan phase and driver results."""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class PhaseResult:
    """Progress snapshots recorded while a phase was polled."""

    name: str
    started: bool = False
    skipped: bool = False
    scan_id: str = ""
    progress: list[int | str] = field(default_factory=list)
    alert_counts: list[int] = field(default_factory=list)
    message_counts: list[int] = field(default_factory=list)
    final_status: int | str | None = None


@dataclass
class DriverOutcome:
    success: bool = True
    aborted: bool = False
    session_path: str = ""
    context_id: str = ""
    phases: list[PhaseResult] = field(default_factory=list)
    reports: list[Path] = field(default_factory=list)
    total_alerts: int | None = None
    total_messages: int | None = None
    shutdown_calls: int = 0
