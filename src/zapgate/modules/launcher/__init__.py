"""Scanner process launching and readiness."""

from .command import API_KEY, LaunchPlan, build_command, resolve_install_dir, scanner_environment
from .executor import LocalExecutor, RemoteExecutor
from .launcher import ProcessLauncher
from .process import AttachedProcess, DetachedProcess, ScannerProcess
from .readiness import wait_for_port

__all__ = [
    "API_KEY",
    "AttachedProcess",
    "DetachedProcess",
    "LaunchPlan",
    "LocalExecutor",
    "ProcessLauncher",
    "RemoteExecutor",
    "ScannerProcess",
    "build_command",
    "resolve_install_dir",
    "scanner_environment",
    "wait_for_port",
]
