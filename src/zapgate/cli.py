"""zapgate CLI - OWASP ZAP as CI build steps."""

from zapgate.cli_commands import build_commands, version_command  # noqa: F401
from zapgate.cli_commands.shared import app, console
from zapgate.config.env_loader import parse_build_vars
from zapgate.modules.build.steps import execute_step
from zapgate.modules.launcher.executor import LocalExecutor
from zapgate.utils.async_utils import safe_async_run
from zapgate.utils.buildlog import BuildLog

__all__ = [
    "BuildLog",
    "LocalExecutor",
    "app",
    "console",
    "execute_step",
    "main",
    "parse_build_vars",
    "safe_async_run",
]


def main():
    """Entry point for the CLI."""
    app()
