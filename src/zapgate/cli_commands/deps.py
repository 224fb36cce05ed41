"""Runtime access to public CLI facade symbols.

Command modules resolve dependencies from ``zapgate.cli`` at call time so tests can
monkeypatch facade-level symbols (for example ``execute_step`` or ``LocalExecutor``).
"""

from importlib import import_module
from types import ModuleType


def cli_module() -> ModuleType:
    """Return the public CLI facade module."""
    return import_module("zapgate.cli")
