"""Shared helpers."""

from .async_utils import safe_async_run
from .buildlog import BuildLog

__all__ = ["BuildLog", "safe_async_run"]
