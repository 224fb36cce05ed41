"""Build log with the tagged-line format used by every step.

Lines look like ``[ZAP] CREATE NEW CONTEXT [ C1 ]``; sub-items are tab-indented
without the tag. Markup is disabled so literal brackets survive rich rendering.
"""

import logging
import traceback
from typing import Any

from rich.console import Console

logger = logging.getLogger(__name__)

TAG = "ZAP"


def _fmt(message: str, args: tuple[Any, ...]) -> str:
    return message.format(*args) if args else message


class BuildLog:
    """Writes tagged build-log lines to a rich console."""

    def __init__(self, console: Console | None = None, tag: str = TAG):
        self.console = console or Console(highlight=False)
        self.tag = tag
        self.lines: list[str] = []

    def _emit(self, text: str, style: str | None = None) -> None:
        self.lines.append(text)
        self.console.print(text, style=style, markup=False, highlight=False, soft_wrap=True)

    def step(self, message: str, *args: Any) -> None:
        """Top-level phase transition, prefixed with the tag."""
        self._emit(f"[{self.tag}] {_fmt(message, args)}")

    def detail(self, message: str, *args: Any, indent: int = 1) -> None:
        """Indented sub-item of the previous step."""
        self._emit("\t" * indent + _fmt(message, args))

    def warning(self, message: str, *args: Any, indent: int = 1) -> None:
        self._emit("\t" * indent + _fmt(message, args), style="yellow")

    def blank(self) -> None:
        self._emit("")

    def error(self, message: str, *args: Any) -> None:
        self._emit(f"[{self.tag}] ERROR: {_fmt(message, args)}", style="red")

    def exception(self, exc: BaseException) -> None:
        """Print the full stack trace of ``exc``."""
        text = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)).rstrip()
        logger.debug("build step failed", exc_info=exc)
        self._emit(text, style="red")

    def raw(self, line: str) -> None:
        """Pass scanner output through untouched."""
        self._emit(line.rstrip("\n"), style="dim")

    def contains(self, fragment: str) -> bool:
        return any(fragment in line for line in self.lines)
