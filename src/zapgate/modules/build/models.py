"""Build results and the records passed between build steps."""

from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from enum import Enum, IntEnum
from typing import Any

from zapgate.config.models import CommandLineArg


class BuildResult(IntEnum):
    """CI result level; the value is the process exit code."""

    SUCCESS = 0
    FAILURE = 1
    UNSTABLE = 2
    ABORTED = 130


class BuildStep(str, Enum):
    START = "start"
    SCAN = "scan"
    THRESHOLD = "threshold"


def _now() -> str:
    return datetime.now(UTC).isoformat()


@dataclass(frozen=True)
class HandoffRecord:
    """What a later step needs to relaunch or re-attach to the scanner."""

    build_success: bool
    install_dir: str
    host: str
    port: int
    timeout: int = 60
    settings_dir: str = ""
    auto_install: bool = False
    tool_name: str = ""
    command_line: tuple[tuple[str, str], ...] = ()
    session_path: str = ""
    java_home: str = ""
    pid: int | None = None
    build_id: str = ""
    created_at: str = field(default_factory=_now)

    def extras(self) -> tuple[CommandLineArg, ...]:
        return tuple(CommandLineArg(option, value) for option, value in self.command_line)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["command_line"] = [list(pair) for pair in self.command_line]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HandoffRecord":
        known = {name: data[name] for name in cls.__dataclass_fields__ if name in data}
        known["command_line"] = tuple(tuple(pair) for pair in known.get("command_line") or ())
        return cls(**known)
