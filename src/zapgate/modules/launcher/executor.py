"""
Execution host abstraction.

Everything that is host-relative (spawning the scanner, probing its port,
touching files the scanner reads or writes) goes through a ``RemoteExecutor``
so it runs where the scanner runs.
"""

import asyncio
import os
import platform
import subprocess
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Protocol

from zapgate.errors import ProcessLaunchError

from .process import AttachedProcess, DetachedProcess, ScannerProcess
from .readiness import wait_for_port


class RemoteExecutor(Protocol):
    node_name: str
    os_family: str

    def environment(self) -> dict[str, str]: ...

    async def spawn(
        self,
        command: Sequence[str],
        cwd: str,
        env: Mapping[str, str],
        log: Callable[[str], None] | None = None,
        detach_log: Path | None = None,
    ) -> ScannerProcess: ...

    async def wait_for_port(self, host: str, port: int, timeout: float) -> float: ...

    def make_dirs(self, path: Path) -> None: ...

    def write_bytes(self, path: Path, data: bytes) -> None: ...

    def read_text(self, path: Path) -> str: ...

    def list_files(self, path: Path) -> list[Path]: ...

    def delete_file(self, path: Path) -> None: ...

    def exists(self, path: Path) -> bool: ...

    async def attach(self, pid: int) -> ScannerProcess: ...


class LocalExecutor:
    """Executor for the machine the CLI itself runs on."""

    def __init__(self, node_name: str | None = None):
        self.node_name = node_name if node_name is not None else platform.node()
        self.os_family = "windows" if os.name == "nt" else "unix"

    def environment(self) -> dict[str, str]:
        return dict(os.environ)

    async def spawn(
        self,
        command: Sequence[str],
        cwd: str,
        env: Mapping[str, str],
        log: Callable[[str], None] | None = None,
        detach_log: Path | None = None,
    ) -> ScannerProcess:
        if detach_log is not None:
            return self._spawn_detached(command, cwd, env, detach_log)
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                cwd=cwd,
                env=dict(env),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as exc:
            raise ProcessLaunchError(f"Failed to start {command[0]}: {exc}") from exc
        return AttachedProcess(process, log)

    def _spawn_detached(
        self, command: Sequence[str], cwd: str, env: Mapping[str, str], detach_log: Path
    ) -> DetachedProcess:
        # Owned by no event loop: an asyncio transport would kill it on close.
        self.make_dirs(detach_log.parent)
        kwargs: dict = {}
        if self.os_family == "windows":
            kwargs["creationflags"] = subprocess.CREATE_NEW_PROCESS_GROUP | subprocess.DETACHED_PROCESS
        else:
            kwargs["start_new_session"] = True
        try:
            with open(detach_log, "ab") as out:
                popen = subprocess.Popen(
                    list(command),
                    cwd=cwd,
                    env=dict(env),
                    stdin=subprocess.DEVNULL,
                    stdout=out,
                    stderr=subprocess.STDOUT,
                    **kwargs,
                )
        except OSError as exc:
            raise ProcessLaunchError(f"Failed to start {command[0]}: {exc}") from exc
        return DetachedProcess(popen.pid, popen=popen)

    async def wait_for_port(self, host: str, port: int, timeout: float) -> float:
        return await wait_for_port(host, port, timeout)

    def make_dirs(self, path: Path) -> None:
        Path(path).mkdir(parents=True, exist_ok=True)

    def write_bytes(self, path: Path, data: bytes) -> None:
        Path(path).write_bytes(data)

    def read_text(self, path: Path) -> str:
        return Path(path).read_text(encoding="utf-8")

    def list_files(self, path: Path) -> list[Path]:
        directory = Path(path)
        if not directory.is_dir():
            return []
        return sorted(p for p in directory.iterdir() if p.is_file())

    def delete_file(self, path: Path) -> None:
        Path(path).unlink(missing_ok=True)

    def exists(self, path: Path) -> bool:
        return Path(path).exists()

    async def attach(self, pid: int) -> ScannerProcess:
        return DetachedProcess(pid)
